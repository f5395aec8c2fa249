"""
Reports endpoint operations
"""

from .registry import Endpoint, describe, encode_path_params


def _reports_version(version: str, deprecation_date=None):
    base = f"/reports/{version}"
    extra = {'deprecation_date': deprecation_date} if deprecation_date else {}

    def get_reports(params):
        return describe(params, 'GET', f"{base}/reports", 45, **extra)

    def create_report(params):
        return describe(params, 'POST', f"{base}/reports", 60, **extra)

    def get_report(params):
        path = encode_path_params(params, 'reportId')
        return describe(params, 'GET', f"{base}/reports/{path['reportId']}", 0.5, **extra)

    def cancel_report(params):
        path = encode_path_params(params, 'reportId')
        return describe(params, 'DELETE', f"{base}/reports/{path['reportId']}", 45, **extra)

    def get_report_schedules(params):
        return describe(params, 'GET', f"{base}/schedules", 45, **extra)

    def get_report_document(params):
        path = encode_path_params(params, 'reportDocumentId')
        return describe(params, 'GET', f"{base}/documents/{path['reportDocumentId']}", 60, **extra)

    return {
        'getReports': get_reports,
        'createReport': create_report,
        'getReport': get_report,
        'cancelReport': cancel_report,
        'getReportSchedules': get_report_schedules,
        'getReportDocument': get_report_document
    }


ENDPOINT = Endpoint('reports', {
    '2020-09-04': _reports_version('2020-09-04', deprecation_date='2022-06-27'),
    '2021-06-30': _reports_version('2021-06-30')
})
