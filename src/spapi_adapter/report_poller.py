"""
ReportPoller module driving the create -> poll -> fetch cycle of asynchronous reports
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .document_transfer import DocumentTransfer
from .errors import ReportProcessingError
from .request_orchestrator import CallRequest, RequestOrchestrator


DEFAULT_INTERVAL_MS = 10000

# Poller states
CREATING = 'CREATING'
POLLING = 'POLLING'
FETCHING = 'FETCHING'
DONE = 'DONE'
CANCELLED = 'CANCELLED'
FAILED = 'FAILED'


@dataclass
class ReportJob:
    """Mutable state of one report download"""
    body: Dict[str, Any]
    version: Optional[str] = None
    interval: int = DEFAULT_INTERVAL_MS
    cancel_after: Optional[int] = None
    report_id: Optional[str] = None
    report_document_id: Optional[str] = None
    tries: int = 0
    state: str = CREATING

    @property
    def report_type(self) -> Optional[str]:
        return (self.body or {}).get('reportType')


class ReportPoller:
    """Creates a report, waits for it to finish and hands its document to DocumentTransfer"""

    def __init__(self, orchestrator: RequestOrchestrator, document_transfer: DocumentTransfer):
        self.orchestrator = orchestrator
        self.document_transfer = document_transfer
        self.logger = logging.getLogger(__name__)

    def _call(self, job: ReportJob, operation: str, **kwargs: Any) -> Any:
        # Every report call targets the same version when one is given
        options = {'version': job.version} if job.version else {}
        return self.orchestrator.call(CallRequest(operation=f"reports.{operation}", options=options, **kwargs))

    def create_report(self, job: ReportJob) -> str:
        job.state = CREATING
        res = self._call(job, 'createReport', body=job.body)
        job.report_id = res['reportId']
        job.state = POLLING
        return job.report_id

    def cancel_report(self, job: ReportJob) -> None:
        self._call(job, 'cancelReport', path={'reportId': job.report_id})

    def poll_report(self, job: ReportJob) -> str:
        """
        Poll the report status until it is DONE

        Returns:
            The report document id

        Raises:
            ReportProcessingError: If the report is CANCELLED/FATAL or does not
                finish within cancel_after tries
        """
        while True:
            res = self._call(job, 'getReport', path={'reportId': job.report_id})
            status = res.get('processingStatus')

            if status == 'DONE':
                job.report_document_id = res.get('reportDocumentId')
                job.state = FETCHING
                return job.report_document_id

            if status in ('CANCELLED', 'FATAL'):
                job.state = FAILED
                raise ReportProcessingError(
                    f"REPORT_PROCESSING_{status}",
                    'Something went wrong while processing the report.',
                    report_id=job.report_id
                )

            job.tries += 1
            self.logger.debug(f"Current status of report {job.report_type}: {status} (tries: {job.tries})")

            if not job.cancel_after or job.cancel_after > job.tries:
                time.sleep(job.interval / 1000)
                continue

            self.cancel_report(job)
            job.state = CANCELLED
            raise ReportProcessingError(
                'REPORT_PROCESSING_CANCELLED_MANUALLY',
                f"Report did not finish after {job.tries} tries (interval {job.interval} ms).",
                report_id=job.report_id,
                tries=job.tries,
                interval=job.interval
            )

    def get_report_document(self, job: ReportJob) -> Dict[str, Any]:
        return self._call(job, 'getReportDocument', path={'reportDocumentId': job.report_document_id})

    def fetch_document_details(self, job: ReportJob) -> Dict[str, Any]:
        """Run create and poll, then return the report document details"""
        self.create_report(job)
        self.poll_report(job)
        details = self.get_report_document(job)
        job.state = DONE
        return details

    def download_report(self, body: Dict[str, Any], version: Optional[str] = None,
                        interval: Optional[int] = None, cancel_after: Optional[int] = None,
                        download: Optional[Dict[str, Any]] = None) -> Any:
        """
        Create a report, wait for it and download its content

        Args:
            body: createReport body (reportType, marketplaceIds, ...)
            version: Reports API version used for all four report calls
            interval: Milliseconds between status checks (default 10000)
            cancel_after: Cancel the report after this many unfinished status checks
            download: Options passed on to DocumentTransfer.download

        Returns:
            Decoded report content
        """
        job = self._new_job(body, version, interval, cancel_after)
        details = self.fetch_document_details(job)
        return self.document_transfer.download(details, download or {})

    def download_report_stream(self, body: Dict[str, Any], version: Optional[str] = None,
                               interval: Optional[int] = None, cancel_after: Optional[int] = None,
                               download: Optional[Dict[str, Any]] = None) -> Iterable[bytes]:
        """Same as download_report, but returns the document as a byte stream"""
        job = self._new_job(body, version, interval, cancel_after)
        details = self.fetch_document_details(job)
        return self.document_transfer.download_stream(details, download or {})

    @staticmethod
    def _new_job(body, version, interval, cancel_after) -> ReportJob:
        return ReportJob(
            body=body,
            version=version,
            interval=interval or DEFAULT_INTERVAL_MS,
            cancel_after=cancel_after
        )
