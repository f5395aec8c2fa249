"""
Feeds endpoint operations
"""

from .registry import Endpoint, describe, encode_path_params


def _feeds_version(version: str, deprecation_date=None):
    base = f"/feeds/{version}"
    extra = {'deprecation_date': deprecation_date} if deprecation_date else {}

    def get_feeds(params):
        return describe(params, 'GET', f"{base}/feeds", 45, **extra)

    def create_feed(params):
        return describe(params, 'POST', f"{base}/feeds", 120, **extra)

    def get_feed(params):
        path = encode_path_params(params, 'feedId')
        return describe(params, 'GET', f"{base}/feeds/{path['feedId']}", 0.5, **extra)

    def cancel_feed(params):
        path = encode_path_params(params, 'feedId')
        return describe(params, 'DELETE', f"{base}/feeds/{path['feedId']}", 0.5, **extra)

    def create_feed_document(params):
        return describe(params, 'POST', f"{base}/documents", 0.5, **extra)

    def get_feed_document(params):
        path = encode_path_params(params, 'feedDocumentId')
        return describe(params, 'GET', f"{base}/documents/{path['feedDocumentId']}", 45, **extra)

    return {
        'getFeeds': get_feeds,
        'createFeed': create_feed,
        'getFeed': get_feed,
        'cancelFeed': cancel_feed,
        'createFeedDocument': create_feed_document,
        'getFeedDocument': get_feed_document
    }


ENDPOINT = Endpoint('feeds', {
    '2020-09-04': _feeds_version('2020-09-04', deprecation_date='2022-06-27'),
    '2021-06-30': _feeds_version('2021-06-30')
})
