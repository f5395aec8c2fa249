"""
Sellers endpoint operations
"""

from .registry import Endpoint, describe


def get_marketplace_participations(params):
    return describe(params, 'GET', '/sellers/v1/marketplaceParticipations', 60)


def get_account(params):
    return describe(params, 'GET', '/sellers/v1/account', 60)


ENDPOINT = Endpoint('sellers', {
    'v1': {
        'getMarketplaceParticipations': get_marketplace_participations,
        'getAccount': get_account
    }
})
