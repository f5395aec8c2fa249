"""
Tokens endpoint operations
"""

from .registry import Endpoint, describe


def create_restricted_data_token(params):
    return describe(params, 'POST', '/tokens/2021-03-01/restrictedDataToken', 1)


ENDPOINT = Endpoint('tokens', {
    '2021-03-01': {
        'createRestrictedDataToken': create_restricted_data_token
    }
})
