"""
Notifications endpoint operations; destination operations are grantless
"""

from .registry import Endpoint, describe, encode_path_params


NOTIFICATIONS_SCOPE = 'sellingpartnerapi::notifications'


def get_subscription(params):
    path = encode_path_params(params, 'notificationType')
    return describe(params, 'GET', f"/notifications/v1/subscriptions/{path['notificationType']}", 1)


def create_subscription(params):
    path = encode_path_params(params, 'notificationType')
    return describe(params, 'POST', f"/notifications/v1/subscriptions/{path['notificationType']}", 1)


def get_destinations(params):
    return describe(params, 'GET', '/notifications/v1/destinations', 1, scope=NOTIFICATIONS_SCOPE)


def create_destination(params):
    return describe(params, 'POST', '/notifications/v1/destinations', 1, scope=NOTIFICATIONS_SCOPE)


def delete_destination(params):
    path = encode_path_params(params, 'destinationId')
    return describe(params, 'DELETE', f"/notifications/v1/destinations/{path['destinationId']}", 1,
                    scope=NOTIFICATIONS_SCOPE)


ENDPOINT = Endpoint('notifications', {
    'v1': {
        'getSubscription': get_subscription,
        'createSubscription': create_subscription,
        'getDestinations': get_destinations,
        'createDestination': create_destination,
        'deleteDestination': delete_destination
    }
})
