"""
Merchant fulfillment endpoint operations
"""

from .registry import Endpoint, describe, encode_path_params


def get_eligible_shipment_services(params):
    return describe(params, 'POST', '/mfn/v0/eligibleShippingServices', 0.167)


def get_shipment(params):
    path = encode_path_params(params, 'shipmentId')
    return describe(params, 'GET', f"/mfn/v0/shipments/{path['shipmentId']}", 1)


def cancel_shipment(params):
    path = encode_path_params(params, 'shipmentId')
    return describe(params, 'DELETE', f"/mfn/v0/shipments/{path['shipmentId']}", 1)


def create_shipment(params):
    return describe(params, 'POST', '/mfn/v0/shipments', 0.5)


def get_additional_seller_inputs(params):
    return describe(params, 'POST', '/mfn/v0/additionalSellerInputs', 1)


ENDPOINT = Endpoint('merchantFulfillment', {
    'v0': {
        'getEligibleShipmentServices': get_eligible_shipment_services,
        'getShipment': get_shipment,
        'cancelShipment': cancel_shipment,
        'createShipment': create_shipment,
        'getAdditionalSellerInputs': get_additional_seller_inputs
    }
})
