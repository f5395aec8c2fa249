"""
Endpoint catalog: per-endpoint operation tables and the registry built from them
"""

from .registry import (
    Endpoint,
    EndpointRegistry,
    OperationBuilder,
    RequestDescriptor,
    describe,
    encode_path_params
)
from . import fba_inventory, feeds, merchant_fulfillment, notifications, reports, sellers, tokens


def build_default_registry() -> EndpointRegistry:
    """Registry holding every endpoint shipped with the package"""
    return EndpointRegistry([
        fba_inventory.ENDPOINT,
        feeds.ENDPOINT,
        merchant_fulfillment.ENDPOINT,
        notifications.ENDPOINT,
        reports.ENDPOINT,
        sellers.ENDPOINT,
        tokens.ENDPOINT
    ])


__all__ = [
    'Endpoint',
    'EndpointRegistry',
    'OperationBuilder',
    'RequestDescriptor',
    'build_default_registry',
    'describe',
    'encode_path_params'
]
