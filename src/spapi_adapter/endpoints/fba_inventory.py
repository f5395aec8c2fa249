"""
FBA inventory endpoint operations
"""

from .registry import Endpoint, describe


def get_inventory_summaries(params):
    return describe(params, 'GET', '/fba/inventory/v1/summaries', 0.5)


def create_inventory_item(params):
    return describe(params, 'POST', '/fba/inventory/v1/items', 0.5, sandbox_only=True)


ENDPOINT = Endpoint('fbaInventory', {
    'v1': {
        'getInventorySummaries': get_inventory_summaries,
        'createInventoryItem': create_inventory_item
    }
})
