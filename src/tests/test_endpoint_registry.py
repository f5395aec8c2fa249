"""
Test suite for the endpoint registry and operation builders
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest

from spapi_adapter.endpoints import build_default_registry, encode_path_params
from spapi_adapter.errors import ResolutionError


class TestEndpointRegistry:
    """Test suite for endpoint lookup"""

    def setup_method(self):
        """Set up test fixtures before each test method"""
        self.registry = build_default_registry()

    def test_versions_are_ordered_oldest_first(self):
        """
        Test that endpoint versions keep their declared order
        """
        # Act & Assert
        assert self.registry.versions('reports') == ['2020-09-04', '2021-06-30']

    def test_operations_are_union_over_versions(self):
        """
        Test that operations list every operation once
        """
        # Act
        operations = self.registry.operations('reports')

        # Assert
        assert 'getReport' in operations
        assert len(operations) == len(set(operations))

    def test_builder_for_undefined_operation_returns_none(self):
        """
        Test that unknown operations have no builder
        """
        # Act & Assert
        assert self.registry.builder('sellers', 'v1', 'getReport') is None

    def test_builder_encodes_path_parameters(self):
        """
        Test that path parameters are URL-encoded into the path
        """
        # Arrange
        builder = self.registry.builder('merchantFulfillment', 'v0', 'getShipment')

        # Act
        descriptor = builder({'path': {'shipmentId': 'a/b c'}, 'query': {}, 'body': None, 'headers': {}})

        # Assert
        assert descriptor.path == '/mfn/v0/shipments/a%2Fb%20c'
        assert descriptor.method == 'GET'
        assert descriptor.restore_rate == 1

    def test_builder_marks_grantless_and_sandbox_only_operations(self):
        """
        Test that builders carry scope and sandbox flags
        """
        # Act
        destinations = self.registry.builder('notifications', 'v1', 'getDestinations')({})
        inventory_item = self.registry.builder('fbaInventory', 'v1', 'createInventoryItem')({})

        # Assert
        assert destinations.scope == 'sellingpartnerapi::notifications'
        assert inventory_item.sandbox_only is True

    @pytest.mark.parametrize('path', [{}, {'reportId': 42}, {'reportId': ''}])
    def test_encode_path_params_with_invalid_value_raises(self, path):
        """
        Test that missing or non-string path parameters are rejected
        """
        # Act & Assert
        with pytest.raises(ResolutionError) as exc_info:
            encode_path_params({'path': path}, 'reportId')

        assert exc_info.value.code == 'INVALID_PATH_PARAMETER'

    def test_contains_checks_endpoint_names(self):
        """
        Test membership by endpoint name
        """
        # Act & Assert
        assert 'feeds' in self.registry
        assert 'orders' not in self.registry
