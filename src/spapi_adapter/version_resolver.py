"""
VersionResolver module selecting the concrete API version for an operation
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .endpoints import EndpointRegistry
from .errors import ConfigurationError, ResolutionError


@dataclass(frozen=True)
class ResolvedOperation:
    """Concrete endpoint/operation/version triple chosen for one call"""
    endpoint: str
    operation: str
    version: str


class VersionResolver:
    """
    Resolves (operation, endpoint, version) against the endpoint registry

    Without an explicit version or a configured pin, the oldest version that
    defines the operation wins. When the requested version lacks the operation,
    only strictly older versions are searched, nearest first.
    """

    def __init__(self, registry: EndpointRegistry,
                 endpoints_versions: Optional[Dict[str, str]] = None,
                 version_fallback: bool = True):
        self.registry = registry
        self.version_fallback = version_fallback
        self.endpoints_versions = self.validate_endpoints_versions(endpoints_versions or {})
        self.logger = logging.getLogger(__name__)

    def validate_endpoints_versions(self, endpoints_versions: Dict[str, str]) -> Dict[str, str]:
        """
        Make sure every pinned endpoint and version exists

        Args:
            endpoints_versions: Mapping of endpoint name to pinned version

        Returns:
            Copy of the validated mapping

        Raises:
            ConfigurationError: If an endpoint or a pinned version is unknown
        """
        invalid_endpoints = [
            endpoint for endpoint in endpoints_versions
            if not self.registry.has_endpoint(endpoint)
        ]
        if invalid_endpoints:
            raise ConfigurationError(
                'VERSION_DEFINED_FOR_INVALID_ENDPOINTS',
                f"One or more endpoints are not valid. These endpoints don't exist: {','.join(invalid_endpoints)}"
            )

        invalid_versions = [
            endpoint for endpoint, version in endpoints_versions.items()
            if version not in self.registry.versions(endpoint)
        ]
        if invalid_versions:
            raise ConfigurationError(
                'INVALID_VERSION_FOR_ENDPOINTS',
                f"The provided version for the following endpoint(s) is not valid: {','.join(invalid_versions)}"
            )

        return dict(endpoints_versions)

    def validate_operation_and_endpoint(self, operation: Optional[str],
                                        endpoint: Optional[str]) -> Tuple[str, str]:
        """
        Validate operation and endpoint, splitting 'endpoint.operation' shorthand

        Returns:
            Tuple of (operation, endpoint)

        Raises:
            ResolutionError: If either is missing or unknown
        """
        if not operation:
            raise ResolutionError('NO_OPERATION_GIVEN', 'Please provide an operation to call')

        if '.' in operation:
            endpoint, operation = operation.split('.', 1)
        elif not endpoint:
            raise ResolutionError('NO_ENDPOINT_GIVEN', 'Please provide an endpoint to call')

        if not self.registry.has_endpoint(endpoint):
            raise ResolutionError('ENDPOINT_NOT_FOUND', f"No endpoint found: {endpoint}")

        if operation not in self.registry.operations(endpoint):
            raise ResolutionError(
                'INVALID_OPERATION_FOR_ENDPOINT',
                f"The operation {operation} is not valid for endpoint {endpoint}"
            )

        return operation, endpoint

    def resolve(self, operation: Optional[str], endpoint: Optional[str] = None,
                version: Optional[str] = None) -> ResolvedOperation:
        """
        Determine the concrete version answering the operation

        Args:
            operation: Operation name, optionally in 'endpoint.operation' form
            endpoint: Endpoint name if not part of the operation
            version: Explicit version requested for this call

        Returns:
            ResolvedOperation triple

        Raises:
            ResolutionError: If no version can answer the operation
        """
        operation, endpoint = self.validate_operation_and_endpoint(operation, endpoint)

        if version:
            resolved = self._resolve_explicit(operation, endpoint, version)
        else:
            resolved = self._resolve_configured(operation, endpoint)

        return ResolvedOperation(endpoint=endpoint, operation=operation, version=resolved)

    def _resolve_explicit(self, operation: str, endpoint: str, version: str) -> str:
        versions = self.registry.versions(endpoint)
        if version not in versions:
            raise ResolutionError(
                'INVALID_VERSION',
                f"Invalid version {version} for endpoint {endpoint} and operation {operation}. "
                f"Should be one of: {', '.join(versions)}"
            )
        if self.registry.builder(endpoint, version, operation) is None:
            return self.fallback_version(operation, endpoint, version)
        return version

    def _resolve_configured(self, operation: str, endpoint: str) -> str:
        pinned = self.endpoints_versions.get(endpoint)
        if pinned:
            if self.registry.builder(endpoint, pinned, operation) is None:
                return self.fallback_version(operation, endpoint, pinned)
            return pinned

        # Oldest version defining the operation; validation guarantees there is one
        for candidate in self.registry.versions(endpoint):
            if self.registry.builder(endpoint, candidate, operation) is not None:
                return candidate
        raise ResolutionError(
            'INVALID_OPERATION_FOR_ENDPOINT',
            f"The operation {operation} is not valid for endpoint {endpoint}"
        )

    def fallback_version(self, operation: str, endpoint: str, version: str) -> str:
        """
        Find the nearest older version defining the operation

        Raises:
            ResolutionError: If fallback is disabled or no older version defines it
        """
        versions = self.registry.versions(endpoint)
        older = versions[:versions.index(version)]

        fallback = None
        if self.version_fallback:
            fallback = next(
                (candidate for candidate in reversed(older)
                 if self.registry.builder(endpoint, candidate, operation) is not None),
                None
            )

        if fallback is None:
            raise ResolutionError(
                'OPERATION_NOT_FOUND_FOR_VERSION',
                f"Operation {operation} not found for version {version}"
            )

        self.logger.debug(f"Operation {endpoint}.{operation} not in {version}, falling back to {fallback}")
        return fallback
