"""
EndpointRegistry module: static catalog of endpoints, versions and operation builders
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

from ..errors import ResolutionError


@dataclass
class RequestDescriptor:
    """Concrete shape of one HTTP call to the remote API"""
    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    restore_rate: Optional[float] = None
    timeouts: Dict[str, int] = field(default_factory=dict)
    scope: Optional[str] = None
    restricted_data_token: Optional[str] = None
    deprecation_date: Optional[str] = None
    sandbox_only: bool = False


# A builder turns caller parameters ({'path': ..., 'query': ..., 'body': ..., 'headers': ...})
# into a RequestDescriptor
OperationBuilder = Callable[[Mapping[str, Any]], RequestDescriptor]


def encode_path_params(params: Mapping[str, Any], *names: str) -> Dict[str, str]:
    """
    Validate and URL-encode the named path parameters

    Args:
        params: Caller parameters holding a 'path' mapping
        names: Path parameter names the operation requires

    Returns:
        Mapping of parameter name to its encoded value

    Raises:
        ResolutionError: If a parameter is missing or not a string
    """
    path = params.get('path') or {}
    encoded = {}
    for name in names:
        value = path.get(name)
        if not isinstance(value, str) or not value:
            raise ResolutionError(
                'INVALID_PATH_PARAMETER',
                f"Path parameter '{name}' must be a non-empty string"
            )
        encoded[name] = quote(value, safe='')
    return encoded


def describe(params: Mapping[str, Any], method: str, path: str,
             restore_rate: Optional[float], **extra: Any) -> RequestDescriptor:
    """Build a RequestDescriptor carrying the caller's query, body and headers"""
    return RequestDescriptor(
        method=method,
        path=path,
        query=dict(params.get('query') or {}),
        body=params.get('body'),
        headers=dict(params.get('headers') or {}),
        restore_rate=restore_rate,
        **extra
    )


@dataclass
class Endpoint:
    """A named group of operations; versions are ordered oldest to newest"""
    name: str
    operations_by_version: Dict[str, Dict[str, OperationBuilder]]

    @property
    def versions(self) -> List[str]:
        return list(self.operations_by_version)

    @property
    def operations(self) -> List[str]:
        names: List[str] = []
        for operations in self.operations_by_version.values():
            for name in operations:
                if name not in names:
                    names.append(name)
        return names

    def builder(self, version: str, operation: str) -> Optional[OperationBuilder]:
        return self.operations_by_version.get(version, {}).get(operation)


class EndpointRegistry:
    """Read-only lookup of endpoints by name"""

    def __init__(self, endpoints: Iterable[Endpoint]):
        self._endpoints: Dict[str, Endpoint] = {endpoint.name: endpoint for endpoint in endpoints}

    def has_endpoint(self, endpoint: str) -> bool:
        return endpoint in self._endpoints

    def endpoint_names(self) -> List[str]:
        return list(self._endpoints)

    def versions(self, endpoint: str) -> List[str]:
        return self._endpoints[endpoint].versions

    def operations(self, endpoint: str) -> List[str]:
        return self._endpoints[endpoint].operations

    def builder(self, endpoint: str, version: str, operation: str) -> Optional[OperationBuilder]:
        return self._endpoints[endpoint].builder(version, operation)

    def __contains__(self, endpoint: str) -> bool:
        return self.has_endpoint(endpoint)
