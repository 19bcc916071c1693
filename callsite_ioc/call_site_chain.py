from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .exceptions import CircularDependencyError


class CallSiteChain:
    """
    Ordered set of the service types being built on the current build path.
    """

    def __init__(self):
        self._chain: dict[Any, Any] = {}

    def __contains__(self, service_type: Any) -> bool:
        return service_type in self._chain

    def __len__(self) -> int:
        return len(self._chain)

    def check_circular_dependency(self, service_type: Any):
        if service_type in self._chain:
            raise CircularDependencyError(service_type, list(self._chain.items()))

    def add(self, service_type: Any, implementation_type: Any = None):
        self._chain[service_type] = implementation_type

    def remove(self, service_type: Any):
        self._chain.pop(service_type, None)

    @contextmanager
    def entered(self, service_type: Any, implementation_type: Any = None) -> Iterator[CallSiteChain]:
        self.check_circular_dependency(service_type)
        self.add(service_type, implementation_type)
        try:
            yield self
        finally:
            self.remove(service_type)
