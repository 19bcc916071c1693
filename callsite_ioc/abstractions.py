from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar

if TYPE_CHECKING:
    from .engine import Scope

TService = TypeVar("TService")


class ServiceProvider(Protocol):
    def get_service(self, service_type: Any) -> Any: ...

    def resolve(self, service_type: type[TService]) -> TService: ...


class ServiceScopeFactory(Protocol):
    def create_scope(self) -> Scope: ...
