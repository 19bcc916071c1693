from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Callable, Iterable
from contextlib import _GeneratorContextManager
from typing import Any, Protocol, TypeVar

from theutilitybelt.functional.utils import constant

from .abstractions import ServiceProvider, ServiceScopeFactory
from .call_site_chain import CallSiteChain
from .call_site_factory import CallSiteFactory
from .call_sites import CallSite, ServiceCacheKey, ServiceProviderCallSite, ServiceScopeFactoryCallSite
from .exceptions import CannotResolveServiceError, ObjectDisposedError
from .registrations import Registration, RegistrationTable
from .runtime_resolver import CallSiteRuntimeResolver
from .stack_guard import DEFAULT_MAX_DEPTH_PER_STACK, StackGuard
from .typing_utils import type_name
from .utils import EMPTY

logger = logging.getLogger(__name__)

TService = TypeVar("TService")


class EngineCallback(Protocol):
    def on_create(self, call_site: CallSite) -> None: ...

    def on_resolve(self, service_type: Any, scope: Scope) -> None: ...


def _is_disposable(value: Any) -> bool:
    if value is None or isinstance(value, type):
        return False
    return isinstance(value, _GeneratorContextManager) or callable(getattr(value, "close", None))


def _release(value: Any):
    if isinstance(value, _GeneratorContextManager):
        value.__exit__(None, None, None)
    else:
        value.close()


class Scope:
    """
    A resolution scope.

    Holds the scoped instances resolved through it (the root scope also holds every singleton) and the
    releasable values it has to close when it is disposed.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.resolved_services: dict[ServiceCacheKey, Any] = {}
        self.resolved_services_lock = threading.RLock()
        self._disposables: list[Any] = []
        self._disposables_lock = threading.Lock()
        self._disposed = False

    @property
    def is_root_scope(self) -> bool:
        return self is self.engine.root

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _throw_if_disposed(self):
        if self._disposed:
            raise ObjectDisposedError(type(self).__name__)

    def get_service(self, service_type: Any) -> Any:
        self._throw_if_disposed()
        service = self.engine.resolve(service_type, self)
        return None if service is EMPTY else service

    def resolve(self, service_type: type[TService]) -> TService:
        self._throw_if_disposed()
        service = self.engine.resolve(service_type, self)
        if service is EMPTY:
            raise CannotResolveServiceError(service_type)
        return service

    def create_scope(self) -> Scope:
        return self.engine.create_scope()

    def capture_disposable(self, value: Any) -> Any:
        if value is self or not _is_disposable(value):
            return value

        with self._disposables_lock:
            disposed = self._disposed
            if not disposed:
                self._disposables.append(value)

        if disposed:
            _release(value)
            raise ObjectDisposedError(type(self).__name__)

        return value

    def dispose(self):
        with self.resolved_services_lock:
            with self._disposables_lock:
                if self._disposed:
                    return
                self._disposed = True
                disposables = self._disposables
                self._disposables = []

            logger.debug("Disposing %s with %d releasable values", self, len(disposables))
            error = None
            for value in reversed(disposables):
                try:
                    _release(value)
                except Exception as ex:
                    logger.exception("Failed to release %r", value)
                    if error is None:
                        error = ex

            self.resolved_services.clear()
            if error is not None:
                raise error

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()

    def __repr__(self) -> str:
        return f"Scope(root={self.is_root_scope})"


class Engine:
    """
    Owns the registration table, the call-site factory, the runtime resolver and the root scope.

    A service accessor is realized on the first resolve of a type and shared by every scope afterwards.
    """

    def __init__(
        self,
        registrations: Iterable[Registration],
        callback: EngineCallback | None = None,
        *,
        max_stack_depth: int = DEFAULT_MAX_DEPTH_PER_STACK,
    ):
        if not isinstance(registrations, RegistrationTable):
            registrations = RegistrationTable(registrations)

        self.registrations = registrations
        self._callback = callback
        self._stack_guard = StackGuard(max_stack_depth)
        self._disposed = False
        self._realized_services: dict[Any, Callable[[Scope], Any]] = {}

        self.root = Scope(self)
        self.runtime_resolver = CallSiteRuntimeResolver(self._stack_guard)
        self.call_site_factory = CallSiteFactory(registrations, self._stack_guard)
        self.call_site_factory.add(ServiceProvider, ServiceProviderCallSite())
        self.call_site_factory.add(ServiceScopeFactory, ServiceScopeFactoryCallSite())

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _throw_if_disposed(self):
        if self._disposed:
            raise ObjectDisposedError(type(self).__name__)

    def resolve(self, service_type: Any, scope: Scope | None = None) -> Any:
        self._throw_if_disposed()
        if scope is None:
            scope = self.root

        accessor = self._realized_services.get(service_type)
        if accessor is None:
            accessor = self._create_service_accessor(service_type)
            self._realized_services[service_type] = accessor

        if self._callback is not None:
            self._callback.on_resolve(service_type, scope)

        return accessor(scope)

    def _create_service_accessor(self, service_type: Any) -> Callable[[Scope], Any]:
        call_site = self.call_site_factory.get_call_site(service_type, CallSiteChain())
        if call_site is None:
            return constant(EMPTY)

        if self._callback is not None:
            self._callback.on_create(call_site)

        logger.debug("Realizing service accessor for %s", type_name(service_type))
        return self.realize_service(call_site)

    def realize_service(self, call_site: CallSite) -> Callable[[Scope], Any]:
        return functools.partial(self.runtime_resolver.resolve, call_site)

    def create_scope(self) -> Scope:
        self._throw_if_disposed()
        return Scope(self)

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        logger.debug("Disposing engine")
        self.root.dispose()

    def __enter__(self) -> Engine:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()
