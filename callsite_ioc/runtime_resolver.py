from __future__ import annotations

import threading
from contextlib import _GeneratorContextManager
from dataclasses import dataclass
from enum import IntFlag
from typing import TYPE_CHECKING, Any

from .call_sites import (
    CallSite,
    CallSiteVisitor,
    CollectionCallSite,
    ConstantCallSite,
    ConstructorCallSite,
    FactoryCallSite,
    ServiceProviderCallSite,
    ServiceScopeFactoryCallSite,
)
from .stack_guard import StackGuard
from .utils import EMPTY

if TYPE_CHECKING:
    from .engine import Scope


class RuntimeResolverLock(IntFlag):
    scope = 1
    root = 2


@dataclass(frozen=True)
class RuntimeResolverContext:
    scope: Scope
    acquired_locks: RuntimeResolverLock = RuntimeResolverLock(0)


class CallSiteRuntimeResolver(CallSiteVisitor[RuntimeResolverContext, Any]):
    """
    Evaluates call sites against a scope.

    Singleton results are cached in the root scope and scoped results in the current scope, each under that
    scope's ``resolved_services_lock``. The locks already held on the current call path travel in the
    context and are never taken twice.

    The scopes whose locks are held are also tracked per thread and handed to every stack-guard worker, so a
    factory that resolves more services starts from the locks its caller already owns, on whichever thread it
    runs.
    """

    def __init__(self, stack_guard: StackGuard):
        self._stack_guard = stack_guard
        self._state = threading.local()

    @property
    def _held_scopes(self) -> frozenset[Scope]:
        return getattr(self._state, "held_scopes", frozenset())

    def resolve(self, call_site: CallSite, scope: Scope) -> Any:
        held_scopes = self._held_scopes
        acquired_locks = RuntimeResolverLock(0)
        if scope.engine.root in held_scopes:
            acquired_locks |= RuntimeResolverLock.root
        if scope in held_scopes and not scope.is_root_scope:
            acquired_locks |= RuntimeResolverLock.scope

        return self.visit_call_site(call_site, RuntimeResolverContext(scope, acquired_locks))

    def visit_call_site(self, call_site: CallSite, argument: RuntimeResolverContext) -> Any:
        return self._stack_guard.run(self._visit_with_held_scopes, self._held_scopes, call_site, argument)

    def _visit_with_held_scopes(
        self, held_scopes: frozenset[Scope], call_site: CallSite, argument: RuntimeResolverContext
    ) -> Any:
        previous = self._held_scopes
        self._state.held_scopes = held_scopes
        try:
            return super().visit_call_site(call_site, argument)
        finally:
            self._state.held_scopes = previous

    def visit_root_cache(self, call_site: CallSite, argument: RuntimeResolverContext) -> Any:
        return self._visit_cache(call_site, argument, argument.scope.engine.root, RuntimeResolverLock.root)

    def visit_scope_cache(self, call_site: CallSite, argument: RuntimeResolverContext) -> Any:
        scope = argument.scope
        lock_type = RuntimeResolverLock.root if scope.is_root_scope else RuntimeResolverLock.scope
        return self._visit_cache(call_site, argument, scope, lock_type)

    def _visit_cache(
        self,
        call_site: CallSite,
        context: RuntimeResolverContext,
        service_scope: Scope,
        lock_type: RuntimeResolverLock,
    ) -> Any:
        if context.acquired_locks & lock_type:
            return self._resolve_in_scope(call_site, context, service_scope, lock_type)

        with service_scope.resolved_services_lock:
            previous = self._held_scopes
            self._state.held_scopes = previous | {service_scope}
            try:
                return self._resolve_in_scope(call_site, context, service_scope, lock_type)
            finally:
                self._state.held_scopes = previous

    def _resolve_in_scope(
        self,
        call_site: CallSite,
        context: RuntimeResolverContext,
        service_scope: Scope,
        lock_type: RuntimeResolverLock,
    ) -> Any:
        key = call_site.cache.key
        resolved = service_scope.resolved_services.get(key, EMPTY)
        if resolved is not EMPTY:
            return resolved

        resolved = self.visit_call_site_main(
            call_site, RuntimeResolverContext(service_scope, context.acquired_locks | lock_type)
        )
        service_scope.resolved_services[key] = resolved
        return resolved

    def visit_constant(self, call_site: ConstantCallSite, argument: RuntimeResolverContext) -> Any:
        return call_site.value

    def visit_service_provider(self, call_site: ServiceProviderCallSite, argument: RuntimeResolverContext) -> Any:
        return argument.scope

    def visit_service_scope_factory(
        self, call_site: ServiceScopeFactoryCallSite, argument: RuntimeResolverContext
    ) -> Any:
        return argument.scope.engine

    def visit_factory(self, call_site: FactoryCallSite, argument: RuntimeResolverContext) -> Any:
        instance = call_site.factory(argument.scope)

        if isinstance(instance, _GeneratorContextManager):
            argument.scope.capture_disposable(instance)
            return instance.__enter__()

        return argument.scope.capture_disposable(instance)

    def visit_collection(self, call_site: CollectionCallSite, argument: RuntimeResolverContext) -> Any:
        return call_site.collection_type(self.visit_call_site(item, argument) for item in call_site.call_sites)

    def visit_constructor(self, call_site: ConstructorCallSite, argument: RuntimeResolverContext) -> Any:
        values = [self.visit_call_site(parameter, argument) for parameter in call_site.parameter_call_sites]
        return argument.scope.capture_disposable(call_site.constructor.invoke(values))
