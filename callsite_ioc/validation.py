from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

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
from .exceptions import ScopeValidationError
from .typing_utils import type_name

if TYPE_CHECKING:
    from .engine import Scope


class CallSiteValidator(CallSiteVisitor[Optional[CallSite], Any]):
    """
    Rejects scoped services that would be captured by a singleton or resolved from the root scope.

    The visit argument is the singleton call site enclosing the visited node, if any. The visit result is
    the first scoped service type the node depends on.
    """

    def __init__(self):
        self._scoped_services: dict[Any, Any] = {}

    def on_create(self, call_site: CallSite):
        self.validate_call_site(call_site)

    def on_resolve(self, service_type: Any, scope: Scope):
        self.validate_resolution(service_type, scope, scope.engine.root)

    def validate_call_site(self, call_site: CallSite):
        scoped_service = self.visit_call_site(call_site, None)
        if scoped_service is not None:
            self._scoped_services[call_site.service_type] = scoped_service

    def validate_resolution(self, service_type: Any, scope: Scope, root_scope: Scope):
        if scope is not root_scope:
            return

        scoped_service = self._scoped_services.get(service_type)
        if scoped_service is None:
            return

        if service_type == scoped_service:
            raise ScopeValidationError(
                f"Cannot resolve scoped service {type_name(service_type)} from the root scope"
            )
        raise ScopeValidationError(
            f"Cannot resolve {type_name(service_type)} from the root scope because it requires scoped service "
            f"{type_name(scoped_service)}"
        )

    def visit_root_cache(self, call_site: CallSite, argument: CallSite | None) -> Any:
        return self.visit_call_site_main(call_site, call_site)

    def visit_scope_cache(self, call_site: CallSite, argument: CallSite | None) -> Any:
        if argument is not None:
            raise ScopeValidationError(
                f"Cannot consume scoped service {type_name(call_site.service_type)} "
                f"from singleton {type_name(argument.service_type)}"
            )

        self.visit_call_site_main(call_site, argument)
        return call_site.service_type

    def visit_constructor(self, call_site: ConstructorCallSite, argument: CallSite | None) -> Any:
        result = None
        for parameter_call_site in call_site.parameter_call_sites:
            scoped_service = self.visit_call_site(parameter_call_site, argument)
            if result is None:
                result = scoped_service
        return result

    def visit_collection(self, call_site: CollectionCallSite, argument: CallSite | None) -> Any:
        result = None
        for item_call_site in call_site.call_sites:
            scoped_service = self.visit_call_site(item_call_site, argument)
            if result is None:
                result = scoped_service
        return result

    def visit_constant(self, call_site: ConstantCallSite, argument: CallSite | None) -> Any:
        return None

    def visit_factory(self, call_site: FactoryCallSite, argument: CallSite | None) -> Any:
        return None

    def visit_service_provider(self, call_site: ServiceProviderCallSite, argument: CallSite | None) -> Any:
        return None

    def visit_service_scope_factory(self, call_site: ServiceScopeFactoryCallSite, argument: CallSite | None) -> Any:
        return None
