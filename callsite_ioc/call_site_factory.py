from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, get_args

from .call_site_chain import CallSiteChain
from .call_sites import (
    CallSite,
    CollectionCallSite,
    ConstantCallSite,
    ConstructorCallSite,
    FactoryCallSite,
    ResultCache,
)
from .constructors import ConstructorInfo, ParameterInfo, get_constructors
from .exceptions import (
    AmbiguousConstructorError,
    CannotResolveServiceError,
    NoConstructorMatchError,
    UnableToActivateError,
)
from .registrations import Registration, RegistrationTable
from .stack_guard import StackGuard
from .typing_utils import (
    close_generic_type,
    get_collection_item_type,
    get_generic_definition,
    is_closed_generic,
    is_open_generic,
    type_name,
)
from .utils import EMPTY

logger = logging.getLogger(__name__)


class CallSiteFactory:
    """
    Builds and memoizes the call-site graph of each requested service type.

    A requested type is matched, in order, against an exact registration, an open generic registration of its
    generic definition and finally as an ordered collection of its item type. ``None`` means nothing matched.
    """

    def __init__(self, registrations: RegistrationTable, stack_guard: StackGuard):
        self._registrations = registrations
        self._stack_guard = stack_guard
        self._call_site_cache: dict[Any, CallSite | None] = {}

    def add(self, service_type: Any, call_site: CallSite):
        self._call_site_cache[service_type] = call_site

    def get_call_site(self, service_type: Any, chain: CallSiteChain) -> CallSite | None:
        call_site = self._call_site_cache.get(service_type, EMPTY)
        if call_site is not EMPTY:
            return call_site

        return self._stack_guard.run(self._create_call_site, service_type, chain)

    def _create_call_site(self, service_type: Any, chain: CallSiteChain) -> CallSite | None:
        chain.check_circular_dependency(service_type)

        call_site = self._try_create_exact(service_type, chain)
        if call_site is None:
            call_site = self._try_create_open_generic(service_type, chain)
        if call_site is None:
            call_site = self._try_create_collection(service_type, chain)

        self._call_site_cache[service_type] = call_site
        if call_site is None:
            logger.debug("No call site available for %s", type_name(service_type))
        else:
            logger.debug("Created %s call site for %s", call_site.kind.name, type_name(service_type))
        return call_site

    def _try_create_exact(self, service_type: Any, chain: CallSiteChain) -> CallSite | None:
        if is_open_generic(service_type):
            return None

        registration = self._registrations.last(service_type)
        if registration is None:
            return None

        slot = self._registrations.slot_of(registration, service_type)
        return self._try_create_exact_registration(registration, service_type, chain, slot)

    def _try_create_open_generic(self, service_type: Any, chain: CallSiteChain) -> CallSite | None:
        if not is_closed_generic(service_type):
            return None

        definition = get_generic_definition(service_type)
        if not is_open_generic(definition):
            return None

        registration = self._registrations.last(definition)
        if registration is None:
            return None

        slot = self._registrations.slot_of(registration, service_type)
        return self._try_create_open_generic_registration(registration, service_type, chain, slot)

    def _try_create_collection(self, service_type: Any, chain: CallSiteChain) -> CallSite | None:
        collection_info = get_collection_item_type(service_type)
        if collection_info is None:
            return None

        item_type, collection_type = collection_info
        if is_open_generic(item_type):
            return None

        call_sites: list[CallSite] = []
        with chain.entered(service_type):
            matches = self._registrations.find_matches(item_type)
            # last registration first so that it takes slot 0
            for slot, registration in enumerate(reversed(matches)):
                call_sites.append(self._try_create_match(registration, item_type, chain, slot))

        call_sites.reverse()
        return CollectionCallSite(service_type, item_type, collection_type, call_sites)

    def _try_create_match(
        self, registration: Registration, service_type: Any, chain: CallSiteChain, slot: int
    ) -> CallSite:
        if registration.service_type == service_type:
            return self._try_create_exact_registration(registration, service_type, chain, slot)
        return self._try_create_open_generic_registration(registration, service_type, chain, slot)

    def _try_create_exact_registration(
        self, registration: Registration, service_type: Any, chain: CallSiteChain, slot: int
    ) -> CallSite:
        if registration.has_instance:
            return ConstantCallSite(service_type, registration.implementation_instance)

        cache = ResultCache.for_lifetime(registration.lifetime, service_type, slot)
        if registration.implementation_factory is not None:
            return FactoryCallSite(cache, service_type, registration.implementation_factory)

        return self._create_constructor_call_site(cache, service_type, registration.implementation_type, chain)

    def _try_create_open_generic_registration(
        self, registration: Registration, service_type: Any, chain: CallSiteChain, slot: int
    ) -> CallSite:
        implementation_type = close_generic_type(registration.implementation_type, get_args(service_type))
        cache = ResultCache.for_lifetime(registration.lifetime, service_type, slot)
        return self._create_constructor_call_site(cache, service_type, implementation_type, chain)

    def _create_constructor_call_site(
        self, cache: ResultCache, service_type: Any, implementation_type: Any, chain: CallSiteChain
    ) -> CallSite:
        with chain.entered(service_type, implementation_type):
            constructors = get_constructors(implementation_type)
            if not constructors:
                raise NoConstructorMatchError(implementation_type)

            if len(constructors) == 1:
                constructor = constructors[0]
                parameter_call_sites = self._create_argument_call_sites(
                    implementation_type, chain, constructor.parameters, throw_if_call_site_not_found=True
                )
                return ConstructorCallSite(cache, service_type, constructor, parameter_call_sites)

            best_constructor: ConstructorInfo | None = None
            best_parameter_call_sites: list[CallSite] = []
            best_parameter_types: set[Any] = set()

            for constructor in sorted(constructors, key=lambda c: len(c.parameters), reverse=True):
                parameter_call_sites = self._create_argument_call_sites(
                    implementation_type, chain, constructor.parameters, throw_if_call_site_not_found=False
                )
                if parameter_call_sites is None:
                    continue

                if best_constructor is None:
                    best_constructor = constructor
                    best_parameter_call_sites = parameter_call_sites
                    best_parameter_types = set(constructor.parameter_types)
                elif not best_parameter_types.issuperset(constructor.parameter_types):
                    raise AmbiguousConstructorError(implementation_type, best_constructor, constructor)

            if best_constructor is None:
                raise UnableToActivateError(implementation_type)

            return ConstructorCallSite(cache, service_type, best_constructor, best_parameter_call_sites)

    def _create_argument_call_sites(
        self,
        implementation_type: Any,
        chain: CallSiteChain,
        parameters: Sequence[ParameterInfo],
        throw_if_call_site_not_found: bool,
    ) -> list[CallSite] | None:
        call_sites: list[CallSite] = []
        for parameter in parameters:
            call_site = self.get_call_site(parameter.parameter_type, chain)

            if call_site is None and parameter.has_default:
                call_site = ConstantCallSite(parameter.parameter_type, parameter.default_value)

            if call_site is None:
                if throw_if_call_site_not_found:
                    raise CannotResolveServiceError(parameter.parameter_type, implementation_type)
                return None

            call_sites.append(call_site)

        return call_sites
