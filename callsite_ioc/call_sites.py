"""Call-site graph.

A call site describes how a value for a service type is produced. Nodes are immutable once built and shared
between every scope of an engine.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from .abstractions import ServiceProvider, ServiceScopeFactory
from .registrations import Lifetime
from .typing_utils import type_name

if TYPE_CHECKING:
    from .constructors import ConstructorInfo

TArgument = TypeVar("TArgument")
TResult = TypeVar("TResult")


class CallSiteKind(Enum):
    factory = "factory"
    constructor = "constructor"
    constant = "constant"
    collection = "collection"
    service_provider = "service_provider"
    service_scope_factory = "service_scope_factory"


class CallSiteResultCacheLocation(Enum):
    root = "root"
    scope = "scope"
    dispose = "dispose"
    none = "none"


@dataclass(frozen=True)
class ServiceCacheKey:
    service_type: Any
    slot: int


_LIFETIME_LOCATIONS = {
    Lifetime.singleton: CallSiteResultCacheLocation.root,
    Lifetime.scoped: CallSiteResultCacheLocation.scope,
    Lifetime.transient: CallSiteResultCacheLocation.dispose,
}


@dataclass(frozen=True)
class ResultCache:
    location: CallSiteResultCacheLocation
    key: ServiceCacheKey

    @classmethod
    def none(cls) -> ResultCache:
        return cls(CallSiteResultCacheLocation.none, ServiceCacheKey(None, 0))

    @classmethod
    def for_lifetime(cls, lifetime: Lifetime, service_type: Any, slot: int) -> ResultCache:
        return cls(_LIFETIME_LOCATIONS[lifetime], ServiceCacheKey(service_type, slot))


class CallSite(abc.ABC):
    kind: ClassVar[CallSiteKind]

    __slots__ = ("cache",)

    def __init__(self, cache: ResultCache):
        self.cache = cache

    @property
    @abc.abstractmethod
    def service_type(self) -> Any: ...

    @property
    @abc.abstractmethod
    def implementation_type(self) -> Any: ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({type_name(self.service_type)}, {self.cache.location.name})"


class ConstantCallSite(CallSite):
    kind = CallSiteKind.constant

    __slots__ = ("_service_type", "value")

    def __init__(self, service_type: Any, value: Any):
        super().__init__(ResultCache.none())
        self._service_type = service_type
        self.value = value

    @property
    def service_type(self):
        return self._service_type

    @property
    def implementation_type(self):
        return type(self.value)


class FactoryCallSite(CallSite):
    kind = CallSiteKind.factory

    __slots__ = ("_service_type", "factory")

    def __init__(self, cache: ResultCache, service_type: Any, factory: Callable[[Any], Any]):
        super().__init__(cache)
        self._service_type = service_type
        self.factory = factory

    @property
    def service_type(self):
        return self._service_type

    @property
    def implementation_type(self):
        return None


class ConstructorCallSite(CallSite):
    kind = CallSiteKind.constructor

    __slots__ = ("_service_type", "constructor", "parameter_call_sites")

    def __init__(
        self,
        cache: ResultCache,
        service_type: Any,
        constructor: ConstructorInfo,
        parameter_call_sites: Sequence[CallSite] = (),
    ):
        super().__init__(cache)
        self._service_type = service_type
        self.constructor = constructor
        self.parameter_call_sites = tuple(parameter_call_sites)

    @property
    def service_type(self):
        return self._service_type

    @property
    def implementation_type(self):
        return self.constructor.declaring_type


class CollectionCallSite(CallSite):
    kind = CallSiteKind.collection

    __slots__ = ("_service_type", "call_sites", "collection_type", "item_type")

    def __init__(self, service_type: Any, item_type: Any, collection_type: type, call_sites: Sequence[CallSite]):
        super().__init__(ResultCache.none())
        self._service_type = service_type
        self.item_type = item_type
        self.collection_type = collection_type
        self.call_sites = tuple(call_sites)

    @property
    def service_type(self):
        return self._service_type

    @property
    def implementation_type(self):
        return self.collection_type


class ServiceProviderCallSite(CallSite):
    kind = CallSiteKind.service_provider

    __slots__ = ()

    def __init__(self):
        super().__init__(ResultCache.none())

    @property
    def service_type(self):
        return ServiceProvider

    @property
    def implementation_type(self):
        return ServiceProvider


class ServiceScopeFactoryCallSite(CallSite):
    kind = CallSiteKind.service_scope_factory

    __slots__ = ()

    def __init__(self):
        super().__init__(ResultCache.none())

    @property
    def service_type(self):
        return ServiceScopeFactory

    @property
    def implementation_type(self):
        return ServiceScopeFactory


class CallSiteVisitor(abc.ABC, Generic[TArgument, TResult]):
    """
    Structural recursion over a call-site graph.

    ``visit_call_site`` dispatches on the node's result-cache location and ``visit_call_site_main`` on the
    node's kind. The cache hooks default to visiting the node itself.
    """

    _KIND_HANDLERS: ClassVar[dict[CallSiteKind, str]] = {
        CallSiteKind.factory: "visit_factory",
        CallSiteKind.constructor: "visit_constructor",
        CallSiteKind.constant: "visit_constant",
        CallSiteKind.collection: "visit_collection",
        CallSiteKind.service_provider: "visit_service_provider",
        CallSiteKind.service_scope_factory: "visit_service_scope_factory",
    }

    def visit_call_site(self, call_site: CallSite, argument: TArgument) -> TResult:
        location = call_site.cache.location
        if location is CallSiteResultCacheLocation.root:
            return self.visit_root_cache(call_site, argument)
        if location is CallSiteResultCacheLocation.scope:
            return self.visit_scope_cache(call_site, argument)
        if location is CallSiteResultCacheLocation.dispose:
            return self.visit_dispose_cache(call_site, argument)
        return self.visit_call_site_main(call_site, argument)

    def visit_call_site_main(self, call_site: CallSite, argument: TArgument) -> TResult:
        handler = getattr(self, self._KIND_HANDLERS[call_site.kind])
        return handler(call_site, argument)

    def visit_root_cache(self, call_site: CallSite, argument: TArgument) -> TResult:
        return self.visit_call_site_main(call_site, argument)

    def visit_scope_cache(self, call_site: CallSite, argument: TArgument) -> TResult:
        return self.visit_call_site_main(call_site, argument)

    def visit_dispose_cache(self, call_site: CallSite, argument: TArgument) -> TResult:
        return self.visit_call_site_main(call_site, argument)

    @abc.abstractmethod
    def visit_factory(self, call_site: FactoryCallSite, argument: TArgument) -> TResult: ...

    @abc.abstractmethod
    def visit_constructor(self, call_site: ConstructorCallSite, argument: TArgument) -> TResult: ...

    @abc.abstractmethod
    def visit_constant(self, call_site: ConstantCallSite, argument: TArgument) -> TResult: ...

    @abc.abstractmethod
    def visit_collection(self, call_site: CollectionCallSite, argument: TArgument) -> TResult: ...

    @abc.abstractmethod
    def visit_service_provider(self, call_site: ServiceProviderCallSite, argument: TArgument) -> TResult: ...

    @abc.abstractmethod
    def visit_service_scope_factory(self, call_site: ServiceScopeFactoryCallSite, argument: TArgument) -> TResult: ...
