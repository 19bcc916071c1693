"""Call-site based dependency injection."""

from .abstractions import ServiceProvider, ServiceScopeFactory
from .call_site_chain import CallSiteChain
from .call_site_factory import CallSiteFactory
from .call_sites import (
    CallSite,
    CallSiteKind,
    CallSiteResultCacheLocation,
    CallSiteVisitor,
    CollectionCallSite,
    ConstantCallSite,
    ConstructorCallSite,
    FactoryCallSite,
    ResultCache,
    ServiceCacheKey,
    ServiceProviderCallSite,
    ServiceScopeFactoryCallSite,
)
from .constructors import ConstructorInfo, ParameterInfo, constructor, get_constructors, private_constructor
from .container import Container, ContainerOptions
from .engine import Engine, EngineCallback, Scope
from .exceptions import (
    AmbiguousConstructorError,
    CannotResolveServiceError,
    CircularDependencyError,
    ContainerValidationError,
    InsufficientExecutionStackError,
    InvalidRegistrationError,
    IocError,
    NoConstructorMatchError,
    ObjectDisposedError,
    ScopeValidationError,
    UnableToActivateError,
)
from .registrations import Lifetime, Registration, RegistrationTable, ServiceCollection
from .runtime_resolver import CallSiteRuntimeResolver, RuntimeResolverContext, RuntimeResolverLock
from .stack_guard import StackGuard
from .utils import EMPTY
from .validation import CallSiteValidator

__all__ = [
    "EMPTY",
    "AmbiguousConstructorError",
    "CallSite",
    "CallSiteChain",
    "CallSiteFactory",
    "CallSiteKind",
    "CallSiteResultCacheLocation",
    "CallSiteRuntimeResolver",
    "CallSiteValidator",
    "CallSiteVisitor",
    "CannotResolveServiceError",
    "CircularDependencyError",
    "CollectionCallSite",
    "ConstantCallSite",
    "ConstructorCallSite",
    "ConstructorInfo",
    "Container",
    "ContainerOptions",
    "ContainerValidationError",
    "Engine",
    "EngineCallback",
    "FactoryCallSite",
    "InsufficientExecutionStackError",
    "InvalidRegistrationError",
    "IocError",
    "Lifetime",
    "NoConstructorMatchError",
    "ObjectDisposedError",
    "ParameterInfo",
    "Registration",
    "RegistrationTable",
    "ResultCache",
    "RuntimeResolverContext",
    "RuntimeResolverLock",
    "Scope",
    "ScopeValidationError",
    "ServiceCacheKey",
    "ServiceCollection",
    "ServiceProvider",
    "ServiceProviderCallSite",
    "ServiceScopeFactory",
    "ServiceScopeFactoryCallSite",
    "StackGuard",
    "UnableToActivateError",
    "constructor",
    "get_constructors",
    "private_constructor",
]
