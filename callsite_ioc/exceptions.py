from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .typing_utils import type_name

if TYPE_CHECKING:
    from .constructors import ConstructorInfo


class IocError(Exception):
    pass


class InvalidRegistrationError(IocError):
    def __init__(self, service_type: Any, reason: str):
        self.service_type = service_type
        self.reason = reason
        super().__init__(str(self))

    def __str__(self):
        return f"Invalid registration for {type_name(self.service_type)}: {self.reason}"


class CircularDependencyError(IocError):
    def __init__(self, service_type: Any, chain: Sequence[tuple[Any, Any]]):
        self.service_type = service_type
        self.chain = list(chain)
        super().__init__(str(self))

    @staticmethod
    def _print_item(service_type: Any, implementation_type: Any) -> str:
        if implementation_type is None or implementation_type == service_type:
            return type_name(service_type)
        return f"{type_name(service_type)}({type_name(implementation_type)})"

    @property
    def dependency_chain(self) -> str:
        items = [self._print_item(s, i) for s, i in self.chain]
        items.append(type_name(self.service_type))
        return " -> ".join(items)

    def __str__(self):
        return (
            f"A circular dependency was detected for the service of type {type_name(self.service_type)}.\n"
            f"{self.dependency_chain}"
        )


class NoConstructorMatchError(IocError):
    def __init__(self, implementation_type: Any):
        self.implementation_type = implementation_type
        super().__init__(str(self))

    def __str__(self):
        return f"A suitable constructor for type {type_name(self.implementation_type)} could not be located"


class UnableToActivateError(IocError):
    def __init__(self, implementation_type: Any):
        self.implementation_type = implementation_type
        super().__init__(str(self))

    def __str__(self):
        return (
            f"No constructor for type {type_name(self.implementation_type)} "
            "can be instantiated using services from the container"
        )


class AmbiguousConstructorError(IocError):
    def __init__(self, implementation_type: Any, first: ConstructorInfo, second: ConstructorInfo):
        self.implementation_type = implementation_type
        self.first = first
        self.second = second
        super().__init__(str(self))

    def __str__(self):
        return (
            f"Unable to activate type {type_name(self.implementation_type)}. "
            "The following constructors are ambiguous:\n"
            f"{self.first}\n{self.second}"
        )


class CannotResolveServiceError(IocError):
    def __init__(self, service_type: Any, implementation_type: Any = None):
        self.service_type = service_type
        self.implementation_type = implementation_type
        super().__init__(str(self))

    def __str__(self):
        if self.implementation_type is None:
            return f"No service for type {type_name(self.service_type)} has been registered"
        return (
            f"Unable to resolve service for type {type_name(self.service_type)} "
            f"while attempting to activate {type_name(self.implementation_type)}"
        )


class ObjectDisposedError(IocError):
    def __init__(self, object_name: str):
        self.object_name = object_name
        super().__init__(str(self))

    def __str__(self):
        return f"Cannot access a disposed object: {self.object_name}"


class InsufficientExecutionStackError(IocError):
    def __str__(self):
        return "Insufficient stack to continue building or resolving the service graph"


class ScopeValidationError(IocError):
    pass


class ContainerValidationError(IocError):
    def __init__(self, errors: Sequence[Exception]):
        self.errors = list(errors)
        super().__init__(str(self))

    def __str__(self):
        details = "\n".join(f"- {e}" for e in self.errors)
        return f"Some services are not able to be constructed:\n{details}"
