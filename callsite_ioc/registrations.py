from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from enum import IntEnum
from typing import TYPE_CHECKING, Any, TypeVar

from theutilitybelt.functional.predicate import always_true
from theutilitybelt.typing.utils import get_subclasses

from .exceptions import InvalidRegistrationError
from .type_filters import can_be_activated, is_open_generic
from .typing_utils import get_generic_definition, get_type_parameters, is_closed_generic, type_name
from .utils import EMPTY

if TYPE_CHECKING:
    from .abstractions import ServiceProvider

TService = TypeVar("TService")


class Lifetime(IntEnum):
    transient = 0
    scoped = 1
    singleton = 2


class Registration:
    __slots__ = (
        "implementation_factory",
        "implementation_instance",
        "implementation_type",
        "lifetime",
        "order",
        "service_type",
    )

    def __init__(
        self,
        *,
        service_type: Any,
        lifetime: Lifetime,
        implementation_type: Any = None,
        implementation_factory: Callable[[ServiceProvider], Any] | None = None,
        implementation_instance: Any = EMPTY,
        order: int = 0,
    ):
        sources = [
            implementation_type is not None,
            implementation_factory is not None,
            implementation_instance is not EMPTY,
        ]
        if sources.count(True) != 1:
            raise InvalidRegistrationError(
                service_type, "exactly one of implementation type, factory or instance must be provided"
            )

        self.service_type = service_type
        self.lifetime = lifetime
        self.implementation_type = implementation_type
        self.implementation_factory = implementation_factory
        self.implementation_instance = implementation_instance
        self.order = order

    @property
    def has_instance(self) -> bool:
        return self.implementation_instance is not EMPTY

    @property
    def implementation(self) -> Any:
        if self.has_instance:
            return self.implementation_instance
        return self.implementation_factory or self.implementation_type

    def __repr__(self) -> str:
        return f"Registration({type_name(self.service_type)}--{self.implementation!r}, {self.lifetime.name})"


class ServiceCollection:
    def __init__(self):
        self._registrations: list[Registration] = []

    def register(
        self,
        service_type: type[TService] | Any,
        implementation_type: type[TService] | Any = None,
        *,
        factory: Callable[[ServiceProvider], TService] | None = None,
        instance: TService | Any = EMPTY,
        lifetime: Lifetime = Lifetime.transient,
    ) -> ServiceCollection:
        if instance is not EMPTY:
            registration = Registration(
                service_type=service_type,
                lifetime=Lifetime.singleton,
                implementation_instance=instance,
                implementation_type=implementation_type,
                implementation_factory=factory,
                order=len(self._registrations),
            )
        elif factory is not None:
            registration = Registration(
                service_type=service_type,
                lifetime=lifetime,
                implementation_factory=factory,
                implementation_type=implementation_type,
                order=len(self._registrations),
            )
        else:
            registration = Registration(
                service_type=service_type,
                lifetime=lifetime,
                implementation_type=implementation_type if implementation_type is not None else service_type,
                order=len(self._registrations),
            )

        self._registrations.append(registration)
        return self

    def register_subclasses(
        self,
        base_type: type,
        *,
        lifetime: Lifetime = Lifetime.transient,
        subclass_type_filter: Callable[[type], bool] = always_true,
    ) -> ServiceCollection:
        full_type_filter = can_be_activated & ~is_open_generic & subclass_type_filter
        for subclass in get_subclasses(base_type, filter=full_type_filter):
            self.register(base_type, subclass, lifetime=lifetime)

        return self

    def has_registration(self, service_type: Any) -> bool:
        return any(r.service_type == service_type for r in self._registrations)

    def __iter__(self) -> Iterator[Registration]:
        return iter(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)


class RegistrationTable:
    """
    Immutable, ordered set of registrations with an index by service type.
    """

    def __init__(self, registrations: Iterable[Registration]):
        self._registrations = tuple(registrations)
        lookup: dict[Any, list[Registration]] = defaultdict(list)

        for registration in self._registrations:
            self._validate(registration)
            lookup[registration.service_type].append(registration)

        self._lookup = {service_type: tuple(bucket) for service_type, bucket in lookup.items()}

    @staticmethod
    def _validate(registration: Registration):
        service_type = registration.service_type
        implementation_type = registration.implementation_type

        if is_open_generic(service_type):
            if implementation_type is None or not is_open_generic(implementation_type):
                raise InvalidRegistrationError(
                    service_type, "open generic service type requires an open generic implementation type"
                )
            if not can_be_activated(implementation_type):
                raise InvalidRegistrationError(
                    service_type, f"implementation type {type_name(implementation_type)} cannot be activated"
                )
            if len(get_type_parameters(service_type)) != len(get_type_parameters(implementation_type)):
                raise InvalidRegistrationError(
                    service_type,
                    f"implementation type {type_name(implementation_type)} must declare the same number of "
                    "type parameters as the service type",
                )
        elif implementation_type is not None:
            if is_open_generic(implementation_type) or not can_be_activated(implementation_type):
                raise InvalidRegistrationError(
                    service_type, f"implementation type {type_name(implementation_type)} cannot be activated"
                )

    def __iter__(self) -> Iterator[Registration]:
        return iter(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)

    def get(self, service_type: Any) -> tuple[Registration, ...]:
        return self._lookup.get(service_type, ())

    def last(self, service_type: Any) -> Registration | None:
        bucket = self.get(service_type)
        return bucket[-1] if bucket else None

    def find_matches(self, service_type: Any) -> list[Registration]:
        """
        Registrations able to produce ``service_type``, in registration order: exact registrations of the
        type and, for a closed generic type, registrations of its open generic definition.
        """
        if not is_closed_generic(service_type):
            return list(self.get(service_type))

        definition = get_generic_definition(service_type)
        if not is_open_generic(definition):
            return list(self.get(service_type))

        return [r for r in self._registrations if r.service_type == service_type or r.service_type is definition]

    def slot_of(self, registration: Registration, service_type: Any) -> int:
        matches = self.find_matches(service_type)
        for position, match in enumerate(matches):
            if match is registration:
                return len(matches) - position - 1
        raise ValueError(f"{registration!r} does not produce {type_name(service_type)}")
