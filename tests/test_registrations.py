import abc
from typing import Generic, Protocol, TypeVar

import pytest
from assertive import assert_that, has_length, is_exact_type, is_same_instance_as, raises_exception

from callsite_ioc import (
    Container,
    InvalidRegistrationError,
    Lifetime,
    Registration,
    RegistrationTable,
    ServiceCollection,
)

T = TypeVar("T")
U = TypeVar("U")


def test_registration_needs_exactly_one_source():
    class A:
        pass

    with raises_exception(InvalidRegistrationError):
        Registration(service_type=A, lifetime=Lifetime.transient)

    with raises_exception(InvalidRegistrationError):
        Registration(
            service_type=A,
            lifetime=Lifetime.transient,
            implementation_type=A,
            implementation_factory=lambda _: A(),
        )


def test_instance_registration_is_always_singleton():
    class A:
        pass

    services = ServiceCollection()
    services.register(A, instance=A(), lifetime=Lifetime.transient)

    registration = next(iter(services))

    assert_that(registration.lifetime).matches(Lifetime.singleton)
    assert_that(registration.has_instance).matches(True)


def test_none_can_be_registered_as_an_instance():
    class A:
        pass

    services = ServiceCollection()
    services.register(A, instance=None)
    container = Container(services)

    assert_that(container.resolve(A)).matches(None)


def test_bare_registration_uses_the_service_type_as_implementation():
    class A:
        pass

    services = ServiceCollection()
    services.register(A)

    registration = next(iter(services))

    assert_that(registration.implementation_type).matches(is_same_instance_as(A))
    assert_that(registration.lifetime).matches(Lifetime.transient)


def test_register_returns_the_collection_for_chaining():
    class A:
        pass

    class B:
        pass

    services = ServiceCollection()
    result = services.register(A).register(B)

    assert_that(result).matches(is_same_instance_as(services))
    assert_that(services).matches(has_length(2))
    assert_that(services.has_registration(B)).matches(True)


def test_registration_order_is_recorded():
    class A:
        pass

    services = ServiceCollection()
    services.register(A).register(A).register(A)

    assert_that([r.order for r in services]).matches([0, 1, 2])


def test_abstract_implementation_is_rejected():
    class A(abc.ABC):
        @abc.abstractmethod
        def run(self): ...

    services = ServiceCollection()
    services.register(A)

    with raises_exception(InvalidRegistrationError):
        RegistrationTable(services)


def test_protocol_implementation_is_rejected():
    class A(Protocol):
        def run(self): ...

    services = ServiceCollection()
    services.register(A)

    with raises_exception(InvalidRegistrationError):
        RegistrationTable(services)


def test_open_generic_service_needs_an_open_generic_implementation():
    class Repository(Generic[T]):
        pass

    class IntRepository(Repository[int]):
        pass

    services = ServiceCollection()
    services.register(Repository, IntRepository)

    with raises_exception(InvalidRegistrationError):
        RegistrationTable(services)


def test_open_generic_service_needs_a_matching_number_of_type_parameters():
    class Repository(Generic[T]):
        pass

    class PairRepository(Repository[T], Generic[T, U]):
        pass

    services = ServiceCollection()
    services.register(Repository, PairRepository)

    with pytest.raises(InvalidRegistrationError) as ex:
        RegistrationTable(services)

    assert_that(ex.value.service_type).matches(is_same_instance_as(Repository))


def test_open_generic_implementation_for_a_non_generic_service_is_rejected():
    class Repository:
        pass

    class SqlRepository(Repository, Generic[T]):
        pass

    services = ServiceCollection()
    services.register(Repository, SqlRepository)

    with raises_exception(InvalidRegistrationError):
        RegistrationTable(services)


def test_invalid_registrations_are_rejected_when_the_container_is_built():
    class A(abc.ABC):
        @abc.abstractmethod
        def run(self): ...

    services = ServiceCollection()
    services.register(A)

    with raises_exception(InvalidRegistrationError):
        Container(services)


def test_table_returns_the_last_registration_of_a_type():
    class A:
        pass

    class B(A):
        pass

    class C(A):
        pass

    services = ServiceCollection()
    services.register(A, B)
    services.register(A, C)
    table = RegistrationTable(services)

    assert_that(table.last(A).implementation_type).matches(is_same_instance_as(C))
    assert_that(table.get(A)).matches(has_length(2))
    assert_that(table.last(B)).matches(None)


def test_find_matches_includes_open_generic_registrations_in_registration_order():
    class Repository(Generic[T]):
        pass

    class SqlRepository(Repository[T]):
        pass

    class IntRepository(Repository[int]):
        pass

    services = ServiceCollection()
    services.register(Repository[int], IntRepository)
    services.register(Repository, SqlRepository)
    services.register(Repository[str], SqlRepository[str])
    table = RegistrationTable(services)

    matches = table.find_matches(Repository[int])

    assert_that(matches).matches(has_length(2))
    assert_that(matches[0].implementation_type).matches(is_same_instance_as(IntRepository))
    assert_that(matches[1].implementation_type).matches(is_same_instance_as(SqlRepository))


def test_slot_zero_is_the_last_match():
    class A:
        pass

    class B(A):
        pass

    class C(A):
        pass

    class D(A):
        pass

    services = ServiceCollection()
    services.register(A, B).register(A, C).register(A, D)
    table = RegistrationTable(services)
    b, c, d = table.get(A)

    assert_that(table.slot_of(d, A)).matches(0)
    assert_that(table.slot_of(c, A)).matches(1)
    assert_that(table.slot_of(b, A)).matches(2)


def test_register_subclasses_registers_every_concrete_subclass():
    class Handler(abc.ABC):
        @abc.abstractmethod
        def handle(self): ...

    class CreateHandler(Handler):
        def handle(self):
            return "create"

    class DeleteHandler(Handler):
        def handle(self):
            return "delete"

    services = ServiceCollection()
    services.register_subclasses(Handler, lifetime=Lifetime.singleton)
    container = Container(services)

    handlers = container.resolve(list[Handler])

    assert_that(handlers).matches(has_length(2))
    assert_that(sorted(h.handle() for h in handlers)).matches(["create", "delete"])
    assert_that(container.resolve(Handler)).matches(is_same_instance_as(handlers[-1]))


def test_closed_generic_service_can_have_a_closed_implementation():
    class Repository(Generic[T]):
        pass

    class IntRepository(Repository[int]):
        pass

    services = ServiceCollection()
    services.register(Repository[int], IntRepository)
    container = Container(services)

    assert_that(container.resolve(Repository[int])).matches(is_exact_type(IntRepository))
