from typing import Generic, TypeVar

import pytest
from assertive import assert_that, has_length, is_exact_type, raises_exception

from callsite_ioc import (
    CannotResolveServiceError,
    CircularDependencyError,
    Container,
    ContainerOptions,
    ContainerValidationError,
    Lifetime,
    ScopeValidationError,
    ServiceCollection,
)

T = TypeVar("T")


def test_default_options():
    options = ContainerOptions()

    assert_that(options.validate_scopes).matches(False)
    assert_that(options.validate_on_build).matches(False)
    assert_that(options.max_stack_depth > 0).matches(True)


def test_registrations_are_exposed():
    class A:
        pass

    services = ServiceCollection()
    services.register(A)
    container = Container(services)

    assert_that(container.registrations).matches(has_length(1))


def test_container_accepts_a_plain_list_of_registrations():
    class A:
        pass

    services = ServiceCollection()
    services.register(A)
    container = Container(list(services))

    assert_that(container.resolve(A)).matches(is_exact_type(A))


def test_container_context_manager_disposes():
    with Container(ServiceCollection()) as container:
        assert_that(container.is_disposed).matches(False)

    assert_that(container.is_disposed).matches(True)


def test_scoped_service_cannot_be_resolved_from_the_root_when_validating_scopes():
    class A:
        pass

    services = ServiceCollection()
    services.register(A, lifetime=Lifetime.scoped)
    container = Container(services, ContainerOptions(validate_scopes=True))

    with raises_exception(ScopeValidationError):
        container.resolve(A)

    with container.create_scope() as scope:
        assert_that(scope.resolve(A)).matches(is_exact_type(A))


def test_service_depending_on_scoped_service_cannot_be_resolved_from_the_root_when_validating_scopes():
    class A:
        pass

    class B:
        def __init__(self, a: A):
            self.a = a

    services = ServiceCollection()
    services.register(A, lifetime=Lifetime.scoped)
    services.register(B)
    container = Container(services, ContainerOptions(validate_scopes=True))

    with pytest.raises(ScopeValidationError) as ex:
        container.resolve(B)

    assert_that(A.__qualname__ in str(ex.value)).matches(True)

    with container.create_scope() as scope:
        assert_that(scope.resolve(B).a).matches(is_exact_type(A))


def test_singleton_cannot_consume_scoped_service_when_validating_scopes():
    class A:
        pass

    class B:
        def __init__(self, a: A):
            self.a = a

    services = ServiceCollection()
    services.register(A, lifetime=Lifetime.scoped)
    services.register(B, lifetime=Lifetime.singleton)
    container = Container(services, ContainerOptions(validate_scopes=True))

    with container.create_scope() as scope:
        with raises_exception(ScopeValidationError):
            scope.resolve(B)


def test_singleton_can_consume_scoped_service_without_validation():
    class A:
        pass

    class B:
        def __init__(self, a: A):
            self.a = a

    services = ServiceCollection()
    services.register(A, lifetime=Lifetime.scoped)
    services.register(B, lifetime=Lifetime.singleton)
    container = Container(services)

    with container.create_scope() as scope:
        assert_that(scope.resolve(B).a).matches(is_exact_type(A))


def test_validate_on_build_collects_every_failure():
    class Missing:
        pass

    class A:
        def __init__(self, missing: Missing):
            self.missing = missing

    class B:
        pass

    class C:
        def __init__(self, b: B):
            self.b = b

    class BImpl(B):
        def __init__(self, c: C):
            self.c = c

    class D:
        pass

    services = ServiceCollection()
    services.register(A)
    services.register(B, BImpl)
    services.register(C)
    services.register(D)

    with pytest.raises(ContainerValidationError) as ex:
        Container(services, ContainerOptions(validate_on_build=True))

    errors = ex.value.errors
    assert_that(errors).matches(has_length(3))
    assert_that(errors[0]).matches(is_exact_type(CannotResolveServiceError))
    assert_that(errors[1]).matches(is_exact_type(CircularDependencyError))
    assert_that(errors[2]).matches(is_exact_type(CircularDependencyError))


def test_validate_on_build_passes_for_valid_services_and_skips_open_generics():
    class Repository(Generic[T]):
        pass

    class SqlRepository(Repository[T]):
        pass

    class A:
        pass

    services = ServiceCollection()
    services.register(Repository, SqlRepository)
    services.register(A)

    container = Container(services, ContainerOptions(validate_on_build=True))

    assert_that(container.resolve(Repository[int])).matches(is_exact_type(SqlRepository))


def test_validate_on_build_checks_scopes_when_validating_scopes():
    class A:
        pass

    class B:
        def __init__(self, a: A):
            self.a = a

    services = ServiceCollection()
    services.register(A, lifetime=Lifetime.scoped)
    services.register(B, lifetime=Lifetime.singleton)

    with pytest.raises(ContainerValidationError) as ex:
        Container(services, ContainerOptions(validate_scopes=True, validate_on_build=True))

    assert_that(ex.value.errors).matches(has_length(1))
    assert_that(ex.value.errors[0]).matches(is_exact_type(ScopeValidationError))
