import inspect
from typing import Any, Generic, TypeVar

from assertive import assert_that, has_length, is_exact_type

from callsite_ioc import constructor, get_constructors, private_constructor

T = TypeVar("T")


class Dependency:
    pass


class Repository(Generic[T]):
    pass


def test_init_is_the_default_constructor():
    class A:
        def __init__(self, dependency: Dependency, name: str = "a"):
            self.dependency = dependency
            self.name = name

    constructors = get_constructors(A)

    assert_that(constructors).matches(has_length(1))
    assert_that(constructors[0].name).matches("__init__")
    assert_that(constructors[0].parameter_types).matches((Dependency, str))
    assert_that(constructors[0].parameters[0].has_default).matches(False)
    assert_that(constructors[0].parameters[1].default_value).matches("a")


def test_class_without_init_has_a_parameterless_constructor():
    class A:
        pass

    constructors = get_constructors(A)

    assert_that(constructors).matches(has_length(1))
    assert_that(constructors[0].parameters).matches(has_length(0))
    assert_that(constructors[0].invoke([])).matches(is_exact_type(A))


def test_unannotated_parameters_are_any_and_var_args_are_skipped():
    class A:
        def __init__(self, value, *args, **kwargs):
            self.value = value

    constructor_info = get_constructors(A)[0]

    assert_that(constructor_info.parameter_types).matches((Any,))


def test_marked_class_and_static_methods_are_constructors():
    class A:
        def __init__(self, dependency: Dependency):
            self.dependency = dependency

        @constructor
        @classmethod
        def create(cls, dependency: Dependency, count: int):
            return cls(dependency)

        @constructor
        @staticmethod
        def build():
            return A(Dependency())

        @classmethod
        def not_a_constructor(cls, dependency: Dependency):
            return cls(dependency)

    constructors = {c.name: c for c in get_constructors(A)}

    assert_that(sorted(constructors)).matches(["__init__", "build", "create"])
    assert_that(constructors["create"].parameter_types).matches((Dependency, int))
    assert_that(constructors["build"].parameters).matches(has_length(0))
    assert_that(constructors["build"].invoke([])).matches(is_exact_type(A))


def test_private_init_is_hidden():
    class A:
        @private_constructor
        def __init__(self, dependency: Dependency):
            self.dependency = dependency

        @constructor
        @classmethod
        def create(cls):
            return cls(Dependency())

    constructors = get_constructors(A)

    assert_that(constructors).matches(has_length(1))
    assert_that(constructors[0].name).matches("create")


def test_inherited_constructors_are_found():
    class Base:
        @constructor
        @classmethod
        def create(cls):
            return cls()

    class A(Base):
        pass

    constructors = {c.name: c for c in get_constructors(A)}

    assert_that(constructors["create"].invoke([])).matches(is_exact_type(A))


def test_closed_generic_parameters_are_substituted():
    class Service(Generic[T]):
        def __init__(self, value: T, repository: Repository[T], items: list[T]):
            self.value = value

    constructor_info = get_constructors(Service[int])[0]

    assert_that(constructor_info.parameter_types).matches((int, Repository[int], list[int]))
    assert_that(constructor_info.declaring_type).matches(Service[int])


def test_keyword_only_parameters_are_passed_by_name():
    class A:
        def __init__(self, first: Dependency, *, second: str):
            self.first = first
            self.second = second

    constructor_info = get_constructors(A)[0]
    dependency = Dependency()

    a = constructor_info.invoke([dependency, "two"])

    assert_that(constructor_info.parameters[1].kind).matches(inspect.Parameter.KEYWORD_ONLY)
    assert_that(a.second).matches("two")


def test_constructor_repr():
    class A:
        def __init__(self, dependency: Dependency, name: str):
            pass

    assert_that(repr(get_constructors(A)[0])).matches(f"{A.__qualname__}.__init__(Dependency, str)")
