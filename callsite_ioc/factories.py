from collections.abc import Callable
from typing import Any, TypeVar

from .abstractions import ServiceProvider

T = TypeVar("T")


def use_registered(service_type: type[T]) -> Callable[[ServiceProvider], T]:
    def factory(provider: ServiceProvider) -> T:
        return provider.resolve(service_type)

    return factory


def create_type_mapping(
    service_type: type[T],
    key_getter: Callable[[T], Any],
) -> Callable[[ServiceProvider], dict[Any, T]]:
    def factory(provider: ServiceProvider) -> dict[Any, T]:
        items = provider.resolve(list[service_type])  # type: ignore
        return {key_getter(item): item for item in items}

    return factory
