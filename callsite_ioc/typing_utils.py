from collections.abc import Collection, Iterable, MutableSequence, Sequence
from typing import Any, TypeVar, get_args, get_origin

COLLECTION_TYPES: dict[Any, type] = {
    list: list,
    tuple: tuple,
    Sequence: tuple,
    Iterable: tuple,
    Collection: tuple,
    MutableSequence: list,
}


def type_name(t: Any) -> str:
    if isinstance(t, type) and get_origin(t) is None:
        return t.__qualname__
    return repr(t)


def is_open_generic(t: Any) -> bool:
    """
    True for a generic class definition with unbound type parameters, e.g. ``Repository`` in
    ``class Repository(Generic[T])``. Parameterised aliases such as ``Repository[T]`` are not definitions.
    """
    return isinstance(t, type) and get_origin(t) is None and bool(getattr(t, "__parameters__", ()))


def is_closed_generic(t: Any) -> bool:
    return get_origin(t) is not None and not getattr(t, "__parameters__", ())


def get_generic_definition(t: Any) -> Any:
    return get_origin(t)


def get_type_parameters(t: Any) -> tuple[TypeVar, ...]:
    return tuple(getattr(t, "__parameters__", ()))


def close_generic_type(definition: type, type_args: tuple[Any, ...]) -> Any:
    return definition[type_args]  # type: ignore


def get_collection_item_type(t: Any) -> tuple[Any, type] | None:
    """
    Returns ``(item_type, collection_class)`` when ``t`` asks for an ordered collection of services,
    otherwise ``None``.
    """
    origin = get_origin(t)
    if origin not in COLLECTION_TYPES:
        return None

    args = get_args(t)
    if origin is tuple:
        if len(args) != 2 or args[1] is not Ellipsis:
            return None
    elif len(args) != 1:
        return None

    return args[0], COLLECTION_TYPES[origin]


def get_type_var_map(t: Any) -> dict[TypeVar, Any]:
    origin = get_origin(t)
    if origin is None:
        return {}
    return dict(zip(get_type_parameters(origin), get_args(t)))


def substitute_type_vars(hint: Any, type_var_map: dict[TypeVar, Any]) -> Any:
    if not type_var_map:
        return hint

    if isinstance(hint, TypeVar):
        return type_var_map.get(hint, hint)

    free_parameters = get_type_parameters(hint)
    if free_parameters and get_origin(hint) is not None:
        return hint[tuple(type_var_map.get(p, p) for p in free_parameters)]

    return hint
