"""Constructor discovery.

A class exposes ``__init__`` as its public constructor, plus any class or static methods marked with
:func:`constructor`. ``__init__`` can be withdrawn from injection with :func:`private_constructor`.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from typing import Any, get_origin, get_type_hints

from .typing_utils import get_type_var_map, substitute_type_vars, type_name
from .utils import EMPTY

CONSTRUCTOR_MARKER = "__callsite_ioc_constructor__"
PRIVATE_CONSTRUCTOR_MARKER = "__callsite_ioc_private_constructor__"


def _mark(fn: Any, marker: str):
    target = fn.__func__ if isinstance(fn, (classmethod, staticmethod)) else fn
    setattr(target, marker, True)
    return fn


def constructor(fn):
    """
    Marks a classmethod or staticmethod as an additional public constructor of its class.
    """
    return _mark(fn, CONSTRUCTOR_MARKER)


def private_constructor(fn):
    """
    Hides ``__init__`` from constructor selection.
    """
    return _mark(fn, PRIVATE_CONSTRUCTOR_MARKER)


class ParameterInfo:
    __slots__ = ("default_value", "kind", "name", "parameter_type")

    def __init__(self, name: str, parameter_type: Any, default_value: Any, kind: inspect._ParameterKind):
        self.name = name
        self.parameter_type = parameter_type
        self.default_value = EMPTY if default_value is inspect.Parameter.empty else default_value
        self.kind = kind

    @property
    def has_default(self) -> bool:
        return self.default_value is not EMPTY

    def __repr__(self):
        return f"{self.name}: {type_name(self.parameter_type)}"


class ConstructorInfo:
    __slots__ = ("_creator", "declaring_type", "name", "parameters")

    def __init__(
        self,
        declaring_type: Any,
        name: str,
        parameters: Sequence[ParameterInfo],
        creator: Callable[..., Any],
    ):
        self.declaring_type = declaring_type
        self.name = name
        self.parameters = tuple(parameters)
        self._creator = creator

    @property
    def parameter_types(self) -> tuple[Any, ...]:
        return tuple(p.parameter_type for p in self.parameters)

    def invoke(self, values: Sequence[Any]) -> Any:
        args = []
        kwargs = {}
        for parameter, value in zip(self.parameters, values):
            if parameter.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return self._creator(*args, **kwargs)

    def __repr__(self):
        parameter_types = ", ".join(type_name(t) for t in self.parameter_types)
        return f"{type_name(self.declaring_type)}.{self.name}({parameter_types})"


def _get_parameters(fn: Callable, type_var_map: dict, skip_first: bool) -> list[ParameterInfo]:
    if fn is object.__init__:
        return []

    hints = get_type_hints(fn)
    signature = inspect.signature(fn)
    parameters = list(signature.parameters.values())
    if skip_first:
        parameters = parameters[1:]

    infos = []
    for param in parameters:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        parameter_type = substitute_type_vars(hints.get(param.name, Any), type_var_map)
        infos.append(ParameterInfo(param.name, parameter_type, param.default, param.kind))
    return infos


def _get_marked_constructors(cls: type) -> dict[str, Any]:
    members: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        members.update(vars(klass))

    return {
        name: member
        for name, member in members.items()
        if isinstance(member, (classmethod, staticmethod)) and getattr(member.__func__, CONSTRUCTOR_MARKER, False)
    }


def get_constructors(implementation_type: Any) -> list[ConstructorInfo]:
    """
    Lists the public constructors of ``implementation_type``.

    ``implementation_type`` may be a closed generic alias such as ``Repository[int]``, in which case the
    type variables of the parameter annotations are replaced by the alias arguments.
    """
    cls = get_origin(implementation_type) or implementation_type
    type_var_map = get_type_var_map(implementation_type)
    constructors = []

    init = cls.__init__
    if not getattr(init, PRIVATE_CONSTRUCTOR_MARKER, False):
        constructors.append(
            ConstructorInfo(
                declaring_type=implementation_type,
                name="__init__",
                parameters=_get_parameters(init, type_var_map, skip_first=True),
                creator=implementation_type,
            )
        )

    for name, member in _get_marked_constructors(cls).items():
        constructors.append(
            ConstructorInfo(
                declaring_type=implementation_type,
                name=name,
                parameters=_get_parameters(member.__func__, type_var_map, skip_first=isinstance(member, classmethod)),
                creator=getattr(cls, name),
            )
        )

    return constructors
