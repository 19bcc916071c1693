import inspect

from theutilitybelt.functional.predicate import predicate

from .typing_utils import is_open_generic as _is_open_generic


def _is_abstract(t: type):
    return inspect.isabstract(t)


is_abstract = predicate(_is_abstract)


def _is_protocol(t: type):
    return bool(getattr(t, "_is_protocol", False))


is_protocol = predicate(_is_protocol)

is_open_generic = predicate(_is_open_generic)

can_be_activated = ~is_abstract & ~is_protocol
