def singleton(cls):
    """
    A singleton decorator. Every call on the decorated class returns the same
    instance, created on first use.
    """

    cls.__INSTANCE__ = None

    def singleton_new(singleton_cls):
        if cls.__INSTANCE__ is None:
            cls.__INSTANCE__ = super(cls, cls).__new__(cls)
        return cls.__INSTANCE__

    cls.__new__ = singleton_new

    return cls


@singleton
class _empty:  # noqa: N801
    def __bool__(self):
        return False

    def __repr__(self):
        return "EMPTY"


EMPTY = _empty()
