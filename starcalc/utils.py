class lazyval:
    """Decorator to lazily compute and cache a value.

    The value is computed at most once per instance; this is meant for
    objects which are immutable after construction.
    """
    def __init__(self, fget):
        self._fget = fget
        self._name = None
        self.__doc__ = fget.__doc__

    def __set_name__(self, owner, name):
        self._name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self

        instance_vars = vars(instance)
        try:
            return instance_vars[self._name]
        except KeyError:
            pass

        value = instance_vars[self._name] = self._fget(instance)
        return value

    def __set__(self, instance, value):
        vars(instance)[self._name] = value


class no_default:
    """Sentinel type; this should not be instantiated.

    This type is used so functions can tell the difference between no argument
    passed and an explicit value passed even if ``None`` is a valid value.
    """
    def __new__(cls):
        raise TypeError('cannot create instances of sentinel type')


class Cached:
    """A value paired with a validity flag.

    Parameters
    ----------
    value : any, optional
        The initial value. If no value is given the cache starts invalid.

    Notes
    -----
    :meth:`invalidate` only clears the flag, the stored value is kept around
    but may not be read until the owner recomputes it.
    """
    def __init__(self, value=no_default):
        if value is no_default:
            self._value = None
            self._valid = False
        else:
            self._value = value
            self._valid = True

    @property
    def is_valid(self):
        return self._valid

    @property
    def value(self):
        if not self._valid:
            raise ValueError('cannot read an invalidated cache')
        return self._value

    @value.setter
    def value(self, value):
        self._value = value
        self._valid = True

    def invalidate(self):
        self._valid = False

    def __repr__(self):
        state = 'valid' if self._valid else 'invalid'
        return f'<{type(self).__qualname__}: {state} {self._value!r}>'


class invalidates:
    """A settable attribute which invalidates some :class:`Cached` values on
    the owning instance whenever it changes.

    Parameters
    ----------
    *cache_names : str
        The attribute names of the caches to invalidate.
    default : any, optional
        The value read before the attribute has been assigned.
    """
    def __init__(self, *cache_names, default=None):
        self._cache_names = cache_names
        self._default = default
        self._name = None

    def __set_name__(self, owner, name):
        self._name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return vars(instance).get(self._name, self._default)

    def __set__(self, instance, value):
        storage = vars(instance)
        if self._name in storage and storage[self._name] == value:
            return

        storage[self._name] = value
        for name in self._cache_names:
            getattr(instance, name).invalidate()


def lerp(start, end, amount):
    """Linearly interpolate between ``start`` and ``end``.
    """
    return start + (end - start) * amount


def clamp(value, low, high):
    return max(low, min(high, value))


def orange(_start_or_stop, *args):
    """Range for arbitrary objects.

    Parameters
    ----------
    start, stop, step : any
        Arguments like :func:`range`.

    Yields
    ------
    value : any
        The values in the range ``[start, stop)`` with a step of ``step``.

    Notes
    -----
    ``o`` stands for object.
    """
    if not args:
        start = 0
        stop = _start_or_stop
        step = 1
    elif len(args) == 1:
        start = _start_or_stop
        stop = args[0]
        step = 1
    elif len(args) == 2:
        start = _start_or_stop
        stop, step = args
    else:
        raise TypeError(
            'orange takes from 1 to 3 positional arguments but'
            f' {len(args) + 1} were given',
        )

    while start < stop:
        yield start
        start += step
