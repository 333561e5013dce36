import pytest

from starcalc.utils import Cached, clamp, invalidates, lazyval, lerp, orange


def test_cached_starts_invalid():
    cache = Cached()
    assert not cache.is_valid
    with pytest.raises(ValueError):
        cache.value


def test_cached_invalidate_keeps_value():
    cache = Cached(1)
    assert cache.is_valid
    assert cache.value == 1

    cache.invalidate()
    assert not cache.is_valid
    with pytest.raises(ValueError):
        cache.value

    cache.value = 2
    assert cache.is_valid
    assert cache.value == 2


class Square:
    side = invalidates('_area_cache', default=0)

    def __init__(self, side):
        self._area_cache = Cached()
        self.computed = 0
        self.side = side

    @property
    def area(self):
        if not self._area_cache.is_valid:
            self.computed += 1
            self._area_cache.value = self.side ** 2
        return self._area_cache.value


def test_invalidates():
    square = Square(2)
    assert square.area == 4
    assert square.area == 4
    assert square.computed == 1

    square.side = 3
    assert square.area == 9
    assert square.computed == 2


def test_invalidates_same_value():
    square = Square(2)
    assert square.area == 4

    square.side = 2
    assert square._area_cache.is_valid
    assert square.area == 4
    assert square.computed == 1


def test_invalidates_default():
    assert Square.side.__get__(None, Square) is Square.side

    square = Square.__new__(Square)
    assert square.side == 0


def test_lazyval():
    class C:
        calls = 0

        @lazyval
        def value(self):
            type(self).calls += 1
            return 'value'

    c = C()
    assert c.value == 'value'
    assert c.value == 'value'
    assert C.calls == 1


def test_lerp_and_clamp():
    assert lerp(1, 10, 0) == 1
    assert lerp(1, 10, 1) == 10
    assert lerp(0.75, 1, 0.5) == 0.875

    assert clamp(-1, 0, 1) == 0
    assert clamp(2, 0, 1) == 1
    assert clamp(0.5, 0, 1) == 0.5


def test_orange():
    assert list(orange(3)) == [0, 1, 2]
    assert list(orange(1, 3)) == [1, 2]
    assert list(orange(0.5, 2, 0.5)) == [0.5, 1.0, 1.5]

    with pytest.raises(TypeError):
        list(orange(1, 2, 3, 4))


def test_lazyval_assignment_replaces_value():
    class C:
        calls = 0

        @lazyval
        def value(self):
            type(self).calls += 1
            return 'computed'

    c = C()
    c.value = 'assigned'
    assert c.value == 'assigned'
    assert C.calls == 0

    # instances cache independently
    assert C().value == 'computed'
    assert C().value == 'computed'
    assert C.calls == 2
