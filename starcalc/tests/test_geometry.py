import math

import pytest

from starcalc.curve import (
    Catmull,
    Curve,
    LinearMetaCurve,
    MetaCurve,
    Perfect,
    get_center,
)
from starcalc.position import Position, distance


def assert_position_close(actual, expected):
    assert actual.x == pytest.approx(expected.x, abs=1e-4)
    assert actual.y == pytest.approx(expected.y, abs=1e-4)


def test_position_arithmetic():
    a = Position(1, 2)
    b = Position(3, 5)

    assert a + b == Position(4, 7)
    assert b - a == Position(2, 3)
    assert a * 2 == Position(2, 4)
    assert 2 * a == Position(2, 4)
    assert b / 2 == Position(1.5, 2.5)
    assert a.dot(b) == 13
    assert (b - a).length == pytest.approx(math.sqrt(13))


def test_distance():
    assert distance(Position(0, 0), Position(3, 4)) == 5
    assert Position(3, 4).distance(Position(0, 0)) == 5


def test_linear_truncated():
    curve = Curve.from_kind_and_points(
        'L',
        [Position(0, 0), Position(100, 0), Position(100, 100)],
        150,
    )
    assert isinstance(curve, LinearMetaCurve)
    assert curve.kind == 'L'

    assert_position_close(curve(0), Position(0, 0))
    assert_position_close(curve(1), Position(100, 50))


def test_linear_extended():
    curve = Curve.from_kind_and_points(
        'L',
        [Position(300, 100), Position(400, 100)],
        140,
    )
    assert_position_close(curve(1), Position(440, 100))


def test_perfect_half_circle():
    curve = Curve.from_kind_and_points(
        'P',
        [Position(400, 200), Position(450, 250), Position(400, 300)],
        math.pi * 50,
    )
    assert isinstance(curve, Perfect)

    assert_position_close(curve(0), Position(400, 200))
    assert_position_close(curve(0.5), Position(450, 250))
    assert_position_close(curve(1), Position(400, 300))


def test_perfect_collinear_falls_back():
    curve = Curve.from_kind_and_points(
        'P',
        [Position(0, 0), Position(50, 0), Position(100, 0)],
        100,
    )
    assert isinstance(curve, MetaCurve)
    assert_position_close(curve(1), Position(100, 0))


def test_catmull_endpoints():
    curve = Curve.from_kind_and_points(
        'C',
        [Position(0, 0), Position(100, 0)],
        100,
    )
    assert isinstance(curve, Catmull)

    assert_position_close(curve(0), Position(0, 0))
    assert_position_close(curve(1), Position(100, 0))


def test_unknown_kind():
    with pytest.raises(ValueError):
        Curve.from_kind_and_points('Q', [Position(0, 0)], 1)


def test_reflected():
    curve = Curve.from_kind_and_points(
        'L',
        [Position(0, 0), Position(100, 0)],
        100,
    )

    horizontal = curve.reflected(horizontally=True)
    assert horizontal.kind == 'L'
    assert horizontal.points == [Position(512, 0), Position(412, 0)]
    assert_position_close(horizontal(1), Position(412, 0))

    vertical = curve.reflected(vertically=True)
    assert vertical.points == [Position(0, 384), Position(100, 384)]


def test_get_center():
    center = get_center(Position(0, 0), Position(50, 50), Position(100, 0))
    assert_position_close(center, Position(50, 0))

    with pytest.raises(ValueError):
        get_center(Position(0, 0), Position(1, 1), Position(2, 2))
