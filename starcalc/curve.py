from abc import ABCMeta, abstractmethod
import bisect
import math
from itertools import accumulate

import numpy as np
from scipy.special import comb
from toolz import sliding_window

from .position import Position, distance
from .utils import lazyval


class Curve(metaclass=ABCMeta):
    """The path of a slider.

    Parameters
    ----------
    points : list[Position]
        The control points of the curve, starting at the slider's head.
    req_length : float
        The length of the slider in osu! pixels. The curve is truncated to
        this length.
    """
    _kind_dispatch = {}
    kinds = ()

    @classmethod
    def from_kind_and_points(cls, kind, points, req_length):
        try:
            subcls = cls._kind_dispatch[kind]
        except KeyError:
            raise ValueError(f'unknown curve type: {kind!r}')

        curve = subcls(points, req_length)
        curve.kind = kind
        return curve

    @abstractmethod
    def __call__(self, t):
        """Compute the position of the curve at time ``t``.

        Parameters
        ----------
        t : float
            The time along the distance of the curve in the range [0, 1]

        Returns
        -------
        position : Position
            The position of the curve.
        """
        raise NotImplementedError('__call__')

    def __init_subclass__(cls):
        for kind in cls.kinds:
            cls._kind_dispatch[kind] = cls

    def reflected(self, *, horizontally=False, vertically=False):
        """The curve mirrored along the playfield.

        Parameters
        ----------
        horizontally : bool, optional
            Mirror the x coordinates.
        vertically : bool, optional
            Mirror the y coordinates.

        Returns
        -------
        curve : Curve
            The new curve.
        """
        points = [
            Position(
                Position.x_max - p.x if horizontally else p.x,
                Position.y_max - p.y if vertically else p.y,
            )
            for p in self.points
        ]
        return Curve.from_kind_and_points(
            getattr(self, 'kind', 'B'),
            points,
            self.req_length,
        )


class Bezier(Curve):
    kinds = ()

    def __init__(self, points, req_length):
        self.points = points
        self._coordinates = np.array(points, dtype=np.float64).T
        self.req_length = req_length

    def __call__(self, t):
        length = self.length
        if length == 0:
            return self.at(0)
        return self.at(t * (self.req_length / length))

    def at(self, t):
        points = self.points

        n = len(points) - 1
        ixs = np.arange(n + 1)
        x, y = np.sum(
            comb(n, ixs) *
            (1 - t) ** (n - ixs) *
            t ** ixs *
            self._coordinates,
            axis=1,
        )
        return Position(float(x), float(y))

    @lazyval
    def length(self):
        """Approximates length as piecewise linear"""
        points = [self.at(t) for t in np.linspace(0, 1, num=5)]
        return sum(distance(a, b) for a, b in sliding_window(2, points))


class MetaCurve(Curve):
    kinds = 'B'

    def __init__(self, points, req_length):
        metapoints = split_at_dupes(points)
        self.points = points
        self.req_length = req_length
        self._curves = [Bezier(subpoints, None) for subpoints in metapoints]

    @lazyval
    def _ts(self):
        lengths = [c.length for c in self._curves]
        length = sum(lengths) or 1
        out = []
        for i, j in enumerate(accumulate(lengths[:-1])):
            self._curves[i].req_length = lengths[i]
            out.append(j / length)
        self._curves[-1].req_length = max(
            0,
            lengths[-1] - (length - self.req_length),
        )
        out.append(1)
        return out

    def __call__(self, t):
        ts = self._ts
        if len(self._curves) == 1:
            # Special case where we only have one curve
            return self._curves[0](t)

        bi = min(bisect.bisect_left(ts, t), len(ts) - 1)
        if bi == 0:
            pre_t = 0
        else:
            pre_t = ts[bi - 1]

        post_t = ts[bi]
        if post_t == pre_t:
            return self._curves[bi](1)

        return self._curves[bi]((t - pre_t) / (post_t - pre_t))


class LinearMetaCurve(MetaCurve):
    kinds = 'L'

    def __init__(self, points, req_length):
        self.points = points
        self.req_length = req_length
        self._curves = [
            Bezier(list(subpoints), None)
            for subpoints in sliding_window(2, points)
        ] or [Bezier(list(points), None)]


class Perfect(Curve):
    kinds = 'P'

    def __new__(cls, points, req_length):
        if len(points) != 3:
            # osu! uses the bezier curve if there are more than 3 points
            return MetaCurve(points, req_length)

        try:
            center = get_center(*points)
        except ValueError:
            # we cannot use a perfect curve function for collinear points;
            # osu! also falls back to a bezier here
            return MetaCurve(points, req_length)

        self = super().__new__(cls)
        self._init(points, req_length, center)
        return self

    def __getnewargs__(self):
        return self.points, self.req_length

    def _init(self, points, req_length, center):
        self.points = points
        self.req_length = req_length
        self._center = center

        coordinates = np.array(points, dtype=np.float64) - center

        # angles of 3 points to center
        start_angle, end_angle = np.arctan2(
            coordinates[::2, 1],
            coordinates[::2, 0],
        )

        # normalize so that self._angle is positive
        if end_angle < start_angle:
            end_angle += 2 * math.pi

        # angle of arc sector that describes slider
        self._angle = end_angle - start_angle

        # switch angle direction if necessary
        a_to_c = coordinates[2] - coordinates[0]
        ortho_a_to_c = np.array((a_to_c[1], -a_to_c[0]))
        if np.dot(ortho_a_to_c, coordinates[1] - coordinates[0]) < 0:
            self._angle = -(2 * math.pi - self._angle)

        length = abs(
            self._angle *
            math.sqrt(coordinates[0][0] ** 2 + coordinates[0][1] ** 2),
        )
        if length > req_length:
            self._angle *= req_length / length

    def __call__(self, t):
        return rotate(self.points[0], self._center, self._angle * t)


class Catmull(Curve):
    kinds = 'C'

    detail = 50

    def __init__(self, points, req_length):
        self.points = points
        self.req_length = req_length

    @lazyval
    def _polyline(self):
        points = self.points
        if len(points) < 2:
            return list(points)

        out = []
        for i in range(len(points) - 1):
            v1 = points[i - 1] if i > 0 else points[i]
            v2 = points[i]
            v3 = points[i + 1]
            v4 = points[i + 2] if i + 2 < len(points) else v3 + (v3 - v2)

            for c in range(self.detail):
                out.append(catmull_point(v1, v2, v3, v4, c / self.detail))

        out.append(points[-1])
        return out

    @lazyval
    def _cumulative_lengths(self):
        return [0.0, *accumulate(
            distance(a, b) for a, b in sliding_window(2, self._polyline)
        )]

    def __call__(self, t):
        polyline = self._polyline
        lengths = self._cumulative_lengths
        if len(polyline) < 2:
            return polyline[0]

        target = t * min(self.req_length, lengths[-1])
        ix = min(max(bisect.bisect_left(lengths, target), 1), len(lengths) - 1)
        segment_length = lengths[ix] - lengths[ix - 1]
        if segment_length == 0:
            return polyline[ix]

        a = polyline[ix - 1]
        b = polyline[ix]
        return a + (b - a) * ((target - lengths[ix - 1]) / segment_length)


def catmull_point(v1, v2, v3, v4, t):
    """A point on the Catmull-Rom spline segment between ``v2`` and ``v3``.
    """
    t2 = t * t
    t3 = t2 * t
    return Position(
        0.5 * (
            2 * v2.x +
            (-v1.x + v3.x) * t +
            (2 * v1.x - 5 * v2.x + 4 * v3.x - v4.x) * t2 +
            (-v1.x + 3 * v2.x - 3 * v3.x + v4.x) * t3
        ),
        0.5 * (
            2 * v2.y +
            (-v1.y + v3.y) * t +
            (2 * v1.y - 5 * v2.y + 4 * v3.y - v4.y) * t2 +
            (-v1.y + 3 * v2.y - 3 * v3.y + v4.y) * t3
        ),
    )


def get_center(a, b, c):
    """Returns the Position of the center of the circle described by the 3
    points

    Parameters
    ----------
    a, b, c : Position
        The three positions.

    Returns
    -------
    center : Position
        The center of the three points.

    Raises
    ------
    ValueError
        Raised when the points are collinear or coincide.
    """
    a, b, c = np.array([a, b, c], dtype=np.float64)

    a_squared = np.sum(np.square(b - c))
    b_squared = np.sum(np.square(a - c))
    c_squared = np.sum(np.square(a - b))

    if np.isclose([a_squared, b_squared, c_squared], 0).any():
        raise ValueError('points coincide')

    s = a_squared * (b_squared + c_squared - a_squared)
    t = b_squared * (a_squared + c_squared - b_squared)
    u = c_squared * (a_squared + b_squared - c_squared)

    sum_ = s + t + u

    if np.isclose(sum_, 0):
        raise ValueError('points are collinear')

    return Position(*((s * a + t * b + u * c) / sum_).tolist())


def rotate(position, center, radians):
    """Returns a Position rotated r radians around centre c from p

    Parameters
    ----------
    position : Position
        The position to rotate.
    center : Position
        The point to rotate about.
    radians : float
        The number of radians to rotate ``position`` by.
    """
    p_x, p_y = position
    c_x, c_y = center

    x_dist = p_x - c_x
    y_dist = p_y - c_y

    return Position(
        (x_dist * math.cos(radians) - y_dist * math.sin(radians)) + c_x,
        (x_dist * math.sin(radians) + y_dist * math.cos(radians)) + c_y,
    )


def split_at_dupes(inp):
    out = []
    oldi = 0
    for i in range(1, len(inp)):
        if inp[i] == inp[i - 1]:
            out.append(inp[oldi:i])
            oldi = i
    out.append(inp[oldi:])
    return out
