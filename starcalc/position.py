from collections import namedtuple
import math

import numpy as np


class Position(namedtuple('Position', 'x y')):
    """A position on the osu! playfield, also used as a 2d vector.

    Parameters
    ----------
    x : float
        The x coordinate.
    y : float
        The y coordinate.

    Notes
    -----
    The visible region of the osu! standard playfield is [0, 512] by [0, 384].
    Positions may fall outside of this range for slider curve control points
    and stacked objects.

    Unlike a plain tuple, ``+`` and ``-`` are element-wise and ``*`` scales
    both coordinates.
    """
    x_max = 512
    y_max = 384

    def __eq__(self, other):
        return self.x == other.x and self.y == other.y

    def __ne__(self, other):
        return not self == other

    __hash__ = tuple.__hash__

    def __add__(self, other):
        return type(self)(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return type(self)(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar):
        return type(self)(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar):
        return type(self)(self.x / scalar, self.y / scalar)

    @property
    def length(self):
        return math.hypot(self.x, self.y)

    def dot(self, other):
        return self.x * other.x + self.y * other.y

    def distance(self, other):
        return distance(self, other)


def distance(start, end):
    return float(np.sqrt((start.x - end.x) ** 2 + (start.y - end.y) ** 2))
