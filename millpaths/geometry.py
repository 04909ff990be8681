"""Planar predicates on points, segments and rings.

Points are ``(x, y)`` pairs.  A ring is a sequence of points whose last
point repeats the first.
"""

from __future__ import annotations

from typing import Sequence, Tuple

Point = Tuple[float, float]


def is_left(p0: Sequence[float], p1: Sequence[float], p2: Sequence[float]) -> float:
    """Cross product p0p1 x p0p2.

    Positive when ``p2`` is left of the line through ``p0`` and ``p1``,
    zero when it is on the line and negative when it is to the right.
    """
    return (p1[0] - p0[0]) * (p2[1] - p0[1]) - (p2[0] - p0[0]) * (p1[1] - p0[1])


def is_between(a: float, x: float, b: float) -> bool:
    """True if ``x`` lies between ``a`` and ``b`` inclusive, in either order."""
    return x == a or x == b or ((a - x > 0) == (x - b > 0))


def _within_box(p: Point, a: Point, b: Point) -> bool:
    return is_between(a[0], p[0], b[0]) and is_between(a[1], p[1], b[1])


def is_intersecting(
    p0: Sequence[float],
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
) -> bool:
    """True if segment p0-p1 touches or crosses segment p2-p3."""
    p0, p1, p2, p3 = tuple(p0), tuple(p1), tuple(p2), tuple(p3)
    left012 = is_left(p0, p1, p2)
    left013 = is_left(p0, p1, p3)
    left230 = is_left(p2, p3, p0)
    left231 = is_left(p2, p3, p1)

    if p0 != p1:
        if left012 == 0 and _within_box(p2, p0, p1):
            return True
        if left013 == 0 and _within_box(p3, p0, p1):
            return True
    if p2 != p3:
        if left230 == 0 and _within_box(p0, p2, p3):
            return True
        if left231 == 0 and _within_box(p1, p2, p3):
            return True
    if (left012 > 0) == (left013 > 0) or (left230 > 0) == (left231 > 0):
        return p1 == p2
    return True


def point_in_ring(point: Sequence[float], ring: Sequence[Sequence[float]]) -> bool:
    """Winding-number test for ``point`` inside a closed ``ring``."""
    winding_number = 0
    y = point[1]
    for start, end in zip(ring, ring[1:]):
        if start[1] <= y:
            if end[1] > y and is_left(start, end, point) > 0:
                winding_number += 1
        elif end[1] <= y and is_left(start, end, point) < 0:
            winding_number -= 1
    return winding_number != 0