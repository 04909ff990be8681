"""Split toolpaths into two-point segments that never cross each other."""

from __future__ import annotations

from fractions import Fraction
from typing import Iterable, List, Sequence, Set, Tuple

Point = Tuple[float, float]
Linestring = Tuple[Point, ...]
_IPoint = Tuple[int, int]

# Coordinates are snapped to this integer grid while splitting.
SCALE = 1_000_000.0


def unique(
    linestrings: Iterable[Tuple[Sequence[Sequence[float]], bool]]
) -> List[Tuple[Linestring, bool]]:
    """Drop repeated two-point linestrings.

    A reversible linestring matches its reverse too and supersedes
    directional ones on the same endpoints.  The result is sorted.
    """
    kept: Set[Tuple[Linestring, bool]] = set()
    for ls, reversible in linestrings:
        front, back = tuple(ls[0]), tuple(ls[-1])
        forward, backward = (front, back), (back, front)
        if (forward, True) in kept or (backward, True) in kept:
            continue
        if reversible:
            kept.discard((forward, False))
            kept.discard((backward, False))
        elif (forward, False) in kept:
            continue
        kept.add((tuple(tuple(p) for p in ls), reversible))
    return sorted(kept)


def _scale(p: Sequence[float]) -> _IPoint:
    return (round(p[0] * SCALE), round(p[1] * SCALE))


def _unscale(p: _IPoint) -> Point:
    return (p[0] / SCALE, p[1] / SCALE)


def _cross(ax: int, ay: int, bx: int, by: int) -> int:
    return ax * by - ay * bx


def _on_segment(p: _IPoint, a: _IPoint, b: _IPoint) -> bool:
    if a == b:
        return p == a
    if _cross(b[0] - a[0], b[1] - a[1], p[0] - a[0], p[1] - a[1]) != 0:
        return False
    return (
        min(a[0], b[0]) <= p[0] <= max(a[0], b[0])
        and min(a[1], b[1]) <= p[1] <= max(a[1], b[1])
    )


def _crossing(a: _IPoint, b: _IPoint, c: _IPoint, d: _IPoint):
    """The snapped crossing point of two non-parallel segments, if any."""
    rx, ry = b[0] - a[0], b[1] - a[1]
    sx, sy = d[0] - c[0], d[1] - c[1]
    denom = _cross(rx, ry, sx, sy)
    if denom == 0:
        return None
    qx, qy = c[0] - a[0], c[1] - a[1]
    t_num = _cross(qx, qy, sx, sy)
    u_num = _cross(qx, qy, rx, ry)
    if denom < 0:
        denom, t_num, u_num = -denom, -t_num, -u_num
    if not (0 <= t_num <= denom and 0 <= u_num <= denom):
        return None
    return (
        round(a[0] + Fraction(rx * t_num, denom)),
        round(a[1] + Fraction(ry * t_num, denom)),
    )


def _split_points(segments: List[Tuple[_IPoint, _IPoint]]) -> List[Set[_IPoint]]:
    splits: List[Set[_IPoint]] = [set() for _ in segments]
    order = sorted(range(len(segments)), key=lambda i: min(segments[i][0][0], segments[i][1][0]))
    for pos, i in enumerate(order):
        a, b = segments[i]
        max_x = max(a[0], b[0])
        min_y, max_y = min(a[1], b[1]), max(a[1], b[1])
        for j in order[pos + 1:]:
            c, d = segments[j]
            if min(c[0], d[0]) > max_x:
                break
            if min(c[1], d[1]) > max_y or max(c[1], d[1]) < min_y:
                continue
            splits[i].update(p for p in (c, d) if _on_segment(p, a, b))
            splits[j].update(p for p in (a, b) if _on_segment(p, c, d))
            point = _crossing(a, b, c, d)
            if point is not None:
                splits[i].add(point)
                splits[j].add(point)
    return splits


def _pieces(a: _IPoint, b: _IPoint, points: Set[_IPoint]) -> List[Tuple[_IPoint, _IPoint]]:
    if a == b:
        return [(a, b)]
    rx, ry = b[0] - a[0], b[1] - a[1]
    length2 = rx * rx + ry * ry

    def along(p: _IPoint) -> int:
        return (p[0] - a[0]) * rx + (p[1] - a[1]) * ry

    interior = sorted((p for p in points if 0 < along(p) < length2), key=along)
    chain = [a, *interior, b]
    return [(p, q) for p, q in zip(chain, chain[1:]) if p != q]


def segmentize_paths(
    toolpaths: Iterable[Tuple[Sequence[Sequence[float]], bool]]
) -> List[Tuple[Linestring, bool]]:
    """Break toolpaths into two-point linestrings split at every crossing.

    No output segment crosses another or ends in the middle of another.
    Each piece keeps the direction of travel of the path it came from,
    along with that path's reversible flag.
    """
    segments: List[Tuple[_IPoint, _IPoint]] = []
    flags: List[bool] = []
    for path, reversible in toolpaths:
        scaled = [_scale(p) for p in path]
        for a, b in zip(scaled, scaled[1:]):
            segments.append((a, b))
            flags.append(reversible)

    result: List[Tuple[Linestring, bool]] = []
    for (a, b), reversible, points in zip(segments, flags, _split_points(segments)):
        result.extend(
            ((_unscale(p), _unscale(q)), reversible) for p, q in _pieces(a, b, points)
        )
    return result