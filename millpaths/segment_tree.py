"""A tree of segments for fast "does anything cross this segment" queries.

The tree is built from segments of any orientation, duplicates allowed.
Each inner node splits its segments by one side of their bounding boxes;
the axis and side alternate going down the tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .geometry import Point, is_intersecting


class Segment:
    """An undirected segment stored with the lower-x point first."""

    __slots__ = ("first", "second", "_positive_slope")

    def __init__(self, a: Sequence[float], b: Sequence[float]) -> None:
        a, b = tuple(a), tuple(b)
        if a[0] < b[0]:
            self.first, self.second = a, b
        else:
            self.first, self.second = b, a
        self._positive_slope = self.first[1] < self.second[1]

    def min_x(self) -> float:
        return self.first[0]

    def max_x(self) -> float:
        return self.second[0]

    def min_y(self) -> float:
        return self.first[1] if self._positive_slope else self.second[1]

    def max_y(self) -> float:
        return self.second[1] if self._positive_slope else self.first[1]

    def __repr__(self) -> str:
        return f"Segment({self.first!r}, {self.second!r})"


@dataclass(frozen=True)
class _Node:
    intercept: float = 0.0
    inside: Optional["_Node"] = None
    outside: Optional["_Node"] = None
    segment: Optional[Segment] = None


_Selector = Callable[[Segment], float]

# Sort key used when building a node, by (on_x, less_than).
_BUILD_KEYS: Dict[Tuple[bool, bool], Tuple[_Selector, float]] = {
    (True, True): (Segment.max_x, 1.0),
    (False, True): (Segment.max_y, 1.0),
    (True, False): (Segment.min_x, -1.0),
    (False, False): (Segment.min_y, -1.0),
}

# Side of the query segment compared with the intercept, by (on_x, less_than).
_QUERY_KEYS: Dict[Tuple[bool, bool], Tuple[_Selector, float]] = {
    (True, True): (Segment.min_x, -1.0),
    (False, True): (Segment.min_y, -1.0),
    (True, False): (Segment.max_x, 1.0),
    (False, False): (Segment.max_y, 1.0),
}

_START = (True, True)


def _child_mode(on_x: bool, less_than: bool) -> Tuple[bool, bool]:
    return (less_than != on_x, not less_than)


def _build(segments: List[Segment], on_x: bool, less_than: bool) -> _Node:
    if len(segments) == 1:
        return _Node(segment=segments[0])
    selector, factor = _BUILD_KEYS[(on_x, less_than)]
    ordered = sorted(segments, key=lambda s: factor * selector(s))
    mid = len(ordered) // 2
    child = _child_mode(on_x, less_than)
    return _Node(
        intercept=selector(ordered[mid]),
        inside=_build(ordered[:mid], *child),
        outside=_build(ordered[mid:], *child),
    )


def _intersects(segment: Segment, node: _Node, on_x: bool, less_than: bool) -> bool:
    if node.segment is not None:
        return is_intersecting(
            segment.first, segment.second, node.segment.first, node.segment.second
        )
    child = _child_mode(on_x, less_than)
    if _intersects(segment, node.outside, *child):
        return True
    selector, factor = _QUERY_KEYS[(on_x, less_than)]
    if not (factor * selector(segment) < factor * node.intercept):
        return _intersects(segment, node.inside, *child)
    return False


def _fmt(value: float) -> str:
    return f"{value:g}"


def _wkt(point: Point) -> str:
    return f"POINT({_fmt(point[0])} {_fmt(point[1])})"


def _describe(node: _Node, on_x: bool, less_than: bool, indent: str, lines: List[str]) -> None:
    if node.segment is not None:
        lines.append(f"{indent}{_wkt(node.segment.first)} {_wkt(node.segment.second)}")
        return
    axis = "x" if on_x else "y"
    relation = "less than" if not less_than else "greater than"
    lines.append(f"{indent}if all {axis} is {relation} {_fmt(node.intercept)} then:")
    child = _child_mode(on_x, less_than)
    _describe(node.outside, *child, indent + "  ", lines)
    lines.append(f"{indent}else the above and:")
    _describe(node.inside, *child, indent + "  ", lines)


class SegmentTree:
    """Answers whether any stored segment intersects a query segment."""

    def __init__(self, segments: Iterable[Tuple[Sequence[float], Sequence[float]]] = ()) -> None:
        stored = [Segment(a, b) for a, b in segments]
        self._root: Optional[_Node] = _build(stored, *_START) if stored else None

    def intersects(self, p0: Sequence[float], p1: Sequence[float]) -> bool:
        """True if segment p0-p1 touches or crosses any stored segment."""
        if self._root is None:
            return False
        return _intersects(Segment(p0, p1), self._root, *_START)

    def describe(self) -> str:
        """A readable, indented rendering of the tree."""
        if self._root is None:
            return ""
        lines: List[str] = []
        _describe(self._root, *_START, "", lines)
        return "\n".join(lines)