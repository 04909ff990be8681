"""Shortest tool travel inside an allowed surface.

The surface is the area inside ``keep_in``, when it is given, and outside
``keep_out``.  Paths are searched with A* over the corners of the original
shapes.  Collisions are checked against the shapes buffered by a small
tolerance, so that a path may run along a corner without touching it.
"""

from __future__ import annotations

import heapq
import math
from itertools import chain
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from shapely.geometry import JOIN_STYLE, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from .geometry import Point
from .regions import (
    NestedPolygon,
    RingIndices,
    inside_multipolygons,
    outside_multipolygons,
)
from .segment_tree import SegmentTree

SearchKey = int


class GiveUp(Exception):
    """Raised when a search has used up the tries it was allowed."""


def _point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


def _polygon_list(multipolygon: Any) -> List[Polygon]:
    if multipolygon is None:
        return []
    if isinstance(multipolygon, Polygon):
        return [] if multipolygon.is_empty else [multipolygon]
    if isinstance(multipolygon, BaseGeometry):
        return [
            g
            for g in getattr(multipolygon, "geoms", ())
            if isinstance(g, Polygon) and not g.is_empty
        ]
    return [p if isinstance(p, Polygon) else Polygon(p) for p in multipolygon]


def _ring_points(ring: Any) -> List[Point]:
    return [_point(p) for p in ring.coords]


def _buffer_miter(ring: Sequence[Point], distance: float) -> BaseGeometry:
    return Polygon(ring).buffer(distance, join_style=JOIN_STYLE.mitre)


def _squared_distance(a: Point, b: Point) -> float:
    dx, dy = a[0] - b[0], a[1] - b[1]
    return dx * dx + dy * dy


def _build_path(current: Point, came_from: Dict[Point, Point]) -> List[Point]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


class PathFindingSurface:
    """A surface that can be searched for paths many times.

    ``keep_in`` may be None, in which case only ``keep_out`` limits the
    surface.  ``tolerance`` should be a small epsilon.
    """

    def __init__(self, keep_in: Any, keep_out: Any, tolerance: float) -> None:
        # One entry per shape, each a list of rings: outer first, then holes.
        self._all_vertices: List[List[List[Point]]] = []
        nested: List[NestedPolygon] = []
        self._keep_in = keep_in is not None
        if self._keep_in:
            total = unary_union(_polygon_list(keep_in)).difference(
                unary_union(_polygon_list(keep_out))
            )
            shapes = _polygon_list(total)
            grow = tolerance
        else:
            shapes = _polygon_list(keep_out)
            grow = -tolerance
        for polygon in shapes:
            outer = _ring_points(polygon.exterior)
            inners = [_ring_points(r) for r in polygon.interiors]
            self._all_vertices.append([outer, *inners])
            # Growing a shape shrinks its holes, and the other way around.
            nested.append(
                NestedPolygon(
                    outer=_buffer_miter(outer, grow),
                    inners=[_buffer_miter(inner, -grow) for inner in inners],
                )
            )
        self._nested = nested

        segments: List[Tuple[Point, Point]] = []
        for shape in nested:
            for geometry in (shape.outer, *shape.inners):
                for polygon in _polygon_list(geometry):
                    for ring in (polygon.exterior, *polygon.interiors):
                        points = _ring_points(ring)
                        segments.extend(zip(points, points[1:]))
        self._tree = SegmentTree(segments)

        self._edge_memo: Dict[Tuple[Point, Point], bool] = {}
        self._ring_indices_cache: List[RingIndices] = []
        self._ring_indices_lookup: Dict[RingIndices, SearchKey] = {}
        self._point_memo: Dict[Point, Optional[SearchKey]] = {}
        self._vertices_memo: Dict[SearchKey, Tuple[Point, ...]] = {}
        self._tries: Optional[int] = None

    def in_surface(self, p: Sequence[float]) -> Optional[SearchKey]:
        """The key of the region holding ``p``, or None if it is outside.

        Two points with the same key may be connected by a path; points
        with different keys cannot.
        """
        p = _point(p)
        if p in self._point_memo:
            return self._point_memo[p]
        if self._keep_in:
            ring_indices = inside_multipolygons(p, self._nested)
        else:
            ring_indices = outside_multipolygons(p, self._nested)
        key: Optional[SearchKey] = None
        if ring_indices is not None:
            key = self._ring_indices_lookup.get(ring_indices)
            if key is None:
                self._ring_indices_cache.append(ring_indices)
                key = len(self._ring_indices_cache) - 1
                self._ring_indices_lookup[ring_indices] = key
        self._point_memo[p] = key
        return key

    def edge_in_surface(self, a: Sequence[float], b: Sequence[float]) -> bool:
        """True if the straight move from ``a`` to ``b`` crosses no boundary."""
        a, b = _point(a), _point(b)
        if b < a:
            a, b = b, a
        key = (a, b)
        if key not in self._edge_memo:
            self._edge_memo[key] = not self._tree.intersects(a, b)
        return self._edge_memo[key]

    def _decrement_tries(self) -> None:
        if self._tries is not None:
            if self._tries == 0:
                raise GiveUp()
            self._tries -= 1

    def vertices(self, search_key: SearchKey) -> Tuple[Point, ...]:
        """Corners of the rings that bound the region of ``search_key``."""
        if search_key not in self._vertices_memo:
            found: List[Point] = []
            for poly_index, rings in self._ring_indices_cache[search_key]:
                shape = self._all_vertices[poly_index]
                for ring_index, _ in rings:
                    found.extend(shape[ring_index])
            self._vertices_memo[search_key] = tuple(found)
        return self._vertices_memo[search_key]

    def neighbors(
        self,
        start: Sequence[float],
        goal: Sequence[float],
        max_path_length: float,
        search_key: SearchKey,
        current: Sequence[float],
    ) -> Iterator[Point]:
        """Yield the points reachable in one straight move from ``current``.

        Candidates are ``start``, ``goal`` and the region's vertices.  Those
        that would make the path through them to ``goal`` longer than
        ``max_path_length`` are skipped.  Each candidate uses up one try.
        """
        start, goal, current = _point(start), _point(goal), _point(current)
        for p in chain((start, goal), self.vertices(search_key)):
            if p == current:
                continue
            self._decrement_tries()
            if math.dist(current, p) + math.dist(p, goal) > max_path_length:
                continue
            if not self.edge_in_surface(current, p):
                continue
            yield p

    def find_path(
        self,
        start: Sequence[float],
        goal: Sequence[float],
        max_path_length: float,
        max_tries: Optional[int] = None,
        search_key: Optional[SearchKey] = None,
    ) -> Optional[List[Point]]:
        """A shortest path from ``start`` to ``goal``, or None.

        The path is no longer than ``max_path_length``.  ``max_tries``
        limits how many candidate points are examined.  Without a
        ``search_key`` both points must lie in the same region.
        """
        if max_tries is not None and max_tries == 0:
            return None
        self._tries = max_tries
        start, goal = _point(start), _point(goal)
        if search_key is None:
            search_key = self.in_surface(start)
            if search_key is None or search_key != self.in_surface(goal):
                return None
        try:
            return self._search(start, goal, max_path_length, search_key)
        except GiveUp:
            return None

    def _search(
        self, start: Point, goal: Point, max_path_length: float, search_key: SearchKey
    ) -> Optional[List[Point]]:
        if self.edge_in_surface(start, goal):
            self._decrement_tries()
            if _squared_distance(start, goal) < max_path_length * max_path_length:
                return [start, goal]
            # A straight line is the shortest there is.
            return None

        open_set: List[Tuple[float, Point]] = [(math.dist(start, goal), start)]
        closed: set = set()
        came_from: Dict[Point, Point] = {}
        g_score: Dict[Point, float] = {start: 0.0}
        while open_set:
            _, current = heapq.heappop(open_set)
            if current == goal:
                return _build_path(current, came_from)
            if current in closed:
                continue
            for neighbor in self.neighbors(
                start, goal, max_path_length - g_score[current], search_key, current
            ):
                tentative = g_score[current] + math.dist(current, neighbor)
                if neighbor not in g_score or tentative < g_score[neighbor]:
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative
                    heapq.heappush(
                        open_set, (tentative + math.dist(neighbor, goal), neighbor)
                    )
            closed.add(current)
        return None