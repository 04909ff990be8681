"""Deciding when to mill across instead of lifting, and offsetting traces into passes.

A move between two cut paths can either be milled at feed speed along a
safe path, or done by retracting, moving fast and plunging again.
Milling is chosen when it saves time without wearing the bit more than
the ``backtrack`` rate allows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from .attach import Toolpath
from .geometry import Point
from .path_finding import PathFindingSurface, SearchKey

PathFinder = Callable[[Point, Point], Optional[List[Point]]]
PathFinderRingIndices = Callable[[Point, Point, SearchKey], Optional[List[Point]]]


@dataclass
class MillSettings:
    """Heights and speeds of a mill, as far as travel decisions need them.

    ``backtrack`` is the milled distance per unit of saved time that is
    acceptable as extra wear; infinity means any saving is worth it.
    ``path_finding_limit`` caps the points examined per search.
    """

    zsafe: float
    zwork: float
    feed: float
    vertfeed: float
    g0_vertical_speed: float
    g0_horizontal_speed: float
    backtrack: float = math.inf
    path_finding_limit: Optional[int] = None


def _point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


def _polygons(geometry: Any) -> List[Polygon]:
    if geometry is None:
        return []
    if isinstance(geometry, Polygon):
        return [] if geometry.is_empty else [geometry]
    if isinstance(geometry, BaseGeometry):
        return [
            g
            for g in getattr(geometry, "geoms", ())
            if isinstance(g, Polygon) and not g.is_empty
        ]
    return [p if isinstance(p, Polygon) else Polygon(p) for p in geometry]


def _as_geometry(geometry: Any) -> BaseGeometry:
    if isinstance(geometry, BaseGeometry):
        return geometry
    return unary_union(_polygons(geometry))


def _same(a: BaseGeometry, b: BaseGeometry) -> bool:
    if a.is_empty or b.is_empty:
        return a.is_empty and b.is_empty
    return a.equals(b)


def max_milling_distance(settings: MillSettings, a: Sequence[float], b: Sequence[float]) -> float:
    """The longest milled path from ``a`` to ``b`` that beats retracting.

    Retracting costs the rise at G0, the horizontal G0 move along the
    larger of the x and y distances, and the plunge at the vertical feed.
    """
    a, b = _point(a), _point(b)
    vertical_distance = settings.zsafe - settings.zwork
    max_manhattan = max(abs(a[0] - b[0]), abs(a[1] - b[1]))
    g0_time = (
        vertical_distance / settings.g0_vertical_speed
        + max_manhattan / settings.g0_horizontal_speed
        + vertical_distance / settings.vertfeed
    )
    if math.isinf(settings.backtrack):
        return g0_time * settings.feed
    return settings.backtrack * g0_time / (1 + settings.backtrack / settings.feed)


def make_path_finder(settings: MillSettings, surface: PathFindingSurface) -> PathFinder:
    """A function giving a worthwhile milled path between two points, or None."""

    def path_finder(a: Point, b: Point) -> Optional[List[Point]]:
        return surface.find_path(
            a, b, max_milling_distance(settings, a, b), settings.path_finding_limit
        )

    return path_finder


def make_path_finder_ring_indices(
    settings: MillSettings, surface: PathFindingSurface
) -> PathFinderRingIndices:
    """Like :func:`make_path_finder` for points already known to share a region."""

    def path_finder(a: Point, b: Point, search_key: SearchKey) -> Optional[List[Point]]:
        return surface.find_path(
            a,
            b,
            max_milling_distance(settings, a, b),
            settings.path_finding_limit,
            search_key,
        )

    return path_finder


class _DisjointSet:
    def __init__(self) -> None:
        self._parent: Dict[int, int] = {}

    def find(self, item: int) -> int:
        root = item
        while self._parent.get(root, root) != root:
            root = self._parent[root]
        while item != root:
            self._parent[item], item = root, self._parent.get(item, item)
        return root

    def join(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self._parent[root_a] = root_b


def _unpack(path: Any) -> Tuple[List[Point], bool]:
    if isinstance(path, Toolpath):
        return path.points, path.reversible
    points, reversible = path
    return [_point(p) for p in points], bool(reversible)


def final_path_finder(
    settings: MillSettings,
    surface: PathFindingSurface,
    paths: Iterable[Any],
) -> List[Toolpath]:
    """Milled connections between separate paths, closest pairs first.

    ``paths`` holds :class:`Toolpath` objects or ``(points, reversible)``
    pairs.  A front end may only be used when its path is reversible.  Two
    paths are connected at most once, directly or through others.  The
    new connecting paths are returned, each reversible.
    """
    unpacked = [_unpack(p) for p in paths]
    connections: List[Tuple[float, Point, Point, int, int]] = []
    for i, (points1, reversible1) in enumerate(unpacked):
        for j in range(i + 1, len(unpacked)):
            points2, reversible2 = unpacked[j]
            connections.append(
                (math.dist(points1[-1], points2[0]), points1[-1], points2[0], i, j)
            )
            connections.append(
                (math.dist(points1[0], points2[-1]), points1[-1], points2[0], i, j)
            )
            if reversible1:
                connections.append(
                    (math.dist(points1[0], points2[0]), points1[0], points2[0], i, j)
                )
            if reversible2:
                connections.append(
                    (math.dist(points1[-1], points2[-1]), points1[-1], points2[-1], i, j)
                )
    connections.sort()

    regions: Dict[Point, Optional[SearchKey]] = {}
    for _, start, end, _, _ in connections:
        for p in (start, end):
            if p not in regions:
                regions[p] = surface.in_surface(p)

    path_finder = make_path_finder_ring_indices(settings, surface)
    joined = _DisjointSet()
    new_paths: List[Toolpath] = []
    for _, start, end, start_path, end_path in connections:
        start_key, end_key = regions[start], regions[end]
        if start_key is None or end_key is None or start_key != end_key:
            continue
        if joined.find(start_path) == joined.find(end_path):
            continue
        found = path_finder(start, end, start_key)
        if found is not None:
            new_paths.append(Toolpath(list(found), True))
            joined.join(start_path, end_path)
    return new_paths


def offset_polygon(
    trace: Optional[Any],
    voronoi_polygon: Any,
    diameter: float,
    overlap: float,
    steps: int,
    do_voronoi: bool,
    offset: float,
    bounding_box: Sequence[float],
    mask: Optional[Any] = None,
    invert_gerbers: bool = False,
) -> List[BaseGeometry]:
    """The areas whose outlines are the milling passes around a trace.

    ``trace`` is None when milling a thermal relief.  ``voronoi_polygon``
    is the region the passes must stay within.  With ``do_voronoi`` the
    passes work inward from the voronoi edge instead of outward from the
    trace.  ``offset`` is extra clearance kept from the trace.  At most
    ``steps`` areas are returned, the one nearest the trace first; the
    list stops early once an area repeats.
    """
    voronoi = _as_geometry(voronoi_polygon)
    trace_geometry = None if trace is None else _as_geometry(trace)
    mask_geometry = None if mask is None else _as_geometry(mask)
    bbox = box(*bounding_box)

    milling_poly: BaseGeometry = voronoi if do_voronoi else trace_geometry
    thermal_offset = 0.0
    if trace_geometry is None:
        # A thermal: move inward to make room for the bit itself.
        thermal_offset = -diameter / 2 - offset
        path_minimum: BaseGeometry = Polygon()
    else:
        path_minimum = trace_geometry.buffer(diameter / 2 + offset)

    voronoi_shrunk = (
        voronoi.buffer(-diameter / 2 + overlap / 2).union(path_minimum)
    ).intersection(voronoi)

    if mask_geometry is not None:
        milling_poly = milling_poly.intersection(mask_geometry)
    elif do_voronoi:
        # Found by experiment to remove spurious contention.
        factor = (1 - float(steps + 2)) / 2
        expand_by = (diameter - overlap) * factor
        min_x, min_y, max_x, max_y = bounding_box
        grown = box(min_x + expand_by, min_y + expand_by, max_x - expand_by, max_y - expand_by)
        milling_poly = milling_poly.intersection(grown)

    polygons: List[BaseGeometry] = []
    for i in range(steps):
        if not do_voronoi:
            expand_by = diameter / 2 + (diameter - overlap) * i
        else:
            # Voronoi edges are shared between neighbours, so only half
            # the passes are needed, except for thermals.
            factor = -float(i) if trace_geometry is None else (1 - float(steps)) / 2 + i
            if factor > 0:
                continue
            expand_by = (diameter - overlap) * factor

        buffered = milling_poly.buffer(expand_by + offset + thermal_offset)
        if expand_by + offset != 0:
            if not do_voronoi:
                buffered = buffered.intersection(voronoi_shrunk)
            else:
                buffered = buffered.union(path_minimum)
        if mask_geometry is not None and not buffered.covered_by(mask_geometry):
            buffered = (
                buffered.intersection(mask_geometry).union(path_minimum)
            ).intersection(voronoi)
        if invert_gerbers:
            buffered = buffered.intersection(bbox)
        if polygons and _same(buffered, polygons[-1]):
            break
        polygons.append(buffered)
    return polygons