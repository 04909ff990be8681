"""Spikes into the corners that a milling pass leaves uncut, and thermal reliefs.

When a pass is offset from the previous one, the tool rounds each convex
corner and leaves a sliver of material in it.  A spike is a short out-and-back
move from the corner towards the vertex of the previous pass that clears the
sliver.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

from shapely.geometry import JOIN_STYLE, LineString, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.ops import unary_union

from .geometry import Point


def _point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


def _points(ring: Any) -> List[Point]:
    coords = ring.coords if hasattr(ring, "coords") else ring
    return [_point(p) for p in coords]


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


def _linestrings(geometry: BaseGeometry) -> List[List[Point]]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, LineString):
        return [_points(geometry)]
    found: List[List[Point]] = []
    for part in getattr(geometry, "geoms", ()):
        found.extend(_linestrings(part))
    return found


def get_spike(
    prev: Sequence[float],
    current: Sequence[float],
    nxt: Sequence[float],
    offset: float,
) -> Optional[Point]:
    """The tip of the spike at ``current``, or None if no spike is needed.

    Only anti-clockwise turns from ``prev`` through ``current`` to ``nxt``
    get a spike.  It points outward, to the right of the path, and stops
    ``offset`` short of the vertex that the previous pass made there.
    """
    px, py = _point(prev)
    cx, cy = _point(current)
    nx, ny = _point(nxt)
    determinant = px * cy + py * nx + cx * ny - px * ny - py * cx - cy * nx
    if determinant <= 0:
        return None
    in_perp = (cy - py, -(cx - px))
    out_perp = (ny - cy, -(nx - cx))
    in_length = math.hypot(*in_perp)
    out_length = math.hypot(*out_perp)
    if in_length == 0 or out_length == 0:
        return None
    dir_x = (in_perp[0] / in_length + out_perp[0] / out_length) * offset / 2
    dir_y = (in_perp[1] / in_length + out_perp[1] / out_length) * offset / 2
    dir_length = math.hypot(dir_x, dir_y)
    if dir_length == 0:
        return None
    # Similar triangles give the distance to the previous pass' vertex.
    distance_to_vertex = offset * offset / dir_length
    spike_length = distance_to_vertex - offset
    dir_x = dir_x / dir_length * spike_length
    dir_y = dir_y / dir_length * spike_length
    if not (math.isfinite(dir_x) and math.isfinite(dir_y)):
        return None
    return (cx + dir_x, cy + dir_y)


def add_spikes(
    ring: Any,
    offset: float,
    reverse: bool,
    tolerance: float,
    keep_in: Any = None,
    keep_out: Any = None,
) -> List[Point]:
    """The ring with a spike, out and back, at every corner that needs one.

    Corners are found on the ring simplified by ``tolerance``.  With
    ``reverse`` the ring is treated as running the other way.  Each spike
    is clipped to stay outside ``keep_out`` and inside ``keep_in``; a spike
    that is clipped away from its corner is dropped.
    """
    points = _points(ring)
    if offset == 0 or len(points) < 3:
        return points
    simplified = _points(LineString(points).simplify(tolerance, preserve_topology=False))
    if len(simplified) < 3:
        return points
    keep_in_geometry = None if keep_in is None else _as_geometry(keep_in)
    keep_out_geometry = None if keep_out is None else _as_geometry(keep_out)

    result = list(points)
    ring_index = 0
    last = len(simplified) - 1
    for i, current in enumerate(simplified[:-1]):
        ring_index = result.index(current, ring_index)
        prev = simplified[i - 1] if i > 0 else simplified[-2]
        nxt = simplified[i + 1] if i < last else simplified[1]
        if reverse:
            prev, nxt = nxt, prev
        spike = get_spike(prev, current, nxt, offset)
        if spike is None:
            continue
        # Clip in case the arithmetic made a spike long enough to overlap
        # the previous pass.
        masked: BaseGeometry = LineString([current, spike])
        if keep_out_geometry is not None:
            masked = masked.difference(keep_out_geometry)
        if keep_in_geometry is not None:
            masked = masked.intersection(keep_in_geometry)
        tip = None
        for piece in _linestrings(masked):
            if piece[0] == current:
                tip = piece[-1]
                break
            if piece[-1] == current:
                tip = piece[0]
                break
        if tip is not None:
            result[ring_index:ring_index] = [current, tip]
            ring_index += 2
    return result


def find_thermal_reliefs(milling_surface: Any, tolerance: float) -> List[Polygon]:
    """Holes in the surface that hold nothing, filled in as polygons.

    A hole counts as empty when, shrunk by ``tolerance``, it touches no
    part of the surface.  The polygons are oriented as outer rings.
    """
    polygons = _polygons(milling_surface)
    surface = unary_union(polygons)
    holes: List[Polygon] = []
    for polygon in polygons:
        for inner in polygon.interiors:
            thermal_hole = orient(Polygon(inner.coords), sign=1.0)
            shrunk = thermal_hole.buffer(-tolerance, join_style=JOIN_STYLE.mitre)
            if shrunk.intersects(surface):
                continue
            holes.append(thermal_hole)
    return holes