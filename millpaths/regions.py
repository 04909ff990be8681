"""Locate a point among polygons and report the rings that bound its region.

A multipolygon is a shapely ``Polygon`` or ``MultiPolygon``, or any
iterable of shapely polygons.  Polygon order and hole order are kept, so
the indices returned refer to the order the caller supplied.

Ring indices use 0 for a polygon's outer ring and ``i + 1`` for its
``i``-th hole.  The results are nested tuples so that they can serve as
dictionary keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from .geometry import point_in_ring

MPRingIndices = Tuple[Tuple[int, Tuple[int, ...]], ...]
RingIndices = Tuple[Tuple[int, Tuple[Tuple[int, MPRingIndices], ...]], ...]


@dataclass
class NestedPolygon:
    """A multipolygon with holes that are themselves multipolygons."""

    outer: Any
    inners: List[Any] = field(default_factory=list)


def _polygons(multipolygon: Any) -> List[Polygon]:
    if isinstance(multipolygon, Polygon):
        return [] if multipolygon.is_empty else [multipolygon]
    if isinstance(multipolygon, BaseGeometry):
        return [
            g
            for g in getattr(multipolygon, "geoms", ())
            if isinstance(g, Polygon) and not g.is_empty
        ]
    return list(multipolygon)


def _rings(polygon: Polygon) -> Tuple[list, List[list]]:
    return list(polygon.exterior.coords), [list(r.coords) for r in polygon.interiors]


def inside_multipolygon(p: Sequence[float], multipolygon: Any) -> Optional[MPRingIndices]:
    """Rings of the polygon whose filled area holds ``p``, or None.

    A point in a hole of one polygon may still be inside another polygon
    placed in that hole, so the search carries on past such polygons.
    """
    for poly_index, polygon in enumerate(_polygons(multipolygon)):
        outer, inners = _rings(polygon)
        if not point_in_ring(p, outer):
            continue
        if any(point_in_ring(p, inner) for inner in inners):
            continue
        return ((poly_index, tuple(range(len(inners) + 1))),)
    return None


def outside_multipolygon(p: Sequence[float], multipolygon: Any) -> Optional[MPRingIndices]:
    """Rings that keep ``p`` outside every polygon, or None if it is inside one.

    For each polygon this is either its outer ring or the hole that holds
    the point.
    """
    result = []
    for poly_index, polygon in enumerate(_polygons(multipolygon)):
        outer, inners = _rings(polygon)
        if point_in_ring(p, outer):
            hole = next(
                (i for i, inner in enumerate(inners, 1) if point_in_ring(p, inner)),
                None,
            )
            if hole is None:
                return None
            result.append((poly_index, (hole,)))
        else:
            result.append((poly_index, (0,)))
    return tuple(result)


def inside_multipolygons(p: Sequence[float], nested: Sequence[NestedPolygon]) -> Optional[RingIndices]:
    """Like :func:`inside_multipolygon` for a list of nested polygons."""
    for poly_index, polygon in enumerate(nested):
        inside = inside_multipolygon(p, polygon.outer)
        if inside is None:
            continue
        entries = [(0, inside)]
        for inner_index, inner in enumerate(polygon.inners, 1):
            outside = outside_multipolygon(p, inner)
            if outside is None:
                break
            entries.append((inner_index, outside))
        else:
            return ((poly_index, tuple(entries)),)
    return None


def outside_multipolygons(p: Sequence[float], nested: Sequence[NestedPolygon]) -> Optional[RingIndices]:
    """Like :func:`outside_multipolygon` for a list of nested polygons."""
    result = []
    for poly_index, polygon in enumerate(nested):
        outside = outside_multipolygon(p, polygon.outer)
        if outside is not None:
            result.append((poly_index, ((0, outside),)))
            continue
        for inner_index, inner in enumerate(polygon.inners, 1):
            inside = inside_multipolygon(p, inner)
            if inside is not None:
                result.append((poly_index, ((inner_index, inside),)))
                break
        else:
            return None
    return tuple(result)