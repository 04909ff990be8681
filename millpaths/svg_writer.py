"""Debug images of milling geometry as SVG files."""

from __future__ import annotations

import random
from typing import Any, Iterable, List, Sequence, Tuple

from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry

Point = Tuple[float, float]

SVG_PIX_PER_IN = 96
SVG_DOTS_PER_IN = 1000
SVG_NAMESPACE = "http://www.w3.org/2000/svg"

_STROKE = "stroke:rgb(0,0,0);stroke-width:2"
_CENTER_STYLE = (
    "stroke:rgb(0,0,0);stroke-width:1px;fill:none;"
    "stroke-opacity:1;stroke-linecap:round;stroke-linejoin:round;"
)


def _polygons(geometry: Any) -> List[Polygon]:
    if isinstance(geometry, Polygon):
        return [] if geometry.is_empty else [geometry]
    if isinstance(geometry, BaseGeometry):
        return [
            g
            for g in getattr(geometry, "geoms", ())
            if isinstance(g, Polygon) and not g.is_empty
        ]
    return list(geometry)


def normalize_ring(ring: Sequence[Sequence[float]]) -> List[Point]:
    """Rotate a closed ring so that it starts at its smallest point."""
    points = [tuple(p) for p in ring]
    body = points[:-1]
    if not body:
        return points
    start = body.index(min(body))
    rotated = body[start:] + body[:start]
    return rotated + [rotated[0]]


def normalize_polygon(polygon: Polygon) -> Polygon:
    """Normalize every ring of a polygon and sort its holes."""
    if polygon.is_empty:
        return polygon
    holes = sorted(normalize_ring(r.coords) for r in polygon.interiors)
    return Polygon(normalize_ring(polygon.exterior.coords), holes)


def normalize_multipolygon(multipolygon: Any) -> List[Polygon]:
    """Normalized polygons sorted by their outer rings."""
    return sorted(
        (normalize_polygon(p) for p in _polygons(multipolygon)),
        key=lambda p: list(p.exterior.coords),
    )


def normalize_linestrings(linestrings: Iterable[Sequence[Sequence[float]]]) -> List[Tuple[Point, ...]]:
    """Linestrings as tuples of points, in sorted order."""
    return sorted(tuple(tuple(p) for p in ls) for ls in linestrings)


class SvgWriter:
    """Writes shapes inside a bounding box to an SVG file.

    The bounding box is ``(min_x, min_y, max_x, max_y)`` in inches.
    Colours come from a generator seeded the same way for every writer,
    so equal input gives equal files.
    """

    def __init__(self, filename: Any, bounding_box: Sequence[float]) -> None:
        self.bounding_box = tuple(float(v) for v in bounding_box)
        min_x, min_y, max_x, max_y = self.bounding_box
        width = (max_x - min_x) * SVG_PIX_PER_IN
        height = (max_y - min_y) * SVG_PIX_PER_IN
        view_width = (max_x - min_x) * SVG_DOTS_PER_IN
        view_height = (max_y - min_y) * SVG_DOTS_PER_IN
        self._rng = random.Random(1)
        self._file = open(filename, "w", encoding="utf-8")
        self._file.write('<?xml version="1.0" standalone="no"?>\n')
        self._file.write(
            f'<svg width="{width:g}" height="{height:g}" '
            f'viewBox="0 0 {view_width:g} {view_height:g}" '
            f'version="1.1" xmlns="{SVG_NAMESPACE}">\n'
        )

    def _color(self) -> Tuple[int, int, int]:
        return (self._rng.randrange(256), self._rng.randrange(256), self._rng.randrange(256))

    def _map(self, point: Sequence[float]) -> str:
        min_x, _, _, max_y = self.bounding_box
        x = (point[0] - min_x) * SVG_DOTS_PER_IN
        y = (max_y - point[1]) * SVG_DOTS_PER_IN
        return f"{x:g},{y:g}"

    def _ring_data(self, ring: Sequence[Sequence[float]]) -> str:
        first, *rest = ring
        return " ".join(["M " + self._map(first), *("L " + self._map(p) for p in rest), "Z"])

    def add_polygons(self, geometry: Any, opacity: float, stroke: bool) -> None:
        """Fill each polygon, clipped to the bounding box, in its own colour."""
        stroke_str = _STROKE if stroke else ""
        clip = box(*self.bounding_box)
        for polygon in normalize_multipolygon(geometry):
            r, g, b = self._color()
            rings = [
                ring
                for piece in _polygons(polygon.intersection(clip))
                for ring in (piece.exterior.coords, *(i.coords for i in piece.interiors))
            ]
            if not rings:
                continue
            data = " ".join(self._ring_data(list(ring)) for ring in rings)
            self._file.write(
                f'<path d="{data}" style="fill-opacity:{opacity:f};'
                f'fill:rgb({r},{g},{b});{stroke_str}"/>\n'
            )

    def add_linestrings(self, linestrings: Iterable[Sequence[Sequence[float]]], width: float, stroke: bool) -> None:
        """Draw each linestring in its own colour.  ``stroke`` has no effect on lines."""
        for ls in normalize_linestrings(linestrings):
            self.add_path(ls, width, *self._color())

    def add_path(self, path: Sequence[Sequence[float]], width: float, r: int, g: int, b: int) -> None:
        """Draw the tool's full width in the colour and a thin centre line."""
        points = " ".join(self._map(p) for p in path)
        self._file.write(
            f'<polyline points="{points}" style="stroke:rgb({r},{g},{b});'
            f"stroke-width:{width * SVG_DOTS_PER_IN:f};fill:none;"
            'stroke-opacity:0.5;stroke-linecap:round;stroke-linejoin:round;"/>\n'
        )
        self._file.write(f'<polyline points="{points}" style="{_CENTER_STYLE}"/>\n')

    def add_paths(self, paths: Iterable[Sequence[Sequence[float]]], width: float, r: int, g: int, b: int) -> None:
        """Draw several paths in one colour."""
        for path in normalize_linestrings(paths):
            self.add_path(path, width, r, g, b)

    def close(self) -> None:
        """Finish the document and close the file."""
        if not self._file.closed:
            self._file.write("</svg>\n")
            self._file.close()

    def __enter__(self) -> "SvgWriter":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()