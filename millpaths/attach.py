"""Join milling loops and lines onto toolpaths, honouring feed direction."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, MutableSequence, Optional, Sequence, Tuple

from .geometry import Point

PathFinder = Callable[[Point, Point], Optional[Sequence[Sequence[float]]]]


class MillFeedDirection(enum.Enum):
    """The direction in which a loop must be milled."""

    ANY = "any"
    CLIMB = "climb"
    CONVENTIONAL = "conventional"


@dataclass
class Toolpath:
    """A path to mill and whether it may still be run backwards."""

    points: List[Point] = field(default_factory=list)
    reversible: bool = True

    def __post_init__(self) -> None:
        self.points = [_point(p) for p in self.points]


def _point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


def _squared_distance(a: Point, b: Point) -> float:
    dx, dy = a[0] - b[0], a[1] - b[1]
    return dx * dx + dy * dy


def invert(direction: MillFeedDirection) -> MillFeedDirection:
    """Swap climb and conventional; ANY stays ANY."""
    if direction is MillFeedDirection.CLIMB:
        return MillFeedDirection.CONVENTIONAL
    if direction is MillFeedDirection.CONVENTIONAL:
        return MillFeedDirection.CLIMB
    return direction


def mirror_toolpath(
    linestrings: Iterable[Sequence[Sequence[float]]], mirror: bool, ymirror: bool
) -> List[List[Point]]:
    """Reflect linestrings across the y axis, or across the x axis if ``ymirror``."""
    flip_x = mirror and not ymirror
    flip_y = mirror and ymirror
    return [
        [
            (-float(p[0]) if flip_x else float(p[0]), -float(p[1]) if flip_y else float(p[1]))
            for p in ls
        ]
        for ls in linestrings
    ]


def attach_ring(
    ring: Sequence[Sequence[float]],
    toolpath: Toolpath,
    direction: MillFeedDirection,
    path_finder: PathFinder,
) -> bool:
    """Splice a closed ring onto whichever end of ``toolpath`` is nearer.

    The ring is entered at its point closest to that end.  Returns False,
    leaving the toolpath alone, if ``path_finder`` finds no connection.
    """
    ring_points = [_point(p) for p in ring]
    points = toolpath.points
    front, back = points[0], points[-1]
    best_index = 0
    best_distance = _squared_distance(ring_points[0], front)
    insert_at_front = True
    for index, ring_point in enumerate(ring_points):
        distance = _squared_distance(ring_point, front)
        if distance < best_distance:
            best_distance, best_index, insert_at_front = distance, index, True
        distance = _squared_distance(ring_point, back)
        if distance < best_distance:
            best_distance, best_index, insert_at_front = distance, index, False

    best_point = ring_points[best_index]
    path = path_finder(best_point, front) if insert_at_front else path_finder(back, best_point)
    if path is None:
        return False
    connection = [_point(p) for p in list(path)[1:-1]]

    if direction is MillFeedDirection.CONVENTIONAL:
        loop = (
            ring_points[1 : best_index + 1][::-1]
            + ring_points[best_index + 1 :][::-1]
            + [best_point]
        )
    else:
        # For ANY either way round works; keep the ring's own direction.
        body = ring_points[:-1]
        loop = body[best_index:] + body[:best_index] + [best_point]

    if insert_at_front:
        toolpath.points = loop + connection + points
    else:
        toolpath.points = points + connection + loop
    toolpath.reversible = direction is MillFeedDirection.ANY and toolpath.reversible
    return True


def attach_ls(
    ls: Sequence[Sequence[float]],
    toolpath: Toolpath,
    direction: MillFeedDirection,
    path_finder: PathFinder,
) -> bool:
    """Join an open linestring to an end of ``toolpath``.

    Every joining that the direction and the toolpath's reversibility
    allow is considered and the shortest gap is tried.  Returns False if
    ``path_finder`` cannot bridge it.
    """
    line = [_point(p) for p in ls]
    points = toolpath.points
    t_front, t_back = points[0], points[-1]
    l_front, l_back = line[0], line[-1]

    # (reverse_toolpath, insert_front, insert_reversed, gap between the ends)
    options: List[Tuple[bool, bool, bool, Point, Point]] = []
    toolpath_modes = [False, True] if toolpath.reversible else [False]
    for reverse_toolpath in toolpath_modes:
        tail, head = (t_front, t_back) if reverse_toolpath else (t_back, t_front)
        if direction is not MillFeedDirection.CLIMB:
            options.append((reverse_toolpath, False, True, tail, l_back))
            options.append((reverse_toolpath, True, True, l_front, head))
        if direction is not MillFeedDirection.CONVENTIONAL:
            options.append((reverse_toolpath, False, False, tail, l_front))
            options.append((reverse_toolpath, True, False, l_back, head))

    best = None
    best_distance = math.inf
    for option in options:
        distance = math.dist(option[3], option[4])
        if distance < best_distance:
            best, best_distance = option, distance
    if best is None:
        return False

    reverse_toolpath, insert_front, insert_reversed, _, _ = best
    toolpath_neighbor = t_back if reverse_toolpath == insert_front else t_front
    ls_neighbor = l_front if insert_front == insert_reversed else l_back
    path = (
        path_finder(ls_neighbor, toolpath_neighbor)
        if insert_front
        else path_finder(toolpath_neighbor, ls_neighbor)
    )
    if path is None:
        return False
    connection = [_point(p) for p in list(path)[1:-1]]
    base = points[::-1] if reverse_toolpath else list(points)
    piece = line[::-1] if insert_reversed else line
    if insert_front:
        toolpath.points = piece + connection + base
    else:
        toolpath.points = base + connection + piece
    toolpath.reversible = direction is MillFeedDirection.ANY and toolpath.reversible
    return True


def attach_to_toolpaths(
    ls: Sequence[Sequence[float]],
    toolpaths: MutableSequence[Toolpath],
    direction: MillFeedDirection,
    path_finder: PathFinder,
) -> None:
    """Attach ``ls`` to the first toolpath that accepts it, or start a new one."""
    line = [_point(p) for p in ls]
    attach = attach_ring if line[0] == line[-1] else attach_ls
    for toolpath in toolpaths:
        if attach(line, toolpath, direction, path_finder):
            return
    if direction is MillFeedDirection.CONVENTIONAL:
        toolpaths.append(Toolpath(line[::-1], False))
    elif direction is MillFeedDirection.CLIMB:
        toolpaths.append(Toolpath(line, False))
    else:
        toolpaths.append(Toolpath(line, True))