"""Place holding bridges on an outline cut."""

from __future__ import annotations

import math
from itertools import combinations
from typing import Dict, List, Sequence, Set, Tuple

from .geometry import Point


class _Node:
    """A point in the path whose identity survives insertions around it."""

    __slots__ = ("point",)

    def __init__(self, point: Point) -> None:
        self.point = point


def _intermediate(p0: Point, p1: Point, position: float) -> Point:
    """The point ``position`` of the way from ``p0`` to ``p1``."""
    return (p0[0] + (p1[0] - p0[0]) * position, p0[1] + (p1[1] - p0[1]) * position)


def _insert(nodes: List[_Node], index: int, point: Point) -> _Node:
    node = _Node(point)
    nodes.insert(index, node)
    return node


def _insert_point(nodes: List[_Node], node: _Node, offset: float) -> _Node:
    """Insert a point ``offset`` along the path from ``node`` and return it.

    Negative offsets go backwards.  A closed path is followed around its
    ends; an open one gets the end point repeated instead.
    """
    while True:
        index = nodes.index(node)
        if offset == 0:
            return _insert(nodes, index, node.point)
        if offset < 0:
            if index > 0:
                prev = nodes[index - 1]
                d = math.dist(node.point, prev.point)
                if offset < -d:
                    node, offset = prev, offset + d
                    continue
                return _insert(nodes, index, _intermediate(node.point, prev.point, -offset / d))
            if node.point == nodes[-1].point:
                node = nodes[-1]
                continue
            return _insert(nodes, 0, node.point)
        if index < len(nodes) - 1:
            nxt = nodes[index + 1]
            d = math.dist(node.point, nxt.point)
            if offset > d:
                node, offset = nxt, offset - d
                continue
            return _insert(nodes, index + 1, _intermediate(node.point, nxt.point, offset / d))
        if node.point == nodes[0].point:
            node = nodes[0]
            continue
        return _insert(nodes, len(nodes), node.point)


def _insert_bridges(
    path: List[Point], bridges: Set[int], length: float
) -> Tuple[List[Point], List[int]]:
    nodes = [_Node(p) for p in path]
    # Keyed by value: segments starting at equal points with equal lengths
    # are treated as one.
    pointers: Dict[Tuple[Point, float], _Node] = {}
    for i in sorted(bridges):
        pointers.setdefault((path[i], math.dist(path[i], path[i + 1])), nodes[i])

    bridge_points: Set[Point] = set()
    for (_, distance), node in sorted(pointers.items(), key=lambda item: item[0]):
        start = _insert_point(nodes, node, distance / 2 - length / 2)
        end = _insert_point(nodes, node, distance / 2 + length / 2)
        index = nodes.index(start)
        while nodes[index] is not end:
            bridge_points.add(nodes[index].point)
            index = (index + 1) % len(nodes)

    new_path = [n.point for n in nodes]
    indices = [i for i, p in enumerate(new_path) if p in bridge_points]
    return new_path, indices


def _min_clique_distance(
    clique: Set[int], locations: Dict[int, Point], closest: Tuple[int, int]
) -> Tuple[float, Tuple[int, int]]:
    """Distance between the two closest members of the clique, and who they are."""
    best = math.inf
    for i, j in combinations(sorted(clique), 2):
        distance = math.dist(locations[i], locations[j])
        if distance < best:
            best, closest = distance, (i, j)
    return best, closest


def _min_distance_to_clique(
    point: Point, excluded: Tuple[int, int], clique: Set[int], locations: Dict[int, Point]
) -> List[float]:
    """For each excluded member, the distance from ``point`` to the rest of the clique."""
    scores = [math.inf] * len(excluded)
    for member in clique:
        distance = math.dist(point, locations[member])
        for k, skip in enumerate(excluded):
            if member != skip and distance < scores[k]:
                scores[k] = distance
    return scores


def _find_bridge_segments(path: List[Point], number: int, length: float) -> Set[int]:
    """Indices of the segments to bridge, spread as far apart as possible."""
    if number < 1:
        return set()
    spans = list(zip(path, path[1:]))
    candidates = {
        i: _intermediate(a, b, 0.5) for i, (a, b) in enumerate(spans) if math.dist(a, b) >= length
    }
    if len(candidates) < number:
        # Not enough long segments, so allow short ones too.
        candidates = {i: _intermediate(a, b, 0.5) for i, (a, b) in enumerate(spans)}

    output = set(sorted(candidates)[:number])
    closest = (0, 0)
    while True:
        best_score, closest = _min_clique_distance(output, candidates, closest)
        new_score = best_score
        swap = None
        for index, location in candidates.items():
            if index in output:
                continue
            scores = _min_distance_to_clique(location, closest, output, candidates)
            for moved, score in zip(closest, scores):
                if score > new_score:
                    swap, new_score = (moved, index), score
        if swap is None:
            return output
        output.remove(swap[0])
        output.add(swap[1])


def make_bridges(
    path: Sequence[Sequence[float]], number: int, length: float
) -> Tuple[List[Point], List[int]]:
    """Split bridges of ``length`` into the path, at most ``number`` of them.

    Bridges go in the middle of segments chosen to be long and far apart.
    Returns the new path and the sorted indices of the points that start
    a bridge segment.
    """
    points = [(float(p[0]), float(p[1])) for p in path]
    return _insert_bridges(points, _find_bridge_segments(points, number, length), length)