# millpaths

Geometry routines for building PCB isolation-milling toolpaths. Points are
`(x, y)` tuples. Polygons and multipolygons are shapely objects. Most
functions also accept a plain list of shapely polygons where a multipolygon
is expected.

## Install

```
pip install millpaths
```

To run the test suite:

```
pip install "millpaths[test]"
pytest
```

## Modules

- `millpaths.geometry` provides segment intersection (`is_intersecting`), the
  orientation helpers `is_left` and `is_between`, and winding-number
  containment (`point_in_ring`).
- `millpaths.segment_tree` has `Segment` and `SegmentTree`.
  `SegmentTree.intersects(p0, p1)` reports whether any stored segment touches
  or crosses the query segment. `describe()` returns the tree as indented text.
- `millpaths.segmentize` has `segmentize_paths(toolpaths)`, which takes
  `(points, reversible)` pairs. It splits them into two-point linestrings at
  every crossing and every touching end point, and each piece keeps its
  direction and its reversible flag. `unique(linestrings)` removes duplicate
  two-point linestrings. A reversible one also matches its reverse and
  replaces directional copies. The result is sorted.
- `millpaths.regions` has `NestedPolygon` and the functions
  `inside_multipolygon`, `outside_multipolygon`, `inside_multipolygons` and
  `outside_multipolygons`. Each returns, as nested tuples, the rings that bound
  the region holding a point, or `None`.
- `millpaths.path_finding` has `PathFindingSurface(keep_in, keep_out,
  tolerance)`. It runs an A* search over shape corners for a shortest path
  inside `keep_in` (when given) and outside `keep_out`.
  `find_path(start, goal, max_path_length, max_tries=None, search_key=None)`
  returns a list of points, or `None`. `in_surface(p)` gives a region key.
  `GiveUp` is raised internally when the tries run out.
- `millpaths.outline_bridges` has `make_bridges(path, number, length)`. It
  splits at most `number` bridges of `length` into an outline, placed on long
  segments spread far apart. It returns `(new_path, bridge_start_indices)`.
- `millpaths.attach` has `MillFeedDirection` (`ANY`, `CLIMB`,
  `CONVENTIONAL`), `Toolpath(points, reversible)`, `invert`,
  `mirror_toolpath`, `attach_ring`, `attach_ls` and `attach_to_toolpaths`.
  These splice rings and lines onto toolpaths and respect the feed direction.
  A path-finder callable supplies each connecting move.
- `millpaths.spikes` has `get_spike`, `add_spikes` and `find_thermal_reliefs`.
  `add_spikes` puts out-and-back spikes into corners that an offset pass leaves
  uncut. `find_thermal_reliefs` returns the empty holes in a surface as
  polygons.
- `millpaths.travel` covers the following:
  - `MillSettings` and `max_milling_distance`, which compute the longest
    milled move that beats retract, rapid move and plunge.
  - `make_path_finder`, `make_path_finder_ring_indices` and
    `final_path_finder`, which return milled connections between separate
    paths.
  - `offset_polygon`, which computes the successive isolation-pass areas
    around a trace.
- `millpaths.svg_writer` has `SvgWriter(filename, bounding_box)`, which is a
  context manager with `add_polygons`, `add_linestrings`, `add_path` and
  `add_paths`. It also has the `normalize_*` helpers, which order geometry so
  that output is stable.

## Examples

```python
from shapely.geometry import MultiPolygon, Polygon
from millpaths.path_finding import PathFindingSurface

keep_out = MultiPolygon([Polygon([(3, 3), (3, 7), (7, 7), (8, 3)])])
surface = PathFindingSurface(None, keep_out, 0.1)
print(surface.find_path((0, 0), (10, 10), float("inf")))
# [(0.0, 0.0), (3.0, 7.0), (10.0, 10.0)]
```

```python
from millpaths.outline_bridges import make_bridges

path, bridges = make_bridges([(0, 0), (0, 10), (10, 10), (10, 0), (0, 0)], 4, 2)
print(bridges)
# [1, 4, 7, 10]
```

## What it does not do

This is a library of geometry steps, not a complete milling tool:

- It has no command-line program.
- It does not read Gerber or drill files.
- It does not write G-code.
- It does not compute voronoi regions. `offset_polygon` expects the caller to
  pass in the region for each trace.
- It does not drive the full sequence from board layers to finished toolpaths.
  The caller combines the modules above to do that.