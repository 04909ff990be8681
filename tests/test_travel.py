import math

import pytest
from shapely.geometry import box

from millpaths.attach import Toolpath
from millpaths.path_finding import PathFindingSurface
from millpaths.travel import (
    MillSettings,
    final_path_finder,
    make_path_finder,
    make_path_finder_ring_indices,
    max_milling_distance,
    offset_polygon,
)


def settings(**overrides):
    values = dict(
        zsafe=1.0,
        zwork=0.0,
        feed=10.0,
        vertfeed=10.0,
        g0_vertical_speed=10.0,
        g0_horizontal_speed=10.0,
    )
    values.update(overrides)
    return MillSettings(**values)


def open_surface():
    return PathFindingSurface(None, [], 0.1)


def test_max_distance_infinite_backtrack_is_time_times_feed():
    # Rise 0.1, move 0.1, plunge 0.1 at feed 10.
    assert max_milling_distance(settings(), (0, 0), (1, 0)) == pytest.approx(3.0)


def test_max_distance_symmetric_and_growing():
    s = settings(backtrack=5.0)
    near = max_milling_distance(s, (0, 0), (1, 1))
    assert near == pytest.approx(max_milling_distance(s, (1, 1), (0, 0)))
    assert max_milling_distance(s, (0, 0), (5, 1)) > near


def test_finite_backtrack_is_less_than_infinite():
    a, b = (0, 0), (2, 3)
    assert max_milling_distance(settings(backtrack=5.0), a, b) < max_milling_distance(
        settings(), a, b
    )


def test_zero_backtrack_allows_no_milling():
    assert max_milling_distance(settings(backtrack=0.0), (0, 0), (1, 0)) == 0.0


def test_path_finder_direct():
    finder = make_path_finder(settings(), open_surface())
    assert finder((0, 0), (1, 0)) == [(0.0, 0.0), (1.0, 0.0)]


def test_path_finder_refuses_when_not_worth_it():
    finder = make_path_finder(settings(backtrack=0.0), open_surface())
    assert finder((0, 0), (1, 0)) is None


def test_path_finder_zero_limit():
    finder = make_path_finder(settings(path_finding_limit=0), open_surface())
    assert finder((0, 0), (1, 0)) is None


def test_path_finder_ring_indices():
    surface = open_surface()
    key = surface.in_surface((0, 0))
    finder = make_path_finder_ring_indices(settings(), surface)
    assert finder((0, 0), (1, 0), key) == [(0.0, 0.0), (1.0, 0.0)]


def test_final_path_finder_connects_nearest_ends():
    paths = [([(0, 0), (1, 0)], True), ([(2, 0), (3, 0)], True)]
    result = final_path_finder(settings(), open_surface(), paths)
    assert result == [Toolpath([(1.0, 0.0), (2.0, 0.0)], True)]


def test_final_path_finder_connects_each_pair_once():
    paths = [
        Toolpath([(0, 0), (1, 0)], True),
        Toolpath([(2, 0), (3, 0)], True),
        Toolpath([(4, 0), (5, 0)], True),
    ]
    result = final_path_finder(settings(), open_surface(), paths)
    ends = sorted((t.points[0], t.points[-1]) for t in result)
    assert ends == [((1.0, 0.0), (2.0, 0.0)), ((3.0, 0.0), (4.0, 0.0))]
    assert all(t.reversible for t in result)


def test_final_path_finder_skips_points_outside_surface():
    surface = PathFindingSurface(None, [box(1.5, -1, 2.5, 1)], 0.1)
    paths = [([(0, 0), (1, 0)], False), ([(2, 0), (3, 0)], False)]
    assert final_path_finder(settings(), surface, paths) == []


TRACE = box(0, 0, 1, 1)
VORONOI = box(-5, -5, 6, 6)
BBOX = (-5, -5, 6, 6)


def test_offset_polygon_outward_passes():
    result = offset_polygon(TRACE, VORONOI, 0.2, 0.05, 3, False, 0.0, BBOX)
    assert len(result) == 3
    areas = [p.area for p in result]
    assert areas == sorted(areas)
    assert all(p.contains(TRACE) for p in result)
    assert all(p.covered_by(VORONOI) for p in result)


def test_offset_polygon_never_repeats():
    result = offset_polygon(TRACE, box(-0.2, -0.2, 1.2, 1.2), 0.2, 0.05, 5, False, 0.0, BBOX)
    assert 1 <= len(result) <= 5
    assert not any(a.equals(b) for a, b in zip(result, result[1:]))


def test_offset_polygon_voronoi_skips_outer_half():
    result = offset_polygon(TRACE, VORONOI, 0.2, 0.05, 3, True, 0.0, BBOX)
    assert len(result) == 2
    assert result[0].contains(TRACE)
    assert result[0].area < result[1].area
    assert result[1].area == pytest.approx(VORONOI.area)


def test_offset_polygon_thermal_shrinks():
    hole = box(0, 0, 2, 2)
    result = offset_polygon(None, hole, 0.2, 0.05, 3, True, 0.0, BBOX)
    assert len(result) == 3
    areas = [p.area for p in result]
    assert areas == sorted(areas, reverse=True)
    assert all(p.covered_by(hole) for p in result)


def test_offset_polygon_mask_limits_extent():
    unmasked = offset_polygon(TRACE, VORONOI, 0.2, 0.05, 3, False, 0.0, BBOX)
    mask = box(-10, -10, 1.05, 10)
    masked = offset_polygon(TRACE, VORONOI, 0.2, 0.05, 3, False, 0.0, BBOX, mask=mask)
    limit = TRACE.buffer(0.1).bounds[2]
    assert all(p.bounds[2] <= limit + 1e-9 for p in masked)
    assert unmasked[-1].bounds[2] > limit


def test_offset_polygon_invert_gerbers_clips_to_box():
    small_box = (-0.05, -0.05, 1.05, 1.05)
    result = offset_polygon(
        TRACE, VORONOI, 0.2, 0.05, 2, False, 0.0, small_box, invert_gerbers=True
    )
    clip = box(*small_box)
    assert result
    assert all(p.covered_by(clip) for p in result)
    assert not math.isclose(result[0].area, 0.0)