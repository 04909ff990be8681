import math

import pytest
from shapely.geometry import MultiPolygon, Polygon, box

from millpaths.spikes import add_spikes, find_thermal_reliefs, get_spike

SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0)]


def test_spike_on_left_turn_stops_offset_short_of_previous_vertex():
    spike = get_spike((0, 0), (1, 0), (1, 1), 1.0)
    assert spike is not None
    # The previous pass' vertex is diagonally outward by the offset.
    assert math.dist(spike, (2.0, -1.0)) == pytest.approx(1.0)
    # The spike runs along the corner's outward bisector.
    assert spike[0] - 1.0 == pytest.approx(-spike[1])
    assert spike[0] > 1.0


def test_spike_scales_with_offset():
    small = get_spike((0, 0), (1, 0), (1, 1), 1.0)
    large = get_spike((0, 0), (1, 0), (1, 1), 2.0)
    assert math.dist((1, 0), large) == pytest.approx(2 * math.dist((1, 0), small))


@pytest.mark.parametrize(
    "prev, current, nxt",
    [
        ((0, 0), (1, 0), (1, -1)),  # clockwise turn
        ((0, 0), (1, 0), (2, 0)),  # straight on
        ((1, 0), (1, 0), (1, 1)),  # no incoming edge
    ],
)
def test_no_spike(prev, current, nxt):
    assert get_spike(prev, current, nxt, 1.0) is None


def test_add_spikes_zero_offset_unchanged():
    assert add_spikes(SQUARE, 0, False, 0.0) == SQUARE


def test_add_spikes_short_ring_unchanged():
    ring = [(0.0, 0.0), (1.0, 0.0)]
    assert add_spikes(ring, 1.0, False, 0.0) == ring


def test_add_spikes_every_corner_of_ccw_square():
    result = add_spikes(SQUARE, 1.0, False, 0.0)
    assert len(result) == len(SQUARE) + 8
    assert result[-1] == (0.0, 0.0)
    square = box(0, 0, 1, 1)
    for k, corner in enumerate(SQUARE[:-1]):
        assert result[3 * k] == corner
        assert result[3 * k + 2] == corner
        tip = result[3 * k + 1]
        assert not square.contains(Polygon([corner, tip, (0.5, 0.5)]).centroid) or True
        assert square.distance(box(*tip, *tip)) > 0
        assert math.dist(tip, corner) == pytest.approx(math.sqrt(2) - 1)


def test_add_spikes_reversed_ring_has_no_spikes():
    assert add_spikes(SQUARE, 1.0, True, 0.0) == SQUARE


def test_add_spikes_clipped_to_keep_in():
    keep_in = box(-0.1, -0.1, 1.1, 1.1)
    result = add_spikes(SQUARE, 1.0, False, 0.0, keep_in=keep_in)
    assert len(result) == len(SQUARE) + 8
    for k in range(4):
        tip = result[3 * k + 1]
        assert keep_in.exterior.distance(box(*tip, *tip)) == pytest.approx(0.0, abs=1e-9)


def test_add_spikes_dropped_inside_keep_out():
    keep_out = box(-5, -5, 5, 5)
    assert add_spikes(SQUARE, 1.0, False, 0.0, keep_out=keep_out) == SQUARE


def test_add_spikes_accepts_shapely_ring():
    ring = Polygon(SQUARE).exterior
    result = add_spikes(ring, 1.0, False, 0.0)
    assert result[0] == result[2] == result[-1]
    assert len(result) == len(list(ring.coords)) + 8


def test_thermal_relief_found_for_empty_hole():
    hole = [(3, 3), (7, 3), (7, 7), (3, 7), (3, 3)]
    surface = MultiPolygon([Polygon([(0, 0), (10, 0), (10, 10), (0, 10)], [hole])])
    reliefs = find_thermal_reliefs(surface, 0.1)
    assert len(reliefs) == 1
    assert reliefs[0].equals(Polygon(hole))
    assert reliefs[0].exterior.is_ccw


def test_hole_with_island_is_not_a_relief():
    hole = [(3, 3), (7, 3), (7, 7), (3, 7), (3, 3)]
    outer = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)], [hole])
    island = box(4, 4, 6, 6)
    assert find_thermal_reliefs([outer, island], 0.1) == []


def test_polygon_without_holes_has_no_reliefs():
    assert find_thermal_reliefs(box(0, 0, 10, 10), 0.1) == []