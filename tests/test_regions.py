import pytest
from shapely.geometry import MultiPolygon, Polygon, box

from millpaths.regions import (
    NestedPolygon,
    inside_multipolygon,
    inside_multipolygons,
    outside_multipolygon,
    outside_multipolygons,
)


def _square(x0, y0, x1, y1):
    return [(x0, y0), (x0, y1), (x1, y1), (x1, y0), (x0, y0)]


@pytest.fixture
def doughnuts():
    return MultiPolygon(
        [
            Polygon(_square(0, 0, 10, 10), [_square(3, 3, 7, 7)]),
            Polygon(
                _square(20, 0, 30, 10),
                [_square(23, 3, 24, 4), _square(26, 6, 28, 8)],
            ),
        ]
    )


@pytest.fixture
def nested_doughnuts():
    return MultiPolygon(
        [
            Polygon(_square(0, 0, 100, 100), [_square(10, 10, 90, 90)]),
            Polygon(_square(20, 20, 80, 80), [_square(30, 30, 70, 70)]),
        ]
    )


def test_inside_open_space():
    assert inside_multipolygon((1, 1), MultiPolygon()) is None


def test_inside_box():
    mp = [box(0, 0, 10, 10)]
    assert inside_multipolygon((1, 1), mp) == ((0, (0,)),)
    assert inside_multipolygon((11, 11), mp) is None


def test_inside_doughnuts(doughnuts):
    assert inside_multipolygon((1, 1), doughnuts) == ((0, (0, 1)),)
    assert inside_multipolygon((11, 11), doughnuts) is None
    assert inside_multipolygon((5, 5), doughnuts) is None
    assert inside_multipolygon((21, 1), doughnuts) == ((1, (0, 1, 2)),)
    assert inside_multipolygon((23.5, 3.5), doughnuts) is None


def test_inside_nested_doughnuts(nested_doughnuts):
    assert inside_multipolygon((1, 1), nested_doughnuts) == ((0, (0, 1)),)
    assert inside_multipolygon((11, 11), nested_doughnuts) is None
    assert inside_multipolygon((21, 21), nested_doughnuts) == ((1, (0, 1)),)
    assert inside_multipolygon((31, 31), nested_doughnuts) is None


def test_outside_open_space():
    assert outside_multipolygon((1, 1), MultiPolygon()) == ()


def test_outside_box():
    mp = [box(0, 0, 10, 10)]
    assert outside_multipolygon((1, 1), mp) is None
    assert outside_multipolygon((11, 11), mp) == ((0, (0,)),)


def test_outside_doughnuts(doughnuts):
    assert outside_multipolygon((1, 1), doughnuts) is None
    assert outside_multipolygon((11, 11), doughnuts) == ((0, (0,)), (1, (0,)))
    assert outside_multipolygon((5, 5), doughnuts) == ((0, (1,)), (1, (0,)))
    assert outside_multipolygon((21, 1), doughnuts) is None
    assert outside_multipolygon((23.5, 3.5), doughnuts) == ((0, (0,)), (1, (1,)))


def test_outside_nested_doughnuts(nested_doughnuts):
    assert outside_multipolygon((1, 1), nested_doughnuts) is None
    assert outside_multipolygon((11, 11), nested_doughnuts) == ((0, (1,)), (1, (0,)))
    assert outside_multipolygon((21, 21), nested_doughnuts) is None
    assert outside_multipolygon((31, 31), nested_doughnuts) == ((0, (1,)), (1, (1,)))


def test_inside_multipolygons_plain_outer():
    nested = [NestedPolygon(outer=[box(0, 0, 10, 10)])]
    assert inside_multipolygons((1, 1), nested) == ((0, ((0, ((0, (0,)),)),)),)
    assert inside_multipolygons((11, 11), nested) is None


def test_inside_multipolygons_with_inner(doughnuts):
    nested = [NestedPolygon(outer=[box(-10, -10, 40, 20)], inners=[doughnuts])]
    # Outside both doughnuts but inside the big outer.
    assert inside_multipolygons((15, 15), nested) == (
        (0, ((0, ((0, (0,)),)), (1, ((0, (0,)), (1, (0,)))))),
    )
    # Inside a doughnut, which is a hole of the nested polygon.
    assert inside_multipolygons((1, 1), nested) is None


def test_outside_multipolygons(doughnuts):
    nested = [NestedPolygon(outer=[box(-10, -10, 40, 20)], inners=[doughnuts])]
    assert outside_multipolygons((50, 50), nested) == ((0, ((0, ((0, (0,)),)),)),)
    assert outside_multipolygons((15, 15), nested) is None
    assert outside_multipolygons((1, 1), nested) == ((0, ((1, ((0, (0, 1)),)),)),)


def test_outside_multipolygons_empty():
    assert outside_multipolygons((1, 1), []) == ()
    assert inside_multipolygons((1, 1), []) is None