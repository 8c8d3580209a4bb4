import math

import pytest
from shapely.geometry import LineString, Point

from batchroute.models.domain import RouteCollection, RouteFeature
from batchroute.services.routing.errors import InputShapeError
from batchroute.services.routing.inputs import (
    CoordinatePairInput,
    LineCollectionInput,
    normalize_input,
    resolve_input,
)


def _line(fx: float, fy: float, tx: float, ty: float, **properties) -> RouteFeature:
    return RouteFeature(geometry=LineString([(fx, fy), (tx, ty)]), properties=properties)


def test_single_coordinate_pair_synthesizes_line():
    route_input = resolve_input((-1.5484, 53.7941), (-1.5524, 53.8038))
    assert isinstance(route_input, CoordinatePairInput)

    normalized = normalize_input(route_input)

    assert len(normalized) == 1
    pair = normalized.pairs[0]
    assert pair.origin == (-1.5484, 53.7941)
    assert pair.destination == (-1.5524, 53.8038)
    line = normalized.lines[0]
    assert list(line.geometry.coords) == [(-1.5484, 53.7941), (-1.5524, 53.8038)]
    assert line.properties == {"from_x": -1.5484, "from_y": 53.7941, "to_x": -1.5524, "to_y": 53.8038}


def test_points_and_generators_are_accepted():
    origins = [Point(0, 0), Point(1, 1), Point(2, 2)]
    destinations = ((x + 0.5, y + 0.5) for x, y in [(0, 0), (1, 1), (2, 2)])

    normalized = normalize_input(resolve_input(origins, destinations))

    assert [pair.origin for pair in normalized.pairs] == [(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)]
    assert [pair.destination for pair in normalized.pairs] == [(0.5, 0.5), (1.5, 1.5), (2.5, 2.5)]


def test_lines_only_derive_endpoints_in_order():
    lines = [_line(0, 0, 1, 1, id="A"), _line(5, 5, 6, 7, id="B")]

    route_input = resolve_input(lines=lines)
    assert isinstance(route_input, LineCollectionInput)
    normalized = normalize_input(route_input)

    assert [pair.as_row() for pair in normalized.pairs] == [
        {"from_x": 0.0, "from_y": 0.0, "to_x": 1.0, "to_y": 1.0},
        {"from_x": 5.0, "from_y": 5.0, "to_x": 6.0, "to_y": 7.0},
    ]
    assert normalized.lines[1].properties == {"id": "B"}


def test_route_collection_and_bare_linestrings_are_line_input():
    collection = RouteCollection(features=[_line(0, 0, 1, 1, id="A")])
    assert len(normalize_input(resolve_input(lines=collection))) == 1

    normalized = normalize_input(resolve_input(lines=[LineString([(0, 0), (2, 2)])]))
    assert normalized.lines[0].properties == {}
    assert normalized.pairs[0].destination == (2.0, 2.0)


def test_coordinates_take_precedence_and_lines_carry_attributes():
    lines = [_line(0, 0, 1, 1, id="A")]
    normalized = normalize_input(resolve_input([(10, 10)], [(11, 11)], lines))

    assert normalized.pairs[0].origin == (10.0, 10.0)
    assert normalized.lines[0].properties == {"id": "A"}


def test_mismatched_origin_destination_counts():
    with pytest.raises(InputShapeError, match="does not match"):
        normalize_input(resolve_input([(0, 0), (1, 1)], [(2, 2)]))


def test_mismatched_line_count():
    with pytest.raises(InputShapeError, match="Number of lines"):
        normalize_input(resolve_input([(0, 0), (1, 1)], [(2, 2), (3, 3)], [_line(0, 0, 2, 2)]))


def test_line_must_have_two_vertices():
    lines = [_line(0, 0, 1, 1), RouteFeature(geometry=LineString([(0, 0), (1, 1), (2, 2)]))]
    with pytest.raises(InputShapeError, match="Line 2 must have exactly two vertices"):
        normalize_input(resolve_input(lines=lines))


def test_line_geometry_must_be_linestring():
    with pytest.raises(InputShapeError, match="LineString"):
        normalize_input(resolve_input(lines=[RouteFeature(geometry=Point(0, 0))]))


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"from_": (0, 0)},
        {"to": (0, 0)},
        {"from_": "0,0", "to": (1, 1)},
        {"from_": [(0, 0, 0)], "to": [(1, 1)]},
        {"from_": [(math.nan, 0)], "to": [(1, 1)]},
        {"lines": [42]},
    ],
)
def test_malformed_input_is_rejected(kwargs):
    with pytest.raises(InputShapeError):
        normalize_input(resolve_input(**kwargs))


def test_empty_batch_is_rejected():
    with pytest.raises(InputShapeError, match="At least one"):
        normalize_input(resolve_input([], []))


def test_lines_given_with_coordinates_are_validated():
    lines = [_line(0, 0, 1, 1), RouteFeature(geometry=LineString([(0, 0), (1, 1), (2, 2)]))]

    with pytest.raises(InputShapeError, match="Line 2 must have exactly two vertices"):
        normalize_input(resolve_input([(0, 0), (5, 5)], [(1, 1), (6, 6)], lines))
