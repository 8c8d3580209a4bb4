"""Normalization of origin-destination input into a uniform pair table.

Callers may describe a batch either as two coordinate collections (origins and
destinations) or as a collection of two-vertex lines. The call arguments are
resolved once into one of two input variants, and each variant has a single
normalization function producing the ``[from_x, from_y, to_x, to_y]`` table the
dispatcher routes from.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Union

from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry

from ...models.domain import ODPair, RouteCollection, RouteFeature
from .errors import InputShapeError

Coordinate = tuple[float, float]


@dataclass(slots=True)
class CoordinatePairInput:
    origins: list[Coordinate]
    destinations: list[Coordinate]
    lines: Optional[list[RouteFeature]] = None


@dataclass(slots=True)
class LineCollectionInput:
    lines: list[RouteFeature]


RouteInput = Union[CoordinatePairInput, LineCollectionInput]


@dataclass(slots=True)
class NormalizedInput:
    """Pairs to route and the line entities whose attributes ride along."""

    pairs: list[ODPair]
    lines: list[RouteFeature]

    def __len__(self) -> int:
        return len(self.pairs)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _as_pair(value: Any) -> Optional[Coordinate]:
    """Return ``value`` as an (x, y) tuple, or None if it is not shaped like one."""
    if isinstance(value, Point):
        if value.is_empty:
            return None
        return (float(value.x), float(value.y))
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return None
    items = list(value)
    if len(items) == 2 and all(_is_number(item) for item in items):
        return (float(items[0]), float(items[1]))
    return None


def _checked(coordinate: Coordinate, label: str) -> Coordinate:
    if not all(math.isfinite(part) for part in coordinate):
        raise InputShapeError(f"{label} has a non-finite coordinate: {coordinate!r}")
    return coordinate


def _coordinates(value: Any, label: str) -> list[Coordinate]:
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes, BaseGeometry)):
        value = list(value)
    single = _as_pair(value)
    if single is not None:
        return [_checked(single, label)]
    if not isinstance(value, list):
        raise InputShapeError(f"{label} must be an (x, y) pair, a Point, or a sequence of them; got {type(value).__name__}.")

    coordinates: list[Coordinate] = []
    for position, item in enumerate(value, start=1):
        pair = _as_pair(item)
        if pair is None:
            raise InputShapeError(f"{label} {position} is not an (x, y) coordinate pair: {item!r}")
        coordinates.append(_checked(pair, f"{label} {position}"))
    return coordinates


def _line_features(lines: Any) -> list[RouteFeature]:
    if isinstance(lines, RouteCollection):
        items: Sequence[Any] = lines.features
    elif isinstance(lines, (RouteFeature, BaseGeometry)):
        items = [lines]
    elif isinstance(lines, (str, bytes)) or not isinstance(lines, Iterable):
        raise InputShapeError(f"Lines must be a RouteCollection or a sequence of line features; got {type(lines).__name__}.")
    else:
        items = list(lines)

    features: list[RouteFeature] = []
    for number, item in enumerate(items, start=1):
        if isinstance(item, RouteFeature):
            features.append(item)
        elif isinstance(item, BaseGeometry):
            features.append(RouteFeature(geometry=item))
        else:
            raise InputShapeError(f"Line {number} is not a line feature: {type(item).__name__}")
    return features


def _endpoints(feature: RouteFeature, number: int) -> ODPair:
    geometry = feature.geometry
    if not isinstance(geometry, LineString) or geometry.is_empty:
        kind = type(geometry).__name__ if geometry is not None else "None"
        raise InputShapeError(f"Line {number} must be a LineString with exactly two vertices, got {kind}.")
    coords = list(geometry.coords)
    if len(coords) != 2:
        raise InputShapeError(f"Line {number} must have exactly two vertices, got {len(coords)}.")
    (from_x, from_y), (to_x, to_y) = coords[0][:2], coords[1][:2]
    return ODPair(from_x=from_x, from_y=from_y, to_x=to_x, to_y=to_y)


def lines_from_pairs(pairs: Sequence[ODPair]) -> list[RouteFeature]:
    """Build straight two-vertex lines carrying each pair's coordinates as attributes."""
    return [
        RouteFeature(geometry=LineString([pair.origin, pair.destination]), properties=pair.as_row())
        for pair in pairs
    ]


def resolve_input(from_: Any = None, to: Any = None, lines: Any = None) -> RouteInput:
    """Decide which input variant the call arguments describe."""
    if from_ is None and to is None:
        if lines is None:
            raise InputShapeError("Either origins and destinations or a collection of lines is required.")
        return LineCollectionInput(lines=_line_features(lines))
    if from_ is None or to is None:
        raise InputShapeError("Origins and destinations must be supplied together.")
    return CoordinatePairInput(
        origins=_coordinates(from_, "Origin"),
        destinations=_coordinates(to, "Destination"),
        lines=_line_features(lines) if lines is not None else None,
    )


def _normalize_coordinates(route_input: CoordinatePairInput) -> NormalizedInput:
    origins, destinations = route_input.origins, route_input.destinations
    if len(origins) != len(destinations):
        raise InputShapeError(
            f"Number of origins ({len(origins)}) does not match number of destinations ({len(destinations)})."
        )
    pairs = [ODPair(from_x=fx, from_y=fy, to_x=tx, to_y=ty) for (fx, fy), (tx, ty) in zip(origins, destinations)]

    if route_input.lines is None:
        return NormalizedInput(pairs=pairs, lines=lines_from_pairs(pairs))
    if len(route_input.lines) != len(pairs):
        raise InputShapeError(
            f"Number of lines ({len(route_input.lines)}) does not match number of origin-destination pairs ({len(pairs)})."
        )
    for number, feature in enumerate(route_input.lines, start=1):
        _endpoints(feature, number)
    return NormalizedInput(pairs=pairs, lines=list(route_input.lines))


def _normalize_lines(route_input: LineCollectionInput) -> NormalizedInput:
    pairs = [_endpoints(feature, number) for number, feature in enumerate(route_input.lines, start=1)]
    return NormalizedInput(pairs=pairs, lines=list(route_input.lines))


def normalize_input(route_input: RouteInput) -> NormalizedInput:
    match route_input:
        case CoordinatePairInput():
            normalized = _normalize_coordinates(route_input)
        case LineCollectionInput():
            normalized = _normalize_lines(route_input)
        case _:
            raise TypeError(f"Unknown route input type '{type(route_input).__name__}'.")
    if not normalized.pairs:
        raise InputShapeError("At least one origin-destination pair is required.")
    return normalized
