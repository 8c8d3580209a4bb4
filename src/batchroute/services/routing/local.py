"""Offline routing function that joins each pair with a straight line."""

from __future__ import annotations

from shapely.geometry import LineString

from ...config import settings
from ...models.domain import RouteCollection, RouteFeature
from ..geospatial import bearing_degrees, path_length_km


def route_straight_line(
    origin: tuple[float, float],
    destination: tuple[float, float],
    *,
    speed_kmh: float | None = None,
) -> RouteCollection:
    """Route "as the crow flies" between two (lon, lat) points.

    Useful when no routing service is reachable. Durations assume a constant
    ``speed_kmh`` (``settings.average_speed_kmh`` by default).
    """
    speed = speed_kmh if speed_kmh is not None else settings.average_speed_kmh
    if speed <= 0:
        raise ValueError(f"speed_kmh must be positive, got {speed}.")

    path = [tuple(origin), tuple(destination)]
    distance_km = path_length_km(path)
    (lon1, lat1), (lon2, lat2) = path
    return RouteCollection(
        features=[
            RouteFeature(
                geometry=LineString(path),
                properties={
                    "distance_km": distance_km,
                    "duration_min": distance_km / speed * 60.0,
                    "bearing_deg": bearing_degrees(lat1, lon1, lat2, lon2),
                },
            )
        ]
    )
