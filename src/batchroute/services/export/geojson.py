"""GeoJSON export utilities for routed batches."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from shapely.geometry import mapping

from ...models.domain import RouteCollection


def generate_route_color(index: int) -> str:
    """Generate distinct stroke colors for routes."""
    colors = [
        "#02d8e0", "#e0003e", "#38e000", "#0000c1", "#e0e005",
        "#611cc7", "#e0af00", "#13aae0", "#a4d819", "#00e0bb",
        "#e000a2", "#e000e0", "#09e0e0", "#e0002f", "#22e000",
        "#15dde0", "#e00017", "#08e000", "#3100e0", "#e0bb0b",
    ]
    return colors[index % len(colors)]


def routes_to_geojson(collection: RouteCollection, *, styled: bool = False) -> Dict[str, Any]:
    """Convert a routed batch to an RFC 7946 FeatureCollection.

    Args:
        collection: Rows produced by the dispatcher
        styled: Add a simplestyle ``stroke`` color keyed on ``route_number``

    Returns:
        FeatureCollection dictionary; batch metadata is kept under ``metadata``
    """
    features: List[Dict[str, Any]] = []
    for row in collection:
        properties = dict(row.properties)
        if styled:
            route_number = properties.get("route_number")
            if isinstance(route_number, int):
                properties.setdefault("stroke", generate_route_color(route_number - 1))
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(row.geometry) if row.geometry is not None else None,
                "properties": properties,
            }
        )

    payload: Dict[str, Any] = {"type": "FeatureCollection", "features": features}
    if collection.metadata:
        payload["metadata"] = dict(collection.metadata)
    return payload


def save_geojson(collection: RouteCollection, output_path: Path, *, styled: bool = False) -> None:
    """Save a routed batch as a GeoJSON file.

    Values that are not JSON-native are written via ``str``.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(routes_to_geojson(collection, styled=styled), handle, indent=2, ensure_ascii=False, default=str)
