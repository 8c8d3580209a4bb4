"""HTTP client and routing function for OSRM route services."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx
from shapely.geometry import LineString

from ...config import settings
from ...models.domain import RouteCollection, RouteFeature
from .errors import RoutingError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {408, 425, 429, 500, 502, 503, 504}


def _osrm_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and (data.get("code") or data.get("message")):
        return f"OSRM {response.status_code} {data.get('code', '')}: {data.get('message', '')}".strip()
    return f"OSRM HTTP {response.status_code}"


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured. Set BATCHROUTE_OSRM_BASE_URL.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a client per request so the routing function is safe to call from worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self.transport,
            headers={"accept": "application/json"},
        )

    def route(self, coordinates: Sequence[tuple[float, float]], alternatives: bool = False) -> dict:
        """Get route geometry through the given waypoints from the OSRM route endpoint.

        Args:
            coordinates: Sequence of (x, y) = (lon, lat) waypoints
            alternatives: Ask OSRM for alternative routes as well

        Returns:
            Decoded OSRM response; ``routes`` holds one entry per returned route
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        coordinate_str = ";".join(f"{x},{y}" for x, y in coordinates)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
            "alternatives": "true" if alternatives else "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    if response.status_code >= 400 and response.status_code not in RETRYABLE_STATUS:
                        raise RoutingError(_osrm_error_message(response))
                    response.raise_for_status()
                    data = response.json()
                    if data.get("code") != "Ok":
                        error_msg = data.get("message", "Unknown OSRM route error")
                        raise RoutingError(f"OSRM route request failed ({data.get('code')}): {error_msg}")
                    return data
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM route request timed out after {self.max_retries} attempts: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM route timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(f"Failed to connect to OSRM service at {self.base_url}: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM uses Google's polyline encoding format for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0
    factor = 10 ** precision

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / factor, lon / factor))

    return coordinates


def route_osrm(
    origin: tuple[float, float],
    destination: tuple[float, float],
    *,
    client: OSRMClient | None = None,
    alternatives: bool = False,
    **client_options: Any,
) -> RouteCollection:
    """Routing function backed by OSRM: one row per returned route.

    Rows carry ``distance_m``, ``duration_s`` and ``alternative`` (0 for the
    primary route).
    """
    osrm = client or OSRMClient(**client_options)
    data = osrm.route([origin, destination], alternatives=alternatives)

    features: list[RouteFeature] = []
    for alternative, osrm_route in enumerate(data.get("routes", [])):
        path = [(lon, lat) for lat, lon in decode_polyline(osrm_route.get("geometry", ""))]
        if len(path) < 2:
            continue
        features.append(
            RouteFeature(
                geometry=LineString(path),
                properties={
                    "distance_m": osrm_route.get("distance"),
                    "duration_s": osrm_route.get("duration"),
                    "alternative": alternative,
                },
            )
        )
    if not features:
        raise RoutingError(f"OSRM returned no route geometry between {origin} and {destination}.")
    return RouteCollection(features=features)
