"""Domain models for origin-destination pairs and routed features."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from shapely.geometry.base import BaseGeometry


@dataclass(slots=True)
class ODPair:
    """An origin-destination coordinate pair in (x, y) order."""

    from_x: float
    from_y: float
    to_x: float
    to_y: float

    @property
    def origin(self) -> tuple[float, float]:
        return (self.from_x, self.from_y)

    @property
    def destination(self) -> tuple[float, float]:
        return (self.to_x, self.to_y)

    def as_row(self) -> dict[str, float]:
        return {
            "from_x": self.from_x,
            "from_y": self.from_y,
            "to_x": self.to_x,
            "to_y": self.to_y,
        }


@dataclass(slots=True)
class RouteFeature:
    """A single geometry with its attribute row."""

    geometry: BaseGeometry
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RouteCollection:
    """Ordered rows of route features plus batch metadata."""

    features: list[RouteFeature] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[RouteFeature]:
        return iter(self.features)

    def __getitem__(self, index: int) -> RouteFeature:
        return self.features[index]

    @property
    def geometries(self) -> list[BaseGeometry]:
        return [feature.geometry for feature in self.features]

    def column(self, name: str, default: Any = None) -> list[Any]:
        """Return one attribute across all rows, in row order."""
        return [feature.properties.get(name, default) for feature in self.features]

    @classmethod
    def concat(
        cls, collections: Iterable["RouteCollection"], metadata: Optional[dict[str, Any]] = None
    ) -> "RouteCollection":
        features: list[RouteFeature] = []
        for collection in collections:
            features.extend(collection.features)
        return cls(features=features, metadata=dict(metadata or {}))


@dataclass(slots=True)
class RouteFailure:
    """Error marker standing in for the result of a pair that could not be routed."""

    route_number: int
    error: BaseException

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"

    def __bool__(self) -> bool:
        return False
