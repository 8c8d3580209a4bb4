"""Per-pair invocation of a routing function."""

from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from shapely.geometry import LineString, MultiLineString
from shapely.geometry.base import BaseGeometry

from ...models.domain import RouteCollection, RouteFailure, RouteFeature
from .errors import RoutingError
from .inputs import NormalizedInput

logger = logging.getLogger(__name__)

RouteFunction = Callable[..., Any]


@dataclass(slots=True)
class Success:
    value: Any
    tag: Optional[str] = None


@dataclass(slots=True)
class Failure:
    error: RouteFailure


RouteOutcome = Union[Success, Failure]


def as_route_collection(value: Any) -> RouteCollection:
    """Coerce a routing function's output to route rows, or raise RoutingError."""
    if isinstance(value, RouteCollection):
        collection = value
    elif isinstance(value, RouteFeature):
        collection = RouteCollection(features=[value])
    elif isinstance(value, (LineString, MultiLineString)):
        collection = RouteCollection(features=[RouteFeature(geometry=value)])
    elif isinstance(value, BaseGeometry):
        raise RoutingError(f"Routing function returned a {type(value).__name__}, expected a line geometry.")
    elif isinstance(value, (list, tuple)) and all(isinstance(item, RouteFeature) for item in value):
        collection = RouteCollection(features=list(value))
    elif value is None:
        raise RoutingError("Routing function returned no route.")
    else:
        raise RoutingError(f"Routing function returned unsupported type '{type(value).__name__}'.")

    if not collection.features:
        raise RoutingError("Routing function returned no route segments.")
    return collection


def _call(route_fun: RouteFunction, normalized: NormalizedInput, route_number: int, options: Mapping[str, Any]) -> Any:
    pair = normalized.pairs[route_number - 1]
    return route_fun(pair.origin, pair.destination, **options)


def _transportable(exc: BaseException) -> BaseException:
    """Return ``exc``, or a RoutingError carrying its text if it cannot cross a process boundary."""
    try:
        pickle.loads(pickle.dumps(exc))
    except Exception:
        return RoutingError(f"{type(exc).__name__}: {exc}")
    return exc


def _result_tag(value: Any) -> Optional[str]:
    if isinstance(value, RouteCollection):
        tag = value.metadata.get("result_tag")
    else:
        tag = getattr(value, "result_tag", None)
    return tag if isinstance(tag, str) and tag else None


def failure_outcome(route_number: int, exc: BaseException) -> Failure:
    """Wrap an error for one pair as an outcome that is safe to pickle."""
    logger.warning(f"Fail for route number {route_number}: {exc}")
    return Failure(RouteFailure(route_number=route_number, error=_transportable(exc)))


def invoke_row(
    route_fun: RouteFunction,
    normalized: NormalizedInput,
    route_number: int,
    options: Optional[Mapping[str, Any]] = None,
) -> RouteOutcome:
    """Route one pair and bind the originating line's attributes to every row.

    Row attributes are the line's attributes, then ``route_number``, then the
    route's own attributes. ``route_number`` always holds the 1-based pair
    position even if the route returns a field of the same name.
    A string ``result_tag`` in the returned collection's metadata becomes the
    outcome tag used for majority voting.
    """
    try:
        value = _call(route_fun, normalized, route_number, options or {})
        collection = as_route_collection(value)
        line = normalized.lines[route_number - 1]
        rows: list[RouteFeature] = []
        for segment in collection:
            properties = {**line.properties, "route_number": route_number, **segment.properties}
            properties["route_number"] = route_number
            rows.append(RouteFeature(geometry=segment.geometry, properties=properties))
    except Exception as exc:
        return failure_outcome(route_number, exc)
    return Success(RouteCollection(features=rows), tag=_result_tag(value))


def invoke_raw(
    route_fun: RouteFunction,
    normalized: NormalizedInput,
    route_number: int,
    options: Optional[Mapping[str, Any]] = None,
) -> RouteOutcome:
    """Route one pair and keep the routing function's output untouched.

    A string ``result_tag`` attribute on the output becomes the outcome tag.
    """
    try:
        value = _call(route_fun, normalized, route_number, options or {})
    except Exception as exc:
        return failure_outcome(route_number, exc)
    return Success(value, tag=_result_tag(value))


class ProgressLogger:
    """Logs "X % out of N distances calculated" at a fixed cadence.

    ``progress_every`` is the number of notifications spread over a batch;
    batches smaller than that report every pair, and ``0`` disables reporting.
    """

    def __init__(self, progress_every: int) -> None:
        self.progress_every = progress_every

    def step(self, total: int) -> int:
        if self.progress_every <= 0 or total <= 0:
            return 0
        return max(1, round(total / self.progress_every))

    def __call__(self, done: int, total: int) -> None:
        step = self.step(total)
        if not step:
            return
        if done % step == 0 or done == total:
            logger.info(f"{round(100 * done / total)} % out of {total} distances calculated")
