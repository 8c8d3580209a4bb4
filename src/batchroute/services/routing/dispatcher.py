"""Batch routing orchestration."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Union

from ...config import settings
from ...models.domain import RouteCollection
from .aggregator import aggregate
from .executors import resolve_pool
from .inputs import normalize_input, resolve_input
from .invoker import ProgressLogger, RouteFunction, failure_outcome, invoke_raw, invoke_row
from .osrm_client import route_osrm

logger = logging.getLogger(__name__)


def route(
    from_: Any = None,
    to: Any = None,
    lines: Any = None,
    *,
    route_fun: RouteFunction | None = None,
    progress_every: int | None = None,
    list_output: bool = False,
    worker_pool: Any = None,
    **options: Any,
) -> Union[RouteCollection, list[Any]]:
    """Route every origin-destination pair and combine the results.

    Args:
        from_: Origin(s): an (x, y) pair, a Point, or a sequence of either
        to: Destination(s), same forms and count as ``from_``
        lines: Two-vertex lines to route; their attributes are copied onto
            every row of the matching route
        route_fun: Callable ``(origin, destination, **options)`` returning
            route rows; defaults to the OSRM routing function
        progress_every: Number of progress notifications per batch
            (``settings.progress_every`` when omitted, 0 to disable)
        list_output: Return the routing function's raw output per pair
            instead of a merged collection
        worker_pool: None for sequential execution, a worker count, a
            ``concurrent.futures.Executor`` or a ``WorkerPool``
        **options: Passed to every ``route_fun`` call

    Returns:
        A ``RouteCollection`` with a ``route_number`` column, or a list with
        one entry per pair (failures as ``RouteFailure``) when ``list_output``
        is set or no pair could be routed.

    Raises:
        InputShapeError: The pairs or lines are malformed; nothing is routed.
    """
    fun = route_osrm if route_fun is None else route_fun
    if not callable(fun):
        raise TypeError(f"route_fun must be callable, got {type(fun).__name__}.")

    normalized = normalize_input(resolve_input(from_, to, lines))
    pool = resolve_pool(worker_pool)
    total = len(normalized)

    invoke = invoke_raw if list_output else invoke_row
    unit = partial(invoke, fun, normalized, options=options)
    progress = ProgressLogger(settings.progress_every if progress_every is None else progress_every)

    fun_name = getattr(fun, "__name__", type(fun).__name__)
    logger.info(f"Routing {total} origin-destination pairs with {fun_name} ({type(pool).__name__})")
    outcomes = pool.map_ordered(unit, range(1, total + 1), on_complete=progress, on_error=failure_outcome)
    return aggregate(outcomes, list_output=list_output)
