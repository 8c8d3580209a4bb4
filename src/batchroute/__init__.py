"""Batch routing of origin-destination pairs through pluggable routing functions."""

from .models.domain import ODPair, RouteCollection, RouteFailure, RouteFeature
from .services.routing.dispatcher import route
from .services.routing.errors import InputShapeError, RoutingError
from .services.routing.executors import (
    ExecutorPool,
    ProcessWorkerPool,
    SequentialPool,
    ThreadWorkerPool,
    WorkerPool,
)
from .services.routing.local import route_straight_line
from .services.routing.osrm_client import OSRMClient, route_osrm

__all__ = [
    "ExecutorPool",
    "InputShapeError",
    "ODPair",
    "OSRMClient",
    "ProcessWorkerPool",
    "RouteCollection",
    "RouteFailure",
    "RouteFeature",
    "RoutingError",
    "SequentialPool",
    "ThreadWorkerPool",
    "WorkerPool",
    "route",
    "route_osrm",
    "route_straight_line",
]
