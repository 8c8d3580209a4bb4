"""Exceptions raised by the batch routing dispatcher."""

from __future__ import annotations


class InputShapeError(ValueError):
    """Origin-destination input is malformed; raised before any pair is routed."""


class RoutingError(RuntimeError):
    """A routing function could not produce a usable route for one pair."""
