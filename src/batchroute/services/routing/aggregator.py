"""Classification of per-pair outcomes and merging into one route collection."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from ...models.domain import RouteCollection
from .errors import RoutingError
from .invoker import Failure, RouteOutcome, Success, as_route_collection

logger = logging.getLogger(__name__)

FAILURE_KIND = "RouteFailure"


@dataclass(slots=True)
class Classification:
    """Which route numbers match the majority result kind and which do not."""

    majority_kind: Optional[str]
    included: list[int] = field(default_factory=list)
    excluded: list[int] = field(default_factory=list)


def outcome_kind(outcome: RouteOutcome) -> str:
    match outcome:
        case Success(value=value, tag=tag):
            return tag or type(value).__name__
        case Failure():
            return FAILURE_KIND
        case _:
            raise TypeError(f"Unknown route outcome '{type(outcome).__name__}'.")


def outcome_value(outcome: RouteOutcome) -> Any:
    """The raw result for a success, the error marker for a failure."""
    if isinstance(outcome, Success):
        return outcome.value
    return outcome.error


def most_common_kind(outcomes: Sequence[RouteOutcome]) -> Optional[str]:
    """Most frequent kind among successful outcomes; ties go to the earliest seen."""
    counts = Counter(outcome_kind(outcome) for outcome in outcomes if isinstance(outcome, Success))
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def classify(outcomes: Sequence[RouteOutcome]) -> Classification:
    majority = most_common_kind(outcomes)
    classification = Classification(majority_kind=majority)
    for route_number, outcome in enumerate(outcomes, start=1):
        if majority is not None and isinstance(outcome, Success) and outcome_kind(outcome) == majority:
            classification.included.append(route_number)
        else:
            classification.excluded.append(route_number)
    return classification


def _report(outcomes: Sequence[RouteOutcome], classification: Classification) -> None:
    if classification.majority_kind is None:
        logger.info("Most common output is none: no route succeeded")
    else:
        logger.info(f"Most common output is {classification.majority_kind}")

    if classification.excluded:
        failing = ", ".join(str(number) for number in classification.excluded)
        logger.warning(f"These routes failed: {failing}")
        first = outcome_value(outcomes[classification.excluded[0] - 1])
        logger.warning(f"The first of which was: {first!r}")


def aggregate(
    outcomes: Sequence[RouteOutcome], list_output: bool = False
) -> Union[RouteCollection, list[Any]]:
    """Merge majority-kind results into one collection, or return the raw list.

    The raw list (one entry per pair, failures as ``RouteFailure``) is returned
    when ``list_output`` is set or when no pair succeeded.
    """
    classification = classify(outcomes)
    _report(outcomes, classification)

    if list_output or classification.majority_kind is None:
        logger.info("Returning list")
        return [outcome_value(outcome) for outcome in outcomes]

    try:
        collections = [as_route_collection(outcomes[number - 1].value) for number in classification.included]
    except RoutingError as exc:
        logger.warning(f"Results of kind {classification.majority_kind} cannot be merged ({exc}); returning list")
        return [outcome_value(outcome) for outcome in outcomes]

    metadata = {
        "most_common_output": classification.majority_kind,
        "route_count": len(outcomes),
        "failed_routes": list(classification.excluded),
    }
    return RouteCollection.concat(collections, metadata=metadata)
