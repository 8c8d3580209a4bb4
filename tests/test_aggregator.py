import logging

from shapely.geometry import LineString

from batchroute.models.domain import RouteCollection, RouteFailure, RouteFeature
from batchroute.services.routing.aggregator import aggregate, classify, most_common_kind
from batchroute.services.routing.errors import RoutingError
from batchroute.services.routing.invoker import Failure, Success, failure_outcome


def _collection(route_number: int, rows: int = 1) -> RouteCollection:
    return RouteCollection(
        features=[
            RouteFeature(geometry=LineString([(0, 0), (route_number, row + 1)]), properties={"route_number": route_number})
            for row in range(rows)
        ]
    )


def _failure(route_number: int) -> Failure:
    return Failure(RouteFailure(route_number=route_number, error=RoutingError("unreachable")))


def test_majority_kind_ignores_failures():
    outcomes = [_failure(1), _failure(2), _failure(3), Success(_collection(4))]

    assert most_common_kind(outcomes) == "RouteCollection"


def test_majority_kind_ties_go_to_first_seen():
    assert most_common_kind([Success("a"), Success(1), Success(2), Success("b")]) == "str"
    assert most_common_kind([_failure(1)]) is None


def test_explicit_tag_overrides_class_name():
    outcomes = [Success({"a": 1}, tag="journey"), Success({"b": 2}, tag="journey"), Success({"c": 3})]

    classification = classify(outcomes)

    assert classification.majority_kind == "journey"
    assert classification.included == [1, 2]
    assert classification.excluded == [3]


def test_type_mismatch_is_excluded_from_merge(caplog):
    caplog.set_level(logging.INFO, logger="batchroute")
    outcomes = [
        Success(_collection(1, rows=2)),
        Success(_collection(2)),
        Success("unexpected"),
        _failure(4),
        Success(_collection(5, rows=3)),
    ]

    merged = aggregate(outcomes)

    assert isinstance(merged, RouteCollection)
    assert len(merged) == 6
    assert merged.column("route_number") == [1, 1, 2, 5, 5, 5]
    assert merged.metadata == {"most_common_output": "RouteCollection", "route_count": 5, "failed_routes": [3, 4]}
    assert "Most common output is RouteCollection" in caplog.text
    assert "These routes failed: 3, 4" in caplog.text
    assert "The first of which was: 'unexpected'" in caplog.text


def test_list_output_returns_every_result_unmodified():
    first = _collection(1)
    failure = _failure(2)

    result = aggregate([Success(first), failure], list_output=True)

    assert result == [first, failure.error]
    assert result[0] is first


def test_unmergeable_majority_falls_back_to_list():
    result = aggregate([Success({"a": 1}), Success({"b": 2})])

    assert result == [{"a": 1}, {"b": 2}]


class KeywordOnlyError(Exception):
    def __init__(self, message: str, *, status: int) -> None:
        super().__init__(message)
        self.status = status


def test_failures_keep_errors_that_survive_pickling():
    plain = ValueError("plain")
    assert failure_outcome(1, plain).error.error is plain

    converted = failure_outcome(2, KeywordOnlyError("upstream 503", status=503)).error
    assert converted.route_number == 2
    assert isinstance(converted.error, RoutingError)
    assert str(converted.error) == "KeywordOnlyError: upstream 503"
