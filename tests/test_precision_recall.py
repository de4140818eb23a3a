import logging

import numpy as np
import pandas as pd
import pytest

from outlier_eval.evaluation import (
    OrderingResult,
    OutlierPrecisionRecallCurve,
    OutlierResult,
    PRCurveConfig,
    ResultStore,
    compute_precision_recall_curve,
)


def test_ranking_without_scores() -> None:
    ranked = ["P1", "N1", "P2", "N2"]
    curve = compute_precision_recall_curve(4, frozenset({"P1", "P2"}), iter(ranked))
    expected = [(0.5, 1.0), (0.5, 0.5), (1.0, 2 / 3), (1.0, 0.5)]
    assert curve.points() == [(pytest.approx(x), pytest.approx(y)) for x, y in expected]
    assert curve.get_auc() == pytest.approx(0.5 * (0.5 + 2 / 3) / 2)


def test_tied_scores_collapse_into_one_step() -> None:
    scores = {"A": 5.0, "B": 5.0, "C": 3.0}
    curve = compute_precision_recall_curve(
        3, frozenset({"A", "C"}), iter(["A", "B", "C"]), scores
    )
    expected = [(0.5, 0.5), (1.0, 2 / 3)]
    assert curve.points() == [(pytest.approx(x), pytest.approx(y)) for x, y in expected]
    # No point separating A from B
    assert (0.5, 1.0) not in curve.points()


def test_trailing_tie_merges_into_final_point() -> None:
    scores = pd.Series({"A": 5.0, "B": 3.0, "C": 3.0})
    curve = compute_precision_recall_curve(
        3, frozenset({"A", "C"}), iter(["A", "B", "C"]), scores
    )
    expected = [(0.5, 1.0), (1.0, 2 / 3)]
    assert curve.points() == [(pytest.approx(x), pytest.approx(y)) for x, y in expected]


def test_distinct_scores_match_plain_ordering() -> None:
    ranked = ["P1", "N1", "P2", "N2"]
    scores = {"P1": 4.0, "N1": 3.0, "P2": 2.0, "N2": 1.0}
    positives = frozenset({"P1", "P2"})
    with_scores = compute_precision_recall_curve(4, positives, iter(ranked), scores)
    without = compute_precision_recall_curve(4, positives, iter(ranked))
    assert with_scores.points() == without.points()


def test_all_scores_tied_yield_single_final_point() -> None:
    ranked = ["a", "b", "c", "d"]
    scores = dict.fromkeys(ranked, 1.0)
    curve = compute_precision_recall_curve(4, frozenset({"b"}), iter(ranked), scores)
    assert curve.points() == [(1.0, 0.25)]


def test_perfect_ranking() -> None:
    curve = compute_precision_recall_curve(
        4, frozenset({"P1", "P2"}), iter(["P1", "P2", "N1", "N2"])
    )
    assert curve.points() == [(0.5, 1.0), (1.0, 1.0), (1.0, 0.5)]
    assert curve.get_auc() == pytest.approx(0.5)


def test_single_item_ranking() -> None:
    curve = compute_precision_recall_curve(1, frozenset({"a"}), iter(["a"]))
    assert curve.points() == [(1.0, 1.0)]
    assert curve.get_auc() == 0.0


@pytest.mark.parametrize("seed", range(8))
def test_curve_properties_on_random_rankings(seed: int) -> None:
    rng = np.random.default_rng(seed)
    n = int(rng.integers(2, 200))
    ids = [f"id{i}" for i in range(n)]
    positives = frozenset(rng.choice(ids, size=int(rng.integers(1, n + 1)), replace=False))
    scores = pd.Series(rng.integers(0, 6, size=n).astype(float), index=ids)
    ranked = scores.sort_values(ascending=False, kind="mergesort").index

    for lookup in (scores.to_dict(), None):
        curve = compute_precision_recall_curve(n, positives, iter(ranked), lookup)
        recall = np.array(curve.x_values)
        precision = np.array(curve.y_values)

        assert np.all(np.diff(recall) >= 0)
        assert np.all((recall >= 0) & (recall <= 1))
        assert np.all((precision >= 0) & (precision <= 1))
        assert recall[-1] == 1.0
        assert precision[-1] == pytest.approx(len(positives) / n)
        assert 0.0 <= curve.get_auc() <= 1.0


def test_large_ranking_keeps_every_corner() -> None:
    negatives = [f"n{i}" for i in range(90_000)]
    positives = [f"p{i}" for i in range(10_000)]
    curve = compute_precision_recall_curve(
        100_000, frozenset(positives), iter(negatives + positives)
    )
    # One point per recall level reached by the positives
    assert len(curve) >= 10_000
    assert curve.points()[-1] == (1.0, pytest.approx(0.1))


def test_empty_ranking_fails_fast() -> None:
    with pytest.raises(ValueError, match="no identifiers"):
        compute_precision_recall_curve(0, frozenset({"a"}), iter([]))


def test_empty_positive_set_is_rejected() -> None:
    with pytest.raises(ValueError, match="without positives"):
        compute_precision_recall_curve(2, frozenset(), iter(["a", "b"]))


def test_count_mismatch_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        curve = compute_precision_recall_curve(5, frozenset({"a"}), iter(["a", "b"]))
    assert "expected 5" in caplog.text
    assert curve.points()[-1] == (1.0, 0.5)


@pytest.fixture
def labels() -> pd.Series:
    return pd.Series({"a": "outlier", "b": "inlier", "c": "outlier", "d": "inlier"})


@pytest.fixture
def evaluator() -> OutlierPrecisionRecallCurve:
    return OutlierPrecisionRecallCurve(PRCurveConfig("^outlier$"))


def test_outlier_result_is_evaluated_with_scores(
    labels: pd.Series, evaluator: OutlierPrecisionRecallCurve
) -> None:
    result = OutlierResult("lof", {"a": 0.9, "b": 0.8, "c": 0.7, "d": 0.1})
    store = evaluator.process_new_result(labels, [result])
    curve = store.get(result)
    expected = [(0.5, 1.0), (0.5, 0.5), (1.0, 2 / 3), (1.0, 0.5)]
    assert curve.points() == [(pytest.approx(x), pytest.approx(y)) for x, y in expected]


def test_ordering_alias_is_processed_once(
    labels: pd.Series, evaluator: OutlierPrecisionRecallCurve
) -> None:
    result = OutlierResult("lof", {"a": 0.9, "b": 0.9, "c": 0.7, "d": 0.1})
    other = OrderingResult("reverse", ["d", "c", "b", "a"])
    store = evaluator.process_new_result(labels, [result.ordering, result, other])

    assert len(store) == 2
    assert result in store
    assert other in store
    assert result.ordering not in store
    assert store.get(other).points()[-1] == (1.0, 0.5)


def test_repeated_outlier_result_is_processed_once(
    labels: pd.Series,
    evaluator: OutlierPrecisionRecallCurve,
    caplog: pytest.LogCaptureFixture,
) -> None:
    result = OutlierResult("lof", {"a": 0.9, "b": 0.8, "c": 0.7, "d": 0.1})
    with caplog.at_level(logging.WARNING):
        store = evaluator.process_new_result(labels, [result, result])
    assert len(store) == 1
    assert "Replacing" not in caplog.text


def test_plain_ordering_has_no_tie_handling(
    labels: pd.Series, evaluator: OutlierPrecisionRecallCurve
) -> None:
    ordering = OrderingResult("plain", ["a", "b", "c", "d"])
    store = evaluator.process_new_result(labels, [ordering])
    assert len(store.get(ordering)) == 4


def test_no_matching_label_warns_without_curve(
    labels: pd.Series, caplog: pytest.LogCaptureFixture
) -> None:
    evaluator = OutlierPrecisionRecallCurve(PRCurveConfig("^anomaly$"))
    result = OutlierResult("lof", {"a": 0.9, "b": 0.8, "c": 0.7, "d": 0.1})
    with caplog.at_level(logging.WARNING):
        store = evaluator.process_new_result(labels, [result])
    assert len(store) == 0
    assert "no objects matched" in caplog.text


def test_existing_store_is_extended(
    labels: pd.Series, evaluator: OutlierPrecisionRecallCurve
) -> None:
    store = ResultStore()
    first = OrderingResult("first", ["a", "b", "c", "d"])
    second = OrderingResult("second", ["b", "a", "d", "c"])
    evaluator.process_new_result(labels, [first], store)
    returned = evaluator.process_new_result(labels, [second], store)
    assert returned is store
    assert [r.name for r, _ in store.items()] == ["first", "second"]


def test_config_requires_positive_class() -> None:
    assert PRCurveConfig.from_dict({"positive_class_name": "yes"}).positive_class_name == "yes"
    with pytest.raises(ValueError):
        PRCurveConfig.from_dict({})
