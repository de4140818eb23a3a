"""Precision-Recall curve evaluation of outlier rankings."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Collection, Iterable, List, Mapping, Optional, Union

import pandas as pd

from ..utils.data_loading import get_objects_by_label_match
from .curve import PRCurve
from .results import OrderingResult, OutlierResult, Ranking, ResultStore

logger = logging.getLogger(__name__)


def compute_precision_recall_curve(
    total_count: int,
    positives: Collection[Any],
    ranked: Iterable[Any],
    scores: Optional[Mapping[Any, float]] = None,
) -> PRCurve:
    """
    Build the precision-recall curve of a ranking in a single pass.

    Each point is emitted for the prefix preceding the current item, so that
    items with identical scores can be merged into one step before the point
    is written. Without scores every step emits a point.

    Args:
        total_count: Number of identifiers the ranking yields
        positives: Ground-truth positive identifiers
        ranked: Identifiers in descending-confidence order, consumed once
        scores: Score per identifier, used for tie detection (optional)

    Returns:
        Simplified precision-recall curve ending at recall 1.0

    Raises:
        ValueError: If there are no positives or the ranking is empty
    """
    postot = len(positives)
    if postot == 0:
        raise ValueError("Cannot compute a precision-recall curve without positives")

    poscnt, total = 0, 0
    curve = PRCurve(postot + 2)

    prevscore = math.nan
    for cur in ranked:
        if total > 0:
            currec = poscnt / postot
            curprec = poscnt / total

        if cur in positives:
            poscnt += 1
        total += 1

        if total == 1:
            if scores is not None:
                prevscore = float(scores[cur])
            continue

        # Defer on ties
        if scores is not None:
            curscore = float(scores[cur])
            if curscore == prevscore:
                continue
            prevscore = curscore

        curve.add_and_simplify(currec, curprec)

    if total == 0:
        raise ValueError(
            f"Ranking yielded no identifiers while {postot} positives exist; "
            "precision at full recall is undefined"
        )
    if total != total_count:
        logger.warning(
            f"Ranking yielded {total} identifiers, expected {total_count}"
        )

    # End curve: all positives found
    curve.add_and_simplify(1.0, poscnt / total)
    logger.debug(f"Built PR curve with {len(curve)} points from {total} items")
    return curve


@dataclass
class PRCurveConfig:
    """Configuration of the precision-recall evaluator."""

    positive_class_name: str

    @classmethod
    def from_dict(cls, section: Optional[dict]) -> "PRCurveConfig":
        """Build the configuration from an `evaluation` config section."""
        section = dict(section or {})
        if not section.get("positive_class_name"):
            raise ValueError("evaluation.positive_class_name must be set")
        return cls(positive_class_name=str(section["positive_class_name"]))


class OutlierPrecisionRecallCurve:
    """Compute precision-recall curves for outlier scores and orderings."""

    def __init__(self, config: PRCurveConfig):
        """
        Initialize the evaluator.

        Args:
            config: Evaluator configuration
        """
        self.config = config

    def process_new_result(
        self,
        labels: Union[pd.Series, Mapping],
        results: Iterable[Ranking],
        store: Optional[ResultStore] = None,
    ) -> ResultStore:
        """
        Evaluate every ranking against the positive class.

        Outlier results are evaluated with their scores. Plain orderings are
        evaluated without tie handling, skipping those already covered as the
        ordering of an outlier result.

        Args:
            labels: Ground-truth label per identifier
            results: Outlier results and orderings to evaluate
            store: Store receiving the curves (a new one if omitted)

        Returns:
            The store holding one curve per evaluated ranking
        """
        if store is None:
            store = ResultStore()

        positives = get_objects_by_label_match(labels, self.config.positive_class_name)
        if len(positives) == 0:
            logger.warning(
                "Computing a precision-recall curve failed - no objects matched "
                f"'{self.config.positive_class_name}'."
            )
            return store

        results = list(results)
        outlier_results = [r for r in results if isinstance(r, OutlierResult)]
        orderings: List[OrderingResult] = [
            r for r in results if isinstance(r, OrderingResult)
        ]

        processed = set()
        for result in outlier_results:
            if id(result) in processed:
                continue
            curve = compute_precision_recall_curve(
                len(result.scores),
                positives,
                result.ordering.iter_ids(),
                result.scores.to_dict(),
            )
            store.add(result, curve)
            processed.add(id(result))
            processed.add(id(result.ordering))
            logger.info(f"{result.name}: {curve.PRAUC_LABEL} = {curve.get_auc():.4f}")

        for ordering in orderings:
            if id(ordering) in processed:
                continue
            curve = compute_precision_recall_curve(
                len(ordering), positives, ordering.iter_ids()
            )
            store.add(ordering, curve)
            processed.add(id(ordering))
            logger.info(f"{ordering.name}: {curve.PRAUC_LABEL} = {curve.get_auc():.4f}")

        return store
