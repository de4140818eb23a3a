"""Ranking sources and the result store that owns computed curves."""

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TextIO, Tuple, Union

import pandas as pd

from ..utils.data_loading import EvaluationSchema
from .curve import PRCurve

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class OrderingResult:
    """A total order over dataset identifiers, most outlying first."""

    name: str
    ids: pd.Index

    def __post_init__(self):
        self.ids = pd.Index(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def iter_ids(self) -> Iterator[Any]:
        """Return a fresh one-pass iterator over the ordered identifiers."""
        return iter(self.ids)


@dataclass(eq=False)
class OutlierResult:
    """
    Per-identifier outlier scores together with the ordering they induce.

    Attributes:
        name: Name of the scoring method
        scores: Scores indexed by identifier
        ascending: Whether low scores mean more outlying
        ordering: Ordering derived from the scores (stable, ties keep input order)
    """

    name: str
    scores: pd.Series
    ascending: bool = False
    ordering: OrderingResult = field(init=False)

    def __post_init__(self):
        self.scores = pd.Series(self.scores, dtype="float64")
        ranked = self.scores.sort_values(ascending=self.ascending, kind="mergesort")
        self.ordering = OrderingResult(self.name, ranked.index)

    def __len__(self) -> int:
        return len(self.scores)


Ranking = Union[OutlierResult, OrderingResult]


class ResultStore:
    """Ordered store of computed curves keyed by the ranking they evaluate."""

    def __init__(self):
        self._entries: Dict[int, Tuple[Ranking, PRCurve]] = {}

    def add(self, ranking: Ranking, curve: PRCurve):
        """
        Attach a curve to a ranking.

        Args:
            ranking: Evaluated ranking
            curve: Curve computed for it
        """
        key = id(ranking)
        if key in self._entries:
            logger.warning(f"Replacing existing curve for ranking '{ranking.name}'")
        self._entries[key] = (ranking, curve)

    def get(self, ranking: Ranking) -> Optional[PRCurve]:
        entry = self._entries.get(id(ranking))
        return entry[1] if entry is not None else None

    def __contains__(self, ranking: Ranking) -> bool:
        return id(ranking) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> List[Tuple[Ranking, PRCurve]]:
        return list(self._entries.values())

    def auc_summary(self) -> Dict[str, float]:
        """
        Collect the PR-AUC of every stored curve.

        Returns:
            Dictionary mapping ranking name to PR-AUC
        """
        return {ranking.name: curve.get_auc() for ranking, curve in self.items()}

    def write_text(self, out: TextIO):
        """
        Serialize all curves as text, one block per ranking.

        Args:
            out: Writable text stream
        """
        for ranking, curve in self.items():
            out.write(f"# {ranking.name}\n")
            curve.write_to_text(out)

    def to_text(self) -> str:
        buffer = io.StringIO()
        self.write_text(buffer)
        return buffer.getvalue()


def build_rankings(
    df: pd.DataFrame, schema: EvaluationSchema
) -> Tuple[pd.Series, List[Ranking]]:
    """
    Turn a loaded table into labels and ranking sources.

    Score columns become :class:`OutlierResult` objects, ordering columns
    (rank positions, lower first) become :class:`OrderingResult` objects.

    Args:
        df: Table returned by ``load_table``
        schema: Schema describing the table

    Returns:
        Tuple of (labels indexed by identifier, rankings)
    """
    indexed = df.set_index(schema.id_column)
    labels = indexed[schema.label_column].astype(str)

    rankings: List[Ranking] = []
    for column in schema.score_columns:
        rankings.append(
            OutlierResult(
                column,
                indexed[column],
                ascending=column in schema.ascending_columns,
            )
        )
    for column in schema.ordering_columns:
        ranked = indexed[column].sort_values(kind="mergesort")
        rankings.append(OrderingResult(column, ranked.index))

    return labels, rankings
