"""Helpers for loading labelled score tables and resolving positive sets."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class EvaluationSchema:
    """Normalized description of a labelled table of rankings."""

    data_path: Path
    id_column: str
    label_column: str
    score_columns: List[str]
    ascending_columns: List[str] = field(default_factory=list)
    ordering_columns: List[str] = field(default_factory=list)


def normalize_data_section(
    raw_section: Optional[dict],
    *,
    fallback_path: str = "data/scores.csv",
) -> EvaluationSchema:
    """Normalize a `data` config section into an :class:`EvaluationSchema`."""

    section = dict(raw_section or {})
    ascending = list(section.get("ascending_columns") or [])
    score_columns = list(section.get("score_columns") or [])

    unknown = [col for col in ascending if col not in score_columns]
    if unknown:
        raise ValueError(f"ascending_columns not listed in score_columns: {unknown}")

    return EvaluationSchema(
        data_path=Path(section.get("data_path", fallback_path)),
        id_column=section.get("id_column", "id"),
        label_column=section.get("label_column", "label"),
        score_columns=score_columns,
        ascending_columns=ascending,
        ordering_columns=list(section.get("ordering_columns") or []),
    )


def load_table(schema: EvaluationSchema) -> pd.DataFrame:
    """Load the labelled table (CSV or parquet) described by the schema."""

    path = schema.data_path
    if not path.exists():
        raise FileNotFoundError(f"Data file not found at {path}")

    if path.suffix == ".parquet":
        df = pd.read_parquet(path, engine="fastparquet")
    else:
        df = pd.read_csv(path)

    required = [
        schema.id_column,
        schema.label_column,
        *schema.score_columns,
        *schema.ordering_columns,
    ]
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing columns in {path}: {missing}")

    duplicated = df[schema.id_column].duplicated()
    if duplicated.any():
        raise ValueError(
            f"Identifier column '{schema.id_column}' has "
            f"{int(duplicated.sum())} duplicate values"
        )

    logger.info(f"Loaded {len(df):,} rows from {path}")
    return df


def get_objects_by_label_match(
    labels: Union[pd.Series, Mapping],
    pattern: Union[str, re.Pattern],
) -> frozenset:
    """
    Find the identifiers whose label matches a pattern.

    Args:
        labels: Labels indexed by identifier
        pattern: Regular expression searched in each label

    Returns:
        Set of matching identifiers, empty if nothing matches
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    if not isinstance(labels, pd.Series):
        labels = pd.Series(dict(labels), dtype=object)

    matches = labels.astype(str).map(lambda label: regex.search(label) is not None)
    return frozenset(labels.index[matches.values.astype(bool)])


def label_counts(labels: pd.Series) -> Dict[str, int]:
    """Count how many identifiers carry each label."""
    return {str(k): int(v) for k, v in labels.value_counts().items()}
