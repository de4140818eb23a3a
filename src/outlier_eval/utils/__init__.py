"""Utility modules for outlier ranking evaluation."""

from .data_loading import (
    EvaluationSchema,
    get_objects_by_label_match,
    label_counts,
    load_table,
    normalize_data_section,
)

__all__ = [
    "EvaluationSchema",
    "get_objects_by_label_match",
    "label_counts",
    "load_table",
    "normalize_data_section",
]
