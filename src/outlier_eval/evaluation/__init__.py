"""Precision-Recall evaluation of outlier rankings."""

from .curve import PRCurve, XYCurve, area_under_curve
from .precision_recall import (
    OutlierPrecisionRecallCurve,
    PRCurveConfig,
    compute_precision_recall_curve,
)
from .results import OrderingResult, OutlierResult, ResultStore, build_rankings

__all__ = [
    "XYCurve",
    "PRCurve",
    "area_under_curve",
    "compute_precision_recall_curve",
    "OutlierPrecisionRecallCurve",
    "PRCurveConfig",
    "OrderingResult",
    "OutlierResult",
    "ResultStore",
    "build_rankings",
]
