"""Precision-Recall curve evaluation for outlier detection rankings."""

__version__ = "0.1.0"
