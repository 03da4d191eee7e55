"""Aggregation module for the document extraction application.

This module turns stored extraction results into display rows and
summary statistics.
"""

from .formatters import (
    NOT_AVAILABLE,
    ConfidenceBucket,
    confidence_bucket,
    format_confidence,
    format_date,
    format_value,
    parse_date,
)
from .result_aggregator import ResultAggregator, ResultRow, ResultSummary

__all__ = [
    "ResultAggregator",
    "ResultRow",
    "ResultSummary",
    "ConfidenceBucket",
    "NOT_AVAILABLE",
    "confidence_bucket",
    "format_confidence",
    "format_date",
    "format_value",
    "parse_date"
]
