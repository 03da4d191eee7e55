"""Result aggregation for the document extraction application.

This module contains the ResultAggregator class that turns stored
extraction results into display rows joined with field and document
metadata, and computes summary statistics over those rows.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..models import DocumentRecord, ExtractionResultRecord, FieldDefinition
from .formatters import (
    ConfidenceBucket,
    confidence_bucket,
    format_confidence,
    format_value,
)

__all__ = ["ResultAggregator", "ResultRow", "ResultSummary"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultRow:
    """A display-ready extraction result.

    ``document_name`` is only set for multi-document views.
    """
    document_id: str
    extraction_field_id: str
    field_name: str
    data_type: str
    raw_value: Optional[str]
    formatted_value: str
    confidence_score: Optional[float]
    confidence_display: str
    confidence_bucket: ConfidenceBucket
    extracted_at: Optional[datetime] = None
    document_name: Optional[str] = None


@dataclass
class ResultSummary:
    """Counts and confidence statistics over a set of rows."""
    total_results: int = 0
    documents: int = 0
    fields: int = 0
    missing_values: int = 0
    bucket_counts: Dict[str, int] = field(
        default_factory=lambda: {bucket.value: 0 for bucket in ConfidenceBucket}
    )
    average_confidence: Optional[float] = None


class ResultAggregator:
    """Merges raw extraction results into display rows.

    Results are de-duplicated per (document, field), keeping the latest
    extraction, and rows whose field is unknown are skipped.
    """

    @staticmethod
    def latest_results(results: Iterable[ExtractionResultRecord]) -> List[ExtractionResultRecord]:
        """Keep the most recent result per (document, field) pair.

        The output keeps the position of each pair's first appearance.
        Ties on ``extracted_at`` go to the later record in the input.
        """
        latest: Dict[Tuple[str, str], ExtractionResultRecord] = {}
        for result in results:
            key = (result.document_id, result.extraction_field_id)
            current = latest.get(key)
            if current is None or not _is_older(result, current):
                latest[key] = result
        return list(latest.values())

    def aggregate(self, results: Iterable[ExtractionResultRecord],
                  fields_by_id: Mapping[str, FieldDefinition],
                  documents_by_id: Optional[Mapping[str, DocumentRecord]] = None) -> List[ResultRow]:
        """Build display rows from raw results.

        Args:
            results: Raw results, in display order
            fields_by_id: Field metadata keyed by field id
            documents_by_id: Document metadata keyed by document id; pass it
                for multi-document views to fill ``document_name``

        Returns:
            One row per (document, field) pair with a known field
        """
        rows: List[ResultRow] = []
        for result in self.latest_results(results):
            definition = fields_by_id.get(result.extraction_field_id)
            if definition is None:
                logger.debug("Skipping result %s for unknown field %s",
                             result.id, result.extraction_field_id)
                continue

            document_name: Optional[str] = None
            if documents_by_id is not None:
                document = documents_by_id.get(result.document_id)
                document_name = document.name if document is not None else None

            rows.append(ResultRow(
                document_id=result.document_id,
                extraction_field_id=result.extraction_field_id,
                field_name=definition.name,
                data_type=definition.data_type,
                raw_value=result.extracted_value,
                formatted_value=format_value(result.extracted_value, definition.data_type),
                confidence_score=result.confidence_score,
                confidence_display=format_confidence(result.confidence_score),
                confidence_bucket=confidence_bucket(result.confidence_score),
                extracted_at=result.extracted_at,
                document_name=document_name,
            ))
        return rows

    @staticmethod
    def summarize(rows: Iterable[ResultRow]) -> ResultSummary:
        """Compute counts, confidence buckets and the average confidence."""
        summary = ResultSummary()
        documents = set()
        fields = set()
        scores: List[float] = []

        for row in rows:
            summary.total_results += 1
            documents.add(row.document_id)
            fields.add(row.extraction_field_id)
            if row.raw_value is None:
                summary.missing_values += 1
            summary.bucket_counts[row.confidence_bucket.value] += 1
            if row.confidence_score is not None:
                scores.append(row.confidence_score)

        summary.documents = len(documents)
        summary.fields = len(fields)
        if scores:
            summary.average_confidence = sum(scores) / len(scores)
        return summary


def _is_older(candidate: ExtractionResultRecord, current: ExtractionResultRecord) -> bool:
    return _sort_key(candidate.extracted_at) < _sort_key(current.extracted_at)


def _sort_key(value: Optional[datetime]) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        # Naive timestamps come back from SQLite and were written in UTC.
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()
