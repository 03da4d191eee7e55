"""Extraction provider base class for the document extraction application.

This module contains the abstract ExtractionProvider class that defines
the boundary to the service that extracts field values from a document,
and the FieldExtraction value it returns per field.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

__all__ = ["ExtractionProvider", "FieldExtraction"]


@dataclass(frozen=True)
class FieldExtraction:
    """One field value returned by a provider.

    Attributes:
        extraction_field_id: Field the value belongs to
        extracted_value: Raw value as text, None when the field was not found
        confidence_score: Provider confidence in [0, 1], or None
    """
    extraction_field_id: str
    extracted_value: Optional[str]
    confidence_score: Optional[float] = None


class ExtractionProvider(ABC):
    """Abstract base class for extraction providers.

    A call covers one document and is all-or-nothing: it returns the
    fields it managed to extract (possibly fewer than requested) or
    raises for the whole document. Implementations may define
    ``extract`` as ``async def``; synchronous ones are run in a worker
    thread by the orchestrator.
    """

    @abstractmethod
    def extract(self, document_id: str, field_ids: List[str]) -> List[FieldExtraction]:
        """Extract values for the given fields from one document.

        Args:
            document_id: Document to analyze
            field_ids: Non-empty list of fields to extract

        Returns:
            One entry per extracted field

        Raises:
            ProviderError: If extraction fails for the document
        """
        pass
