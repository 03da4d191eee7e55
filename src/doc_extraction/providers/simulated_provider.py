"""Simulated extraction provider.

Produces plausible values per field data type without reading the
document. Useful for demos and for exercising extraction runs without
model credentials.
"""

import random
from datetime import date, timedelta
from typing import List, Optional

from ..database import ExtractionFieldRepository
from ..exceptions import ProviderError
from ..models import DataType, FieldDefinition
from .extraction_provider import ExtractionProvider, FieldExtraction

__all__ = ["SimulatedProvider"]


class SimulatedProvider(ExtractionProvider):
    """Generates a value per requested field with confidence in [0.7, 1.0).

    Attributes:
        fields: Repository used to look up field data types
    """

    def __init__(self, fields: ExtractionFieldRepository, seed: Optional[int] = None,
                 today: Optional[date] = None) -> None:
        self.fields: ExtractionFieldRepository = fields
        self._random = random.Random(seed)
        self._today = today or date.today()

    def extract(self, document_id: str, field_ids: List[str]) -> List[FieldExtraction]:
        if not field_ids:
            raise ProviderError("No fields specified for extraction")

        definitions = self.fields.get_fields(field_ids)
        if not definitions:
            raise ProviderError("None of the requested fields exist")

        return [
            FieldExtraction(
                extraction_field_id=definition.id,
                extracted_value=self._sample_value(definition),
                confidence_score=0.7 + self._random.random() * 0.3,
            )
            for definition in definitions
        ]

    def _sample_value(self, definition: FieldDefinition) -> str:
        if definition.data_type == DataType.TEXT.value:
            return f"Sample extracted text for {definition.name}"
        if definition.data_type == DataType.NUMBER.value:
            return str(self._random.randrange(1000))
        if definition.data_type == DataType.DATE.value:
            return (self._today - timedelta(days=self._random.randrange(365))).isoformat()
        if definition.data_type == DataType.BOOLEAN.value:
            return "true" if self._random.random() > 0.5 else "false"
        return f"Extracted value for {definition.name}"
