"""OpenAI extraction provider for the document extraction application.

This module contains the OpenAIProvider class for AI-powered field
extraction using OpenAI chat models.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Set

from langfuse import observe
from openai import OpenAI, OpenAIError

from ..config import Config
from ..database import DocumentRepository, ExtractionFieldRepository
from ..exceptions import ExtractionError, ProviderError
from ..models import DataType, FieldDefinition
from .extraction_provider import ExtractionProvider, FieldExtraction
from .text_extractor import TextExtractor

__all__ = ["OpenAIProvider"]

logger = logging.getLogger(__name__)

_TYPE_INSTRUCTIONS = {
    DataType.TEXT.value: "a short string",
    DataType.NUMBER.value: "a number written with digits only",
    DataType.DATE.value: "a date formatted YYYY-MM-DD",
    DataType.BOOLEAN.value: "true or false",
}


class OpenAIProvider(ExtractionProvider):
    """Extraction provider backed by an OpenAI chat model.

    The provider loads the document and field definitions itself, reads
    the stored file, and asks the model for a JSON object keyed by field
    id carrying a value and a confidence per field.

    Attributes:
        cli: OpenAI client instance for API communication
        documents: Repository used to load documents and their content
        fields: Repository used to load field definitions
    """

    def __init__(self, api_key: Optional[str], documents: DocumentRepository,
                 fields: ExtractionFieldRepository, model: str = Config.OPENAI_MODEL) -> None:
        """Initialize the provider with an OpenAI API key.

        Args:
            api_key: OpenAI API key for authentication
            documents: Document repository
            fields: Extraction field repository
            model: Chat model name

        Raises:
            ProviderError: If API key is missing or client creation fails
        """
        if not api_key:
            raise ProviderError("Missing OpenAI API key")

        try:
            self.cli: OpenAI = OpenAI(api_key=api_key)
        except Exception as e:
            raise ProviderError(f"OpenAI client initialization error: {str(e)}")

        self.documents: DocumentRepository = documents
        self.fields: ExtractionFieldRepository = fields
        self.model: str = model

    @observe(name="openai_document_extraction")
    def extract(self, document_id: str, field_ids: List[str]) -> List[FieldExtraction]:
        """Extract the requested fields from one document.

        Raises:
            ProviderError: If the document cannot be read or the model call fails
        """
        if not field_ids:
            raise ProviderError("No fields specified for extraction")

        try:
            document = self.documents.get_document(document_id)
            definitions = self.fields.get_fields(field_ids)
            content = self.documents.storage.read(document.file_path)
        except ProviderError:
            raise
        except ExtractionError as e:
            raise ProviderError(f"Could not load document {document_id}: {str(e)}")

        if not definitions:
            raise ProviderError("None of the requested fields exist")

        text = TextExtractor.extract_text(content, document.file_type)
        raw_response = self._chat(
            [
                {"role": "system", "content": "You are a data-extraction engine."},
                {"role": "user", "content": self._build_extraction_prompt(definitions, text)},
            ],
            max_tokens=1500,
        )
        return self._parse_extraction_result(raw_response, {d.id for d in definitions})

    @observe(name="openai_chat_completion", as_type="generation")
    def _chat(self, messages: List[Dict[str, str]], **kwargs: Any) -> str:
        """Execute OpenAI chat completion request.

        Configured with zero temperature for consistent outputs.

        Raises:
            ProviderError: If API call fails or returns empty response
        """
        try:
            response = self.cli.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0,
                **kwargs
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI API error: {str(e)}")

        if not response.choices or not response.choices[0].message.content:
            raise ProviderError("OpenAI returned empty response")

        return response.choices[0].message.content.strip()

    def _build_extraction_prompt(self, definitions: List[FieldDefinition], text: str) -> str:
        """Build the extraction prompt.

        Each field is listed by id with its name, expected value type and
        description; the document text is truncated to the configured
        prompt size.
        """
        lines = []
        for definition in definitions:
            kind = _TYPE_INSTRUCTIONS.get(definition.data_type, "a short string")
            line = f"- {definition.id}: {definition.name} ({kind})"
            if definition.description:
                line += f". {definition.description}"
            lines.append(line)

        return (
            "Extract these fields from the document:\n"
            + "\n".join(lines)
            + "\n\nReturn ONLY compact JSON keyed by field id: "
            "{\"<field id>\": {\"value\": <value or null>, \"confidence\": <0..1>}}. "
            "If a field is missing, set its value to null.\n\n"
            + text[:Config.MAX_PROMPT_CHARS]
        )

    def _parse_extraction_result(self, raw_response: str,
                                 requested: Set[str]) -> List[FieldExtraction]:
        """Parse the model response into field extractions.

        Entries for fields that were not requested are dropped and
        confidences are clamped to [0, 1].

        Raises:
            ProviderError: If the response holds no JSON object
        """
        match = re.search(r"\{.*\}", raw_response, re.S)
        if not match:
            raise ProviderError("AI did not return valid JSON")

        try:
            payload: Any = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ProviderError(f"JSON parsing error from AI response: {str(e)}")

        if not isinstance(payload, dict):
            raise ProviderError("AI returned invalid data format")

        results: List[FieldExtraction] = []
        for field_id, entry in payload.items():
            if field_id not in requested:
                logger.debug("Ignoring unrequested field %s in AI response", field_id)
                continue
            if isinstance(entry, dict):
                value, confidence = entry.get("value"), entry.get("confidence")
            else:
                value, confidence = entry, None
            results.append(FieldExtraction(
                extraction_field_id=field_id,
                extracted_value=_as_text(value),
                confidence_score=_as_confidence(confidence),
            ))
        return results


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if score != score:
        return None
    return min(max(score, 0.0), 1.0)
