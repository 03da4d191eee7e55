"""Text extractor for the document extraction application.

This module contains the TextExtractor class for turning stored document
content into plain text a language model can read.
"""

import io
import logging
from typing import List, Optional

import pdfplumber

from ..exceptions import ProviderError

__all__ = ["TextExtractor"]

logger = logging.getLogger(__name__)

TEXT_MIME_TYPES = ("application/json", "application/xml", "application/csv")


class TextExtractor:
    """Extracts text content from uploaded documents.

    PDFs are read page by page with pdfplumber; text-like MIME types are
    decoded as UTF-8. Other types are rejected.
    """

    @staticmethod
    def extract_text(content: bytes, file_type: str) -> str:
        """Extract text from document content.

        Args:
            content: Raw file content
            file_type: MIME type recorded at upload

        Returns:
            Extracted text

        Raises:
            ProviderError: If the type is unsupported or no text is found
        """
        if file_type == "application/pdf":
            return TextExtractor.extract_pdf_text(content)
        if file_type.startswith("text/") or file_type in TEXT_MIME_TYPES:
            text = content.decode("utf-8", errors="replace")
            if not text.strip():
                raise ProviderError("Document contains no text")
            return text
        raise ProviderError(f"Unsupported file type for extraction: {file_type}")

    @staticmethod
    def extract_pdf_text(pdf_bytes: bytes) -> str:
        """Extract text content from PDF file.

        Processes all pages in the PDF document and extracts text content.
        Continues processing even if individual pages fail, providing
        partial results when possible.

        Args:
            pdf_bytes: Raw PDF file content as bytes

        Returns:
            Extracted text content as a single string with page breaks

        Raises:
            ProviderError: If PDF cannot be opened or contains no text
        """
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                if not pdf.pages:
                    raise ProviderError("PDF contains no pages")

                text_parts: List[str] = []
                for i, page in enumerate(pdf.pages):
                    try:
                        page_text: Optional[str] = page.extract_text()
                        if page_text:
                            text_parts.append(page_text)
                    except Exception as e:
                        logger.warning("Failed to process page %d: %s", i + 1, e)
                        continue

                if not text_parts:
                    raise ProviderError("Failed to extract text from any page")

                return "\n".join(text_parts)

        except Exception as e:
            if isinstance(e, ProviderError):
                raise
            raise ProviderError(f"PDF reading error: {str(e)}")
