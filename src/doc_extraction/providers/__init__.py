"""Providers module for the document extraction application.

This module contains the extraction provider boundary and its
implementations: an OpenAI-backed provider and a simulated one, plus
the text extraction they rely on.
"""

from .extraction_provider import ExtractionProvider, FieldExtraction
from .text_extractor import TextExtractor
from .openai_provider import OpenAIProvider
from .simulated_provider import SimulatedProvider

__all__ = [
    "ExtractionProvider",
    "FieldExtraction",
    "TextExtractor",
    "OpenAIProvider",
    "SimulatedProvider"
]
