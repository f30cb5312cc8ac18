"""Gemini REST API client and response models."""

from studioforge.core.api.gemini.client import GEMINI_API_BASE_URL, GeminiClient
from studioforge.core.api.gemini.models import (
    Candidate,
    Content,
    GenerateContentResponse,
    InlineData,
    Operation,
    OperationError,
    Part,
)

__all__ = [
    "GEMINI_API_BASE_URL",
    "GeminiClient",
    "Candidate",
    "Content",
    "GenerateContentResponse",
    "InlineData",
    "Operation",
    "OperationError",
    "Part",
]
