"""WorldPincode service layer -- selection state machine, search dispatch,
debouncing, answer formatting and the Gemini lookup collaborator."""

from __future__ import annotations

from worldpincode.services.debounce import Debouncer
from worldpincode.services.errors import (
    ConfigurationError,
    PostcodeLookupError,
    SelectionError,
    SessionNotFoundError,
    TransientFailure,
)
from worldpincode.services.formatting import format_result, parse_answer, source_links
from worldpincode.services.llm import GeminiLookupService, LookupService

__all__ = [
    "ConfigurationError",
    "Debouncer",
    "GeminiLookupService",
    "LookupService",
    "PostcodeLookupError",
    "SelectionError",
    "SessionNotFoundError",
    "TransientFailure",
    "format_result",
    "parse_answer",
    "source_links",
]
