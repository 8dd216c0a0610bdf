"""Exceptions raised by the lookup collaborator and the session layer."""

from __future__ import annotations

from typing import Final

from worldpincode.models.enums import ErrorKind

CONFIGURATION_MESSAGE: Final[str] = "API Configuration Error: Please check your API Key settings."
LOOKUP_FALLBACK_MESSAGE: Final[str] = "Failed to fetch postal code data."
SEARCH_FALLBACK_MESSAGE: Final[str] = "Something went wrong. Please try again."


class PostcodeLookupError(Exception):
    """Base class for failures of the external postcode lookup."""

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str = LOOKUP_FALLBACK_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(PostcodeLookupError):
    """Credentials or project setup are missing or rejected.

    Retrying will not help; the user should check the configuration.
    """

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str = CONFIGURATION_MESSAGE) -> None:
        super().__init__(message)


class TransientFailure(PostcodeLookupError):
    """Network, service or payload failure. A manual retry may succeed."""

    kind = ErrorKind.TRANSIENT


class SelectionError(ValueError):
    """A form write that the current selection does not allow."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class SessionNotFoundError(KeyError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(session_id)
