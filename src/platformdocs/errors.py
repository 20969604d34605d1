from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    DOCUMENT_BUILD_FAILED = "DOCUMENT_BUILD_FAILED"
    INVALID_MANIFEST = "INVALID_MANIFEST"


class PlatformDocsError(Exception):
    """Raised by request handlers for all expected failure conditions.

    Caught by registration.py and serialised into the JSON error response.
    Never catch this inside business logic; let it propagate to the
    route layer so the client receives a structured error with a suggestion.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
