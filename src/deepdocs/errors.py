from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    PAGE_UNPARSEABLE = "PAGE_UNPARSEABLE"
    URL_NOT_ALLOWED = "URL_NOT_ALLOWED"
    STORAGE_IO_FAILED = "STORAGE_IO_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class DeepDocsError(Exception):
    """Base class for all expected failure conditions.

    Inside the retrieval core these are caught per page (or per cache file)
    and logged; only tool handlers let them reach server.py, which serialises
    them into the MCP error response.
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


class FetchError(DeepDocsError):
    """Network failure, non-success status, timeout or disallowed URL."""


class ParseError(DeepDocsError):
    """A fetched page yielded no usable documentation fields."""


class StorageIOError(DeepDocsError):
    """A cache entry or the metadata file could not be read or written."""
