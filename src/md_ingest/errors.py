"""Exception hierarchy for the ingestion path.

Four kinds are fatal for an ``ingest`` call and propagate to the caller:
:class:`ConfigurationError`, :class:`AuthorizationError`,
:class:`StoreReadError` and :class:`EmbeddingServiceError`.
:class:`StoreWriteError` is raised by a row store for one row and is
recovered by the orchestrator at row granularity.
"""

from __future__ import annotations

from typing import Any


class IngestionError(Exception):
    """Base class for every ingestion failure.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Extra context identifying the failing call (table, status code, …).
    """

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON error body sent back over HTTP."""
        payload: dict[str, Any] = {"error": self.message, "kind": type(self).__name__}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ConfigurationError(IngestionError):
    """Required connection settings are missing."""


class AuthorizationError(IngestionError):
    """No (or an unusable) authorization credential was supplied."""


class StoreReadError(IngestionError):
    """The row-store select failed; no embedding work is attempted."""


class EmbeddingServiceError(IngestionError):
    """The embedding service returned a non-success response; no rows are written."""


class StoreWriteError(IngestionError):
    """Updating a single row failed."""
