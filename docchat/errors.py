"""Error taxonomy for the answering pipeline.

Each external collaborator fails with its own category so the session can
report which stage broke. When the failure came from the OpenAI SDK the
service payload (HTTP status, error code, response body) is lifted onto the
error for logging.
"""

from __future__ import annotations

from typing import Any


class DocChatError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.status_code: int | None = getattr(cause, "status_code", None)
        self.code: str | None = getattr(cause, "code", None)
        self.payload: Any = getattr(cause, "body", None)
        if cause is not None:
            self.__cause__ = cause

    def details(self) -> dict[str, Any]:
        """Return the service-level diagnostics that are present."""
        details: dict[str, Any] = {}
        if self.status_code is not None:
            details["status_code"] = self.status_code
        if self.code is not None:
            details["code"] = self.code
        if self.payload is not None:
            details["payload"] = self.payload
        return details


class EmbeddingError(DocChatError):
    """The embedding service could not produce a vector."""


class RetrievalError(DocChatError):
    """The vector index could not be searched."""


class GenerationError(DocChatError):
    """The language model failed or returned an unusable response."""


class EmptyInputError(DocChatError):
    """The user submitted a blank line."""
