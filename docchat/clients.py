"""Contracts for the external services the answering loop depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import numpy as np

    from .models import RetrievedChunk


@runtime_checkable
class EmbeddingClient(Protocol):
    """Turns text into a fixed-dimension vector.

    Raises ``EmbeddingError`` on network, auth or malformed-input failures.
    """

    async def embed(self, text: str) -> np.ndarray: ...


@runtime_checkable
class VectorIndexClient(Protocol):
    """Nearest-neighbour lookup over stored chunks.

    Entries with missing text are returned as-is; filtering them is the
    caller's job. Raises ``RetrievalError`` on service failure.
    """

    async def search(
        self,
        vector: np.ndarray,
        k: int,
        *,
        include_metadata: bool = True,
    ) -> list[RetrievedChunk]: ...


@runtime_checkable
class LanguageModelClient(Protocol):
    """Chat completion over an ordered list of ``{"role", "content"}`` messages.

    Raises ``GenerationError`` on service failure, rate limiting, or an
    empty/malformed response.
    """

    async def complete(self, messages: list[dict[str, str]]) -> str: ...
