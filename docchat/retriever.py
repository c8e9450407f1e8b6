"""Context retrieval: embed, search, filter, join."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .errors import DocChatError, EmbeddingError, RetrievalError
from .models import CONTEXT_DELIMITER, RetrievalResult

if TYPE_CHECKING:
    import numpy as np

    from .clients import EmbeddingClient, VectorIndexClient
    from .models import RetrievedChunk

logger = config.get_logger(__name__)


class ContextRetriever:
    """Fetches the chunks most relevant to a query and assembles them.

    Results keep the order the index returned them in; nothing here
    re-ranks. Chunks without text are dropped silently.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndexClient,
        default_k: int | None = None,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.default_k = config.RETRIEVAL_TOP_K if default_k is None else default_k

    async def retrieve(self, query: str, k: int | None = None) -> RetrievalResult:
        """Look up context for ``query``.

        Returns:
            A RetrievalResult; ``found`` is False when nothing usable came back.

        Raises:
            ValueError: If ``k`` is not a positive integer.
            EmbeddingError: If the query could not be embedded.
            RetrievalError: If the index search failed.
        """
        k = self.default_k if k is None else k
        if k < 1:
            msg = f"k must be a positive integer, got {k}"
            raise ValueError(msg)

        vector = await self._embed(query)
        matches = await self._search(vector, k)

        if not matches:
            logger.info("No matching documents found in the index")
            return RetrievalResult(context_text="", found=False)

        usable = [match for match in matches if match.is_usable]
        context_text = CONTEXT_DELIMITER.join(match.text for match in usable)
        if not context_text.strip():
            logger.info(
                "No valid context in %d search results (%d had text)",
                len(matches),
                len(usable),
            )
            return RetrievalResult(context_text="", found=False)

        logger.info("Assembled context from %d of %d chunks", len(usable), len(matches))
        return RetrievalResult(context_text=context_text, found=True, chunks=usable)

    async def _embed(self, query: str) -> np.ndarray:
        try:
            return await self.embedder.embed(query)
        except DocChatError:
            raise
        except Exception as exc:
            msg = f"Embedding failed: {exc}"
            raise EmbeddingError(msg, cause=exc) from exc

    async def _search(self, vector: np.ndarray, k: int) -> list[RetrievedChunk]:
        try:
            return await self.index.search(vector, k, include_metadata=True)
        except DocChatError:
            raise
        except Exception as exc:
            msg = f"Vector search failed: {exc}"
            raise RetrievalError(msg, cause=exc) from exc
