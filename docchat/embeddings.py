"""OpenAI embeddings service."""

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from .config import config
from .errors import EmbeddingError

logger = config.get_logger(__name__)


class EmbeddingService:
    """Handles OpenAI embeddings generation."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the EmbeddingService with OpenAI API key and model.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            client: Preconfigured client, shared with the chat service when
                both talk to the same endpoint.
        """
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key or config.get_openai_api_key(),
                **config.get_client_options(),
            )
        self.client = client
        self.model = model or config.EMBEDDING_MODEL

    async def embed(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector for the input text.

        Raises:
            EmbeddingError: If the request fails or the response has no vector.
        """
        if not text or not text.strip():
            msg = "Cannot embed empty text"
            raise EmbeddingError(msg)

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
            )
            embedding = np.asarray(response.data[0].embedding, dtype="float32")
        except OpenAIError as exc:
            logger.exception("Error generating embedding")
            msg = f"Embedding request failed: {exc}"
            raise EmbeddingError(msg, cause=exc) from exc
        except (IndexError, AttributeError, TypeError) as exc:
            logger.exception("Malformed embedding response")
            msg = "Embedding response did not contain a vector"
            raise EmbeddingError(msg, cause=exc) from exc

        if embedding.ndim != 1 or embedding.size == 0:
            msg = f"Embedding response has unexpected shape {embedding.shape}"
            raise EmbeddingError(msg)
        return embedding

    async def embed_batch(
        self,
        texts: list[str],
        batch_size: int | None = None,
    ) -> list[np.ndarray]:
        """Get embeddings for multiple texts in batches.

        Batches are sent one after another; the first failure aborts the run.

        Args:
            texts: List of input texts to generate embeddings for.
            batch_size: Number of texts to process in each batch.
                If None, uses config.EMBEDDING_BATCH_SIZE.

        Returns:
            list[np.ndarray]: List of embedding vectors for the input texts.

        Raises:
            EmbeddingError: If any batch request fails.
        """
        batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        embeddings: list[np.ndarray] = []

        for i in range(0, len(texts), batch_size):
            batch_texts = texts[i : i + batch_size]
            try:
                response = await self.client.embeddings.create(
                    model=self.model,
                    input=batch_texts,
                )
            except OpenAIError as exc:
                logger.exception("Error generating batch embeddings")
                msg = f"Embedding batch {i // batch_size + 1} failed: {exc}"
                raise EmbeddingError(msg, cause=exc) from exc

            if len(response.data) != len(batch_texts):
                msg = (
                    f"Embedding batch returned {len(response.data)} vectors "
                    f"for {len(batch_texts)} texts"
                )
                raise EmbeddingError(msg)
            embeddings.extend(
                np.asarray(data.embedding, dtype="float32") for data in response.data
            )
            logger.info("Generated embeddings for batch %d", i // batch_size + 1)

        return embeddings
