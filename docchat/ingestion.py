"""One-shot ingestion: Load -> Split -> Embed -> Store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .document_processing import DocumentLoader, TextChunker

if TYPE_CHECKING:
    from pathlib import Path

    from .embeddings import EmbeddingService
    from .vector_store import FaissVectorStore

logger = config.get_logger(__name__)


class IngestionPipeline:
    """Populates the vector index the answering loop reads from."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: FaissVectorStore,
        chunker: TextChunker | None = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.chunker = chunker or TextChunker()

    async def process_document(self, file_path: Path) -> int:
        """Process a document through the complete pipeline.

        Returns:
            Number of chunks written to the index.
        """
        logger.info("Starting ingestion for document: %s", file_path)

        text = DocumentLoader.load_document(file_path)
        chunks = self.chunker.chunk_text(text, source=file_path.name)
        if not chunks:
            logger.warning("No text extracted from %s; nothing to index", file_path)
            return 0

        embeddings = await self.embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            chunk.embedding = embedding

        self.vector_store.load()
        stored = self.vector_store.add_chunks(chunks)
        self.vector_store.save()

        logger.info("Stored %d chunks from %s", stored, file_path.name)
        return stored
