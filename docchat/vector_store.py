"""FAISS-backed vector index with SQLite chunk metadata."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

import faiss
import numpy as np

from .config import config
from .errors import RetrievalError
from .models import RetrievedChunk

if TYPE_CHECKING:
    from .models import DocumentChunk

logger = config.get_logger(__name__)


class FaissVectorStore:
    """Vector storage using FAISS for embeddings and SQLite for chunk text.

    Scores are cosine similarities (inner product over L2-normalised
    vectors), returned in descending order.
    """

    backend = "faiss"

    def __init__(
        self,
        db_path: Path | None = None,
        index_path: Path | None = None,
    ) -> None:
        """Configure the store and make sure the metadata schema exists."""
        self.db_path = Path(db_path or config.VECTOR_STORE_DB_PATH)
        self.index_path = Path(index_path or config.FAISS_INDEX_PATH)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self.index_path.parent.mkdir(exist_ok=True, parents=True)

        self.index: faiss.IndexIDMap | None = None
        self._create_tables()

    def _create_tables(self) -> None:
        """Create metadata tables if they don't exist."""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT NOT NULL UNIQUE,
                    processed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            # text is nullable: stores populated by other tools may omit it
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    document_id INTEGER NOT NULL,
                    chunk_id INTEGER NOT NULL,
                    text TEXT,
                    start_char INTEGER,
                    end_char INTEGER,
                    length INTEGER,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (document_id) REFERENCES documents (id)
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id)",
            )
            conn.commit()

    @property
    def dimension(self) -> int | None:
        """Dimension of stored vectors, or None while the index is empty."""
        return None if self.index is None else int(self.index.d)

    @property
    def size(self) -> int:
        return 0 if self.index is None else int(self.index.ntotal)

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized embedding as a (1, d) float32 matrix.
        """
        vector = np.array(embedding, dtype="float32").reshape(1, -1)
        if np.linalg.norm(vector) == 0:
            return vector
        faiss.normalize_L2(vector)
        return vector

    def _init_index(self, dimension: int) -> None:
        base_index = faiss.IndexFlatIP(dimension)
        self.index = faiss.IndexIDMap(base_index)
        logger.info("Initialized FAISS IndexIDMap with dimension %d", dimension)

    @staticmethod
    def _upsert_document(cursor: sqlite3.Cursor, source: str) -> int:
        """Insert document metadata if missing and return its id.

        Raises:
            RuntimeError: If the document id cannot be retrieved.
        """
        cursor.execute("INSERT OR IGNORE INTO documents (source) VALUES (?)", (source,))
        cursor.execute("SELECT id FROM documents WHERE source = ?", (source,))
        row = cursor.fetchone()
        if row is None:
            msg = f"Failed to upsert document for source '{source}'"
            raise RuntimeError(msg)
        return int(row[0])

    def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Add chunks and their embeddings to the index and metadata store.

        Returns:
            Number of chunks stored.

        Raises:
            ValueError: If an embedding dimension mismatches the index.
        """
        vectors: list[np.ndarray] = []
        vector_ids: list[int] = []

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            for chunk in chunks:
                if chunk.embedding is None:
                    logger.warning(
                        "Skipping chunk %s without embedding",
                        chunk.metadata.get("chunk_id"),
                    )
                    continue

                vector = self._normalize_embedding(chunk.embedding)
                if self.index is None:
                    self._init_index(vector.shape[1])
                elif vector.shape[1] != self.index.d:
                    msg = (
                        f"Embedding dimension {vector.shape[1]} does not match "
                        f"FAISS index dimension {self.index.d}"
                    )
                    raise ValueError(msg)

                document_id = self._upsert_document(
                    cursor, chunk.metadata.get("source", "unknown")
                )
                cursor.execute(
                    """
                    INSERT INTO chunks (
                        document_id, chunk_id, text, start_char, end_char, length
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        document_id,
                        chunk.metadata.get("chunk_id", 0),
                        chunk.content,
                        chunk.metadata.get("start_char", 0),
                        chunk.metadata.get("end_char", 0),
                        chunk.metadata.get("length", len(chunk.content)),
                    ),
                )
                vector_id = int(cursor.lastrowid)
                chunk.metadata["vector_id"] = vector_id

                vectors.append(vector)
                vector_ids.append(vector_id)

            conn.commit()

        if not vectors or self.index is None:
            logger.warning("No embeddings added to FAISS index")
            return 0

        self.index.add_with_ids(
            np.vstack(vectors), np.asarray(vector_ids, dtype="int64")
        )
        logger.info("Added %d vectors to FAISS index", len(vector_ids))
        return len(vector_ids)

    async def search(
        self,
        vector: np.ndarray,
        k: int,
        *,
        include_metadata: bool = True,
    ) -> list[RetrievedChunk]:
        """Return the ``k`` nearest chunks, best first.

        Raises:
            RetrievalError: If the index or metadata store cannot be read.
        """
        try:
            return await asyncio.to_thread(
                self._search, vector, k, include_metadata=include_metadata
            )
        except RetrievalError:
            raise
        except (RuntimeError, sqlite3.Error, OSError) as exc:
            logger.exception("Vector search failed")
            msg = f"Vector search failed: {exc}"
            raise RetrievalError(msg, cause=exc) from exc

    def _search(
        self,
        vector: np.ndarray,
        k: int,
        *,
        include_metadata: bool,
    ) -> list[RetrievedChunk]:
        if self.index is None and self.index_path.exists():
            self.load()
        index = self.index
        if index is None or index.ntotal == 0:
            logger.warning("FAISS index is empty; returning no results")
            return []

        query = self._normalize_embedding(vector)
        if query.shape[1] != index.d:
            msg = (
                f"Query vector dimension {query.shape[1]} does not match "
                f"FAISS index dimension {index.d}"
            )
            raise RetrievalError(msg)

        scores, vector_ids = index.search(query, min(k, index.ntotal))

        hits = [
            (float(score), int(vector_id))
            for score, vector_id in zip(scores[0], vector_ids[0], strict=True)
            if int(vector_id) != -1  # faiss pads missing results with -1
        ]
        if not include_metadata:
            return [RetrievedChunk(text=None, score=score) for score, _ in hits]

        with sqlite3.connect(str(self.db_path)) as conn:
            rows = self._fetch_rows(conn.cursor(), [vector_id for _, vector_id in hits])

        results: list[RetrievedChunk] = []
        for score, vector_id in hits:
            row = rows.get(vector_id)
            if row is None:
                # vector without a metadata row; pass it through without text
                results.append(
                    RetrievedChunk(
                        text=None, score=score, metadata={"vector_id": vector_id}
                    )
                )
                continue
            text, metadata = row
            results.append(RetrievedChunk(text=text, score=score, metadata=metadata))
        return results

    @staticmethod
    def _fetch_rows(
        cursor: sqlite3.Cursor, vector_ids: list[int]
    ) -> dict[int, tuple[str | None, dict[str, Any]]]:
        if not vector_ids:
            return {}
        placeholders = ",".join("?" * len(vector_ids))
        cursor.execute(
            f"""
            SELECT c.id, c.text, c.chunk_id, c.start_char, c.end_char, d.source
            FROM chunks c
            JOIN documents d ON c.document_id = d.id
            WHERE c.id IN ({placeholders})
            """,  # noqa: S608
            vector_ids,
        )
        rows: dict[int, tuple[str | None, dict[str, Any]]] = {}
        for row in cursor.fetchall():
            vector_id, text, chunk_id, start_char, end_char, source = row
            rows[int(vector_id)] = (
                text,
                {
                    "vector_id": int(vector_id),
                    "source": source,
                    "chunk_id": chunk_id,
                    "start_char": start_char,
                    "end_char": end_char,
                },
            )
        return rows

    def save(self) -> None:
        """Persist FAISS index to disk."""
        if self.index is None:
            logger.warning("No FAISS index to save")
            return

        self.index_path.parent.mkdir(exist_ok=True, parents=True)
        faiss.write_index(self.index, str(self.index_path))
        logger.info("Saved FAISS index to %s", self.index_path)

    def load(self) -> None:
        """Load the FAISS index from disk, if one has been written.

        Raises:
            RetrievalError: If the file exists but is not a readable index.
        """
        if not self.index_path.exists():
            logger.warning(
                "FAISS index not found at %s. Start with an empty index.",
                self.index_path,
            )
            self.index = None
            return

        try:
            loaded_index = faiss.read_index(str(self.index_path))
        except RuntimeError as exc:
            msg = f"Could not read FAISS index at {self.index_path}: {exc}"
            raise RetrievalError(msg, cause=exc) from exc
        self.index = loaded_index
        logger.info(
            "Loaded FAISS index from %s with %d vectors",
            self.index_path,
            loaded_index.ntotal,
        )
