"""Test configuration and fixtures for DocChat tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Fake external services (embedding, vector index, language model)
- Mock OpenAI API responses
- Pipeline component and session factories
- Vector store fixtures
"""

import hashlib
from collections.abc import Iterable
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from docchat import (
    AnswerComposer,
    ContextRetriever,
    ConversationHistory,
    DocumentChunk,
    FaissVectorStore,
    QueryRewriter,
    RetrievedChunk,
    SessionLoop,
)


class TestConstants:
    """Centralized test constants shared across test files."""

    DEFAULT_EMBEDDING_DIMENSION = 384


class FakeEmbeddingClient:
    """Deterministic embeddings derived from a hash of the text.

    Records every text it was asked to embed; raises ``error`` when set.
    """

    def __init__(
        self,
        dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION,
        error: Exception | None = None,
    ) -> None:
        self.dimension = dimension
        self.error = error
        self.calls: list[str] = []

    def vector_for(self, text: str) -> np.ndarray:
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vector_for(text)


class FakeVectorIndex:
    """Returns a fixed list of search results and records each query."""

    def __init__(
        self,
        results: Iterable[RetrievedChunk] = (),
        error: Exception | None = None,
    ) -> None:
        self.results = list(results)
        self.error = error
        self.calls: list[dict] = []

    async def search(
        self,
        vector: np.ndarray,
        k: int,
        *,
        include_metadata: bool = True,
    ) -> list[RetrievedChunk]:
        self.calls.append(
            {"vector": vector, "k": k, "include_metadata": include_metadata}
        )
        if self.error is not None:
            raise self.error
        return self.results[:k]


class ScriptedLanguageModel:
    """Plays back scripted replies; an Exception entry is raised instead.

    Every message list it receives is kept in ``calls``.
    """

    def __init__(self, replies: Iterable[str | Exception] = ()) -> None:
        self.replies = list(replies)
        self.calls: list[list[dict[str, str]]] = []

    def prompt(self, call_index: int) -> str:
        return self.calls[call_index][0]["content"]

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.calls.append(messages)
        if not self.replies:
            msg = "No scripted reply left"
            raise AssertionError(msg)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def create_mock_embedding_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response."""
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response."""
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


@pytest.fixture
def mock_openai_client():
    """AsyncOpenAI stand-in whose ``create`` methods are AsyncMocks."""
    client = Mock()
    client.embeddings.create = AsyncMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def fake_embedder():
    return FakeEmbeddingClient()


@pytest.fixture
def history():
    return ConversationHistory()


@pytest.fixture
def sample_retrieved_chunks():
    """Three usable search hits in descending score order."""
    return [
        RetrievedChunk(
            text="A stack is a linear data structure.",
            score=0.91,
            metadata={"source": "dsa.pdf", "chunk_id": 4},
        ),
        RetrievedChunk(
            text="Stacks follow Last In, First Out (LIFO) order.",
            score=0.87,
            metadata={"source": "dsa.pdf", "chunk_id": 5},
        ),
        RetrievedChunk(
            text="Push adds an element; pop removes the top element.",
            score=0.80,
            metadata={"source": "dsa.pdf", "chunk_id": 6},
        ),
    ]


@pytest.fixture
def session_factory(fake_embedder):
    """Factory that wires a SessionLoop around fake services.

    Returns the session together with the fakes so tests can inspect calls.
    """

    def _create_session(
        *,
        replies: Iterable[str | Exception] = (),
        results: Iterable[RetrievedChunk] = (),
        inputs: Iterable[str | BaseException] = (),
        index_error: Exception | None = None,
        embedder: FakeEmbeddingClient | None = None,
    ):
        llm = ScriptedLanguageModel(replies)
        index = FakeVectorIndex(results, error=index_error)
        embedder = embedder or fake_embedder
        pending = list(inputs)
        output: list[str] = []

        def _reader(_prompt: str) -> str:
            if not pending:
                raise EOFError
            item = pending.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item

        session = SessionLoop(
            rewriter=QueryRewriter(llm),
            retriever=ContextRetriever(embedder, index, default_k=10),
            composer=AnswerComposer(llm, persona="a data structure expert"),
            reader=_reader,
            writer=output.append,
        )
        return SimpleNamespace(
            session=session,
            llm=llm,
            index=index,
            embedder=embedder,
            output=output,
        )

    return _create_session


@pytest.fixture
def temp_faiss_store(tmp_path) -> FaissVectorStore:
    """Create temporary FAISS vector store for testing."""
    return FaissVectorStore(
        db_path=tmp_path / "test_store.db",
        index_path=tmp_path / "faiss" / "index.faiss",
    )


@pytest.fixture
def sample_embedded_chunks(fake_embedder):
    """Document chunks with deterministic embeddings."""
    texts = [
        "Arrays store elements in contiguous memory.",
        "A stack is a LIFO data structure.",
        "A queue is a FIFO data structure.",
        "Binary search runs in logarithmic time.",
        "Hash tables offer constant time lookups on average.",
    ]
    return [
        DocumentChunk(
            content=text,
            metadata={
                "source": "dsa.txt",
                "chunk_id": i,
                "start_char": i * 100,
                "end_char": (i + 1) * 100,
                "length": len(text),
            },
            embedding=fake_embedder.vector_for(text),
        )
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def scripted_llm_factory():
    """Factory for ScriptedLanguageModel instances."""

    def _create_llm(*replies: str | Exception) -> ScriptedLanguageModel:
        return ScriptedLanguageModel(replies)

    return _create_llm


@pytest.fixture
def vector_index_factory():
    """Factory for FakeVectorIndex instances."""

    def _create_index(
        results: Iterable[RetrievedChunk] = (), error: Exception | None = None
    ) -> FakeVectorIndex:
        return FakeVectorIndex(results, error=error)

    return _create_index


@pytest.fixture
def embedder_factory():
    """Factory for FakeEmbeddingClient instances."""

    def _create_embedder(
        dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION,
        error: Exception | None = None,
    ) -> FakeEmbeddingClient:
        return FakeEmbeddingClient(dimension=dimension, error=error)

    return _create_embedder


@pytest.fixture
def embedding_response_factory():
    return create_mock_embedding_response


@pytest.fixture
def chat_response_factory():
    return create_mock_chat_response
