"""DocChat - conversational question answering over indexed documents."""

from .clients import EmbeddingClient, LanguageModelClient, VectorIndexClient
from .composer import AnswerComposer
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .errors import (
    DocChatError,
    EmbeddingError,
    EmptyInputError,
    GenerationError,
    RetrievalError,
)
from .history import ConversationHistory
from .ingestion import IngestionPipeline
from .llm import ChatService
from .models import (
    CONTEXT_DELIMITER,
    DocumentChunk,
    Query,
    RetrievalResult,
    RetrievedChunk,
    Role,
    Turn,
)
from .retriever import ContextRetriever
from .rewriter import QueryRewriter
from .session import SessionLoop, SessionState, TurnOutcome
from .vector_store import FaissVectorStore

__all__ = [
    "CONTEXT_DELIMITER",
    "AnswerComposer",
    "ChatService",
    "ContextRetriever",
    "ConversationHistory",
    "DocChatError",
    "DocumentChunk",
    "DocumentLoader",
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingService",
    "EmptyInputError",
    "FaissVectorStore",
    "GenerationError",
    "IngestionPipeline",
    "LanguageModelClient",
    "Query",
    "QueryRewriter",
    "RetrievalError",
    "RetrievalResult",
    "RetrievedChunk",
    "Role",
    "SessionLoop",
    "SessionState",
    "TextChunker",
    "Turn",
    "TurnOutcome",
    "VectorIndexClient",
]
