"""Data models for the answering pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

CONTEXT_DELIMITER = "\n\n--\n\n"


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message in the conversation history."""

    role: Role
    content: str

    def render(self) -> str:
        return f"{self.role.value}: {self.content}"


@dataclass(frozen=True)
class RetrievedChunk:
    """A nearest-neighbour hit returned by the vector index."""

    text: str | None
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        """Whether the chunk carries text that can go into the context."""
        return bool(self.text)


@dataclass(frozen=True)
class RetrievalResult:
    """Outcome of a context lookup.

    ``found`` is False when the index returned nothing usable; that is a
    normal outcome, not an error.
    """

    context_text: str
    found: bool
    chunks: list[RetrievedChunk] = field(default_factory=list)


@dataclass
class Query:
    """Working state of a single turn."""

    original_question: str
    rewritten_question: str = ""
    query_vector: np.ndarray | None = None
    context_text: str = ""
    found: bool = False
    chunks: list[RetrievedChunk] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.rewritten_question:
            self.rewritten_question = self.original_question


@dataclass
class DocumentChunk:
    """Represents a chunk of text from a document."""

    content: str
    metadata: dict[str, Any]
    embedding: np.ndarray | None = None
