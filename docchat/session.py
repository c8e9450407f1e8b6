"""Interactive question-answering session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import config
from .errors import DocChatError, EmptyInputError
from .history import ConversationHistory
from .models import Query

if TYPE_CHECKING:
    from .composer import AnswerComposer
    from .retriever import ContextRetriever
    from .rewriter import QueryRewriter

logger = config.get_logger(__name__)

EXIT_KEYWORD = "exit"
INPUT_PROMPT = "Ask me anything --> "
WELCOME_MESSAGE = f"RAG Chatbot initialized. Type '{EXIT_KEYWORD}' to quit.\n"
FAREWELL_MESSAGE = "Goodbye!"
NO_CONTEXT_FEEDBACK = "No relevant context found in the indexed documents."
FAILURE_MESSAGE = "Sorry, something went wrong while answering: {error}"
RESPONSE_TEMPLATE = "\n=== AI Response ===\n{answer}\n===================\n"


class SessionState(Enum):
    WAITING_FOR_INPUT = "waiting_for_input"
    PROCESSING = "processing"
    STOPPED = "stopped"


@dataclass
class TurnOutcome:
    """Result of one fully processed turn."""

    query: Query
    answer: str


def is_exit_command(line: str) -> bool:
    return line.strip().lower() == EXIT_KEYWORD


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Collect service-level diagnostics from ``exc`` or its cause."""
    if isinstance(exc, DocChatError) and exc.details():
        return exc.details()
    source = exc.__cause__ or exc
    details: dict[str, Any] = {}
    for attr in ("status_code", "code"):
        value = getattr(source, attr, None)
        if value is not None:
            details[attr] = value
    body = getattr(source, "body", None)
    if body is not None:
        details["payload"] = body
    return details


class SessionLoop:
    """Reads questions one at a time and answers them from the indexed documents.

    A turn is fully processed (rewrite, retrieve, compose) before the next
    line is read. The session owns its ConversationHistory; nothing is
    shared between sessions.
    """

    def __init__(  # noqa: PLR0913
        self,
        rewriter: QueryRewriter,
        retriever: ContextRetriever,
        composer: AnswerComposer,
        history: ConversationHistory | None = None,
        *,
        reader: Callable[[str], str] = input,
        writer: Callable[[str], None] = print,
        top_k: int | None = None,
    ) -> None:
        self.rewriter = rewriter
        self.retriever = retriever
        self.composer = composer
        self.history = history if history is not None else ConversationHistory()
        self.reader = reader
        self.writer = writer
        self.top_k = top_k
        self.state = SessionState.WAITING_FOR_INPUT

    async def process_turn(self, line: str) -> TurnOutcome:
        """Answer a single question.

        Raises:
            EmptyInputError: If ``line`` is blank; nothing is called.
            DocChatError: If retrieval or answer generation fails. History
                is left unchanged in that case.
        """
        if not line.strip():
            msg = "Question is empty"
            raise EmptyInputError(msg)

        self.state = SessionState.PROCESSING
        query = Query(original_question=line)

        logger.info("Transforming query...")
        query.rewritten_question = await self.rewriter.rewrite(line, self.history)

        logger.info("Retrieving context for: %s", query.rewritten_question)
        result = await self.retriever.retrieve(query.rewritten_question, self.top_k)
        query.context_text = result.context_text
        query.found = result.found
        query.chunks = result.chunks
        if not result.found:
            self.writer(NO_CONTEXT_FEEDBACK)

        logger.info("Generating answer...")
        answer = await self.composer.answer(
            line, query.rewritten_question, query.context_text, self.history
        )
        return TurnOutcome(query=query, answer=answer)

    def _report_failure(self, exc: Exception) -> None:
        logger.exception("Error while answering question: %s", exc)
        details = describe_error(exc)
        if details:
            logger.error("Service error details: %s", details)
        self.writer(FAILURE_MESSAGE.format(error=exc))

    def _stop(self, message: str | None = None) -> None:
        if message:
            self.writer(message)
        self.state = SessionState.STOPPED

    async def run(self) -> int:
        """Run until the user exits or input fails.

        Returns:
            Process exit code: 0 for a normal exit, 1 when input broke.
        """
        self.writer(WELCOME_MESSAGE)

        while True:
            self.state = SessionState.WAITING_FOR_INPUT
            try:
                line = self.reader(INPUT_PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._stop(f"\n{FAREWELL_MESSAGE}")
                return 0
            except Exception:
                logger.exception("Error reading input")
                self._stop()
                return 1

            if is_exit_command(line):
                self._stop(FAREWELL_MESSAGE)
                return 0

            try:
                outcome = await self.process_turn(line)
            except EmptyInputError:
                continue
            except Exception as exc:  # noqa: BLE001
                self._report_failure(exc)
                continue

            self.writer(RESPONSE_TEMPLATE.format(answer=outcome.answer))
