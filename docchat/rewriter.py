"""Conversational query rewriting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .models import Role
from .prompts import EMPTY_HISTORY_PLACEHOLDER, QUERY_REWRITE_PROMPT

if TYPE_CHECKING:
    from .clients import LanguageModelClient
    from .history import ConversationHistory

logger = config.get_logger(__name__)


class QueryRewriter:
    """Turns a context-dependent follow-up into a standalone question."""

    def __init__(self, llm: LanguageModelClient) -> None:
        self.llm = llm

    @staticmethod
    def build_prompt(question: str, history: ConversationHistory) -> str:
        """Render the rewrite instruction for ``question`` given ``history``."""
        return QUERY_REWRITE_PROMPT.format(
            history=history.render() or EMPTY_HISTORY_PLACEHOLDER,
            question=question,
        )

    async def rewrite(self, question: str, history: ConversationHistory) -> str:
        """Return a standalone form of ``question``.

        Never raises for service problems: any failure, or a blank reply,
        falls back to the original question.
        """
        prompt = self.build_prompt(question, history)
        try:
            rewritten = await self.llm.complete(
                [{"role": Role.USER.value, "content": prompt}]
            )
        except Exception:
            logger.exception("Query rewriting failed; using the original question")
            return question

        rewritten = (rewritten or "").strip()
        if not rewritten:
            logger.warning("Query rewriting returned nothing; using the original")
            return question

        logger.info("Transformed query: %s", rewritten)
        return rewritten
