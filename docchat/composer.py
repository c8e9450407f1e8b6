"""Grounded answer generation with history bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .errors import DocChatError, GenerationError
from .models import Role
from .prompts import (
    ANSWER_INSTRUCTIONS,
    ANSWER_PROMPT,
    HISTORY_SECTION,
    NO_CONTEXT_MARKER,
    NOT_FOUND_ANSWER,
)

if TYPE_CHECKING:
    from .clients import LanguageModelClient
    from .history import ConversationHistory

logger = config.get_logger(__name__)


class AnswerComposer:
    """Builds the grounded prompt, calls the model, and records the exchange.

    The grounding rule is carried by the prompt only; the answer is not
    checked against the context.
    """

    def __init__(self, llm: LanguageModelClient, persona: str | None = None) -> None:
        self.llm = llm
        self.persona = persona or config.ASSISTANT_PERSONA

    def build_prompt(
        self,
        question: str,
        rewritten_question: str,
        context_text: str,
        history: ConversationHistory,
    ) -> str:
        """Assemble instructions, context, history, and both question forms.

        The history section is left out entirely for a fresh conversation.
        A blank ``context_text`` does not drop the context section; it is
        filled with NO_CONTEXT_MARKER instead, so the model sees that
        retrieval came back empty and gives the not-found answer.
        """
        instructions = ANSWER_INSTRUCTIONS.format(
            persona=self.persona, not_found=NOT_FOUND_ANSWER
        )
        history_section = (
            "" if history.is_empty else HISTORY_SECTION.format(turns=history.render())
        )
        return ANSWER_PROMPT.format(
            instructions=instructions,
            context=context_text if context_text.strip() else NO_CONTEXT_MARKER,
            history=history_section,
            question=question,
            rewritten_question=rewritten_question,
        )

    async def answer(
        self,
        question: str,
        rewritten_question: str,
        context_text: str,
        history: ConversationHistory,
    ) -> str:
        """Generate the answer and append the exchange to ``history``.

        History is only touched after the model has replied, so a failed
        call leaves it unchanged.

        Raises:
            GenerationError: If the model call fails.
        """
        prompt = self.build_prompt(question, rewritten_question, context_text, history)
        try:
            response = await self.llm.complete(
                [{"role": Role.USER.value, "content": prompt}]
            )
        except DocChatError:
            raise
        except Exception as exc:
            msg = f"Answer generation failed: {exc}"
            raise GenerationError(msg, cause=exc) from exc

        if not response or not response.strip():
            msg = "Language model returned an empty answer"
            raise GenerationError(msg)

        history.record_exchange(question, response)
        return response
