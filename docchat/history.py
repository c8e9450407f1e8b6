"""Per-session conversation history."""

from collections.abc import Iterator

from .models import Role, Turn


class ConversationHistory:
    """Append-only, chronologically ordered log of turns.

    Turns are only ever added as a (user, assistant) pair once a turn has
    completed, so a failed turn leaves the history exactly as it was.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def record_exchange(self, question: str, answer: str) -> None:
        """Append the user question and the assistant answer, in that order."""
        self._turns.extend(
            (
                Turn(role=Role.USER, content=question),
                Turn(role=Role.ASSISTANT, content=answer),
            )
        )

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def is_empty(self) -> bool:
        return not self._turns

    def render(self) -> str:
        """Format every turn as a ``role: content`` line."""
        return "\n".join(turn.render() for turn in self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))
