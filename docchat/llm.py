"""OpenAI chat completion service."""

from openai import AsyncOpenAI, OpenAIError

from .config import config
from .errors import GenerationError

logger = config.get_logger(__name__)


class ChatService:
    """Sends role-tagged messages to a chat model and returns its reply."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the ChatService.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            temperature: Sampling temperature. If None, uses
                config.CHAT_TEMPERATURE.
            max_tokens: Completion token limit. If None, uses
                config.CHAT_MAX_TOKENS.
            client: Preconfigured client to reuse.
        """
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key or config.get_openai_api_key(),
                **config.get_client_options(),
            )
        self.client = client
        self.model = model or config.CHAT_MODEL
        self.temperature = (
            config.CHAT_TEMPERATURE if temperature is None else temperature
        )
        self.max_tokens = max_tokens or config.CHAT_MAX_TOKENS

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Run one chat completion.

        Returns:
            The stripped text of the first choice.

        Raises:
            GenerationError: If the request fails or the reply is empty.
        """
        if not messages:
            msg = "At least one message is required"
            raise GenerationError(msg)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            content = response.choices[0].message.content
        except OpenAIError as exc:
            logger.exception("Chat completion request failed")
            msg = f"Chat completion failed: {exc}"
            raise GenerationError(msg, cause=exc) from exc
        except (IndexError, AttributeError) as exc:
            logger.exception("Malformed chat completion response")
            msg = "Chat completion response had no choices"
            raise GenerationError(msg, cause=exc) from exc

        if not content or not content.strip():
            msg = "Chat completion returned an empty response"
            raise GenerationError(msg)
        return content.strip()
