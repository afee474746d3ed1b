"""
Chat completion gateway over the OpenAI API.
"""

from typing import List, Optional, Sequence
from openai import AsyncOpenAI, OpenAIError

from ...config import ExternalAPIConfig
from ...core.exceptions import CompletionError
from ...core.models import ChatMessage
from ...utils.logging import get_logger

logger = get_logger("clinic.completion")


class CompletionService:
    """Turns an ordered list of chat messages into one reply string."""

    def __init__(
        self,
        config: Optional[ExternalAPIConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.config = config or ExternalAPIConfig()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                timeout=self.config.openai_timeout,
            )
        return self._client

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """
        Ask the model for the next reply.

        Returns:
            The stripped reply text, possibly empty

        Raises:
            CompletionError: when the API is not configured or the call fails
        """
        if self._client is None and not self.config.is_openai_configured():
            raise CompletionError("OpenAI API key not configured")

        payload: List[dict] = [m.to_openai() for m in messages]
        try:
            response = await self.client.chat.completions.create(
                model=self.config.openai_model,
                messages=payload,
            )
        except OpenAIError as e:
            logger.error(f"completion request failed: {e}")
            raise CompletionError(str(e)) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()
