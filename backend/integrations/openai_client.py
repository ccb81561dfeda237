"""OpenAI chat-completions client (also serves OpenAI-compatible APIs via base_url)."""
import logging
import time
from typing import Optional

from openai import OpenAI, OpenAIError

from config import settings
from core.errors import SuggestionServiceError

logger = logging.getLogger(__name__)


class OpenAIClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[OpenAI] = None,
    ):
        self.model = model or settings.OPENAI_MODEL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self._client = client or OpenAI(
            api_key=api_key or settings.OPENAI_API_KEY,
            base_url=base_url or settings.OPENAI_BASE_URL or None,
            max_retries=3,   # SDK retries with exponential back-off
        )
        logger.info("Initialized OpenAIClient with model=%s", self.model)

    def complete(self, prompt: str) -> str:
        """Send prompt as a single user message and return the reply text."""
        logger.debug("Sending request to OpenAI API (prompt=%d chars)", len(prompt))
        start_time = time.time()
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise SuggestionServiceError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise SuggestionServiceError("OpenAI returned no choices")
        text = (response.choices[0].message.content or "").strip()
        logger.info("OpenAI response: model=%s, duration=%.2fs, %d chars", self.model, time.time() - start_time, len(text))
        return text
