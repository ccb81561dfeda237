"""Factory for suggestion-service clients."""
from typing import Optional

from config import Settings, settings as default_settings
from integrations.base import SuggestionService


def create_suggestion_service(
    provider: Optional[str] = None,
    s: Optional[Settings] = None,
) -> Optional[SuggestionService]:
    """
    Build the client named by ``provider`` (falls back to LLM_PROVIDER).
    Returns None when no provider is configured, which turns disambiguation off.
    """
    s = s or default_settings
    if provider is None:
        provider = s.LLM_PROVIDER
    provider = (provider or "").strip().lower()

    if not provider or provider == "none":
        return None
    if provider == "ollama":
        from integrations.ollama_client import OllamaClient
        return OllamaClient(
            host=s.OLLAMA_HOST,
            model=s.OLLAMA_MODEL,
            timeout=s.OLLAMA_TIMEOUT_SECONDS,
            temperature=s.LLM_TEMPERATURE,
        )
    if provider == "openai":
        if not s.OPENAI_API_KEY:
            raise ValueError("OpenAI API key required (OPENAI_API_KEY)")
        from integrations.openai_client import OpenAIClient
        return OpenAIClient(
            api_key=s.OPENAI_API_KEY,
            model=s.OPENAI_MODEL,
            base_url=s.OPENAI_BASE_URL or None,
            temperature=s.LLM_TEMPERATURE,
            max_tokens=s.LLM_MAX_TOKENS,
        )
    raise ValueError(f"Unknown LLM provider: {provider}")
