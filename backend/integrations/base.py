"""Protocol shared by the suggestion-service clients."""
from typing import Protocol


class SuggestionService(Protocol):
    """Anything that turns a prompt into text. Used only for disambiguation."""

    def complete(self, prompt: str) -> str:
        ...
