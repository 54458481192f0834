"""Chat/completion model protocol.

Recipe generation and every enrichment step talk to the LLM through this
single call shape, each with its own prompt and sampling settings.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatModel(Protocol):
    """Protocol for chat completion backends."""

    @property
    def model_name(self) -> str:
        """Return the model identifier."""
        ...

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run one system + user exchange and return the reply text.

        Args:
            system_prompt: System message setting context
            user_content: User message with the actual request
            temperature: Sampling temperature override
            max_tokens: Completion length override

        Returns:
            The raw reply text (may be empty)
        """
        ...
