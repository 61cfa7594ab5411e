"""Abstract base class for LLM (text-generation) service providers.

Used for grounded course-chat answers and for turning lecture transcripts
into notes.  Call sites depend only on this interface, never on an SDK.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider (coteacher/providers/llm/)
class ILLMProvider(ABC):
    """Contract for chat-completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion from one system turn and one user turn.

        Parameters
        ----------
        system_prompt:
            The instruction message that constrains the model's behaviour.
        user_prompt:
            The user turn carrying the question and any grounding context.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Optional cap on response tokens; ``None`` leaves it to the model.

        Returns
        -------
        str
            The model's text, or ``""`` if the model returned no content.

        Raises
        ------
        coteacher.utils.errors.QuotaExceededError
            If the provider reports exhausted credits.
        coteacher.utils.errors.UpstreamServiceError
            For any other API failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
