"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured the client points at that
URL instead of the default OpenAI endpoint, so any OpenAI-compatible
gateway can answer course questions and write lecture notes.
"""

from __future__ import annotations

import openai
import structlog

from coteacher.config.settings import Settings
from coteacher.interfaces.llm_provider import ILLMProvider
from coteacher.providers.openai_errors import translate_openai_error

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o-mini`` by default.  The rest of the app never imports or
    calls ``openai`` directly; SDK exceptions are translated into
    :class:`~coteacher.utils.errors.UpstreamServiceError` (or its
    ``QuotaExceededError`` subclass) at this boundary.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a text completion via the chat completions API.

        Returns ``""`` when the model produced no content; callers decide
        what a blank answer means for them.
        """
        request: dict = {
            "model": self._text_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APIError as exc:
            raise translate_openai_error(
                exc, self._provider_label, self.get_provider_name()
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
            empty=not content,
        )
        return content or ""

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on configuration."""
        return self._provider_label
