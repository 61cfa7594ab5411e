"""Unit tests for the OpenAI embedding, LLM and Whisper adapters."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from coteacher.config.settings import Settings
from coteacher.providers.openai_errors import is_quota_error, translate_openai_error
from coteacher.utils.errors import QuotaExceededError, UpstreamServiceError

_EMBEDDING_CLIENT = "coteacher.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
_LLM_CLIENT = "coteacher.providers.llm.openai_provider.openai.AsyncOpenAI"
_WHISPER_CLIENT = "coteacher.providers.transcription.whisper_api_provider.openai.AsyncOpenAI"

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "text-embedding-3-small",
        "openai_text_model": "gpt-4o-mini",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _quota_error() -> openai.APIError:
    return openai.APIError(
        message="You exceeded your current quota",
        request=_REQUEST,
        body={"code": "insufficient_quota", "type": "insufficient_quota"},
    )


# ======================================================================
# Error translation
# ======================================================================


class TestOpenAIErrorTranslation:
    def test_quota_code_detected(self) -> None:
        assert is_quota_error(_quota_error()) is True

    def test_nested_quota_code_detected(self) -> None:
        exc = MagicMock(code=None, body={"error": {"code": "insufficient_quota"}})
        assert is_quota_error(exc) is True

    def test_other_errors_not_quota(self) -> None:
        exc = openai.APIError(message="Bad gateway", request=_REQUEST, body=None)
        assert is_quota_error(exc) is False

    def test_quota_becomes_429(self) -> None:
        err = translate_openai_error(_quota_error(), "openai", "openai")
        assert isinstance(err, QuotaExceededError)
        assert err.status_code == 429
        assert err.message == "No remaining OpenAI credits."

    def test_timeout_message(self) -> None:
        err = translate_openai_error(openai.APITimeoutError(request=_REQUEST), "openai", "openai")
        assert type(err) is UpstreamServiceError
        assert err.message == "openai timed out"

    def test_generic_api_error(self) -> None:
        exc = openai.APIError(message="Bad gateway", request=_REQUEST, body=None)
        err = translate_openai_error(exc, "openai_embedding", "openai_embedding")
        assert type(err) is UpstreamServiceError
        assert err.message.startswith("openai_embedding API error")


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


def _embedding_response(vectors: list[list[float]], order: list[int] | None = None) -> MagicMock:
    order = order if order is not None else list(range(len(vectors)))
    response = MagicMock()
    response.data = [MagicMock(embedding=vectors[i], index=i) for i in order]
    response.usage = MagicMock(total_tokens=42)
    return response


class TestOpenAIEmbeddingProvider:
    def test_provider_name_and_dimension(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(_settings())
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.get_dimension() == 1536

    def test_compatible_gateway_label(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(_settings(openai_base_url="http://gateway:8080/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_large_model_dimension(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(_settings(openai_embedding_model="text-embedding-3-large"))
        assert provider.get_dimension() == 3072

    def test_is_available_without_key(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_embed_is_one_request_in_index_order(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            return_value=_embedding_response([[0.1, 0.1], [0.2, 0.2], [0.3, 0.3]], order=[2, 0, 1])
        )

        with patch(_EMBEDDING_CLIENT, return_value=mock_client):
            provider = OpenAIEmbeddingProvider(_settings())
            result = await provider.embed(["a", "b", "c"])

        assert result == [[0.1, 0.1], [0.2, 0.2], [0.3, 0.3]]
        mock_client.embeddings.create.assert_awaited_once_with(
            input=["a", "b", "c"], model="text-embedding-3-small"
        )

    @pytest.mark.asyncio
    async def test_embed_empty_makes_no_request(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        with patch(_EMBEDDING_CLIENT, return_value=mock_client):
            provider = OpenAIEmbeddingProvider(_settings())
            assert await provider.embed([]) == []
        mock_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.5, 0.5]]))

        with patch(_EMBEDDING_CLIENT, return_value=mock_client):
            provider = OpenAIEmbeddingProvider(_settings())
            assert await provider.embed_single("hello") == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_count_mismatch_raises(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.5]]))

        with patch(_EMBEDDING_CLIENT, return_value=mock_client):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(UpstreamServiceError, match="returned 1 vectors for 2 inputs"):
                await provider.embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_quota_error_translated(self) -> None:
        from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_quota_error())

        with patch(_EMBEDDING_CLIENT, return_value=mock_client):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(QuotaExceededError):
                await provider.embed(["a"])


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=100)
    return response


class TestOpenAILLMProvider:
    def test_provider_names(self) -> None:
        from coteacher.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
        compatible = OpenAILLMProvider(_settings(openai_base_url="http://gateway/v1"))
        assert compatible.get_provider_name() == "openai-compatible"

    @pytest.mark.asyncio
    async def test_complete_request_shape(self) -> None:
        from coteacher.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion("Answer"))

        with patch(_LLM_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_settings())
            result = await provider.complete("system", "user", temperature=0.3)

        assert result == "Answer"
        mock_client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4o-mini",
            messages=[
                {"role": "system", "content": "system"},
                {"role": "user", "content": "user"},
            ],
            temperature=0.3,
        )

    @pytest.mark.asyncio
    async def test_max_tokens_forwarded_when_set(self) -> None:
        from coteacher.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion("ok"))

        with patch(_LLM_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_settings())
            await provider.complete("s", "u", max_tokens=256)

        assert mock_client.chat.completions.create.await_args.kwargs["max_tokens"] == 256

    @pytest.mark.asyncio
    async def test_missing_content_returns_empty_string(self) -> None:
        from coteacher.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion(None))

        with patch(_LLM_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_settings())
            assert await provider.complete("s", "u") == ""

    @pytest.mark.asyncio
    async def test_quota_error_translated(self) -> None:
        from coteacher.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=_quota_error())

        with patch(_LLM_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_settings())
            with pytest.raises(QuotaExceededError) as exc_info:
                await provider.complete("s", "u")

        assert exc_info.value.provider_name == "openai"


# ======================================================================
# Whisper API Provider
# ======================================================================


class TestWhisperAPIProvider:
    @pytest.mark.asyncio
    async def test_transcribe_uploads_named_file(self) -> None:
        from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider

        mock_client = AsyncMock()
        mock_client.audio.transcriptions.create = AsyncMock(return_value="hello class")

        with patch(_WHISPER_CLIENT, return_value=mock_client):
            provider = WhisperAPIProvider(_settings())
            text = await provider.transcribe(b"audio-bytes")

        assert text == "hello class"
        mock_client.audio.transcriptions.create.assert_awaited_once_with(
            model="whisper-1",
            file=("recording.webm", b"audio-bytes", "audio/webm"),
            response_format="text",
        )

    @pytest.mark.asyncio
    async def test_object_response_text(self) -> None:
        from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider

        mock_client = AsyncMock()
        mock_client.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text="wrapped"))

        with patch(_WHISPER_CLIENT, return_value=mock_client):
            provider = WhisperAPIProvider(_settings())
            assert await provider.transcribe(b"x") == "wrapped"

    @pytest.mark.asyncio
    async def test_api_error_translated(self) -> None:
        from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider

        mock_client = AsyncMock()
        mock_client.audio.transcriptions.create = AsyncMock(
            side_effect=openai.APIError(message="file too large", request=_REQUEST, body=None)
        )

        with patch(_WHISPER_CLIENT, return_value=mock_client):
            provider = WhisperAPIProvider(_settings())
            with pytest.raises(UpstreamServiceError, match="whisper_api API error"):
                await provider.transcribe(b"x")

    def test_name_and_availability(self) -> None:
        from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider

        provider = WhisperAPIProvider(_settings(openai_api_key=""))
        assert provider.get_provider_name() == "whisper_api"
        assert provider.is_available() is False
