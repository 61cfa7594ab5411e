"""OpenAI Whisper API transcription provider.

# --- CLOUD TRANSCRIPTION ---------------------------------------------
#
# Used by ClassPark to turn recorded lectures into text before the notes
# pass.  Audio arrives as bytes downloaded from a signed storage URL, so
# nothing touches the local filesystem.
#
# Max file size: 25 MB per request.
# Supported formats: mp3, mp4, mpeg, mpga, m4a, wav, webm.
# ----------------------------------------------------------------------
"""

from __future__ import annotations

import openai
import structlog

from coteacher.config.settings import Settings
from coteacher.interfaces.transcription_provider import ITranscriptionProvider
from coteacher.providers.openai_errors import translate_openai_error

logger = structlog.get_logger(logger_name=__name__)


class WhisperAPIProvider(ITranscriptionProvider):
    """Transcription via the OpenAI Whisper API.

    Requests ``response_format="text"`` so the SDK hands back the plain
    transcript string.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.openai_timeout_seconds * 5, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_transcription_model or "whisper-1"

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> str:
        """Transcribe audio bytes using the Whisper API."""
        try:
            response = await self._client.audio.transcriptions.create(
                model=self._model,
                file=(filename, audio, content_type),
                response_format="text",
            )
        except openai.APIError as exc:
            raise translate_openai_error(
                exc, "whisper_api", self.get_provider_name()
            ) from exc

        # Older SDKs wrap text responses in an object with a ``text`` field.
        text = response if isinstance(response, str) else getattr(response, "text", "")
        logger.info(
            "whisper_api_transcription_complete",
            model=self._model,
            audio_bytes=len(audio),
            characters=len(text),
        )
        return text

    def get_provider_name(self) -> str:
        return "whisper_api"

    def is_available(self) -> bool:
        """Available if an API key is set."""
        return bool(self._api_key)
