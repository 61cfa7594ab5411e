"""Speech-to-text provider implementations (ClassPark lecture recordings)."""

from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider

__all__ = ["WhisperAPIProvider"]
