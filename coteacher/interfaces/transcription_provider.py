"""Abstract base class for speech-to-text providers.

ClassPark uploads lecture audio to object storage; the transcription
service downloads the bytes and hands them to an implementation of this
interface.  Implementations never touch storage themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: WhisperAPIProvider (coteacher/providers/transcription/)
class ITranscriptionProvider(ABC):
    """Contract for audio transcription backends."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> str:
        """Transcribe in-memory audio to plain text.

        Parameters
        ----------
        audio:
            Raw audio bytes.
        filename:
            Name sent with the upload; the extension tells the backend the
            container format.
        content_type:
            MIME type of *audio*.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            If the transcription API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the provider is ready to accept requests."""
