"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  The
indexer and the course chat service must be handed the *same* provider
instance (same model): vectors from different embedding spaces cannot be
compared.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (coteacher/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for one request-sized batch of texts.

        Implementations issue exactly one upstream request per call.
        Callers are responsible for keeping *texts* within the provider's
        per-item and per-request limits (see ``BatchPlanner``).

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            If the embedding API call fails or returns the wrong number
            of vectors.
        coteacher.utils.errors.QuotaExceededError
            If the provider reports exhausted credits.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Convenience wrapper around :meth:`embed` for query embedding.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1536`` (``text-embedding-3-small``),
        ``3072`` (``text-embedding-3-large``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
