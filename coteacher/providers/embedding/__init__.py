"""Embedding provider implementations.

Embeddings turn chunk text and student questions into vectors compared by
cosine similarity in the course store.

    OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims) by default,
    or any OpenAI-compatible endpoint via ``OPENAI_BASE_URL``.
"""

from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
