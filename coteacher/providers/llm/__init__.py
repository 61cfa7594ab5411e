"""LLM provider adapters.

Concrete implementation of ILLMProvider (coteacher/interfaces/llm_provider.py):
    - OpenAILLMProvider -- gpt-4o-mini (also supports OpenAI-compatible APIs)

At startup, main.py creates the provider and injects it into FastAPI's
app.state for the course chat and transcription services.
"""

from coteacher.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
