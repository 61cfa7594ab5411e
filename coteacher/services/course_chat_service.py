"""Retrieval-grounded answers to student questions about one course.

Data flow for ``answer(course_id, messages)``:

  1. QUESTION -- the most recent user turn in the client-held history.
  2. EMBED    -- one query embedding, from the same provider/model that
                 indexed the course materials.
  3. RETRIEVE -- course-scoped similarity search: up to ``top_k`` chunks
                 above ``match_threshold``.
  4. COMPOSE  -- chunks ranked by similarity, labelled with rank and score,
                 joined into one context block.
  5. GENERATE -- a single low-temperature completion constrained to the
                 context.

With nothing retrieved the model is still asked once, told that no
materials exist yet; the system prompt makes it answer with the fixed
"no information" reply.
"""

from __future__ import annotations

import math

import structlog

from coteacher.interfaces.course_store import ICourseStore
from coteacher.interfaces.embedding_provider import IEmbeddingProvider
from coteacher.interfaces.llm_provider import ILLMProvider
from coteacher.models.chat import ChatMessage, latest_user_question
from coteacher.models.rag import RetrievedChunk
from coteacher.utils.errors import QuotaExceededError, UpstreamServiceError, ValidationError
from coteacher.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NO_INFORMATION_REPLY = "I don't have that information in the uploaded course materials yet."
EMPTY_GENERATION_REPLY = "I couldn't generate a response."

SYSTEM_PROMPT = f"""You are an AI teaching assistant for this course.

Your job is to answer student questions using ONLY the provided course context below.

Rules:
1. If the context contains the answer, provide a clear, helpful response.
2. If the context doesn't contain enough information, say: "{NO_INFORMATION_REPLY}"
3. Be concise but thorough.
4. Cite specific sections when possible (e.g., "According to the syllabus...").
5. Never make up information not in the context."""

_CONTEXT_SEPARATOR = "\n\n---\n\n"


def _format_similarity(value: float) -> str:
    return f"{value:.3f}" if math.isfinite(value) else "0.000"


def _rank_key(chunk: RetrievedChunk) -> float:
    return chunk.similarity if math.isfinite(chunk.similarity) else float("-inf")


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Label each chunk with its 1-based rank and score and join them.

    Chunks are ordered by similarity, highest first; a non-finite score
    ranks last and prints as ``0.000``.
    """
    ranked = sorted(chunks, key=_rank_key, reverse=True)
    return _CONTEXT_SEPARATOR.join(
        f"[Chunk #{rank}, similarity: {_format_similarity(c.similarity)}]\n{c.content}"
        for rank, c in enumerate(ranked, start=1)
    )


def build_user_prompt(question: str, context: str) -> str:
    if context:
        return f"Question: {question}\n\n=== Course Materials Context ===\n\n{context}"
    return f"Question: {question}\n\n(No course materials have been uploaded yet)"


class CourseChatService:
    """Answers course questions from indexed material chunks.

    Parameters
    ----------
    store:
        Course store providing ``match_chunks``.
    embedding_provider:
        Must be the provider that indexed the course.
    llm_provider:
        Text generation for the final answer.
    top_k, match_threshold, temperature:
        Retrieval breadth, similarity floor and sampling temperature.
    """

    def __init__(
        self,
        store: ICourseStore,
        embedding_provider: IEmbeddingProvider,
        llm_provider: ILLMProvider,
        top_k: int = 6,
        match_threshold: float = 0.2,
        temperature: float = 0.3,
    ) -> None:
        self._store = store
        self._embedding = embedding_provider
        self._llm = llm_provider
        self._top_k = top_k
        self._match_threshold = match_threshold
        self._temperature = temperature

    async def answer(self, course_id: str, messages: list[ChatMessage]) -> str:
        """Return a grounded reply to the latest user question.

        Raises
        ------
        ValidationError
            If *course_id* is empty or no user turn has content.
        QuotaExceededError
            If the model provider is out of credits.
        UpstreamServiceError
            If embedding, retrieval (``"Retrieval failed: ..."``) or
            generation fails.
        """
        question = latest_user_question(messages)
        if not course_id or not question:
            raise ValidationError(message="Missing courseId or user question")

        query_embedding = await self._embedding.embed_single(question)
        chunks = await self._retrieve(course_id, query_embedding)

        context = format_context(chunks)
        if not context:
            logger.info("course_chat_no_context", course_id=course_id)

        reply = await self._llm.complete(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_user_prompt(question, context),
            temperature=self._temperature,
        )
        reply = reply.strip() or EMPTY_GENERATION_REPLY

        logger.info(
            "course_chat_answered",
            course_id=course_id,
            chunks=len(chunks),
            question_chars=len(question),
            reply_chars=len(reply),
        )
        return reply

    async def _retrieve(self, course_id: str, query_embedding: list[float]) -> list[RetrievedChunk]:
        try:
            return await self._store.match_chunks(
                query_embedding=query_embedding,
                top_k=self._top_k,
                threshold=self._match_threshold,
                course_id=course_id,
            )
        except QuotaExceededError:
            raise
        except UpstreamServiceError as exc:
            logger.error("course_chat_retrieval_failed", course_id=course_id, error=str(exc))
            raise UpstreamServiceError(
                message=f"Retrieval failed: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
