"""Groups chunk texts into embedding requests that respect provider limits.

An embeddings request is rejected outright when any single input exceeds
the model's per-item token ceiling, or when the inputs together exceed the
per-request token budget.  One rejected request would abort a whole
material, so the planner guarantees both limits up front:

1. **Normalize** -- any chunk estimated above the per-item ceiling is cut
   into consecutive pieces of at most ``floor(ceiling * 4 * 0.95)``
   characters (5% headroom on the four-characters-per-token estimate).
2. **Pack** -- pieces are appended to the current batch until the next one
   would push the running estimate past the request budget (or the batch
   hits the provider's item-count cap), at which point a new batch starts.

Order is preserved end to end: flattening the batches yields the
normalized piece sequence exactly, so ordinal positions can be assigned by
emission order without knowing where batch boundaries fell.
"""

from __future__ import annotations

import structlog

from coteacher.utils.text_normalizer import estimate_tokens

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ITEM_TOKEN_LIMIT = 8000
DEFAULT_REQUEST_TOKEN_BUDGET = 250_000
# OpenAI's embeddings endpoint accepts at most 2048 inputs per request.
DEFAULT_REQUEST_MAX_ITEMS = 2048

_CHARS_PER_TOKEN = 4
_SAFETY_MARGIN = 0.95


def _split(text: str, max_chars: int) -> list[str]:
    return [text[i : i + max_chars] for i in range(0, len(text), max_chars)]


class BatchPlanner:
    """Plans embedding batches under per-item and per-request limits.

    Parameters
    ----------
    item_token_limit:
        Largest estimated token count allowed for one input.
    request_token_budget:
        Largest summed estimate allowed for one request.
    max_items:
        Largest number of inputs allowed in one request.
    """

    def __init__(
        self,
        item_token_limit: int = DEFAULT_ITEM_TOKEN_LIMIT,
        request_token_budget: int = DEFAULT_REQUEST_TOKEN_BUDGET,
        max_items: int = DEFAULT_REQUEST_MAX_ITEMS,
    ) -> None:
        if item_token_limit <= 0 or request_token_budget <= 0 or max_items <= 0:
            msg = (
                "batch limits must be positive: "
                f"item={item_token_limit} request={request_token_budget} items={max_items}"
            )
            raise ValueError(msg)
        self._item_token_limit = item_token_limit
        self._request_token_budget = request_token_budget
        self._max_items = max_items
        self._piece_chars = max(1, int(item_token_limit * _CHARS_PER_TOKEN * _SAFETY_MARGIN))

    @property
    def piece_chars(self) -> int:
        """Character length oversized chunks are cut to."""
        return self._piece_chars

    def normalize(self, chunks: list[str]) -> list[str]:
        """Split every chunk whose estimate exceeds the per-item ceiling."""
        pieces: list[str] = []
        for text in chunks:
            if estimate_tokens(text) > self._item_token_limit:
                pieces.extend(_split(text, self._piece_chars))
            else:
                pieces.append(text)
        return pieces

    def plan(self, chunks: list[str]) -> list[list[str]]:
        """Return batches of texts, in order, each within every limit."""
        budget = self._request_token_budget
        batches: list[list[str]] = []
        current: list[str] = []
        current_tokens = 0

        def add(piece: str) -> None:
            nonlocal current, current_tokens
            tokens = estimate_tokens(piece)
            if current and (
                current_tokens + tokens > budget or len(current) >= self._max_items
            ):
                batches.append(current)
                current = []
                current_tokens = 0
            current.append(piece)
            current_tokens += tokens

        for piece in self.normalize(chunks):
            if estimate_tokens(piece) > budget:
                # Only reachable when the request budget is below the item ceiling.
                for part in _split(piece, min(self._piece_chars, budget * _CHARS_PER_TOKEN)):
                    add(part)
            else:
                add(piece)

        if current:
            batches.append(current)

        logger.debug(
            "embedding_batches_planned",
            chunks=len(chunks),
            pieces=sum(len(b) for b in batches),
            batches=len(batches),
        )
        return batches
