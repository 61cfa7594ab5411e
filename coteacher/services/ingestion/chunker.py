"""Fixed-size character windows with overlap.

Text reaching the chunker is already whitespace-collapsed, so there are no
paragraph boundaries left to honour; windows are cut purely by character
position.  Window ``i`` starts at ``i * step`` where
``step = max(1, size - overlap)``, and the last window may be short.

Example: 1300 characters at size 1200 / overlap 200 gives two windows,
``[0, 1200)`` and ``[1000, 1300)``.
"""

from __future__ import annotations

DEFAULT_CHUNK_SIZE = 1200
DEFAULT_CHUNK_OVERLAP = 200


def chunk(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split *text* into overlapping windows of at most *size* characters.

    Empty text gives no windows; text shorter than *size* gives one.

    Raises
    ------
    ValueError
        If *size* is not positive or *overlap* is negative.
    """
    if size <= 0:
        msg = f"chunk size must be positive, got {size}"
        raise ValueError(msg)
    if overlap < 0:
        msg = f"chunk overlap must not be negative, got {overlap}"
        raise ValueError(msg)

    step = max(1, size - overlap)
    return [text[start : start + size] for start in range(0, len(text), step)]


class TextChunker:
    """Configured wrapper around :func:`chunk` for injection into the indexer."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_size <= 0 or overlap < 0:
            msg = f"invalid chunking parameters: size={chunk_size} overlap={overlap}"
            raise ValueError(msg)
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        return chunk(text, self._chunk_size, self._overlap)
