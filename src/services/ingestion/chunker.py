"""Paragraph-aware text chunking with overlapping windows.

Splits extracted page text into bounded chunk strings sized for the
embedding model.  Sizes are measured in characters.

Two goals shape the algorithm:

1. **Paragraph-preserving** -- chunks are built from whole paragraphs
   (blank-line separated) wherever possible, so boundaries fall between
   thoughts rather than inside them.

2. **Overlapping windows** -- when a chunk is closed, the next one is seeded
   with the tail of the previous one, so a concept spanning the boundary is
   still retrievable from at least one side.

A paragraph that is longer than the limit on its own is cut by size, but
each cut is snapped back to the nearest paragraph break or sentence end
within the last 30% of the window.  The size splitter is an explicit loop,
so a single multi-megabyte paragraph costs linear work and no recursion.

Chunking is deterministic: identical input and options always give
identical boundaries.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_TERMINATORS = frozenset(".!?")

# How far back from the window edge a cut may be snapped, as a fraction of
# the window.
_SNAP_FRACTION = 0.3


class SemanticChunker:
    """Splits text into overlapping, paragraph-aligned chunks.

    Parameters
    ----------
    max_chunk_size:
        Target maximum characters per chunk (default 1000).  A seeded chunk
        may reach ``max_chunk_size + overlap``.
    overlap:
        Characters carried from the end of one chunk into the next
        (default 100).  Must be smaller than ``max_chunk_size``.
    respect_paragraphs:
        When ``False`` the text is cut purely by size (still snapping to
        sentence ends).
    """

    def __init__(
        self,
        max_chunk_size: int = 1000,
        overlap: int = 100,
        respect_paragraphs: bool = True,
    ) -> None:
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if overlap < 0 or overlap >= max_chunk_size:
            raise ValueError("overlap must be in [0, max_chunk_size)")
        self._max = max_chunk_size
        self._overlap = overlap
        self._respect_paragraphs = respect_paragraphs

    @property
    def max_chunk_size(self) -> int:
        return self._max

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into an ordered list of chunk strings.

        Empty or whitespace-only input returns an empty list.
        """
        if not text or not text.strip():
            return []

        if self._respect_paragraphs:
            chunks = self._accumulate_paragraphs(self._split_paragraphs(text))
        else:
            chunks = self._split_by_size(text.strip())

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            input_chars=len(text),
            max_chunk_size=self._max,
        )
        return chunks

    # ------------------------------------------------------------------
    # Paragraph accumulation
    # ------------------------------------------------------------------

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]

    def _accumulate_paragraphs(self, paragraphs: list[str]) -> list[str]:
        chunks: list[str] = []
        current = ""

        for para in paragraphs:
            if current and len(current) + 2 + len(para) > self._max:
                chunks.append(current)
                current = self._seed_next(current, para)
            else:
                current = f"{current}\n\n{para}" if current else para

            if len(para) > self._max:
                # Only reachable for a paragraph longer than the limit on
                # its own: keep the last piece open for the next paragraph.
                pieces = self._split_by_size(current)
                chunks.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""

        if current:
            chunks.append(current)
        return chunks

    def _seed_next(self, closed: str, para: str) -> str:
        """Start a new chunk with the tail of *closed* followed by *para*."""
        if self._overlap == 0:
            return para
        seed = closed[-self._overlap:]
        if len(para) <= self._max:
            # Never let the seeded chunk pass max + overlap.
            budget = self._max + self._overlap - len(para) - 1
            seed = seed[-budget:] if budget > 0 else ""
        seed = seed.strip()
        return f"{seed} {para}" if seed else para

    # ------------------------------------------------------------------
    # Size-based splitting
    # ------------------------------------------------------------------

    def _split_by_size(self, text: str) -> list[str]:
        """Cut *text* into windows of at most ``max_chunk_size`` characters."""
        pieces: list[str] = []
        length = len(text)
        start = 0

        while start < length:
            end = min(start + self._max, length)
            cut = end
            if end < length:
                floor = start + int(self._max * (1 - _SNAP_FRACTION))
                snapped = self._find_break(text, floor, end)
                if snapped is not None:
                    cut = snapped

            piece = text[start:cut].strip()
            if piece:
                pieces.append(piece)
            if cut >= length:
                break
            start = max(cut - self._overlap, start + 1)

        return pieces

    @staticmethod
    def _find_break(text: str, floor: int, end: int) -> int | None:
        """Search backward from *end* to *floor* for a paragraph or sentence end.

        Returns the cut position just past the break, or ``None``.
        """
        for j in range(end - 2, floor - 1, -1):
            ch, nxt = text[j], text[j + 1]
            if ch == "\n" and nxt == "\n":
                return j + 2
            if ch in _SENTENCE_TERMINATORS and nxt.isspace():
                return j + 2
        return None
