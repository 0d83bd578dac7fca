"""
Sentence-aware text chunker.

Splits extracted document text into overlapping spans suitable for
embedding. Every chunk is an exact slice of the source text, so offsets
can be used to highlight or re-fetch the span later.

Dependencies: fastapi.concurrency (thread offload for very large texts)
System role: First stage of document ingestion pipeline
"""

import logging
import re

from fastapi.concurrency import run_in_threadpool

from rag_service.models.document import Chunk

logger = logging.getLogger(__name__)

# Terminal punctuation (latin and CJK) with optional closing quotes/brackets,
# followed by whitespace, or a blank line.
_UNIT_BOUNDARY = re.compile(r"[.!?。！？]+[\"'\)\]”’]*\s+|\n\s*\n")


class Chunker:
    """Accumulate sentence-like units into overlapping chunks."""

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
        min_chunk_size: int = 100,
        background_threshold: int = 200_000,
    ) -> None:
        """
        Initialize chunker.

        Args:
            chunk_size: Target chunk size in characters
            overlap: Characters carried from the end of one chunk into the next
            min_chunk_size: A buffer shorter than this is never closed early
            background_threshold: Text length above which achunk() uses a worker thread

        Raises:
            ValueError: When sizes are inconsistent
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        if min_chunk_size < 0:
            raise ValueError("min_chunk_size cannot be negative")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_chunk_size = min_chunk_size
        self.background_threshold = background_threshold

    def chunk(self, text: str) -> list[Chunk]:
        """
        Split text into chunks.

        Args:
            text: Extracted document text

        Returns:
            list[Chunk]: Chunks in document order; empty for blank input
        """
        if not text or not text.strip():
            return []

        chunks: list[Chunk] = []
        for start, end in self._chunk_spans(text):
            content = text[start:end]
            if not content.strip():
                continue
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=content,
                    start_offset=start,
                    end_offset=end,
                )
            )
        return chunks

    async def achunk(self, text: str) -> list[Chunk]:
        """Chunk text, offloading very large documents to a worker thread."""
        if len(text) > self.background_threshold:
            logger.info(
                f"{__name__}:achunk - Offloading chunking to threadpool",
                extra={"text_length": len(text)},
            )
            return await run_in_threadpool(self.chunk, text)
        return self.chunk(text)

    def _chunk_spans(self, text: str) -> list[tuple[int, int]]:
        spans: list[tuple[int, int]] = []
        buf_start: int | None = None
        buf_end = 0

        for unit_start, unit_end in self._units(text):
            if buf_start is None:
                buf_start, buf_end = unit_start, unit_end
                continue

            current_len = buf_end - buf_start
            unit_len = unit_end - unit_start
            if current_len + unit_len > self.chunk_size and current_len >= self.min_chunk_size:
                spans.append((buf_start, buf_end))
                # Units tile the text, so the new buffer runs from the
                # overlap start through the end of the triggering unit.
                buf_start = self._overlap_start(text, buf_start, buf_end)
            buf_end = unit_end

        if buf_start is not None and buf_end > buf_start:
            spans.append((buf_start, buf_end))
        return spans

    def _units(self, text: str) -> list[tuple[int, int]]:
        """Sentence-like units covering the whole text with no gaps."""
        units: list[tuple[int, int]] = []
        pos = 0
        for match in _UNIT_BOUNDARY.finditer(text):
            units.append((pos, match.end()))
            pos = match.end()
        if pos < len(text):
            units.append((pos, len(text)))

        max_unit = max(self.chunk_size - self.overlap, 1)
        split: list[tuple[int, int]] = []
        for start, end in units:
            split.extend(self._split_long_unit(text, start, end, max_unit))
        return split

    @staticmethod
    def _split_long_unit(
        text: str, start: int, end: int, max_len: int
    ) -> list[tuple[int, int]]:
        """Break a unit longer than max_len, preferring whitespace cut points."""
        pieces: list[tuple[int, int]] = []
        while end - start > max_len:
            window_end = start + max_len
            cut = window_end
            for i in range(window_end - 1, start, -1):
                if text[i].isspace():
                    cut = i + 1
                    break
            pieces.append((start, cut))
            start = cut
        if end > start:
            pieces.append((start, end))
        return pieces

    def _overlap_start(self, text: str, start: int, end: int) -> int:
        """
        Offset where the next chunk's overlap prefix begins.

        Takes the trailing ``overlap`` characters of [start, end) and moves
        forward past a partial leading word and any whitespace. Falls back to
        the raw cut when trimming would leave nothing.
        """
        if self.overlap == 0 or end - start < self.overlap:
            return end

        raw = end - self.overlap
        pos = raw
        if pos > start and not text[pos - 1].isspace():
            while pos < end and not text[pos].isspace():
                pos += 1
        while pos < end and text[pos].isspace():
            pos += 1
        return pos if pos < end else raw
