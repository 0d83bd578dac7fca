"""
Context assembler.

Formats ranked search results into labeled context blocks bounded by a
block count and a character budget.

Dependencies: pydantic
System role: Prompt context construction
"""

from pydantic import BaseModel, Field

from rag_service.models.chat import SourceRef
from rag_service.models.search import SearchResult

NO_CONTEXT_MARKER = "No relevant context found in the knowledge base."
BLOCK_SEPARATOR = "\n\n"


class AssembledContext(BaseModel):
    """Context fragment plus the results it was built from."""

    text: str
    sources: list[SearchResult] = Field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.sources)

    def source_refs(self, snippet_length: int = 200) -> list[SourceRef]:
        return [
            SourceRef(
                document_id=r.document_id,
                chunk_id=r.chunk_id,
                filename=r.filename,
                score=r.score,
                snippet=r.content[:snippet_length],
            )
            for r in self.sources
        ]

    def chunk_refs(self) -> list[str]:
        return [f"{r.document_id}_{r.chunk_id}" for r in self.sources]


def format_block(position: int, result: SearchResult) -> str:
    return f"[Context {position}] (Score: {result.score:.3f}, Source: {result.filename})\n{result.content}"


class ContextAssembler:
    """Select top results in rank order until a limit is hit."""

    def __init__(self, max_context_chunks: int = 5, max_context_length: int = 4000) -> None:
        self.max_context_chunks = max_context_chunks
        self.max_context_length = max_context_length

    def assemble(self, results: list[SearchResult]) -> AssembledContext:
        """
        Build the context fragment.

        Blocks are added in rank order until ``max_context_chunks`` blocks
        are used or the next block would push the text past
        ``max_context_length``. With no qualifying results the text is the
        explicit no-context marker.
        """
        blocks: list[str] = []
        used: list[SearchResult] = []
        length = 0

        for result in results:
            if len(used) >= self.max_context_chunks:
                break
            block = format_block(len(used) + 1, result)
            added = len(block) + (len(BLOCK_SEPARATOR) if blocks else 0)
            if length + added > self.max_context_length:
                break
            blocks.append(block)
            used.append(result)
            length += added

        if not blocks:
            return AssembledContext(text=NO_CONTEXT_MARKER)
        return AssembledContext(text=BLOCK_SEPARATOR.join(blocks), sources=used)
