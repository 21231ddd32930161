"""Sentence-based text chunking with overlap for the RAG pipeline.

Page numbers are estimated: extracted PDF text carries no reliable page
boundaries, so the chunker follows in-text "page N" markers and additionally
advances the page every third chunk.
"""
import re
from dataclasses import dataclass
from typing import List

import structlog

from docchat import config

logger = structlog.get_logger()

# A run of non-terminators followed by one or more of . ! ?
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+")
PAGE_MARKER_PATTERN = re.compile(r"\bpage\s+(\d+)\b", re.IGNORECASE)

# One word of overlap stands in for roughly this many characters
CHARS_PER_OVERLAP_WORD = 5


@dataclass(frozen=True)
class TextChunk:
    """A bounded slice of document text with an estimated page number."""

    text: str
    page_number: int
    chunk_index: int


class TextChunker:
    """Sentence-based text chunker with word overlap between chunks."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Target size of each chunk in characters (default from config)
            chunk_overlap: Overlap carried into the next chunk, counted as
                roughly five characters per word (default from config)
        """
        self.chunk_size = config.CHUNK_SIZE if chunk_size is None else chunk_size
        self.chunk_overlap = config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap

        if self.chunk_overlap < 0:
            raise ValueError(f"Overlap ({self.chunk_overlap}) must not be negative")

    @staticmethod
    def split_sentences(text: str) -> List[str]:
        """Split text into sentences, falling back to the whole text."""
        return SENTENCE_PATTERN.findall(text) or [text]

    def _overlap_tail(self, chunk: str) -> str:
        overlap_words = self.chunk_overlap // CHARS_PER_OVERLAP_WORD
        if overlap_words == 0:
            return ""
        return " ".join(chunk.split(" ")[-overlap_words:])

    def chunk_text(self, text: str) -> List[TextChunk]:
        """Split text into overlapping, page-annotated chunks.

        Args:
            text: Extracted document text

        Returns:
            Ordered list of TextChunk objects; empty when the text holds
            nothing but whitespace
        """
        chunks: List[TextChunk] = []
        current_chunk = ""
        current_page = 1
        chunk_index = 0

        for raw_sentence in self.split_sentences(text):
            sentence = raw_sentence.strip()

            page_match = PAGE_MARKER_PATTERN.search(sentence)
            if page_match:
                current_page = int(page_match.group(1))

            if chunk_index > 0 and chunk_index % 3 == 0:
                current_page += 1

            if len(current_chunk + sentence) > self.chunk_size and current_chunk:
                chunks.append(
                    TextChunk(
                        text=current_chunk.strip(),
                        page_number=current_page,
                        chunk_index=chunk_index,
                    )
                )
                chunk_index += 1

                tail = self._overlap_tail(current_chunk)
                current_chunk = f"{tail} {sentence}" if tail else sentence
            else:
                current_chunk += (" " if current_chunk else "") + sentence

        if current_chunk.strip():
            chunks.append(
                TextChunk(
                    text=current_chunk.strip(),
                    page_number=current_page,
                    chunk_index=chunk_index,
                )
            )

        logger.info(
            "text_chunked",
            text_length=len(text),
            chunk_count=len(chunks),
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

        return chunks

    def get_chunk_stats(self, chunks: List[TextChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of TextChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
                "page_span": 0,
            }

        chunk_sizes = [len(c.text) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "page_span": max(c.page_number for c in chunks),
        }


def chunk_text(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
) -> List[TextChunk]:
    """Chunk text with an ad hoc chunker (convenience function).

    Args:
        text: Text to chunk
        chunk_size: Target chunk size in characters
        overlap: Overlap carried between chunks, in characters

    Returns:
        List of TextChunk objects
    """
    return TextChunker(chunk_size=chunk_size, chunk_overlap=overlap).chunk_text(text)
