"""Paragraph-aware text chunking for retrieval.

Chunks keep whole paragraphs together where they fit and carry a short
word overlap from the previous chunk so context survives the cut.
"""

import re
from dataclasses import asdict, dataclass
from typing import List

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

# average English word length, converts a character overlap into words
_AVG_WORD_CHARS = 5


@dataclass
class TextChunk:
    chunk_index: int
    content: str
    start_position: int
    end_position: int

    def to_dict(self) -> dict:
        return asdict(self)


def split_text_into_chunks(
    text: str,
    max_chunk_size: int = 8000,
    overlap_size: int = 400,
    min_chunk_size: int = 500,
) -> List[TextChunk]:
    """
    Pack paragraphs into chunks of at most ``max_chunk_size`` characters.

    Args:
        text: Extracted document text (Markdown)
        max_chunk_size: Soft upper bound per chunk; a single oversized
            paragraph is kept whole
        overlap_size: Approximate characters carried over from the previous
            chunk, rounded to whole words
        min_chunk_size: The trailing chunk is dropped if shorter than this

    Returns:
        Ordered list of chunks with character offsets into ``text``
    """
    if not text or not text.strip():
        return []

    paragraphs = [p for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
    overlap_words = overlap_size // _AVG_WORD_CHARS

    chunks: List[TextChunk] = []
    current = ""
    chunk_start = 0
    position = 0

    for paragraph in paragraphs:
        trimmed = paragraph.strip()
        if not current:
            current = trimmed
            chunk_start = position
        elif len(current) + len(trimmed) + 2 <= max_chunk_size:
            current += "\n\n" + trimmed
        else:
            chunks.append(TextChunk(len(chunks), current.strip(), chunk_start, position))
            words = current.split(" ")
            overlap = " ".join(words[-overlap_words:]) if overlap_words else ""
            current = f"{overlap}\n\n{trimmed}" if overlap else trimmed
            chunk_start = max(0, position - len(overlap))
        position += len(paragraph) + 2

    if len(current.strip()) >= min_chunk_size:
        chunks.append(TextChunk(len(chunks), current.strip(), chunk_start, len(text)))

    return chunks
