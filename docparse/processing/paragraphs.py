"""Markdown -> display paragraphs.

Headings become ``=== # Heading ===`` markers and list items stay on their own,
so the viewer can render extracted documents without a Markdown parser.
"""

import re
from typing import List

EMPTY_PLACEHOLDER = "(no content)"

_ORDERED_ITEM = re.compile(r"^\d+\.")


def _is_list_item(line: str) -> bool:
    return line.startswith("-") or line.startswith("*") or bool(_ORDERED_ITEM.match(line))


def markdown_to_paragraphs(markdown: str) -> List[str]:
    """Split Markdown-like text into an ordered list of paragraph units."""
    paragraphs: List[str] = []
    buffer: List[str] = []

    def flush():
        if buffer:
            paragraphs.append(" ".join(buffer))
            buffer.clear()

    for raw in (markdown or "").split("\n"):
        line = raw.strip()
        if not line:
            flush()
        elif line.startswith("#"):
            flush()
            paragraphs.append(f"=== {line} ===")
        elif _is_list_item(line):
            flush()
            paragraphs.append(line)
        else:
            buffer.append(line)
    flush()

    return paragraphs or [EMPTY_PLACEHOLDER]
