"""Recognised response shapes of the external parse service.

The service has answered in several layouts over time. Each layout is a
small frozen dataclass; ``classify_response`` tries them in a fixed order and
always succeeds, falling back to ``RawBody``.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from docparse.processing.paragraphs import markdown_to_paragraphs

RAW_RESULT_PREFIX = "Parse result:\n"


@dataclass(frozen=True)
class ResultsMarkdown:
    """``{"results": {"<file>": {"md_content": "..."}}}``"""
    markdown: str
    kind: str = "results"


@dataclass(frozen=True)
class TopLevelMarkdown:
    """``{"markdown": "..."}``"""
    markdown: str
    kind: str = "markdown"


@dataclass(frozen=True)
class ContentList:
    """``{"content_list": ["para", ...]}``"""
    items: List[str]
    kind: str = "content_list"


@dataclass(frozen=True)
class RawBody:
    """Anything else; kept verbatim so the user still sees what came back."""
    body: Any
    kind: str = "raw"


ParseResponse = Union[ResultsMarkdown, TopLevelMarkdown, ContentList, RawBody]


def _results_markdown(data: dict) -> Optional[ResultsMarkdown]:
    results = data.get("results")
    if not isinstance(results, dict) or not results:
        return None
    first = next(iter(results.values()))
    if isinstance(first, dict):
        md = first.get("md_content")
        if isinstance(md, str) and md:
            return ResultsMarkdown(md)
    return None


def _top_level_markdown(data: dict) -> Optional[TopLevelMarkdown]:
    md = data.get("markdown")
    if isinstance(md, str) and md:
        return TopLevelMarkdown(md)
    return None


def _content_list(data: dict) -> Optional[ContentList]:
    items = data.get("content_list")
    if isinstance(items, list):
        return ContentList([item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)
                            for item in items])
    return None


_MATCHERS = (_results_markdown, _top_level_markdown, _content_list)


def classify_response(data: Any) -> ParseResponse:
    """Match ``data`` against the known shapes in priority order."""
    if isinstance(data, dict):
        for matcher in _MATCHERS:
            shape = matcher(data)
            if shape is not None:
                return shape
    return RawBody(data)


def extract_content(shape: ParseResponse) -> tuple:
    """Return ``(markdown, paragraphs)`` for a classified response."""
    if isinstance(shape, (ResultsMarkdown, TopLevelMarkdown)):
        return shape.markdown, markdown_to_paragraphs(shape.markdown)
    if isinstance(shape, ContentList):
        paragraphs = list(shape.items)
        return "\n\n".join(paragraphs), paragraphs
    paragraphs = [RAW_RESULT_PREFIX + json.dumps(shape.body, ensure_ascii=False)]
    return paragraphs[0], paragraphs
