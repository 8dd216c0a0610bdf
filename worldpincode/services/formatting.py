"""Light markdown classification of answers and citation link extraction.

The model answers in loose markdown.  Clients only need to tell headings,
list items and paragraphs apart, with ``**bold**`` emphasis inside them,
so this is a line classifier rather than a markdown parser.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final
from urllib.parse import urlparse

from worldpincode.models.enums import BlockKind
from worldpincode.models.response import FormattedResult
from worldpincode.models.search import AnswerBlock, GroundingSource, SearchResult, SourceLink, TextSpan

_BOLD_SPLIT_RE: Final[re.Pattern[str]] = re.compile(r"(\*\*.*?\*\*)")
_LIST_MARKER_RE: Final[re.Pattern[str]] = re.compile(r"^[*-]\s")

# Longest prefix first so "### " is not taken for "# ".
_HEADING_PREFIXES: Final[tuple[tuple[str, int], ...]] = (
    ("### ", 3),
    ("## ", 2),
    ("# ", 1),
)


def parse_spans(text: str) -> list[TextSpan]:
    """Split *text* into plain and ``**bold**`` spans."""
    spans: list[TextSpan] = []
    for part in _BOLD_SPLIT_RE.split(text):
        if not part:
            continue
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            inner = part[2:-2]
            if inner:
                spans.append(TextSpan(text=inner, bold=True))
            continue
        spans.append(TextSpan(text=part))
    return spans


def classify_line(line: str) -> AnswerBlock | None:
    """Classify one answer line; ``None`` for blank lines."""
    for prefix, level in _HEADING_PREFIXES:
        if line.startswith(prefix):
            return AnswerBlock(
                kind=BlockKind.HEADING,
                level=level,
                spans=[TextSpan(text=line[len(prefix):])],
            )

    stripped = line.strip()
    if not stripped:
        return None
    if _LIST_MARKER_RE.match(stripped):
        return AnswerBlock(kind=BlockKind.LIST_ITEM, spans=parse_spans(stripped[2:]))
    return AnswerBlock(kind=BlockKind.PARAGRAPH, spans=parse_spans(line))


def parse_answer(text: str) -> list[AnswerBlock]:
    blocks: list[AnswerBlock] = []
    for line in text.split("\n"):
        block = classify_line(line)
        if block is not None:
            blocks.append(block)
    return blocks


def source_links(sources: Iterable[GroundingSource]) -> list[SourceLink]:
    """Citations that have a title and a URI with a usable hostname."""
    links: list[SourceLink] = []
    for source in sources:
        if not (source.title and source.uri):
            continue
        try:
            hostname = urlparse(source.uri).hostname
        except ValueError:
            continue
        if not hostname:
            continue
        links.append(SourceLink(title=source.title, uri=source.uri, hostname=hostname))
    return links


def format_result(result: SearchResult) -> FormattedResult:
    return FormattedResult(
        text=result.text,
        blocks=parse_answer(result.text),
        sources=source_links(result.sources),
    )
