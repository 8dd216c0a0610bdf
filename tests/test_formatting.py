"""Tests for answer line classification and citation links."""

from __future__ import annotations

from worldpincode.models.enums import BlockKind
from worldpincode.models.search import GroundingSource, SearchResult
from worldpincode.services.formatting import (
    classify_line,
    format_result,
    parse_answer,
    parse_spans,
    source_links,
)


class TestSpans:
    def test_bold_segments(self) -> None:
        spans = parse_spans("Pincode **500034** for **Banjara Hills**")
        assert [(s.text, s.bold) for s in spans] == [
            ("Pincode ", False),
            ("500034", True),
            (" for ", False),
            ("Banjara Hills", True),
        ]

    def test_plain_text(self) -> None:
        spans = parse_spans("no emphasis here")
        assert len(spans) == 1
        assert spans[0].bold is False


class TestClassifyLine:
    def test_headings(self) -> None:
        h1 = classify_line("# India")
        h2 = classify_line("## Telangana")
        h3 = classify_line("### Hyderabad")
        assert h1 is not None and h1.kind is BlockKind.HEADING and h1.level == 1
        assert h2 is not None and h2.level == 2
        assert h3 is not None and h3.level == 3
        assert h3.spans[0].text == "Hyderabad"

    def test_list_items(self) -> None:
        star = classify_line("* **Ameerpet**: 500016")
        dash = classify_line("  - Begumpet: 500016")
        assert star is not None and star.kind is BlockKind.LIST_ITEM
        assert star.spans[0].text == "Ameerpet"
        assert star.spans[0].bold is True
        assert dash is not None and dash.kind is BlockKind.LIST_ITEM
        assert dash.spans[0].text == "Begumpet: 500016"

    def test_blank_line(self) -> None:
        assert classify_line("") is None
        assert classify_line("   ") is None

    def test_paragraph(self) -> None:
        block = classify_line("The pincode is 110001.")
        assert block is not None
        assert block.kind is BlockKind.PARAGRAPH


class TestParseAnswer:
    def test_mixed_answer(self) -> None:
        text = "## Result\n\nDelhi GPO\n* **110001**\n- 110002"
        kinds = [block.kind for block in parse_answer(text)]
        assert kinds == [
            BlockKind.HEADING,
            BlockKind.PARAGRAPH,
            BlockKind.LIST_ITEM,
            BlockKind.LIST_ITEM,
        ]


class TestSourceLinks:
    def test_hostname_extracted(self) -> None:
        links = source_links([GroundingSource(title="India Post", uri="https://www.indiapost.gov.in/x?y=1")])
        assert len(links) == 1
        assert links[0].hostname == "www.indiapost.gov.in"

    def test_incomplete_sources_skipped(self) -> None:
        links = source_links([
            GroundingSource(title="", uri="https://example.com"),
            GroundingSource(title="No uri", uri=""),
            GroundingSource(title="Relative", uri="/just/a/path"),
        ])
        assert links == []

    def test_format_result(self) -> None:
        result = SearchResult(
            text="# Paris\n* 75001",
            sources=[GroundingSource(title="La Poste", uri="https://www.laposte.fr")],
        )
        formatted = format_result(result)
        assert formatted.text == result.text
        assert len(formatted.blocks) == 2
        assert formatted.sources[0].hostname == "www.laposte.fr"
