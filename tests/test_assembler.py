"""
End-to-end tests for document assembly on both input paths.
"""

import json
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pagestruct.config import PipelineConfig
from pagestruct.errors import ConfigurationError, ConversionCancelled
from pagestruct.utils.lines import TextFragment, OcrLine, OcrPage
from pagestruct.utils.nodes import (
    NodeType, ListKind, WarningReason,
    Heading, ListItem, Table, Paragraph, PageBreak, ScanWarning,
)
from pagestruct.utils.guardrails import VectorOptions, OcrOptions
from pagestruct.utils.assembler import (
    CancellationToken,
    DocumentAssembler,
    reconstruct_from_vector_text,
    reconstruct_from_ocr,
)


@pytest.fixture
def assembler():
    return DocumentAssembler(PipelineConfig())


def body_page(*texts, y=700, size=12):
    """One fragment per line, 20 units apart."""
    return [
        TextFragment(text, x=72, y=y - i * 20, font_size=size, width=len(text) * 6)
        for i, text in enumerate(texts)
    ]


def table_fragments(y, *cells):
    return [
        TextFragment(text, x=72 + i * 150, y=y, font_size=12, width=40)
        for i, text in enumerate(cells)
    ]


class TestVectorReconstruction:
    """Tests for the vector-text path."""

    def test_heading_and_paragraph(self, assembler):
        page = [
            TextFragment("INTRODUCTION", x=72, y=720, font_size=24),
            TextFragment("This is body text.", x=72, y=690, font_size=12),
        ]
        doc = assembler.reconstruct_from_vector_text([page])

        assert doc.nodes == [Heading(1, "INTRODUCTION"), Paragraph("This is body text.")]
        assert doc.pages_read == 1
        assert doc.source_kind == "vector"

    def test_numbered_list_stripped(self, assembler):
        page = body_page("1. Introduction", "2. Background and motivation")
        doc = assembler.reconstruct_from_vector_text([page])
        assert doc.nodes == [
            ListItem(ListKind.NUMBERED, "Introduction"),
            ListItem(ListKind.NUMBERED, "Background and motivation"),
        ]

    def test_long_large_line_is_paragraph(self, assembler):
        long_text = "L" * 120
        page = [TextFragment(long_text, x=72, y=720, font_size=24)] + body_page(
            "Body text that carries the page baseline size.",
            "More body text at the same size as the line above.",
            "And a third line so body characters dominate the page.",
            y=690
        )
        doc = assembler.reconstruct_from_vector_text([page])
        assert doc.nodes[0] == Paragraph(long_text)
        assert doc.count(NodeType.HEADING) == 0

    def test_simple_table(self, assembler):
        page = table_fragments(700, "Name", "Age", "City") + table_fragments(680, "Alice", "30", "Paris")
        doc = assembler.reconstruct_from_vector_text([page])

        assert doc.nodes == [Table([["Name", "Age", "City"], ["Alice", "30", "Paris"]])]

    def test_tables_disabled(self, assembler):
        page = table_fragments(700, "Name", "Age", "City") + table_fragments(680, "Alice", "30", "Paris")
        doc = assembler.reconstruct_from_vector_text([page], VectorOptions(try_tables=False))

        assert doc.nodes == [Paragraph("Name Age City"), Paragraph("Alice 30 Paris")]

    def test_single_row_degrades(self, assembler):
        page = table_fragments(700, "Total amount", "42") + body_page("A closing sentence.", y=680)
        doc = assembler.reconstruct_from_vector_text([page])
        assert doc.nodes == [Paragraph("Total amount 42"), Paragraph("A closing sentence.")]

    def test_low_text_page(self, assembler):
        doc = assembler.reconstruct_from_vector_text([[TextFragment("Fig 1", x=0, y=0, font_size=12)]])

        assert doc.nodes == [ScanWarning(1, WarningReason.LOW_TEXT)]
        assert doc.count(NodeType.PARAGRAPH) == 0
        assert doc.likely_scanned
        assert any("OCR" in w for w in doc.warnings)

    def test_empty_page_is_low_text(self, assembler):
        doc = assembler.reconstruct_from_vector_text([[]])
        assert doc.nodes == [ScanWarning(1, WarningReason.LOW_TEXT)]

    def test_dense_document_not_scanned(self, assembler):
        page = body_page(
            "A reasonably long line of body text for density.",
            "Another long line of body text to pass the average.",
        )
        doc = assembler.reconstruct_from_vector_text([page])
        assert doc.total_chars > 60
        assert not doc.likely_scanned
        assert doc.warnings == []

    def test_page_breaks_only_between_pages(self, assembler):
        pages = [body_page(f"Page {n} has enough text on it.") for n in range(1, 4)]
        doc = assembler.reconstruct_from_vector_text(pages)

        assert doc.count(NodeType.PAGE_BREAK) == 2
        assert not isinstance(doc.nodes[0], PageBreak)
        assert not isinstance(doc.nodes[-1], PageBreak)

    def test_page_order_preserved(self, assembler):
        pages = [
            body_page("First page first line.", "First page second line."),
            body_page("Second page only line here."),
        ]
        doc = assembler.reconstruct_from_vector_text(pages)
        texts = [n.text for n in doc.nodes if n.node_type == NodeType.PARAGRAPH]
        assert texts == [
            "First page first line.",
            "First page second line.",
            "Second page only line here.",
        ]

    def test_deterministic_json(self, assembler):
        pages = [
            body_page("Deterministic output for the same input."),
            table_fragments(700, "a", "b") + table_fragments(680, "c", "d") + body_page("tail text here", y=660),
        ]
        first = assembler.reconstruct_from_vector_text(pages).to_json()
        second = assembler.reconstruct_from_vector_text(pages).to_json()
        assert first == second
        assert json.loads(first)["nodes"][1] == {"type": "page_break"}

    def test_max_pages_limits_reading(self, assembler):
        pages = [body_page(f"Page {n} has enough text on it.") for n in range(5)]
        doc = assembler.reconstruct_from_vector_text(pages, VectorOptions(max_pages=2))

        assert doc.pages_read == 2
        assert doc.total_pages == 5
        assert doc.count(NodeType.PAGE_BREAK) == 1

    @pytest.mark.parametrize("max_pages", [0, 201, -3])
    def test_max_pages_out_of_range(self, assembler, max_pages):
        calls = []
        with pytest.raises(ConfigurationError):
            assembler.reconstruct_from_vector_text(
                [body_page("never read")],
                VectorOptions(max_pages=max_pages),
                progress=lambda *a: calls.append(a)
            )
        assert calls == []

    def test_malformed_page_becomes_warning(self, assembler):
        pages = [
            body_page("Page one has plenty of text."),
            [{"text": "no coordinates"}],
            body_page("Page three has plenty of text."),
        ]
        doc = assembler.reconstruct_from_vector_text(pages)

        assert ScanWarning(2, WarningReason.MALFORMED_INPUT) in doc.nodes
        assert doc.pages_read == 3
        assert [w for w in doc.warnings if w.startswith("Page 2:")]
        assert doc.nodes[-1] == Paragraph("Page three has plenty of text.")

    def test_bad_transform_only_affects_its_page(self, assembler):
        pages = [
            body_page("Page one has plenty of text."),
            [{"str": "Broken transform text", "transform": [1, 0, 0, "12", 5, 6]}],
            body_page("Page three has plenty of text."),
        ]
        doc = assembler.reconstruct_from_vector_text(pages)

        assert doc.nodes == [
            Paragraph("Page one has plenty of text."),
            PageBreak(),
            ScanWarning(2, WarningReason.MALFORMED_INPUT),
            PageBreak(),
            Paragraph("Page three has plenty of text."),
        ]

    def test_null_fragment_text_is_not_rendered(self, assembler):
        page = [
            {"text": None, "x": 10, "y": 700, "fontSizeProxy": 12},
            {"text": "Some body text on the line.", "x": 72, "y": 700, "fontSizeProxy": 12},
        ]
        doc = assembler.reconstruct_from_vector_text([page])
        assert doc.nodes == [Paragraph("Some body text on the line.")]

    def test_non_list_page_is_malformed(self, assembler):
        doc = assembler.reconstruct_from_vector_text(["not a page"])
        assert doc.nodes == [ScanWarning(1, WarningReason.MALFORMED_INPUT)]

    def test_dict_fragments(self, assembler):
        page = [
            {"text": "INTRODUCTION", "x": 72, "y": 720, "fontSizeProxy": 24},
            {"text": "This is body text.", "x": 72, "y": 690, "fontSizeProxy": 12},
        ]
        doc = reconstruct_from_vector_text([page], config=PipelineConfig())
        assert doc.nodes[0] == Heading(1, "INTRODUCTION")

    def test_progress_reported_per_page(self, assembler):
        calls = []
        pages = [body_page("Enough text for page one."), body_page("Enough text for page two.")]
        assembler.reconstruct_from_vector_text(pages, progress=lambda c, t: calls.append((c, t)))
        assert calls == [(1, 2), (2, 2)]

    def test_lazy_pages(self, assembler):
        calls = []
        pages = (body_page(f"Generated page {n} with text.") for n in range(3))
        doc = assembler.reconstruct_from_vector_text(pages, progress=lambda c, t: calls.append((c, t)))

        assert doc.pages_read == 3
        assert doc.total_pages is None
        assert calls[-1] == (3, None)

    def test_cancellation_between_pages(self, assembler):
        token = CancellationToken()
        produced = []

        def pages():
            for n in range(1, 5):
                produced.append(n)
                yield body_page(f"Page {n} has enough text on it.")

        def on_progress(current, total):
            if current == 1:
                token.cancel()

        with pytest.raises(ConversionCancelled) as exc_info:
            assembler.reconstruct_from_vector_text(pages(), progress=on_progress, cancel_token=token)
        assert exc_info.value.pages_done == 1
        # The next page is never pulled from the source
        assert produced == [1]

    def test_cancelled_before_start(self, assembler):
        token = CancellationToken()
        token.cancel()
        produced = []

        def pages():
            produced.append(1)
            yield body_page("Never produced page text.")

        with pytest.raises(ConversionCancelled) as exc_info:
            assembler.reconstruct_from_vector_text(pages(), cancel_token=token)
        assert exc_info.value.pages_done == 0
        assert produced == []


class TestOcrReconstruction:
    """Tests for the OCR path."""

    def test_heading_and_paragraph(self, assembler):
        page = [
            OcrLine("SECTION ONE", bbox_top=100, bbox_bottom=120),
            OcrLine("Some lowercase body text that runs on.", bbox_top=200, bbox_bottom=220),
        ]
        doc = assembler.reconstruct_from_ocr([page])

        assert doc.nodes == [
            Heading(2, "SECTION ONE"),
            Paragraph("Some lowercase body text that runs on."),
        ]
        assert doc.source_kind == "ocr"

    def test_close_lines_join(self, assembler):
        page = [
            OcrLine("The first line of a paragraph", 100, 120),
            OcrLine("and its continuation.", 124, 144),
            OcrLine("A second paragraph.", 190, 210),
        ]
        doc = assembler.reconstruct_from_ocr([page])
        assert doc.nodes == [
            Paragraph("The first line of a paragraph and its continuation."),
            Paragraph("A second paragraph."),
        ]

    def test_engine_order_is_normalized(self, assembler):
        page = [
            OcrLine("second paragraph text", 200, 220),
            OcrLine("first paragraph text", 100, 120),
        ]
        doc = assembler.reconstruct_from_ocr([page])
        assert [n.text for n in doc.nodes] == ["first paragraph text", "second paragraph text"]

    def test_colon_heading_and_bullets(self, assembler):
        page = [
            OcrLine("Shopping list:", 0, 20),
            OcrLine("• Milk", 60, 80),
            OcrLine("• Bread", 120, 140),
        ]
        doc = assembler.reconstruct_from_ocr([page])
        assert doc.nodes == [
            Heading(2, "Shopping list"),
            ListItem(ListKind.BULLET, "Milk"),
            ListItem(ListKind.BULLET, "Bread"),
        ]

    def test_inverted_box_is_malformed(self, assembler):
        pages = [
            [OcrLine("fine page text", 0, 20)],
            [OcrLine("broken", 50, 40)],
        ]
        doc = assembler.reconstruct_from_ocr(pages)
        assert doc.nodes[-1] == ScanWarning(2, WarningReason.MALFORMED_INPUT)
        assert doc.nodes[0] == Paragraph("fine page text")

    def test_empty_page(self, assembler):
        doc = assembler.reconstruct_from_ocr([[]])
        assert doc.nodes == [ScanWarning(1, WarningReason.EMPTY_PAGE)]

    def test_full_text_fallback(self, assembler):
        page = OcrPage(lines=[], text="First para\nwraps here\n\n\nSecond para")
        doc = assembler.reconstruct_from_ocr([page])
        assert doc.nodes == [Paragraph("First para wraps here"), Paragraph("Second para")]

    def test_dict_pages(self):
        page = {
            "lines": [{"text": "HEADING TEXT", "bboxTop": 0, "bboxBottom": 20}],
            "text": "HEADING TEXT"
        }
        doc = reconstruct_from_ocr([page], config=PipelineConfig())
        assert doc.nodes == [Heading(2, "HEADING TEXT")]

    def test_null_line_text_is_not_rendered(self, assembler):
        page = {
            "lines": [
                {"text": None, "bboxTop": 0, "bboxBottom": 20},
                {"text": "Body line here.", "bboxTop": 100, "bboxBottom": 120},
            ],
            "text": None,
        }
        doc = assembler.reconstruct_from_ocr([page])
        assert doc.nodes == [Paragraph("Body line here.")]

    def test_null_page_is_empty(self, assembler):
        doc = assembler.reconstruct_from_ocr([{"lines": None, "text": None}])
        assert doc.nodes == [ScanWarning(1, WarningReason.EMPTY_PAGE)]

    def test_first_page_numbering(self, assembler):
        doc = assembler.reconstruct_from_ocr([[], []], OcrOptions(first_page=3))
        assert doc.nodes == [
            ScanWarning(3, WarningReason.EMPTY_PAGE),
            PageBreak(),
            ScanWarning(4, WarningReason.EMPTY_PAGE),
        ]

    def test_invalid_first_page(self, assembler):
        with pytest.raises(ConfigurationError):
            assembler.reconstruct_from_ocr([[]], OcrOptions(first_page=0))

    def test_ocr_never_builds_tables(self, assembler):
        page = [OcrLine("Name    Age    City", 0, 20), OcrLine("Alice   30     Paris", 22, 42)]
        doc = assembler.reconstruct_from_ocr([page])
        assert doc.count(NodeType.TABLE) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
