"""
Tests for DOCX / Markdown / JSON export.
"""

import json
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pagestruct.utils.assembler import Document
from pagestruct.utils.nodes import (
    ListKind, WarningReason,
    Heading, ListItem, Table, Paragraph, PageBreak, ScanWarning,
)


@pytest.fixture
def document():
    return Document(
        nodes=[
            Heading(1, "Title"),
            Paragraph("Body text."),
            ListItem(ListKind.BULLET, "apples"),
            ListItem(ListKind.NUMBERED, "first step"),
            Table([["A", "B", "C"], ["1", "2"]]),
            PageBreak(),
            ScanWarning(2),
        ],
        source_file="sample.pdf",
        source_kind="vector",
        pages_read=2,
        total_pages=2,
    )


class TestMarkdownExporter:
    """Test Markdown rendering."""

    def test_render(self, document):
        """Test each node type maps to its Markdown construct."""
        from pagestruct.utils.export import MarkdownExporter

        text = MarkdownExporter().render(document)

        assert "# Title" in text
        assert "- apples" in text
        assert "1. first step" in text
        assert "| A | B | C |" in text
        assert "| --- | --- | --- |" in text
        # Ragged rows are padded
        assert "| 1 | 2 |  |" in text
        assert "\n---\n" in text
        assert "*(Page 2: little or no selectable text detected)*" in text

    def test_page_breaks_can_be_omitted(self, document):
        """Test page breaks are skipped when disabled."""
        from pagestruct.utils.export import MarkdownExporter

        text = MarkdownExporter(include_page_breaks=False).render(document)
        assert "\n---\n" not in text

    def test_title(self, document):
        """Test optional title line."""
        from pagestruct.utils.export import MarkdownExporter

        text = MarkdownExporter().render(document, title="Converted from: sample.pdf")
        assert text.startswith("**Converted from: sample.pdf**")


class TestDocxExporter:
    """Test DOCX generation with python-docx."""

    def test_build(self, document):
        """Test node types map to word-processor constructs."""
        from pagestruct.utils.export import DocxExporter

        doc = DocxExporter().build(document)
        styles = [p.style.name for p in doc.paragraphs]

        assert doc.paragraphs[0].text == "Title"
        assert styles[0] == "Heading 1"
        assert "List Bullet" in styles
        assert "List Number" in styles

        assert len(doc.tables) == 1
        table = doc.tables[0]
        assert len(table.rows) == 2
        assert len(table.columns) == 3
        assert table.cell(1, 1).text == "2"
        assert table.cell(1, 2).text == ""

    def test_scan_warning_is_italic(self, document):
        """Test scan warnings are written as italic notes."""
        from pagestruct.utils.export import DocxExporter

        doc = DocxExporter().build(document)
        last = doc.paragraphs[-1]
        assert last.text == ScanWarning(2).message
        assert last.runs[0].italic

    def test_export_roundtrip(self, document, tmp_path):
        """Test the saved file reopens with the same content."""
        import docx
        from pagestruct.utils.export import DocxExporter

        path = DocxExporter().export(document, tmp_path / "out.docx", title="Converted from: sample.pdf")
        reopened = docx.Document(str(path))

        assert reopened.paragraphs[0].text == "Converted from: sample.pdf"
        assert reopened.paragraphs[0].runs[0].bold
        assert [p.text for p in reopened.paragraphs if p.style.name == "Heading 1"] == ["Title"]
        assert len(reopened.tables) == 1

    def test_malformed_and_empty_warnings(self):
        """Test warning reasons produce distinct notes."""
        from pagestruct.utils.export import DocxExporter

        document = Document(nodes=[
            ScanWarning(1, WarningReason.MALFORMED_INPUT),
            ScanWarning(2, WarningReason.EMPTY_PAGE),
        ])
        texts = [p.text for p in DocxExporter().build(document).paragraphs]
        assert "(Page 1: page data could not be read)" in texts
        assert "(Page 2: no text recognized)" in texts


class TestDocumentExporter:
    """Test multi-format export."""

    def test_all_formats(self, document, tmp_path):
        """Test 'all' writes JSON, Markdown and DOCX."""
        from pagestruct.utils.export import DocumentExporter

        results = DocumentExporter(tmp_path, "sample").export(document, ["all"])

        assert set(results) == {"json", "markdown", "docx"}
        for path in results.values():
            assert path.exists()

        data = json.loads(results["json"].read_text(encoding="utf-8"))
        assert data["source_file"] == "sample.pdf"
        assert data["nodes"][0] == {"type": "heading", "level": 1, "text": "Title"}
        assert data["nodes"][-1] == {"type": "scan_warning", "page_number": 2, "reason": "low_text"}

    def test_selected_formats(self, document, tmp_path):
        """Test only the requested formats are written."""
        from pagestruct.utils.export import DocumentExporter

        results = DocumentExporter(tmp_path).export(document, ["markdown"])
        assert list(results) == ["markdown"]
        assert (tmp_path / "document.md").exists()
        assert not (tmp_path / "document.docx").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
