"""
Export module for reconstructed documents.

Provides:
- DOCX export (using python-docx)
- Markdown export
- Multi-format export (json, markdown, docx)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .nodes import NodeType, StructuralNode

logger = logging.getLogger(__name__)


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter:
    """Export document to Markdown format."""

    def __init__(self, include_page_breaks: bool = True):
        self.include_page_breaks = include_page_breaks

    def export(
        self,
        document: Any,
        output_path: Union[str, Path],
        title: Optional[str] = None
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(document, title), encoding='utf-8')
        logger.info(f"Exported Markdown to: {output_path}")
        return output_path

    def render(self, document: Any, title: Optional[str] = None) -> str:
        lines = []
        if title:
            lines.append(f"**{title}**")
            lines.append("")

        for node in document.nodes:
            block = self._node_to_markdown(node)
            if block is None:
                continue
            lines.append(block)
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def _node_to_markdown(self, node: StructuralNode) -> Optional[str]:
        if node.node_type == NodeType.HEADING:
            return f"{'#' * node.level} {node.text}"
        if node.node_type == NodeType.LIST_ITEM:
            marker = "-" if node.kind.value == "bullet" else "1."
            return f"{marker} {node.text}"
        if node.node_type == NodeType.TABLE:
            return self._table_to_markdown(node.rows)
        if node.node_type == NodeType.PAGE_BREAK:
            return "---" if self.include_page_breaks else None
        if node.node_type == NodeType.SCAN_WARNING:
            return f"*{node.message}*"
        return node.text

    def _table_to_markdown(self, rows: List[List[str]]) -> str:
        num_cols = max(len(r) for r in rows)
        grid = [list(r) + [""] * (num_cols - len(r)) for r in rows]
        out = ["| " + " | ".join(grid[0]) + " |"]
        out.append("| " + " | ".join("---" for _ in range(num_cols)) + " |")
        for row in grid[1:]:
            out.append("| " + " | ".join(row) + " |")
        return "\n".join(out)


# ============================================================================
# DOCX Exporter
# ============================================================================

class DocxExporter:
    """Export document to DOCX format using python-docx."""

    def __init__(self, template_path: Optional[str] = None):
        self.template_path = template_path

    def export(
        self,
        document: Any,
        output_path: Union[str, Path],
        title: Optional[str] = None
    ) -> Path:
        """
        Export document to DOCX file.

        Args:
            document: Reconstructed Document
            output_path: Output file path
            title: Optional bold line written before the content

        Returns:
            Path to the generated DOCX file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        doc = self.build(document, title)
        doc.save(str(output_path))
        logger.info(f"Exported DOCX to: {output_path}")

        return output_path

    def build(self, document: Any, title: Optional[str] = None):
        """Build a python-docx Document from the node list."""
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        if title:
            doc.add_paragraph().add_run(title).bold = True

        for node in document.nodes:
            self._add_node(doc, node)
        return doc

    def _add_node(self, doc: Any, node: StructuralNode):
        if node.node_type == NodeType.HEADING:
            doc.add_heading(node.text, level=node.level)

        elif node.node_type == NodeType.LIST_ITEM:
            style = "List Bullet" if node.kind.value == "bullet" else "List Number"
            doc.add_paragraph(node.text, style=style)

        elif node.node_type == NodeType.TABLE:
            self._add_table(doc, node.rows)

        elif node.node_type == NodeType.PAGE_BREAK:
            doc.add_page_break()

        elif node.node_type == NodeType.SCAN_WARNING:
            from docx.enum.text import WD_ALIGN_PARAGRAPH

            p = doc.add_paragraph()
            p.add_run(node.message).italic = True
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER

        else:
            doc.add_paragraph(node.text)

    def _add_table(self, doc: Any, rows: List[List[str]]):
        """Add a table to the DOCX document."""
        if not rows:
            return

        num_cols = max(len(r) for r in rows)
        if num_cols == 0:
            return

        table = doc.add_table(rows=len(rows), cols=num_cols)
        table.style = 'Table Grid'

        for i, row_data in enumerate(rows):
            row = table.rows[i]
            for j, cell_text in enumerate(row_data):
                row.cells[j].text = str(cell_text)

        # Spacing after table
        doc.add_paragraph("")


# ============================================================================
# Multi-Format Exporter
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document"
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name

        self.markdown_exporter = MarkdownExporter()
        self.docx_exporter = DocxExporter()

    def export(
        self,
        document: Any,
        formats: Optional[List[str]] = None,
        title: Optional[str] = None
    ) -> Dict[str, Path]:
        """
        Export document to multiple formats.

        Args:
            document: Reconstructed Document
            formats: Any of 'json', 'markdown', 'docx', 'all'
            title: Optional heading line for markdown/docx output

        Returns:
            Dictionary mapping format to output path
        """
        from .io import save_json

        if formats is None:
            formats = ["json", "docx"]
        if "all" in formats:
            formats = ["json", "markdown", "docx"]

        self.output_dir.mkdir(parents=True, exist_ok=True)
        results = {}

        if "json" in formats:
            results["json"] = save_json(document.to_dict(), self.output_dir / f"{self.base_name}.json")

        if "markdown" in formats:
            path = self.output_dir / f"{self.base_name}.md"
            results["markdown"] = self.markdown_exporter.export(document, path, title=title)

        if "docx" in formats:
            path = self.output_dir / f"{self.base_name}.docx"
            results["docx"] = self.docx_exporter.export(document, path, title=title)

        return results
