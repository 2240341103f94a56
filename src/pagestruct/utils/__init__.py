"""
Utility modules for the structure reconstruction pipeline.
"""

from .lines import TextFragment, OcrLine, OcrPage, Line, assemble_vector_lines, assemble_ocr_lines
from .columns import split_into_columns, is_table_candidate
from .classify import LineClassifier, FontSizeClassifier, TextShapeClassifier, ClassifiedLine, LineKind
from .aggregate import PageAggregator, cluster_ocr_paragraphs
from .nodes import (
    NodeType, ListKind, WarningReason, StructuralNode,
    Heading, ListItem, Table, Paragraph, PageBreak, ScanWarning,
)
from .guardrails import VectorOptions, OcrOptions, PageMode, plan_ocr_run, resolve_dpi
from .assembler import (
    Document, DocumentAssembler, CancellationToken,
    reconstruct_from_vector_text, reconstruct_from_ocr,
)
from .export import MarkdownExporter, DocxExporter, DocumentExporter

__all__ = [
    # Lines
    "TextFragment", "OcrLine", "OcrPage", "Line", "assemble_vector_lines", "assemble_ocr_lines",
    # Columns
    "split_into_columns", "is_table_candidate",
    # Classification
    "LineClassifier", "FontSizeClassifier", "TextShapeClassifier", "ClassifiedLine", "LineKind",
    # Aggregation
    "PageAggregator", "cluster_ocr_paragraphs",
    # Nodes
    "NodeType", "ListKind", "WarningReason", "StructuralNode",
    "Heading", "ListItem", "Table", "Paragraph", "PageBreak", "ScanWarning",
    # Guardrails
    "VectorOptions", "OcrOptions", "PageMode", "plan_ocr_run", "resolve_dpi",
    # Assembly
    "Document", "DocumentAssembler", "CancellationToken",
    "reconstruct_from_vector_text", "reconstruct_from_ocr",
    # Export
    "MarkdownExporter", "DocxExporter", "DocumentExporter",
]
