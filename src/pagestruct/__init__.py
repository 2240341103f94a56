"""
Document Structure Reconstruction
=================================

Converts pages of positioned text (PDF vector text or OCR line boxes) into a
page-ordered document model of headings, paragraphs, lists and simple tables,
ready to be written out as an editable DOCX.

Main components:
- Line assembly (y grouping, OCR line normalization)
- Column splitting for table rows
- Structural classification (font-size and text-shape heuristics)
- Paragraph / table aggregation
- Document assembly with page breaks and scan warnings
- DOCX / Markdown export
"""

__version__ = "1.0.0"
__author__ = "Document Reconstruction Team"

from .errors import PageStructError, InputShapeError, ConfigurationError, ConversionCancelled
from .utils.assembler import (
    Document, DocumentAssembler, CancellationToken,
    reconstruct_from_vector_text, reconstruct_from_ocr,
)
from .utils.guardrails import VectorOptions, OcrOptions
