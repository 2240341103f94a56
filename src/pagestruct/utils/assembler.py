"""
Document assembler module for structure reconstruction.

Provides:
- Document data model (the ordered node list plus conversion metadata)
- Per-page orchestration for the vector-text and OCR paths
- Page breaks, scan warnings and the low-density signal
- Progress reporting and cooperative cancellation between pages
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..config import PipelineConfig, get_config, JSON_SCHEMA_VERSION
from ..errors import ConversionCancelled, InputShapeError
from .aggregate import aggregate_lines, cluster_ocr_paragraphs
from .classify import FontSizeClassifier, TextShapeClassifier
from .columns import apply_columns
from .guardrails import OcrOptions, VectorOptions, is_likely_scanned, is_low_text_page
from .lines import (
    Line, OcrPage,
    assemble_ocr_lines, assemble_vector_lines, clean_text, coerce_fragment,
    coerce_ocr_line, count_chars, normalize_ocr_text
)
from .nodes import (
    NodeType, PageBreak, ScanWarning, StructuralNode, WarningReason
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Optional[int]], None]


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class PageResult:
    """Nodes produced for one page."""
    page_number: int
    nodes: List[StructuralNode] = field(default_factory=list)
    char_count: int = 0


@dataclass
class Document:
    """Complete reconstructed document."""
    nodes: List[StructuralNode] = field(default_factory=list)
    source_file: str = ""
    source_kind: str = ""  # "vector" or "ocr"
    pages_read: int = 0
    total_pages: Optional[int] = None
    total_chars: int = 0
    likely_scanned: bool = False
    warnings: List[str] = field(default_factory=list)
    schema_version: str = JSON_SCHEMA_VERSION

    @property
    def scan_warnings(self) -> List[ScanWarning]:
        return [n for n in self.nodes if n.node_type == NodeType.SCAN_WARNING]

    def count(self, node_type: NodeType) -> int:
        return sum(1 for n in self.nodes if n.node_type == node_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "source_file": self.source_file,
            "source_kind": self.source_kind,
            "pages_read": self.pages_read,
            "total_pages": self.total_pages,
            "total_chars": self.total_chars,
            "likely_scanned": self.likely_scanned,
            "warnings": list(self.warnings),
            "nodes": [n.to_dict() for n in self.nodes]
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


class CancellationToken:
    """Cooperative cancellation flag, checked between pages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates structure reconstruction.

    Coordinates, per page:
    - Line assembly
    - Column splitting (vector text, when table detection is on)
    - Structural classification
    - Paragraph/table aggregation
    and concatenates pages into one Document.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        self.font_classifier = FontSizeClassifier(self.config.heading)
        self.shape_classifier = TextShapeClassifier(self.config.ocr_heading)

    # ------------------------------------------------------------------
    # Single pages
    # ------------------------------------------------------------------

    def process_vector_page(
        self,
        fragments: Iterable[Any],
        page_number: int = 1,
        try_tables: bool = True
    ) -> PageResult:
        """
        Reconstruct one page of vector text.

        Args:
            fragments: TextFragment objects or dicts for the page
            page_number: Page number (1-indexed)
            try_tables: Split lines into columns and detect tables

        Returns:
            PageResult with the page's nodes and extracted character count

        Raises:
            InputShapeError: If the fragment data is malformed
        """
        items = _as_item_list(fragments, page_number)
        try:
            validated = [coerce_fragment(f) for f in items]
        except InputShapeError as e:
            raise InputShapeError(str(e), page_number=page_number) from e

        chars = count_chars(validated)
        if is_low_text_page(chars, self.config.density):
            logger.info(f"Page {page_number}: only {chars} characters, emitting scan warning")
            return PageResult(page_number, [ScanWarning(page_number, WarningReason.LOW_TEXT)], chars)

        lines = assemble_vector_lines(validated, self.config.lines)
        if try_tables:
            apply_columns(lines, self.config.columns)

        classified = self.font_classifier.classify_page(lines)
        nodes = aggregate_lines(classified, self.config.columns)
        return PageResult(page_number, nodes, chars)

    def process_ocr_page(
        self,
        page: Union[OcrPage, Iterable[Any], Dict[str, Any]],
        page_number: int = 1
    ) -> PageResult:
        """
        Reconstruct one page of OCR output.

        Lines are clustered into paragraphs by vertical gap before headings
        and list items are detected on the paragraph text.

        Raises:
            InputShapeError: If a line box is malformed or inverted
        """
        if isinstance(page, dict):
            page = OcrPage(
                lines=_as_item_list(page.get("lines") or [], page_number),
                text=str(page.get("text") or "")
            )
        elif not isinstance(page, OcrPage):
            page = OcrPage(lines=_as_item_list(page, page_number))

        try:
            boxes = [coerce_ocr_line(l) for l in page.lines]
        except InputShapeError as e:
            raise InputShapeError(str(e), page_number=page_number) from e

        ordered = assemble_ocr_lines(boxes)
        paragraphs = cluster_ocr_paragraphs(ordered, self.config.paragraph)

        if not paragraphs and page.text:
            chunks = normalize_ocr_text(page.text).split("\n\n")
            paragraphs = [clean_text(c) for c in chunks if clean_text(c)]
            if paragraphs:
                logger.debug(f"Page {page_number}: using full-text fallback ({len(paragraphs)} paragraphs)")

        chars = sum(len(p) for p in paragraphs)
        if not paragraphs:
            logger.info(f"Page {page_number}: no text recognized")
            return PageResult(page_number, [ScanWarning(page_number, WarningReason.EMPTY_PAGE)], 0)

        lines = [Line(text=p, y=float(i)) for i, p in enumerate(paragraphs)]
        classified = self.shape_classifier.classify_page(lines)
        nodes = aggregate_lines(classified, self.config.columns)
        return PageResult(page_number, nodes, chars)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def reconstruct_from_vector_text(
        self,
        pages: Iterable[Iterable[Any]],
        options: Optional[VectorOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        source_file: str = ""
    ) -> Document:
        """
        Reconstruct a document from per-page vector-text fragments.

        Options are validated before any page is read. At most
        options.max_pages pages are consumed from `pages`, which may be a
        lazy iterable.
        """
        options = (options or VectorOptions(max_pages=self.config.guardrails.default_max_pages))
        options.validate(self.config.guardrails)

        doc = Document(source_file=source_file, source_kind="vector")
        self._run(
            doc,
            pages,
            lambda page, n: self.process_vector_page(page, n, options.try_tables),
            first_page=1,
            max_pages=options.max_pages,
            progress=progress,
            cancel_token=cancel_token
        )

        if is_likely_scanned(doc.total_chars, doc.pages_read, self.config.density):
            doc.likely_scanned = True
            doc.warnings.append(
                "This PDF looks like it may be scanned (very little selectable text). "
                "For best results, use OCR."
            )
            logger.warning(f"Low text density: {doc.total_chars} chars over {doc.pages_read} page(s)")

        return doc

    def reconstruct_from_ocr(
        self,
        pages: Iterable[Any],
        options: Optional[OcrOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        source_file: str = ""
    ) -> Document:
        """Reconstruct a document from per-page OCR line boxes."""
        options = (options or OcrOptions()).validate(self.config.guardrails)

        doc = Document(source_file=source_file, source_kind="ocr")
        self._run(
            doc,
            pages,
            self.process_ocr_page,
            first_page=options.first_page,
            max_pages=None,
            progress=progress,
            cancel_token=cancel_token
        )
        return doc

    def _run(
        self,
        doc: Document,
        pages: Iterable[Any],
        process_page: Callable[[Any, int], PageResult],
        first_page: int,
        max_pages: Optional[int],
        progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken]
    ):
        """Process pages sequentially, appending each page's nodes to doc."""
        try:
            total = len(pages)
        except TypeError:
            total = None
        doc.total_pages = total
        to_read = min(total, max_pages) if (total is not None and max_pages) else total

        source = iter(islice(pages, max_pages))
        idx = 0
        while True:
            # Checked before advancing the source
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"Conversion cancelled after {idx} page(s)")
                raise ConversionCancelled(idx)
            try:
                page = next(source)
            except StopIteration:
                break

            page_number = first_page + idx
            logger.info(f"Processing page {page_number}" + (f" of {to_read}" if to_read else ""))

            if idx > 0:
                doc.nodes.append(PageBreak())

            try:
                result = process_page(page, page_number)
            except InputShapeError as e:
                logger.warning(f"Skipping page {page_number}: {e}")
                doc.warnings.append(f"Page {page_number}: {e}")
                result = PageResult(
                    page_number,
                    [ScanWarning(page_number, WarningReason.MALFORMED_INPUT)]
                )

            doc.nodes.extend(result.nodes)
            doc.total_chars += result.char_count
            doc.pages_read += 1

            if progress is not None:
                progress(idx + 1, to_read)
            idx += 1


def _as_item_list(items: Any, page_number: int) -> List[Any]:
    if isinstance(items, (str, bytes, dict)):
        raise InputShapeError(
            f"Expected a list of page items, got {type(items).__name__}",
            page_number=page_number
        )
    try:
        return list(items)
    except TypeError:
        raise InputShapeError(
            f"Expected a list of page items, got {type(items).__name__}",
            page_number=page_number
        )


# ============================================================================
# Entry Points
# ============================================================================

def reconstruct_from_vector_text(
    pages: Iterable[Iterable[Any]],
    options: Optional[VectorOptions] = None,
    config: Optional[PipelineConfig] = None,
    progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
    source_file: str = ""
) -> Document:
    """Reconstruct a Document from vector-text pages."""
    return DocumentAssembler(config).reconstruct_from_vector_text(
        pages, options, progress=progress, cancel_token=cancel_token, source_file=source_file
    )


def reconstruct_from_ocr(
    pages: Iterable[Any],
    options: Optional[OcrOptions] = None,
    config: Optional[PipelineConfig] = None,
    progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
    source_file: str = ""
) -> Document:
    """Reconstruct a Document from OCR pages."""
    return DocumentAssembler(config).reconstruct_from_ocr(
        pages, options, progress=progress, cancel_token=cancel_token, source_file=source_file
    )
