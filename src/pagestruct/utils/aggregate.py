"""
Paragraph and table aggregation.

Provides:
- PageAggregator: turns classified lines into structural nodes, buffering
  consecutive table-row candidates and flushing them as a Table (2+ rows)
  or a Paragraph (a single accidental column split)
- cluster_ocr_paragraphs: vertical-gap clustering of OCR line boxes
"""

import logging
from typing import List, Optional, Sequence

from ..config import ColumnConfig, ParagraphConfig
from .classify import ClassifiedLine, LineKind
from .lines import OcrLine, clean_text
from .nodes import Heading, ListItem, Paragraph, StructuralNode, Table

logger = logging.getLogger(__name__)


# ============================================================================
# Table / Paragraph Aggregation
# ============================================================================

class PageAggregator:
    """Accumulates one page's classified lines into nodes."""

    def __init__(self, config: Optional[ColumnConfig] = None):
        self.config = config or ColumnConfig()
        self.nodes: List[StructuralNode] = []
        self._table_rows: List[List[str]] = []

    @property
    def pending_rows(self) -> int:
        return len(self._table_rows)

    def flush(self):
        """Emit buffered table rows and clear the buffer."""
        if len(self._table_rows) >= self.config.min_table_rows:
            self.nodes.append(Table(rows=[list(r) for r in self._table_rows]))
            logger.debug(f"Emitted table with {len(self._table_rows)} rows")
        else:
            for row in self._table_rows:
                self.nodes.append(Paragraph(text=clean_text(" ".join(row))))
        self._table_rows = []

    def add(self, line: ClassifiedLine):
        if line.kind == LineKind.TABLE_ROW:
            self._table_rows.append([clean_text(c) for c in line.columns])
            return

        self.flush()

        if line.kind == LineKind.HEADING:
            self.nodes.append(Heading(level=line.level, text=line.text))
        elif line.kind == LineKind.LIST_ITEM:
            self.nodes.append(ListItem(kind=line.list_kind, text=line.text))
        else:
            self.nodes.append(Paragraph(text=line.text))

    def finish(self) -> List[StructuralNode]:
        """Flush at end of page and return the page's nodes."""
        self.flush()
        return self.nodes


def aggregate_lines(
    lines: Sequence[ClassifiedLine],
    config: Optional[ColumnConfig] = None
) -> List[StructuralNode]:
    aggregator = PageAggregator(config)
    for line in lines:
        aggregator.add(line)
    return aggregator.finish()


# ============================================================================
# OCR Paragraph Clustering
# ============================================================================

def median_line_height(
    lines: Sequence[OcrLine],
    config: Optional[ParagraphConfig] = None
) -> float:
    """Upper median height of the first few lines."""
    config = config or ParagraphConfig()
    if not lines:
        return config.default_line_height
    heights = sorted(
        l.height or config.fallback_line_height
        for l in lines[:config.sample_lines]
    )
    return heights[len(heights) // 2] or config.default_line_height


def cluster_ocr_paragraphs(
    lines: Sequence[OcrLine],
    config: Optional[ParagraphConfig] = None
) -> List[str]:
    """
    Cluster ordered OCR lines into paragraphs by vertical gap.

    A new paragraph starts whenever the gap between the previous line's
    bottom and the current line's top exceeds gap_factor times the median
    line height.

    Args:
        lines: Normalized OCR lines sorted by top
        config: Clustering configuration

    Returns:
        Paragraph texts in reading order
    """
    config = config or ParagraphConfig()
    if not lines:
        return []

    threshold = median_line_height(lines, config) * config.gap_factor

    paragraphs = []
    buf: List[str] = []
    prev_bottom = lines[0].bbox_bottom

    for line in lines:
        gap = line.bbox_top - prev_bottom
        if buf and gap > threshold:
            paragraphs.append(clean_text(" ".join(buf)))
            buf = []
        buf.append(line.text)
        prev_bottom = line.bbox_bottom

    if buf:
        paragraphs.append(clean_text(" ".join(buf)))

    logger.debug(
        f"Clustered {len(lines)} OCR lines into {len(paragraphs)} paragraphs "
        f"(gap threshold {threshold:.1f})"
    )
    return [p for p in paragraphs if p]
