"""
Structural classification of lines.

Provides:
- List marker detection and stripping (shared by both input paths)
- FontSizeClassifier: headings from font-size ratios (vector text)
- TextShapeClassifier: headings from all-caps / trailing colon (OCR text)

Both classifiers emit ClassifiedLine objects so the aggregator never needs
to know which input path produced a line.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..config import HeadingConfig, OcrHeadingConfig
from .lines import Line, clean_text, weighted_median
from .nodes import ListKind

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

class LineKind(Enum):
    """Classification outcome for a single line."""
    HEADING = "heading"
    LIST_ITEM = "list_item"
    TABLE_ROW = "table_row"
    PARAGRAPH = "paragraph"


@dataclass
class ClassifiedLine:
    """A line with its structural classification."""
    kind: LineKind
    text: str
    level: int = 0
    list_kind: Optional[ListKind] = None
    columns: List[str] = field(default_factory=list)


# ============================================================================
# List Detection
# ============================================================================

_BULLET = r'•|–|—|·|-|\*'
_NUMBERED = r'\d+[.)\-]|[a-zA-Z][.)]|[ivxlcdmIVXLCDM]+[.)]'

BULLET_RE = re.compile(rf'^({_BULLET})\s+')
NUMBERED_RE = re.compile(rf'^({_NUMBERED})\s+')
LIST_MARKER_RE = re.compile(rf'^({_BULLET}|{_NUMBERED})\s+')


def infer_list_kind(text: str) -> Optional[ListKind]:
    if BULLET_RE.match(text):
        return ListKind.BULLET
    if NUMBERED_RE.match(text):
        return ListKind.NUMBERED
    return None


def strip_list_marker(text: str) -> str:
    return LIST_MARKER_RE.sub('', text, count=1)


def detect_list_item(text: str) -> Optional[Tuple[ListKind, str]]:
    """Return (kind, text without marker) for list lines, else None."""
    kind = infer_list_kind(text)
    if kind is None:
        return None
    stripped = clean_text(strip_list_marker(text))
    if not stripped:
        return None
    return kind, stripped


# ============================================================================
# Classifier Strategy
# ============================================================================

class LineClassifier:
    """
    Base line classifier.

    Subclasses implement heading detection for their input path; list
    detection and the paragraph default are shared.
    """

    name = "base"

    def page_baseline(self, lines: Sequence[Line]) -> float:
        """Per-page reference value passed to classify()."""
        return 0.0

    def classify(self, line: Line, baseline: float = 0.0) -> ClassifiedLine:
        text = clean_text(line.text)

        listed = detect_list_item(text)
        if listed:
            return ClassifiedLine(LineKind.LIST_ITEM, listed[1], list_kind=listed[0])

        heading = self.detect_heading(line, text, baseline)
        if heading:
            return heading

        if line.columns:
            return ClassifiedLine(LineKind.TABLE_ROW, text, columns=list(line.columns))

        return ClassifiedLine(LineKind.PARAGRAPH, text)

    def detect_heading(self, line: Line, text: str, baseline: float) -> Optional[ClassifiedLine]:
        return None

    def classify_page(self, lines: Sequence[Line]) -> List[ClassifiedLine]:
        baseline = self.page_baseline(lines)
        classified = [self.classify(line, baseline) for line in lines]
        logger.debug(
            f"{self.name}: classified {len(classified)} lines (baseline={baseline:.2f})"
        )
        return classified


class FontSizeClassifier(LineClassifier):
    """Heading detection from font-size ratios to the page's body size."""

    name = "font_size"

    def __init__(self, config: Optional[HeadingConfig] = None):
        self.config = config or HeadingConfig()

    def page_baseline(self, lines: Sequence[Line]) -> float:
        """
        Character-weighted median of line font sizes.

        Weighting by text length makes the baseline the dominant body size
        rather than the size of the most numerous (often short) lines.
        """
        sized = [l for l in lines if l.font_size > 0]
        return weighted_median(
            [l.font_size for l in sized],
            [len(l.text) for l in sized]
        )

    def heading_level(self, font_size: float, baseline: float, text: str) -> int:
        """0 when the line is not a heading."""
        if baseline <= 0 or len(text) > self.config.max_length:
            return 0
        if font_size >= baseline * self.config.level1_ratio:
            return 1
        if font_size >= baseline * self.config.level2_ratio:
            return 2
        if font_size >= baseline * self.config.level3_ratio:
            return 3
        return 0

    def detect_heading(self, line: Line, text: str, baseline: float) -> Optional[ClassifiedLine]:
        level = self.heading_level(line.font_size, baseline, text)
        if level:
            return ClassifiedLine(LineKind.HEADING, text, level=level)
        return None


class TextShapeClassifier(LineClassifier):
    """
    Heading detection from text shape, for OCR output.

    OCR line boxes carry no usable glyph size, so a heading is a short line
    that is mostly uppercase or ends in a colon. Never yields table rows.
    """

    name = "text_shape"

    def __init__(self, config: Optional[OcrHeadingConfig] = None):
        self.config = config or OcrHeadingConfig()

    def is_mostly_uppercase(self, text: str) -> bool:
        letters = [c for c in text if c.isalpha()]
        if len(letters) < self.config.min_letters:
            return False
        upper = sum(1 for c in letters if c.isupper())
        return upper / len(letters) >= self.config.uppercase_ratio

    def looks_like_heading(self, text: str) -> bool:
        if not text or len(text) > self.config.max_length:
            return False
        return self.is_mostly_uppercase(text) or bool(re.search(r':\s*$', text))

    def detect_heading(self, line: Line, text: str, baseline: float) -> Optional[ClassifiedLine]:
        if not self.looks_like_heading(text):
            return None
        title = clean_text(re.sub(r':\s*$', '', text))
        if not title:
            return None
        return ClassifiedLine(LineKind.HEADING, title, level=self.config.level)

    def classify(self, line: Line, baseline: float = 0.0) -> ClassifiedLine:
        result = super().classify(line, baseline)
        if result.kind == LineKind.TABLE_ROW:
            return ClassifiedLine(LineKind.PARAGRAPH, result.text)
        return result
