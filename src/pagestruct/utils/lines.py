"""
Line assembly module for structure reconstruction.

Provides:
- Input data classes (TextFragment, OcrLine, OcrPage)
- The engine-internal Line
- Text normalization helpers
- Vector-text line grouping (y tolerance, reading order)
- OCR line box normalization and ordering
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Sequence, Union

import numpy as np

from ..config import LineConfig
from ..errors import InputShapeError

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class TextFragment:
    """A positioned run of text from a PDF content stream."""
    text: str
    x: float
    y: float
    font_size: float = 0.0
    width: Optional[float] = None

    @property
    def right(self) -> float:
        return self.x + (self.width or 0.0)

    @classmethod
    def from_transform(
        cls,
        text: str,
        transform: Optional[Sequence[float]],
        width: Optional[float] = None,
        height: Optional[float] = None
    ) -> 'TextFragment':
        """
        Build a fragment from a text-rendering transform [a, b, c, d, e, f].

        The vertical scale |d| stands in for the font size; e and f are the
        origin. A short or zero transform falls back to the item height.
        """
        try:
            t = list(transform or [])
        except TypeError:
            raise InputShapeError(f"Transform must be a list of numbers, got {transform!r}")
        size = abs(_require_number(t[3], "transform[3]")) if len(t) >= 4 else 0.0
        if not size:
            size = height or 0.0
        if len(t) >= 6:
            x = _require_number(t[4], "transform[4]")
            y = _require_number(t[5], "transform[5]")
        else:
            x, y = 0.0, 0.0
        return cls(text=text, x=x, y=y, font_size=size, width=width)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextFragment':
        if "transform" in data and ("x" not in data or "y" not in data):
            return cls.from_transform(
                _text_of(data, "text", "str"),
                data["transform"],
                width=data.get("width"),
                height=data.get("height")
            )
        try:
            x, y = data["x"], data["y"]
        except KeyError as e:
            raise InputShapeError(f"Fragment is missing coordinate {e}")
        size = data.get("fontSizeProxy", data.get("font_size", 0.0))
        return cls(
            text=_text_of(data, "text"),
            x=x,
            y=y,
            font_size=size or 0.0,
            width=data.get("width")
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "font_size": self.font_size,
            "width": self.width
        }


@dataclass
class OcrLine:
    """A single line box returned by an OCR engine."""
    text: str
    bbox_top: float
    bbox_bottom: float

    @property
    def height(self) -> float:
        return abs(self.bbox_bottom - self.bbox_top)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OcrLine':
        bbox = data.get("bbox")
        if isinstance(bbox, dict):
            # tesseract.js style {x0, y0, x1, y1}
            top, bottom = bbox.get("y0"), bbox.get("y1")
        else:
            top = data.get("bboxTop", data.get("bbox_top"))
            bottom = data.get("bboxBottom", data.get("bbox_bottom"))
        if top is None or bottom is None:
            raise InputShapeError("OCR line is missing its bounding box")
        return cls(text=_text_of(data, "text"), bbox_top=top, bbox_bottom=bottom)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "bbox_top": self.bbox_top,
            "bbox_bottom": self.bbox_bottom
        }


@dataclass
class OcrPage:
    """OCR output for one page: line boxes plus the engine's full text."""
    lines: List[OcrLine] = field(default_factory=list)
    text: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OcrPage':
        return cls(
            lines=[coerce_ocr_line(l) for l in data.get("lines", [])],
            text=_text_of(data, "text")
        )


@dataclass
class Line:
    """A line of text in reading order, shared by both input paths."""
    text: str
    y: float
    font_size: float = 0.0
    columns: List[str] = field(default_factory=list)
    # Constituent fragments, x-sorted (vector path only)
    fragments: List[TextFragment] = field(default_factory=list, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "y": self.y,
            "font_size": self.font_size,
            "columns": list(self.columns)
        }


FragmentLike = Union[TextFragment, Dict[str, Any]]
OcrLineLike = Union[OcrLine, Dict[str, Any]]


# ============================================================================
# Text Helpers
# ============================================================================

_WHITESPACE = re.compile(r'\s+')


def clean_text(text: str) -> str:
    """Collapse all whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(' ', text or '').strip()


def normalize_ocr_text(text: str) -> str:
    """
    Normalize raw OCR text.

    Drops carriage returns, trims trailing spaces before newlines and keeps
    at most one blank line between chunks.
    """
    text = (text or '').replace('\r', '')
    text = re.sub(r'[ \t]+\n', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


def median(values: Sequence[float]) -> float:
    """Median of a sequence, 0.0 when empty."""
    if not len(values):
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def weighted_median(values: Sequence[float], weights: Sequence[float]) -> float:
    """
    Weighted median: the smallest value whose cumulative weight reaches half
    of the total weight. 0.0 when there is no positive weight.
    """
    if not len(values):
        return 0.0
    vals = np.asarray(values, dtype=float)
    wts = np.asarray(weights, dtype=float)
    total = wts.sum()
    if total <= 0:
        return 0.0
    order = np.argsort(vals, kind="stable")
    cumulative = np.cumsum(wts[order])
    idx = int(np.searchsorted(cumulative, total / 2.0))
    return float(vals[order][min(idx, len(vals) - 1)])


def _text_of(data: Dict[str, Any], *keys: str) -> str:
    """First non-null text value among keys; JSON null reads as empty."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return str(value)
    return ""


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputShapeError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InputShapeError(f"{name} must be finite, got {value!r}")
    return float(value)


def coerce_fragment(item: FragmentLike) -> TextFragment:
    """Validate a fragment (or dict) and return a TextFragment."""
    if isinstance(item, dict):
        item = TextFragment.from_dict(item)
    elif not isinstance(item, TextFragment):
        raise InputShapeError(f"Unsupported fragment type: {type(item).__name__}")

    x = _require_number(item.x, "x")
    y = _require_number(item.y, "y")
    size = item.font_size
    size = abs(_require_number(size, "font_size")) if size is not None else 0.0
    width = item.width
    if width is not None:
        width = max(0.0, _require_number(width, "width"))
    return TextFragment(text=str(item.text or ""), x=x, y=y, font_size=size, width=width)


def coerce_ocr_line(item: OcrLineLike) -> OcrLine:
    """Validate an OCR line box (or dict) and return an OcrLine."""
    if isinstance(item, dict):
        item = OcrLine.from_dict(item)
    elif not isinstance(item, OcrLine):
        raise InputShapeError(f"Unsupported OCR line type: {type(item).__name__}")

    top = _require_number(item.bbox_top, "bbox_top")
    bottom = _require_number(item.bbox_bottom, "bbox_bottom")
    if bottom < top:
        raise InputShapeError(
            f"Inverted OCR bounding box (top={top}, bottom={bottom}) for line {item.text!r}"
        )
    return OcrLine(text=str(item.text or ""), bbox_top=top, bbox_bottom=bottom)


def count_chars(fragments: Sequence[TextFragment]) -> int:
    """Number of extracted characters after whitespace normalization."""
    return sum(len(clean_text(f.text)) for f in fragments)


# ============================================================================
# Line Assembly
# ============================================================================

def assemble_vector_lines(
    fragments: Sequence[TextFragment],
    config: Optional[LineConfig] = None
) -> List[Line]:
    """
    Group vector-text fragments into lines in reading order.

    Fragments are sorted top-to-bottom (descending y, PDF user space) then
    left-to-right. A fragment joins the current line when its y is within
    the tolerance of the line's first fragment.

    Args:
        fragments: Validated fragments of one page
        config: Line configuration (tolerance)

    Returns:
        Lines with non-empty normalized text; columns left empty
    """
    config = config or LineConfig()

    positioned = [f for f in fragments if clean_text(f.text)]
    positioned.sort(key=lambda f: (-f.y, f.x))

    groups: List[List[TextFragment]] = []
    for frag in positioned:
        if not groups or abs(groups[-1][0].y - frag.y) > config.y_tolerance:
            groups.append([frag])
        else:
            groups[-1].append(frag)

    lines = []
    for group in groups:
        ordered = sorted(group, key=lambda f: f.x)
        text = clean_text(" ".join(clean_text(f.text) for f in ordered))
        if not text:
            continue
        sizes = [f.font_size for f in ordered if f.font_size > 0]
        lines.append(Line(
            text=text,
            y=group[0].y,
            font_size=median(sizes),
            fragments=ordered
        ))

    logger.debug(f"Assembled {len(lines)} lines from {len(fragments)} fragments")
    return lines


def assemble_ocr_lines(boxes: Sequence[OcrLine]) -> List[OcrLine]:
    """
    Normalize OCR line boxes and order them top to bottom.

    Each box becomes a single whitespace-normalized line; empty boxes are
    dropped. The sort is stable so boxes sharing a top keep engine order.
    """
    normalized = []
    for box in boxes:
        text = clean_text(normalize_ocr_text(box.text))
        if text:
            normalized.append(OcrLine(text=text, bbox_top=box.bbox_top, bbox_bottom=box.bbox_bottom))
    normalized.sort(key=lambda b: b.bbox_top)
    return normalized
