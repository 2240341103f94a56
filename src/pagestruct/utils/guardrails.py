"""
Quality and guardrail policy.

Provides:
- Conversion option classes validated before any page is processed
- OCR page selection (first page, range, all) with page limits
- DPI / quality preset resolution and the OCR render scale
- Low text density thresholds
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..config import DensityConfig, GuardrailConfig
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# PDF user space is 72 units per inch
PDF_POINTS_PER_INCH = 72.0


# ============================================================================
# Options
# ============================================================================

@dataclass
class VectorOptions:
    """Options for reconstruction from vector text."""
    try_tables: bool = True
    max_pages: int = 50

    def validate(self, config: Optional[GuardrailConfig] = None) -> 'VectorOptions':
        validate_max_pages(self.max_pages, config)
        return self


@dataclass
class OcrOptions:
    """Options for reconstruction from OCR output."""
    # Page number of the first page handed to the engine
    first_page: int = 1

    def validate(self, config: Optional[GuardrailConfig] = None) -> 'OcrOptions':
        if isinstance(self.first_page, bool) or not isinstance(self.first_page, int) or self.first_page < 1:
            raise ConfigurationError(f"first_page must be a positive integer, got {self.first_page!r}")
        return self


class PageMode(Enum):
    """OCR page selection modes."""
    FIRST = "first"
    RANGE = "range"
    ALL = "all"


@dataclass
class OcrRenderPlan:
    """Which pages to render for OCR and at what resolution."""
    first_page: int
    last_page: int
    dpi: int

    @property
    def page_count(self) -> int:
        return self.last_page - self.first_page + 1

    @property
    def scale(self) -> float:
        return render_scale(self.dpi)


# ============================================================================
# Validation
# ============================================================================

def validate_max_pages(max_pages: int, config: Optional[GuardrailConfig] = None) -> int:
    config = config or GuardrailConfig()
    if isinstance(max_pages, bool) or not isinstance(max_pages, int):
        raise ConfigurationError(f"max_pages must be an integer, got {max_pages!r}")
    if max_pages < 1 or max_pages > config.max_pages_limit:
        raise ConfigurationError(
            f"Max pages must be between 1 and {config.max_pages_limit}."
        )
    return max_pages


def resolve_dpi(
    dpi: Optional[int] = None,
    quality: Optional[str] = None,
    config: Optional[GuardrailConfig] = None
) -> int:
    """
    Resolve the OCR rendering DPI.

    An explicit dpi wins over a quality preset; with neither, the configured
    default is used. The result must lie within [min_dpi, max_dpi].
    """
    config = config or GuardrailConfig()
    if dpi is None:
        if quality is not None:
            if quality not in config.quality_presets:
                raise ConfigurationError(
                    f"Unknown quality preset {quality!r}. "
                    f"Choose from: {', '.join(sorted(config.quality_presets))}"
                )
            dpi = config.quality_presets[quality]
        else:
            dpi = config.default_dpi

    if isinstance(dpi, bool) or not isinstance(dpi, int):
        raise ConfigurationError(f"DPI must be an integer, got {dpi!r}")
    if dpi < config.min_dpi or dpi > config.max_dpi:
        raise ConfigurationError(f"DPI must be between {config.min_dpi} and {config.max_dpi}.")
    return dpi


def render_scale(dpi: int) -> float:
    """Scale factor applied to a PDF page viewport before OCR."""
    return dpi / PDF_POINTS_PER_INCH


def _clamp(n: int, low: int, high: int) -> int:
    return max(low, min(high, n))


def resolve_page_range(
    mode: Union[PageMode, str],
    total_pages: int,
    start: Optional[int] = None,
    end: Optional[int] = None,
    config: Optional[GuardrailConfig] = None
) -> tuple:
    """
    Resolve the 1-indexed inclusive page range for an OCR run.

    Range bounds are clamped to the document and swapped when reversed.

    Raises:
        ConfigurationError: unknown mode, empty document, or a selection
            larger than the OCR page limits
    """
    config = config or GuardrailConfig()
    try:
        mode = PageMode(mode)
    except ValueError:
        raise ConfigurationError(f"Unknown page mode: {mode!r}")

    if total_pages < 1:
        raise ConfigurationError("Document has no pages")

    if mode == PageMode.FIRST:
        return 1, 1

    if mode == PageMode.ALL:
        if total_pages > config.ocr_max_all_pages:
            raise ConfigurationError(
                f"\"All pages\" OCR is limited to {config.ocr_max_all_pages} pages. "
                "Use a page range or split the PDF first."
            )
        return 1, total_pages

    s = _clamp(start or 1, 1, total_pages)
    e = _clamp(end or 1, 1, total_pages)
    if e < s:
        s, e = e, s

    count = e - s + 1
    if count > config.ocr_max_range_pages:
        raise ConfigurationError(
            f"OCR range is limited to {config.ocr_max_range_pages} pages. "
            f"You selected {count}. Split first or reduce the range."
        )
    return s, e


def plan_ocr_run(
    total_pages: int,
    mode: Union[PageMode, str] = PageMode.FIRST,
    start: Optional[int] = None,
    end: Optional[int] = None,
    dpi: Optional[int] = None,
    quality: Optional[str] = None,
    config: Optional[GuardrailConfig] = None
) -> OcrRenderPlan:
    """Validate every OCR option up front and return the render plan."""
    resolved_dpi = resolve_dpi(dpi, quality, config)
    first, last = resolve_page_range(mode, total_pages, start, end, config)
    plan = OcrRenderPlan(first_page=first, last_page=last, dpi=resolved_dpi)
    logger.info(
        f"OCR plan: pages {first}-{last} at {resolved_dpi} DPI (scale {plan.scale:.2f})"
    )
    return plan


# ============================================================================
# Text Density
# ============================================================================

def is_low_text_page(char_count: int, config: Optional[DensityConfig] = None) -> bool:
    config = config or DensityConfig()
    return char_count < config.min_page_chars


def is_likely_scanned(
    total_chars: int,
    pages_read: int,
    config: Optional[DensityConfig] = None
) -> bool:
    """True when the average characters per page falls below the floor."""
    config = config or DensityConfig()
    if pages_read <= 0:
        return False
    return total_chars / pages_read < config.min_avg_chars
