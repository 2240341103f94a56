"""
Configuration and constants for the structure reconstruction engine.

This module provides:
- Global logging setup
- Tunable thresholds for every reconstruction stage
- Guardrail limits (page counts, OCR DPI range, quality presets)
- Environment overrides via get_config()
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
import logging

from .errors import ConfigurationError

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pagestruct")


# ============================================================================
# Reconstruction Configuration
# ============================================================================

@dataclass
class LineConfig:
    """Line assembly configuration."""
    # Max vertical distance (page units) for a fragment to join a line
    y_tolerance: float = 2.5


@dataclass
class ColumnConfig:
    """Column splitting / table candidacy configuration."""
    # Horizontal gap that starts a new column
    column_gap: float = 40.0
    min_columns: int = 2
    max_columns: int = 6
    # A table needs at least this many consecutive candidate rows
    min_table_rows: int = 2


@dataclass
class HeadingConfig:
    """Font-size heading detection (vector text)."""
    level1_ratio: float = 1.8
    level2_ratio: float = 1.45
    level3_ratio: float = 1.25
    max_length: int = 80


@dataclass
class OcrHeadingConfig:
    """Text-shape heading detection (OCR text)."""
    max_length: int = 60
    uppercase_ratio: float = 0.75
    # Lines with fewer letters are never "mostly uppercase"
    min_letters: int = 6
    level: int = 2


@dataclass
class ParagraphConfig:
    """OCR paragraph clustering configuration."""
    gap_factor: float = 0.9
    sample_lines: int = 10
    # Used for boxes with zero height
    fallback_line_height: float = 10.0
    # Used when the median itself comes out as zero
    default_line_height: float = 12.0


@dataclass
class DensityConfig:
    """Low text density / scanned page detection."""
    # Pages with fewer extracted characters get a scan warning
    min_page_chars: int = 15
    # Documents averaging fewer characters per page are likely scanned
    min_avg_chars: float = 60.0


@dataclass
class GuardrailConfig:
    """Page and rendering limits."""
    default_max_pages: int = 50
    max_pages_limit: int = 200
    ocr_max_all_pages: int = 10
    ocr_max_range_pages: int = 20
    min_dpi: int = 120
    max_dpi: int = 250
    default_dpi: int = 200
    quality_presets: Dict[str, int] = field(default_factory=lambda: {
        "draft": 120,
        "standard": 200,
        "high": 250,
    })


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    lines: LineConfig = field(default_factory=LineConfig)
    columns: ColumnConfig = field(default_factory=ColumnConfig)
    heading: HeadingConfig = field(default_factory=HeadingConfig)
    ocr_heading: OcrHeadingConfig = field(default_factory=OcrHeadingConfig)
    paragraph: ParagraphConfig = field(default_factory=ParagraphConfig)
    density: DensityConfig = field(default_factory=DensityConfig)
    guardrails: GuardrailConfig = field(default_factory=GuardrailConfig)

    # Global settings
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def _env_number(name: str, cast: Callable[[str], float]) -> Optional[float]:
    """Parse a numeric environment override, None when unset."""
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("PAGESTRUCT_DEBUG", "").lower() == "true":
        config.debug_mode = True

    max_pages = _env_number("PAGESTRUCT_MAX_PAGES", int)
    if max_pages is not None:
        config.guardrails.default_max_pages = max_pages

    dpi = _env_number("PAGESTRUCT_DPI", int)
    if dpi is not None:
        config.guardrails.default_dpi = dpi

    column_gap = _env_number("PAGESTRUCT_COLUMN_GAP", float)
    if column_gap is not None:
        config.columns.column_gap = column_gap

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
