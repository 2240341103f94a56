"""
Column splitting for table-row detection (vector text only).

A line is split wherever the horizontal gap between consecutive fragments
exceeds a threshold. Lines yielding 2-6 columns are table-row candidates.
"""

import logging
from typing import List, Optional, Sequence

from ..config import ColumnConfig
from .lines import Line, TextFragment, clean_text

logger = logging.getLogger(__name__)


def split_into_columns(
    fragments: Sequence[TextFragment],
    gap: float = 40.0
) -> List[str]:
    """
    Split x-sorted fragments into column texts.

    The gap is measured from the previous fragment's right edge (its x when
    no width is known) to the current fragment's left edge.
    """
    tokens = [f for f in sorted(fragments, key=lambda f: f.x) if clean_text(f.text)]
    if not tokens:
        return []

    columns = []
    buf = [clean_text(tokens[0].text)]
    prev_right = tokens[0].right

    for token in tokens[1:]:
        if token.x - prev_right > gap:
            columns.append(clean_text(" ".join(buf)))
            buf = [clean_text(token.text)]
            prev_right = token.right
        else:
            buf.append(clean_text(token.text))
            prev_right = max(prev_right, token.right)

    columns.append(clean_text(" ".join(buf)))
    return [c for c in columns if c]


def is_table_candidate(columns: Sequence[str], config: Optional[ColumnConfig] = None) -> bool:
    """More than max_columns is almost always mis-segmented prose."""
    config = config or ColumnConfig()
    return config.min_columns <= len(columns) <= config.max_columns


def apply_columns(lines: List[Line], config: Optional[ColumnConfig] = None) -> List[Line]:
    """Populate `columns` on lines that split into a table-row candidate."""
    config = config or ColumnConfig()
    for line in lines:
        columns = split_into_columns(line.fragments, config.column_gap)
        line.columns = columns if is_table_candidate(columns, config) else []
        if line.columns:
            logger.debug(f"Line at y={line.y} split into {len(line.columns)} columns")
    return lines
