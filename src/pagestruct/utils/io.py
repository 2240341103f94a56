"""
I/O utilities for the reconstruction pipeline.

Handles:
- PDF page rendering to images (pdf2image / poppler), page by page
- Vector-text extraction into TextFragment pages (pdfminer.six)
- Loading fragment / OCR pages from JSON
- JSON serialization, directory management, progress tracking
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Iterator, List, Union, Optional, Any
from dataclasses import dataclass

import numpy as np

from .lines import TextFragment

logger = logging.getLogger(__name__)


# ============================================================================
# PDF to Image Conversion
# ============================================================================

def _import_pdf2image():
    try:
        import pdf2image
    except ImportError:
        raise ImportError(
            "pdf2image is required. Install with: pip install pdf2image\n"
            "Also ensure poppler is installed on your system."
        )
    return pdf2image


def load_pdf(
    pdf_path: Union[str, Path],
    dpi: int = 200,
    first_page: Optional[int] = None,
    last_page: Optional[int] = None
) -> List[np.ndarray]:
    """
    Convert PDF pages to images using pdf2image (poppler backend).

    Args:
        pdf_path: Path to the PDF file
        dpi: Resolution for rendering
        first_page: First page to convert (1-indexed, None = first)
        last_page: Last page to convert (1-indexed, None = last)

    Returns:
        List of numpy arrays (BGR format) representing each page

    Raises:
        FileNotFoundError: If PDF file doesn't exist
        ImportError: If pdf2image is not installed
        RuntimeError: If poppler is not installed or the PDF can't be parsed
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    pdf2image = _import_pdf2image()
    from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError

    try:
        pil_images = pdf2image.convert_from_path(
            pdf_path,
            dpi=dpi,
            first_page=first_page,
            last_page=last_page,
            fmt='png'
        )
    except (PDFPageCountError, PDFSyntaxError) as e:
        raise RuntimeError(f"Failed to parse PDF: {e}")
    except Exception as e:
        if "poppler" in str(e).lower():
            raise RuntimeError(
                "Poppler is not installed. Install with:\n"
                "  macOS: brew install poppler\n"
                "  Linux: sudo apt-get install poppler-utils"
            )
        raise

    images = []
    for pil_img in pil_images:
        img_array = np.array(pil_img.convert("RGB"))
        # RGB -> BGR for OpenCV compatibility
        images.append(img_array[:, :, ::-1].copy())
    return images


def iter_pdf_pages(
    pdf_path: Union[str, Path],
    first_page: int,
    last_page: int,
    dpi: int = 200
) -> Iterator[np.ndarray]:
    """Render pages one at a time so only one page image is held in memory."""
    for page_number in range(first_page, last_page + 1):
        logger.info(f"Rendering page {page_number} of {last_page} at {dpi} DPI")
        yield load_pdf(pdf_path, dpi=dpi, first_page=page_number, last_page=page_number)[0]


def get_pdf_page_count(pdf_path: Union[str, Path]) -> int:
    """Get the number of pages in a PDF file."""
    pdf2image = _import_pdf2image()
    try:
        info = pdf2image.pdfinfo_from_path(str(pdf_path))
    except Exception as e:
        raise RuntimeError(f"Could not read PDF info for {pdf_path}: {e}")
    return int(info.get('Pages', 0))


# ============================================================================
# Vector Text Extraction
# ============================================================================

def _line_font_size(text_line) -> float:
    """Most common character size in a pdfminer text line."""
    from pdfminer.layout import LTChar

    sizes = [round(c.size, 2) for c in text_line if isinstance(c, LTChar)]
    return Counter(sizes).most_common(1)[0][0] if sizes else 0.0


def _walk_text_lines(layout_obj):
    from pdfminer.layout import LTTextLine

    if isinstance(layout_obj, LTTextLine):
        yield layout_obj
        return
    if hasattr(layout_obj, "__iter__"):
        for child in layout_obj:
            yield from _walk_text_lines(child)


def iter_text_pages(
    pdf_path: Union[str, Path],
    max_pages: Optional[int] = None
) -> Iterator[List[TextFragment]]:
    """
    Extract vector text from a PDF, one list of fragments per page.

    Each pdfminer text line becomes one fragment positioned at its lower-left
    corner, with its width and most common glyph size.
    """
    try:
        from pdfminer.high_level import extract_pages
    except ImportError:
        raise ImportError("pdfminer.six is required. Install with: pip install pdfminer.six")

    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    for page_layout in extract_pages(str(pdf_path), maxpages=max_pages or 0):
        fragments = []
        for text_line in _walk_text_lines(page_layout):
            text = text_line.get_text()
            if not text.strip():
                continue
            fragments.append(TextFragment(
                text=text,
                x=float(text_line.x0),
                y=float(text_line.y0),
                font_size=float(_line_font_size(text_line)),
                width=float(text_line.x1 - text_line.x0)
            ))
        logger.debug(f"Page {page_layout.pageid}: {len(fragments)} text fragments")
        yield fragments


# ============================================================================
# JSON Page Input
# ============================================================================

def load_fragment_pages(json_path: Union[str, Path]) -> List[List[Any]]:
    """
    Load vector-text pages from JSON.

    Accepts either a list of pages or {"pages": [...]}, where each page is a
    list of fragment objects. Fragments are validated by the engine.
    """
    data = load_json(json_path)
    pages = data.get("pages", []) if isinstance(data, dict) else data
    if not isinstance(pages, list):
        raise ValueError(f"Expected a list of pages in {json_path}")
    return pages


def load_ocr_pages(json_path: Union[str, Path]) -> List[Any]:
    """
    Load OCR pages from JSON.

    Each page is either a list of line objects or {"lines": [...], "text": ...}.
    Line boxes are validated by the engine so a bad page only affects itself.
    """
    return load_fragment_pages(json_path)


# ============================================================================
# JSON Output
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types and paths."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2
) -> Path:
    """Save data to a JSON file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, cls=EnhancedJSONEncoder)

    logger.info(f"Saved JSON to: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input.

    Returns:
        'pdf', 'json', or 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.exists():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    if suffix == '.json':
        return 'json'
    return 'unknown'


# ============================================================================
# Progress Tracking
# ============================================================================

@dataclass
class ProcessingProgress:
    """Track progress of a conversion; usable as an engine progress callback."""
    total_pages: Optional[int] = None
    processed_pages: int = 0

    @property
    def percent_complete(self) -> float:
        if not self.total_pages:
            return 0.0
        return (self.processed_pages / self.total_pages) * 100

    def __call__(self, current_page: int, total_pages: Optional[int]):
        self.processed_pages = current_page
        if total_pages is not None:
            self.total_pages = total_pages
        if self.total_pages:
            logger.info(
                f"Page {current_page} of {self.total_pages} done ({self.percent_complete:.0f}%)"
            )
        else:
            logger.info(f"Page {current_page} done")
