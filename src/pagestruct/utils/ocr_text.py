"""
Text OCR adapter for the OCR input path.

Provides:
- TesseractEngine: rendered page image -> OcrPage (line boxes + full text)
- lines_from_tesseract_data: parse pytesseract.image_to_data output into
  OcrLine boxes grouped by block / paragraph / line
"""

import logging
from typing import Any, Dict, List, Tuple

import numpy as np

from .lines import OcrLine, OcrPage

logger = logging.getLogger(__name__)


# ============================================================================
# Tesseract Output Parsing
# ============================================================================

def lines_from_tesseract_data(data: Dict[str, List[Any]]) -> OcrPage:
    """
    Group word-level Tesseract output into line boxes.

    Words with a negative confidence (structural rows) or empty text are
    skipped. Each (block, paragraph, line) key becomes one OcrLine spanning
    the min top and max bottom of its words. The page text keeps a blank
    line between Tesseract paragraphs.

    Args:
        data: Dict returned by image_to_data(..., output_type=Output.DICT)

    Returns:
        OcrPage with lines in engine order
    """
    groups: Dict[Tuple[int, int, int], Dict[str, Any]] = {}
    order: List[Tuple[int, int, int]] = []

    for i in range(len(data.get('text', []))):
        text = str(data['text'][i] or '').strip()
        try:
            conf = float(data['conf'][i])
        except (TypeError, ValueError):
            conf = -1.0
        if conf < 0 or not text:
            continue

        key = (int(data['block_num'][i]), int(data['par_num'][i]), int(data['line_num'][i]))
        top = int(data['top'][i])
        bottom = top + int(data['height'][i])

        if key not in groups:
            groups[key] = {"words": [], "top": top, "bottom": bottom}
            order.append(key)
        group = groups[key]
        group["words"].append(text)
        group["top"] = min(group["top"], top)
        group["bottom"] = max(group["bottom"], bottom)

    lines = []
    text_parts: List[str] = []
    prev_par = None
    for key in order:
        group = groups[key]
        line_text = ' '.join(group["words"])
        lines.append(OcrLine(text=line_text, bbox_top=group["top"], bbox_bottom=group["bottom"]))

        par = key[:2]
        if prev_par is not None and par != prev_par:
            text_parts.append('')
        text_parts.append(line_text)
        prev_par = par

    return OcrPage(lines=lines, text='\n'.join(text_parts))


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract, one rendered page at a time."""

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 3"
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.config = config

    def _preprocess_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Grayscale and light denoise; a full page is kept at its render size."""
        import cv2

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image.copy()

        return cv2.medianBlur(gray, 3)

    def recognize_page(self, image: np.ndarray) -> OcrPage:
        """
        Recognize a rendered page.

        Raises:
            RuntimeError: If Tesseract fails on the image
        """
        processed = self._preprocess_for_ocr(image)

        try:
            data = self.pytesseract.image_to_data(
                processed,
                lang=self.language,
                config=self.config,
                output_type=self.pytesseract.Output.DICT
            )
        except Exception as e:
            raise RuntimeError(f"Tesseract error: {e}")

        page = lines_from_tesseract_data(data)
        logger.info(f"Tesseract recognized {len(page.lines)} lines")
        return page
