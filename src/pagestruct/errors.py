"""
Exceptions raised by the reconstruction engine.
"""


class PageStructError(Exception):
    """Base class for engine errors."""


class InputShapeError(PageStructError, ValueError):
    """Malformed fragment or line data for a page."""

    def __init__(self, message: str, page_number: int = 0):
        super().__init__(message)
        self.page_number = page_number


class ConfigurationError(PageStructError, ValueError):
    """An option is out of its allowed range."""


class ConversionCancelled(PageStructError):
    """The caller cancelled a conversion between pages."""

    def __init__(self, pages_done: int):
        super().__init__(f"Conversion cancelled after {pages_done} page(s)")
        self.pages_done = pages_done
