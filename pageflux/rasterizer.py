"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/rasterizer.py
Version:        1.0.0
Description:    Rasterizer boundary for page thumbnails, implemented with
                PyMuPDF (fitz).
------------------------------------------------------------------------------
"""

import threading
from typing import Any, Protocol

import fitz

from pageflux.exceptions import RenderError

# PyMuPDF is not thread-safe. Every fitz call made from a worker thread
# (rendering, image import) holds this lock.
FITZ_LOCK = threading.Lock()


class Rasterizer(Protocol):
    """Operations the thumbnail cache consumes from a rasterizer."""

    def open_session(self, data: bytes) -> Any: ...

    def render_page(self, session: Any, page_index: int, target_width: int) -> bytes: ...

    def close_session(self, session: Any) -> None: ...


class FitzRasterizer:
    """
    Renders single pages to JPEG bytes. A session is an open fitz.Document
    that is reused for all pages of one source.
    """

    def __init__(self, jpeg_quality: int = 75):
        self.jpeg_quality = jpeg_quality

    def open_session(self, data: bytes) -> fitz.Document:
        try:
            with FITZ_LOCK:
                return fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise RenderError(f"Cannot open document for rendering: {e}") from e

    def render_page(self, session: fitz.Document, page_index: int, target_width: int) -> bytes:
        """
        Renders one page scaled to `target_width` pixels.

        Raises:
            RenderError: If the page does not exist or fails to render.
        """
        with FITZ_LOCK:
            if not 0 <= page_index < len(session):
                raise RenderError(f"Page {page_index} out of range", page_index=page_index)
            try:
                page = session.load_page(page_index)
                scale = target_width / page.rect.width if page.rect.width else 1.0
                pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                return pix.tobytes(output="jpeg", jpg_quality=self.jpeg_quality)
            except (RuntimeError, ValueError) as e:
                raise RenderError(f"Render failed: {e}", page_index=page_index) from e

    def close_session(self, session: fitz.Document) -> None:
        with FITZ_LOCK:
            session.close()
