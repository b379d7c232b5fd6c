"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/importer.py
Version:        1.0.0
Description:    Converts images into PDF sources for the composition engine.
                Every image frame becomes one page, fitted inside the page
                margins and centred.
------------------------------------------------------------------------------
"""

import io
import os
from typing import List, Optional, Set

import fitz  # PyMuPDF
from PIL import Image, ImageSequence, UnidentifiedImageError

from pageflux.exceptions import DecodeError
from pageflux.logger import get_logger
from pageflux.models.options import ImageLayout
from pageflux.models.types import ColorMode
from pageflux.rasterizer import FITZ_LOCK

logger = get_logger("importer")

# Pillow formats fitz can embed as they are
_PASSTHROUGH_FORMATS = {"JPEG", "PNG"}


class ImageImporter:
    """
    Builds one PDF per image. Multi-frame images (TIFF, GIF) yield one
    page per frame.
    """

    # Whitelist for allowed image formats
    ALLOWED_EXTENSIONS: Set[str] = {".jpg", ".jpeg", ".png", ".tif", ".tiff", ".bmp", ".webp", ".gif"}

    def __init__(
        self,
        layout: Optional[ImageLayout] = None,
        color_mode: ColorMode = ColorMode.COLOR,
        quality: float = 0.75,
    ):
        self.layout = layout or ImageLayout()
        self.color_mode = color_mode
        self.quality = quality

    @classmethod
    def is_supported(cls, filename: str) -> bool:
        return os.path.splitext(filename)[1].lower() in cls.ALLOWED_EXTENSIONS

    @property
    def needs_reencode(self) -> bool:
        """Colour images at high quality are embedded without re-encoding."""
        return self.color_mode is not ColorMode.COLOR or self.quality < 0.9

    def convert(self, data: bytes, name: str = "") -> bytes:
        """
        Converts image bytes to a PDF document.

        Args:
            data: Raw image file content.
            name: File name, used in error messages.

        Returns:
            PDF bytes with one page per image frame.

        Raises:
            DecodeError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"Not a readable image: {e}", name=name or None) from e

        try:
            frames = self._encode_frames(image, data)
        finally:
            image.close()

        with FITZ_LOCK:
            doc = fitz.open()
            try:
                for width, height, img_bytes in frames:
                    page_w, page_h = self.layout.page_size_pt(width, height)
                    page = doc.new_page(width=page_w, height=page_h)
                    x0, y0, x1, y1 = self.layout.image_rect_pt(width, height)
                    page.insert_image(fitz.Rect(x0, y0, x1, y1), stream=img_bytes)

                # garbage=4: Resources deduplication, deflate: Stream compression
                pdf_bytes = doc.tobytes(garbage=4, deflate=True)
            finally:
                doc.close()

        logger.info(f"Converted image '{name}' to {len(frames)} page(s)")
        return pdf_bytes

    def _encode_frames(self, image: Image.Image, original: bytes) -> List[tuple]:
        """Returns (width, height, encoded bytes) per frame."""
        n_frames = getattr(image, "n_frames", 1)
        if not self.needs_reencode and n_frames == 1 and image.format in _PASSTHROUGH_FORMATS:
            return [(image.width, image.height, original)]

        frames = []
        for frame in ImageSequence.Iterator(image):
            rgb = self._flatten(frame)
            buffer = io.BytesIO()
            if self.needs_reencode:
                converted = self._apply_color_mode(rgb)
                converted.save(buffer, format="JPEG", quality=int(round(self.quality * 100)))
            else:
                rgb.save(buffer, format="PNG")
            frames.append((rgb.width, rgb.height, buffer.getvalue()))
        return frames

    @staticmethod
    def _flatten(frame: Image.Image) -> Image.Image:
        """Composites transparency onto white and returns an RGB image."""
        if frame.mode in ("RGBA", "LA") or (frame.mode == "P" and "transparency" in frame.info):
            rgba = frame.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        return frame.convert("RGB")

    def _apply_color_mode(self, rgb: Image.Image) -> Image.Image:
        if self.color_mode is ColorMode.COLOR:
            return rgb
        # Pillow's "L" conversion is the ITU-R 601 luma 0.299/0.587/0.114
        gray = rgb.convert("L")
        if self.color_mode is ColorMode.MONO:
            return gray.point(lambda v: 255 if v > 127 else 0)
        return gray
