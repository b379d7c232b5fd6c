"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/models/options.py
Version:        1.0.0
Description:    Typed option bags for output documents and for the page
                layout of image and sheet workflows.
------------------------------------------------------------------------------
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pageflux.models.types import (
    MM_TO_PT, PAGE_SIZES_MM, ColorMode, Orientation, PageSize
)


class OutputOptions(BaseModel):
    """
    Document-level options applied to an assembled PDF.
    Encryption is a flag handed to the codec; its strength is not our concern.
    """
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    # Document properties
    title: str = ""
    author: str = ""
    subject: str = ""
    keywords: str = ""

    # Protection
    user_password: str = ""
    owner_password: str = ""
    allow_print: bool = True
    allow_copy: bool = True

    # Rendering of image/sheet pages
    color_mode: ColorMode = ColorMode.COLOR
    image_quality: float = Field(0.75, ge=0.1, le=1.0)

    @field_validator("title", "author", "subject", "keywords", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @property
    def has_properties(self) -> bool:
        return any((self.title, self.author, self.subject, self.keywords))

    @property
    def has_encryption(self) -> bool:
        return bool(self.user_password or self.owner_password)

    def keyword_list(self) -> List[str]:
        """Comma separated keywords, trimmed, empty parts dropped."""
        return [k.strip() for k in self.keywords.split(",") if k.strip()]

    def document_properties(self) -> Dict[str, object]:
        """Properties for the codec. Empty values are left out."""
        props: Dict[str, object] = {}
        if self.title:
            props["title"] = self.title
        if self.author:
            props["author"] = self.author
        if self.subject:
            props["subject"] = self.subject
        keywords = self.keyword_list()
        if keywords:
            props["keywords"] = keywords
        return props

    def effective_owner_password(self) -> str:
        return self.owner_password or self.user_password


class ImageLayout(BaseModel):
    """Placement of one image on one output page."""
    page_size: PageSize = PageSize.A4
    orientation: Orientation = Orientation.AUTO
    margin_mm: int = Field(10, ge=0)

    def is_landscape(self, image_width: int, image_height: int) -> bool:
        if self.orientation is Orientation.LANDSCAPE:
            return True
        return self.orientation is Orientation.AUTO and image_width > image_height

    def page_size_pt(self, image_width: int, image_height: int) -> Tuple[float, float]:
        """Page (width, height) in PDF points for an image of the given pixel size."""
        base_w, base_h = PAGE_SIZES_MM[self.page_size]
        if self.is_landscape(image_width, image_height):
            w, h = max(base_w, base_h), min(base_w, base_h)
        else:
            w, h = min(base_w, base_h), max(base_w, base_h)
        return (w * MM_TO_PT, h * MM_TO_PT)

    def image_rect_pt(self, image_width: int, image_height: int) -> Tuple[float, float, float, float]:
        """
        Rectangle (x0, y0, x1, y1) in points that fits the image inside the
        margins, keeping its aspect ratio, centred on the page.
        """
        page_w, page_h = self.page_size_pt(image_width, image_height)
        margin = self.margin_mm * MM_TO_PT
        avail_w = max(1.0, page_w - margin * 2)
        avail_h = max(1.0, page_h - margin * 2)

        img_ratio = image_width / image_height if image_height else 1.0
        area_ratio = avail_w / avail_h
        if img_ratio > area_ratio:
            draw_w = avail_w
            draw_h = avail_w / img_ratio
        else:
            draw_h = avail_h
            draw_w = avail_h * img_ratio

        x = (page_w - draw_w) / 2
        y = (page_h - draw_h) / 2
        return (x, y, x + draw_w, y + draw_h)


class SheetLayout(BaseModel):
    """Page setup for a table rendered to pages."""
    page_size: PageSize = PageSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    font_size: int = 9

    @field_validator("font_size")
    @classmethod
    def check_font_size(cls, v: int) -> int:
        if v not in (7, 8, 9, 10, 12):
            raise ValueError("font_size must be one of 7, 8, 9, 10, 12")
        return v

    @field_validator("orientation")
    @classmethod
    def no_auto(cls, v: Orientation) -> Orientation:
        # A table has no intrinsic aspect ratio to decide on
        return Orientation.PORTRAIT if v is Orientation.AUTO else v
