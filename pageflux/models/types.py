"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/models/types.py
Version:        1.0.0
Description:    Centralized enumeration and type definitions.
------------------------------------------------------------------------------
"""

from enum import Enum
from typing import Dict, Tuple


class WorkflowMode(str, Enum):
    """The workflows sharing the composition engine."""
    MERGE = "merge"
    SPLIT = "split"
    IMAGES = "images"
    SHEETS = "sheets"

    @property
    def uses_selection(self) -> bool:
        """Only split/extract honours the per-page selection flag."""
        return self is WorkflowMode.SPLIT


class ColorMode(str, Enum):
    COLOR = "color"
    GRAYSCALE = "grayscale"
    MONO = "mono"


class PageSize(str, Enum):
    A4 = "a4"
    A3 = "a3"
    LETTER = "letter"
    LEGAL = "legal"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    AUTO = "auto"


class PipelineState(str, Enum):
    """Internal states of the preview pipeline."""
    IDLE = "idle"
    SCHEDULED = "scheduled"
    ASSEMBLING = "assembling"
    PUBLISHED = "published"
    FAILED = "failed"


class PreviewStatus(str, Enum):
    """Coarse status signal offered to the UI."""
    IDLE = "idle"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


# Portrait page dimensions in millimetres (width, height)
PAGE_SIZES_MM: Dict[PageSize, Tuple[float, float]] = {
    PageSize.A4: (210.0, 297.0),
    PageSize.A3: (297.0, 420.0),
    PageSize.LETTER: (215.9, 279.4),
    PageSize.LEGAL: (215.9, 355.6),
}

MM_TO_PT: float = 72.0 / 25.4
