"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/models/__init__.py
Version:        1.0.0
Description:    Package initializer for data models. Exports the document,
                page and option models for easy access.
------------------------------------------------------------------------------
"""

from .document import AssemblyResult, PageEntry, SheetData, SourceDocument, next_page_uid
from .options import ImageLayout, OutputOptions, SheetLayout
from .types import (
    ColorMode, Orientation, PageSize, PipelineState, PreviewStatus, WorkflowMode
)
