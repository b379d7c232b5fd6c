"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/exceptions.py
Version:        1.0.0
Description:    Error taxonomy of the composition engine. Every error is scoped
                to the operation that raised it and carries a short,
                translatable message for display.
------------------------------------------------------------------------------
"""

from typing import Optional

from PyQt6.QtCore import QCoreApplication


def _tr(text: str) -> str:
    """Localized translation using Qt framework."""
    return QCoreApplication.translate("PageFlux", text)


class PageFluxError(Exception):
    """Base class for all errors raised by the composition engine."""

    def user_message(self) -> str:
        return _tr("The operation could not be completed.")


class DecodeError(PageFluxError):
    """
    A source's bytes could not be parsed. The source is not added and
    the registry stays unchanged.
    """

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name

    def user_message(self) -> str:
        if self.name:
            return _tr("Could not read '{name}'.").format(name=self.name)
        return _tr("Could not read the file.")


class RenderError(PageFluxError):
    """
    A single page could not be rasterized. Non-fatal: the page keeps
    its placeholder.
    """

    def __init__(self, message: str, source_id: Optional[int] = None, page_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.source_id = source_id
        self.page_index = page_index

    def user_message(self) -> str:
        if self.page_index is not None:
            return _tr("Preview of page {n} is not available.").format(n=self.page_index + 1)
        return _tr("Preview is not available.")


class AssemblyError(PageFluxError):
    """
    The output document could not be built. No partial output is produced
    and the last good preview is kept.
    """

    def __init__(self, message: str, source_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.source_id = source_id

    def user_message(self) -> str:
        return _tr("The PDF could not be created.")
