"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/models/document.py
Version:        1.0.0
Description:    Core domain models: loaded source documents, page references
                with stable identity, and assembly results.
------------------------------------------------------------------------------
"""

import itertools
from typing import Any, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Process-wide page identity. Never reused, never derived from position.
_page_uids = itertools.count(1)


def next_page_uid() -> int:
    """Returns a fresh, process-unique page identity."""
    return next(_page_uids)


class SourceDocument(BaseModel):
    """
    A loaded input from which pages are drawn.
    Immutable after creation; owned by the SourceRegistry.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    data: bytes = Field(repr=False)
    page_count: int = Field(ge=0)

    @property
    def size(self) -> int:
        return len(self.data)


class PageEntry(BaseModel):
    """
    One reference to a single page of a source document.
    Only its position in the sequence and its selection flag ever change.
    """
    model_config = ConfigDict(validate_assignment=True)

    uid: int = Field(frozen=True)
    source_id: int = Field(frozen=True)
    page_index: int = Field(frozen=True, ge=0)  # 0-based
    label: str = ""
    selected: bool = True

    @property
    def page_number(self) -> int:
        """1-based page number as shown to the user."""
        return self.page_index + 1

    @property
    def ref(self) -> Tuple[int, int]:
        """Content key of the referenced page (source_id, page_index)."""
        return (self.source_id, self.page_index)


class AssemblyResult(BaseModel):
    """A derived output document."""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    page_count: int = Field(ge=0)


class SheetData(BaseModel):
    """One table to be rendered to pages. The first row is the header."""
    title: str = ""
    rows: List[List[Any]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(any(str(c).strip() for c in row if c is not None) for row in self.rows)
