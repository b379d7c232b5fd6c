"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/registry.py
Version:        1.0.0
Description:    Holds the loaded source documents of a workflow session.
                Single owner of SourceDocument values; other components keep
                ids only and are told about removals.
------------------------------------------------------------------------------
"""

import asyncio
import itertools
from typing import Callable, Dict, Iterator, List, Optional

from pageflux.codec import DocumentCodec, PikePdfCodec
from pageflux.exceptions import DecodeError
from pageflux.logger import get_logger
from pageflux.models.document import SourceDocument

logger = get_logger("registry")

RemovalListener = Callable[[int], None]


class SourceRegistry:
    """
    Keyed store of immutable source documents.
    """

    def __init__(self, codec: Optional[DocumentCodec] = None) -> None:
        self.codec = codec or PikePdfCodec()
        self._sources: Dict[int, SourceDocument] = {}
        self._ids = itertools.count(1)
        self._removal_listeners: List[RemovalListener] = []

    def add(self, data: bytes, name: str) -> SourceDocument:
        """
        Parses and stores a source document.

        Args:
            data: Raw document bytes.
            name: Display name (usually the file name).

        Returns:
            The stored SourceDocument.

        Raises:
            DecodeError: If the codec cannot parse the bytes. Nothing is stored.
        """
        data = bytes(data)
        return self._store(data, name, self._count_pages(data, name))

    async def add_async(self, data: bytes, name: str) -> SourceDocument:
        """
        Like add(), but parses the document in a worker thread so large
        uploads do not block the event loop. The source is stored on the
        calling loop.
        """
        data = bytes(data)
        page_count = await asyncio.to_thread(self._count_pages, data, name)
        return self._store(data, name, page_count)

    def _count_pages(self, data: bytes, name: str) -> int:
        try:
            handle = self.codec.load_document(data)
        except DecodeError as e:
            if e.name is None:
                e.name = name
            logger.warning(f"Rejected source '{name}': {e}")
            raise

        try:
            return self.codec.page_count_of(handle)
        finally:
            self.codec.close_document(handle)

    def _store(self, data: bytes, name: str, page_count: int) -> SourceDocument:
        source = SourceDocument(id=next(self._ids), name=name, data=data, page_count=page_count)
        self._sources[source.id] = source
        logger.info(f"Added source {source.id} '{name}' ({page_count} pages)")
        return source

    def remove(self, source_id: int) -> bool:
        """
        Removes a source and notifies removal listeners so they can drop
        their references. Idempotent.

        Returns:
            True if a source was removed.
        """
        source = self._sources.pop(source_id, None)
        if source is None:
            return False
        logger.info(f"Removed source {source_id} '{source.name}'")
        for listener in list(self._removal_listeners):
            listener(source_id)
        return True

    def get(self, source_id: int) -> Optional[SourceDocument]:
        return self._sources.get(source_id)

    def clear(self) -> None:
        """Removes every source, notifying listeners for each."""
        for source_id in list(self._sources):
            self.remove(source_id)

    def subscribe_removed(self, listener: RemovalListener) -> None:
        """Registers a callback invoked with the id of every removed source."""
        if listener not in self._removal_listeners:
            self._removal_listeners.append(listener)

    def sources(self) -> List[SourceDocument]:
        """All sources in load order."""
        return list(self._sources.values())

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._sources

    def __iter__(self) -> Iterator[SourceDocument]:
        return iter(self.sources())

    def __len__(self) -> int:
        return len(self._sources)
