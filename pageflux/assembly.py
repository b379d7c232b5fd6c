"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/assembly.py
Version:        1.0.0
Description:    Builds a derived PDF containing exactly the pages of a page
                sequence, in order. Codec work runs in a worker thread so the
                event loop stays responsive.
------------------------------------------------------------------------------
"""

import asyncio
import itertools
from typing import Any, Dict, List, Optional, Sequence

from pageflux.codec import DocumentCodec, PikePdfCodec
from pageflux.exceptions import AssemblyError, DecodeError
from pageflux.logger import get_logger, log_assembly
from pageflux.models.document import AssemblyResult, PageEntry, SourceDocument
from pageflux.models.options import OutputOptions

logger = get_logger("assembly")


class AssemblyEngine:
    """
    Stateless between calls: every assemble() decodes the sources it needs
    at most once and releases all handles before returning.
    """

    def __init__(self, codec: Optional[DocumentCodec] = None):
        self.codec = codec or PikePdfCodec()

    async def assemble(
        self,
        sequence: Sequence[PageEntry],
        registry,
        options: Optional[OutputOptions] = None,
        *,
        selected_only: bool = False,
        protect: bool = False,
        generation: Optional[int] = None,
    ) -> Optional[AssemblyResult]:
        """
        Assembles the pages of `sequence` into one document.

        Args:
            sequence: Snapshot of the page sequence.
            registry: SourceRegistry resolving source ids.
            options: Document properties and protection settings.
            selected_only: Skip unselected entries (split/extract).
            protect: Apply encryption from `options` (downloads only).
            generation: Token of the requesting rebuild, for tracing.

        Returns:
            The assembled document, or None when there is nothing to assemble.

        Raises:
            AssemblyError: If a source is missing or the codec fails.
        """
        entries = [e for e in sequence if e.selected or not selected_only]
        if not entries:
            logger.debug(f"Nothing to assemble (generation {generation})")
            return None

        # Resolve on the loop; the worker thread only sees immutable values
        sources: Dict[int, SourceDocument] = {}
        for entry in entries:
            if entry.source_id in sources:
                continue
            source = registry.get(entry.source_id)
            if source is None:
                raise AssemblyError(f"Source {entry.source_id} is no longer loaded", source_id=entry.source_id)
            sources[entry.source_id] = source

        result = await asyncio.to_thread(self._build, entries, sources, options, protect)
        log_assembly(
            generation,
            [e.ref for e in entries],
            result.page_count,
            purpose="download" if protect else "preview",
        )
        return result

    def _build(
        self,
        entries: List[PageEntry],
        sources: Dict[int, SourceDocument],
        options: Optional[OutputOptions],
        protect: bool,
    ) -> AssemblyResult:
        handles: Dict[int, Any] = {}
        dest = None
        try:
            dest = self.codec.create_empty_document()

            # Consecutive pages of one source are copied in one call
            for source_id, run in itertools.groupby(entries, key=lambda e: e.source_id):
                handle = handles.get(source_id)
                if handle is None:
                    try:
                        handle = self.codec.load_document(sources[source_id].data)
                    except DecodeError as e:
                        raise AssemblyError(f"Cannot reload source {source_id}: {e}", source_id=source_id) from e
                    handles[source_id] = handle

                indices = [e.page_index for e in run]
                for page in self.codec.copy_pages(dest, handle, indices):
                    self.codec.append_page(dest, page)

            if options is not None and options.has_properties:
                self.codec.set_document_properties(dest, options.document_properties())

            page_count = self.codec.page_count_of(dest)
            data = self.codec.serialize(dest, options if protect else None)
            return AssemblyResult(data=data, page_count=page_count)
        except AssemblyError:
            raise
        except Exception as e:
            logger.error(f"Assembly failed: {e}")
            raise AssemblyError(f"Assembly failed: {e}") from e
        finally:
            for handle in handles.values():
                self.codec.close_document(handle)
            if dest is not None:
                self.codec.close_document(dest)
