"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/sequence.py
Version:        1.0.0
Description:    The user-controlled ordered list of page references.
                Page identity (uid) is independent of list position; all
                mutations are synchronous and keep the sequence consistent.
------------------------------------------------------------------------------
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from pageflux.logger import get_logger
from pageflux.models.document import PageEntry, SourceDocument, next_page_uid
from pageflux.page_ranges import parse_page_range
from pageflux.utils.formatting import page_label

logger = get_logger("sequence")

ChangeListener = Callable[[], None]


class PageSequenceModel:
    """
    Ordered arena of PageEntry values addressed by uid.
    When bound to a SourceRegistry, removing a source drops its entries
    and only sources still held by the registry can be appended.
    """

    def __init__(self, registry=None) -> None:
        self._entries: List[PageEntry] = []
        self._listeners: List[ChangeListener] = []
        self._registry = registry
        if registry is not None:
            registry.subscribe_removed(self.remove_source)

    # --- Notification ---

    def subscribe(self, listener: ChangeListener) -> None:
        """Registers a callback invoked after every effective mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # --- Mutation ---

    def append_pages_of(self, source: SourceDocument) -> List[PageEntry]:
        """
        Appends one selected entry per page of `source`, ascending page order.

        Returns:
            Copies of the new entries. Empty when the bound registry no
            longer holds `source`.
        """
        if self._registry is not None and source.id not in self._registry:
            logger.warning(f"Ignoring pages of source {source.id}: not in the registry")
            return []

        added = [
            PageEntry(
                uid=next_page_uid(),
                source_id=source.id,
                page_index=idx,
                label=page_label(source.name, idx),
            )
            for idx in range(source.page_count)
        ]
        if not added:
            return []
        self._entries.extend(added)
        logger.debug(f"Appended {len(added)} pages of source {source.id}")
        self._changed()
        return [e.model_copy() for e in added]

    def move(self, uid: int, to_index: int) -> None:
        """
        Moves an entry to `to_index`, clamped to the valid range.
        Unknown uids and moves onto the current position are ignored.
        """
        from_index = self.index_of(uid)
        if from_index is None:
            return
        to_index = max(0, min(to_index, len(self._entries) - 1))
        if to_index == from_index:
            return
        entry = self._entries.pop(from_index)
        self._entries.insert(to_index, entry)
        self._changed()

    def remove(self, uid: int) -> None:
        index = self.index_of(uid)
        if index is None:
            return
        del self._entries[index]
        self._changed()

    def remove_source(self, source_id: int) -> int:
        """
        Drops every entry referencing `source_id`, keeping the relative
        order of the others.

        Returns:
            Number of removed entries.
        """
        kept = [e for e in self._entries if e.source_id != source_id]
        removed = len(self._entries) - len(kept)
        if removed:
            self._entries = kept
            logger.debug(f"Dropped {removed} entries of removed source {source_id}")
            self._changed()
        return removed

    def set_selected(self, uid: int, selected: bool) -> None:
        entry = self._find(uid)
        if entry is None or entry.selected == selected:
            return
        entry.selected = selected
        self._changed()

    def set_all_selected(self, selected: bool) -> None:
        changed = False
        for entry in self._entries:
            if entry.selected != selected:
                entry.selected = selected
                changed = True
        if changed:
            self._changed()

    def reorder_from_labels(self, ordered_page_numbers: Union[str, Sequence[int]]) -> None:
        """
        Applies an ordered page selection.

        Mentioned pages become selected and move to the front in the given
        order; every other entry is deselected and follows in its previous
        relative order. A number N refers to the first not yet claimed entry
        showing page N. Duplicates and unknown numbers are ignored.

        Args:
            ordered_page_numbers: 1-based page numbers, or range text like "3,1-2".
        """
        if isinstance(ordered_page_numbers, str):
            max_pages = max((e.page_number for e in self._entries), default=0)
            numbers = parse_page_range(ordered_page_numbers, max_pages)
        else:
            numbers = list(ordered_page_numbers)

        claimed: Dict[int, PageEntry] = {}
        front: List[PageEntry] = []
        seen_numbers = set()
        for num in numbers:
            if num in seen_numbers:
                continue
            seen_numbers.add(num)
            match = next(
                (e for e in self._entries if e.page_number == num and e.uid not in claimed),
                None,
            )
            if match is not None:
                claimed[match.uid] = match
                front.append(match)

        rest = [e for e in self._entries if e.uid not in claimed]
        for entry in front:
            entry.selected = True
        for entry in rest:
            entry.selected = False

        self._entries = front + rest
        logger.debug(f"Applied page order {[e.page_number for e in front]}")
        self._changed()

    def clear(self) -> None:
        if self._entries:
            self._entries = []
            self._changed()

    # --- Access ---

    def current(self) -> Tuple[PageEntry, ...]:
        """Read-only snapshot of the sequence."""
        return tuple(e.model_copy() for e in self._entries)

    def selected(self) -> Tuple[PageEntry, ...]:
        return tuple(e.model_copy() for e in self._entries if e.selected)

    def selected_page_numbers(self) -> List[int]:
        """1-based page numbers of the selected entries in sequence order."""
        return [e.page_number for e in self._entries if e.selected]

    def get(self, uid: int) -> Optional[PageEntry]:
        entry = self._find(uid)
        return entry.model_copy() if entry is not None else None

    def index_of(self, uid: int) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if entry.uid == uid:
                return i
        return None

    def _find(self, uid: int) -> Optional[PageEntry]:
        for entry in self._entries:
            if entry.uid == uid:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)
