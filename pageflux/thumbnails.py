"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/thumbnails.py
Version:        1.0.0
Description:    Asynchronous, content-addressed thumbnail cache.
                Keys are (source_id, page_index), never page uids, so moving
                a page never re-renders it. Concurrent requests for one key
                share a single render; one rasterizer session is kept per
                source and used by one render at a time.
------------------------------------------------------------------------------
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from pageflux.exceptions import RenderError
from pageflux.logger import get_logger
from pageflux.rasterizer import FitzRasterizer, Rasterizer

logger = get_logger("thumbnails")

Key = Tuple[int, int]
ReadyCallback = Callable[[int, int, bytes], None]


class _Pending:
    """Marker for a thumbnail that is not rendered yet."""

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = _Pending()


class ThumbnailCache:
    """
    Lazily renders and memoizes page thumbnails.
    Bound to a SourceRegistry, a removed source is invalidated automatically.
    """

    def __init__(
        self,
        registry,
        rasterizer: Optional[Rasterizer] = None,
        target_width: int = 180,
        yield_seconds: float = 0.01,
    ):
        self.registry = registry
        self.rasterizer = rasterizer or FitzRasterizer()
        self.target_width = target_width
        self.yield_seconds = yield_seconds

        self._cache: Dict[Key, bytes] = {}
        self._inflight: Dict[Key, asyncio.Future] = {}
        self._sessions: Dict[int, Any] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        # Bumped on invalidation; a render that started under an older
        # epoch must not write into the cache.
        self._epochs: Dict[int, int] = {}
        self._grid_generation = 0

        registry.subscribe_removed(self.invalidate)

    # --- Lookup ---

    def cached(self, source_id: int, page_index: int) -> Optional[bytes]:
        return self._cache.get((source_id, page_index))

    def is_pending(self, source_id: int, page_index: int) -> bool:
        return (source_id, page_index) in self._inflight

    async def render(self, source_id: int, page_index: int) -> bytes:
        """
        Returns the thumbnail of one page, rendering it if necessary.
        Concurrent callers for the same page await the same render.

        Raises:
            RenderError: If the page cannot be rasterized.
        """
        key = (source_id, page_index)
        data = self._cache.get(key)
        if data is not None:
            return data

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._render_uncached(key))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._render_done(k, t))
        # A cancelled waiter must not cancel the render others are sharing
        return await asyncio.shield(task)

    def _render_done(self, key: Key, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark as retrieved; waiters re-raise it themselves
            task.exception()

    async def _render_uncached(self, key: Key) -> bytes:
        source_id, page_index = key
        lock = self._locks.setdefault(source_id, asyncio.Lock())
        async with lock:
            source = self.registry.get(source_id)
            if source is None:
                raise RenderError("Source is not loaded", source_id=source_id, page_index=page_index)

            epoch = self._epochs.get(source_id, 0)
            session = self._sessions.get(source_id)
            try:
                if session is None:
                    session = await asyncio.to_thread(self.rasterizer.open_session, source.data)
                    if self._epochs.get(source_id, 0) == epoch:
                        self._sessions[source_id] = session
                        logger.debug(f"Opened render session for source {source_id}")

                data = await asyncio.to_thread(
                    self.rasterizer.render_page, session, page_index, self.target_width
                )
            except RenderError as e:
                e.source_id = source_id
                e.page_index = page_index
                raise
            except Exception as e:
                raise RenderError(str(e), source_id=source_id, page_index=page_index) from e
            finally:
                # Invalidated while we held the lock: the session was detached
                # and is ours to release.
                if session is not None and self._sessions.get(source_id) is not session:
                    self.rasterizer.close_session(session)

            if self._epochs.get(source_id, 0) == epoch:
                self._cache[key] = data
            return data

    # --- Grid rendering ---

    async def render_sequence(self, entries: Iterable, on_ready: Optional[ReadyCallback] = None) -> int:
        """
        Renders thumbnails for a page grid, one page at a time, yielding to
        the event loop between pages. The order is captured on entry; a
        later call supersedes this one, which then stops.

        Args:
            entries: PageEntry values (anything with source_id/page_index).
            on_ready: Called with (source_id, page_index, data) per page.

        Returns:
            Number of pages delivered before finishing or being superseded.
        """
        self._grid_generation += 1
        generation = self._grid_generation
        keys = [(e.source_id, e.page_index) for e in entries]

        delivered = 0
        for source_id, page_index in keys:
            if generation != self._grid_generation:
                logger.debug(f"Grid render {generation} superseded after {delivered} pages")
                return delivered

            data = self.cached(source_id, page_index)
            if data is None:
                if source_id not in self.registry:
                    continue
                try:
                    data = await self.render(source_id, page_index)
                except RenderError as e:
                    logger.warning(f"Thumbnail for source {source_id} page {page_index + 1} failed: {e}")
                    continue
                await asyncio.sleep(self.yield_seconds)
                if generation != self._grid_generation:
                    return delivered

            if on_ready:
                on_ready(source_id, page_index, data)
            delivered += 1
        return delivered

    def cancel_grid(self) -> None:
        """Stops any running grid render at its next page boundary."""
        self._grid_generation += 1

    # --- Invalidation ---

    def invalidate(self, source_id: int) -> None:
        """
        Drops cached thumbnails and the render session of one source.
        Renders already running for it finish without touching the cache.
        """
        self._epochs[source_id] = self._epochs.get(source_id, 0) + 1

        for key in [k for k in self._cache if k[0] == source_id]:
            del self._cache[key]
        for key in [k for k in self._inflight if k[0] == source_id]:
            del self._inflight[key]

        session = self._sessions.pop(source_id, None)
        lock = self._locks.get(source_id)
        if lock is None or not lock.locked():
            self._locks.pop(source_id, None)
            if session is not None:
                self.rasterizer.close_session(session)
        logger.debug(f"Invalidated thumbnails of source {source_id}")

    def invalidate_all(self) -> None:
        source_ids = {k[0] for k in self._cache} | set(self._sessions) | {k[0] for k in self._inflight}
        for source_id in source_ids:
            self.invalidate(source_id)
        self.cancel_grid()

    def __len__(self) -> int:
        return len(self._cache)
