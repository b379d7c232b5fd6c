"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/preview.py
Version:        1.0.0
Description:    Debounced, generation-guarded live preview.
                Bursts of edits coalesce into one rebuild; results of
                superseded rebuilds are discarded; a failed rebuild keeps the
                last good preview visible.
------------------------------------------------------------------------------
"""

import asyncio
from typing import Callable, List, Optional, Set

from pageflux.exceptions import AssemblyError
from pageflux.logger import get_logger
from pageflux.models.document import AssemblyResult
from pageflux.models.options import OutputOptions
from pageflux.models.types import PipelineState, PreviewStatus

logger = get_logger("preview")

StatusListener = Callable[[PreviewStatus], None]
ArtifactCallback = Callable[[AssemblyResult], None]

_STATUS_BY_STATE = {
    PipelineState.IDLE: PreviewStatus.IDLE,
    PipelineState.SCHEDULED: PreviewStatus.BUILDING,
    PipelineState.ASSEMBLING: PreviewStatus.BUILDING,
    PipelineState.PUBLISHED: PreviewStatus.READY,
    PipelineState.FAILED: PreviewStatus.FAILED,
}


class PreviewPipeline:
    """
    Drives preview rebuilds for one page sequence.

    Every schedule() issues a new generation. A rebuild captures the
    generation current when its debounce timer fires and publishes only
    if no newer generation has been issued by the time it completes.
    In-flight rebuilds are never cancelled, only discarded.
    """

    def __init__(
        self,
        engine,
        registry,
        model,
        debounce_seconds: float = 0.3,
        selected_only: bool = False,
        options_provider: Optional[Callable[[], Optional[OutputOptions]]] = None,
        on_publish: Optional[ArtifactCallback] = None,
        on_retire: Optional[ArtifactCallback] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.model = model
        self.debounce_seconds = debounce_seconds
        self.selected_only = selected_only
        self.options_provider = options_provider
        self.on_publish = on_publish
        self.on_retire = on_retire

        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._state = PipelineState.IDLE
        self._artifact: Optional[AssemblyResult] = None
        self._last_error: Optional[AssemblyError] = None
        self._nothing_selected = False
        self._listeners: List[StatusListener] = []
        self.assembly_count = 0

    # --- Observation ---

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def status(self) -> PreviewStatus:
        return _STATUS_BY_STATE[self._state]

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_error(self) -> Optional[AssemblyError]:
        return self._last_error

    @property
    def nothing_selected(self) -> bool:
        """True when the last rebuild found no pages to assemble."""
        return self._nothing_selected

    def current_artifact(self) -> Optional[AssemblyResult]:
        return self._artifact

    def subscribe(self, listener: StatusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        status = self.status
        for listener in list(self._listeners):
            listener(status)

    # --- Scheduling ---

    def schedule(self) -> None:
        """
        Requests a rebuild after the debounce window. Restarts a pending
        timer. Must be called from the event loop thread.
        """
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire)
        self._set_state(PipelineState.SCHEDULED)

    def _fire(self) -> None:
        self._timer = None
        generation = self._generation
        snapshot = self.model.current()
        options = self.options_provider() if self.options_provider else None

        self._set_state(PipelineState.ASSEMBLING)
        self.assembly_count += 1
        logger.debug(f"Rebuild generation {generation} ({len(snapshot)} entries)")

        task = asyncio.get_running_loop().create_task(self._run(generation, snapshot, options))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, generation: int, snapshot, options: Optional[OutputOptions]) -> None:
        try:
            result = await self.engine.assemble(
                snapshot,
                self.registry,
                options,
                selected_only=self.selected_only,
                generation=generation,
            )
        except AssemblyError as e:
            if generation != self._generation:
                logger.debug(f"Discarding failure of stale generation {generation}")
                return
            logger.warning(f"Preview rebuild failed: {e}")
            self._last_error = e
            self._nothing_selected = False
            self._set_state(PipelineState.FAILED)
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale generation {generation} (latest {self._generation})")
            return

        if result is None:
            self._last_error = None
            self._nothing_selected = True
            self._set_state(PipelineState.FAILED)
            return

        previous = self._artifact
        self._artifact = result
        self._last_error = None
        self._nothing_selected = False
        if previous is not None and self.on_retire:
            self.on_retire(previous)
        if self.on_publish:
            self.on_publish(result)
        logger.info(f"Published preview generation {generation} ({result.page_count} pages)")
        self._set_state(PipelineState.PUBLISHED)

    async def drain(self) -> None:
        """
        Fires a pending timer immediately and waits until every rebuild in
        flight has finished.
        """
        while self._timer is not None or self._tasks:
            if self._timer is not None:
                self._timer.cancel()
                self._fire()
            await asyncio.gather(*list(self._tasks))

    def cancel(self) -> None:
        """Drops a pending timer and turns every in-flight rebuild stale."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        """Cancels pending work and retires the published artifact."""
        self.cancel()
        previous = self._artifact
        self._artifact = None
        self._last_error = None
        self._nothing_selected = False
        if previous is not None and self.on_retire:
            self.on_retire(previous)
        self._set_state(PipelineState.IDLE)
