"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/session.py
Version:        1.0.0
Description:    Workflow session facade. Wires source registry, page
                sequence, thumbnail cache, assembly engine and preview
                pipeline together for one merge/split/images/sheets workflow.
------------------------------------------------------------------------------
"""

import asyncio
from typing import Callable, List, Optional, Sequence, Set, Union

from pageflux.assembly import AssemblyEngine
from pageflux.codec import DocumentCodec
from pageflux.config import AppConfig
from pageflux.exceptions import RenderError
from pageflux.importer import ImageImporter
from pageflux.logger import get_logger
from pageflux.models.document import AssemblyResult, PageEntry, SheetData, SourceDocument
from pageflux.models.options import ImageLayout, OutputOptions, SheetLayout
from pageflux.models.types import PipelineState, PreviewStatus, WorkflowMode
from pageflux.page_ranges import compact_page_range
from pageflux.preview import PreviewPipeline
from pageflux.rasterizer import FitzRasterizer, Rasterizer
from pageflux.registry import SourceRegistry
from pageflux.sequence import PageSequenceModel
from pageflux.sheets import SheetRenderer
from pageflux.thumbnails import PENDING, ThumbnailCache
from pageflux.utils.formatting import build_download_name, get_base_name

logger = get_logger("session")


class ComposerSession:
    """
    One page composition workflow.

    All methods must be called from the event loop thread: sequence
    mutations schedule a debounced preview rebuild on the running loop.
    Only the split workflow honours per-page selection; the others always
    assemble every page.
    """

    def __init__(
        self,
        mode: WorkflowMode = WorkflowMode.MERGE,
        *,
        codec: Optional[DocumentCodec] = None,
        rasterizer: Optional[Rasterizer] = None,
        debounce_seconds: Optional[float] = None,
        thumbnail_width: int = 180,
        yield_seconds: float = 0.01,
        options: Optional[OutputOptions] = None,
        image_layout: Optional[ImageLayout] = None,
        sheet_layout: Optional[SheetLayout] = None,
        on_publish: Optional[Callable[[AssemblyResult], None]] = None,
        on_retire: Optional[Callable[[AssemblyResult], None]] = None,
    ):
        self.mode = WorkflowMode(mode)
        self.options = options or OutputOptions()
        self.image_layout = image_layout or ImageLayout()
        self.sheet_layout = sheet_layout or SheetLayout()

        if debounce_seconds is None:
            # Split previews are rebuilt less eagerly while ranges are typed
            debounce_seconds = 0.5 if self.mode is WorkflowMode.SPLIT else 0.3

        self.registry = SourceRegistry(codec)
        self.sequence = PageSequenceModel(self.registry)
        self.thumbnails = ThumbnailCache(
            self.registry,
            rasterizer or FitzRasterizer(),
            target_width=thumbnail_width,
            yield_seconds=yield_seconds,
        )
        self.engine = AssemblyEngine(self.registry.codec)
        self.pipeline = PreviewPipeline(
            self.engine,
            self.registry,
            self.sequence,
            debounce_seconds=debounce_seconds,
            selected_only=self.mode.uses_selection,
            options_provider=lambda: self.options,
            on_publish=on_publish,
            on_retire=on_retire,
        )
        self.sequence.subscribe(self.pipeline.schedule)
        self._background: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, mode: WorkflowMode = WorkflowMode.MERGE, config: Optional[AppConfig] = None, **kwargs) -> "ComposerSession":
        """Builds a session with timings and layouts from the user settings."""
        config = config or AppConfig()
        debounce_ms = config.get_debounce_ms()
        kwargs.setdefault("debounce_seconds", debounce_ms / 1000.0 if debounce_ms else None)
        kwargs.setdefault("rasterizer", FitzRasterizer(jpeg_quality=config.get_thumbnail_quality()))
        kwargs.setdefault("thumbnail_width", config.get_thumbnail_width())
        kwargs.setdefault("yield_seconds", config.get_thumbnail_yield_ms() / 1000.0)
        kwargs.setdefault("options", OutputOptions(author=config.get_default_author()))
        kwargs.setdefault("image_layout", ImageLayout(
            page_size=config.get_page_size(),
            orientation=config.get_orientation(),
            margin_mm=config.get_margin_mm(),
        ))
        kwargs.setdefault("sheet_layout", SheetLayout(
            page_size=config.get_page_size(),
            orientation=config.get_orientation(),
            font_size=config.get_sheet_font_size(),
        ))
        return cls(mode, **kwargs)

    # --- Sources ---

    async def load_source(self, data: bytes, name: str) -> SourceDocument:
        """
        Adds a PDF source and appends all of its pages.

        Raises:
            DecodeError: If the bytes are not a readable PDF. Nothing changes.
        """
        source = await self.registry.add_async(data, name)
        self.sequence.append_pages_of(source)
        return source

    async def load_image(self, data: bytes, name: str) -> SourceDocument:
        """Converts an image to pages using the session layout and options."""
        importer = ImageImporter(self.image_layout, self.options.color_mode, self.options.image_quality)
        pdf_bytes = await asyncio.to_thread(importer.convert, data, name)
        return await self.load_source(pdf_bytes, name)

    async def load_sheet(
        self,
        sheets: Union[SheetData, Sequence[SheetData]],
        name: str,
        show_titles: Optional[bool] = None,
    ) -> SourceDocument:
        """Renders one or more tables to pages and adds them as one source."""
        if isinstance(sheets, SheetData):
            sheets = [sheets]
        renderer = SheetRenderer(self.sheet_layout, self.options.color_mode)
        pdf_bytes = await asyncio.to_thread(renderer.render, list(sheets), show_titles)
        return await self.load_source(pdf_bytes, name)

    def remove_source(self, source_id: int) -> None:
        """Removes a source, its pages and its thumbnails."""
        self.registry.remove(source_id)

    def sources(self) -> List[SourceDocument]:
        return self.registry.sources()

    # --- Sequence editing ---

    def move(self, uid: int, to_index: int) -> None:
        self.sequence.move(uid, to_index)

    def remove_page(self, uid: int) -> None:
        self.sequence.remove(uid)

    def set_selected(self, uid: int, selected: bool) -> None:
        self.sequence.set_selected(uid, selected)

    def select_all(self) -> None:
        self.sequence.set_all_selected(True)

    def deselect_all(self) -> None:
        self.sequence.set_all_selected(False)

    def apply_page_range(self, text: str) -> None:
        """Applies range text like '3,1-2' as the ordered selection."""
        self.sequence.reorder_from_labels(text)

    def page_range_text(self) -> str:
        """The current selection as compact range text."""
        return compact_page_range(self.sequence.selected_page_numbers())

    def pages(self) -> Sequence[PageEntry]:
        return self.sequence.current()

    # --- Thumbnails ---

    def thumbnail(self, source_id: int, page_index: int):
        """
        Returns the cached thumbnail, or PENDING after starting a
        background render for it.
        """
        data = self.thumbnails.cached(source_id, page_index)
        if data is not None:
            return data
        if source_id in self.registry and not self.thumbnails.is_pending(source_id, page_index):
            task = asyncio.get_running_loop().create_task(self._render_thumbnail(source_id, page_index))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        return PENDING

    async def _render_thumbnail(self, source_id: int, page_index: int) -> None:
        try:
            await self.thumbnails.render(source_id, page_index)
        except RenderError as e:
            logger.warning(f"Thumbnail unavailable: {e}")

    async def render_thumbnails(self, on_ready=None) -> int:
        """Renders the grid for the current sequence order."""
        return await self.thumbnails.render_sequence(self.sequence.current(), on_ready)

    # --- Preview ---

    def current_artifact(self) -> Optional[AssemblyResult]:
        return self.pipeline.current_artifact()

    @property
    def status(self) -> PreviewStatus:
        return self.pipeline.status

    @property
    def state(self) -> PipelineState:
        return self.pipeline.state

    @property
    def nothing_selected(self) -> bool:
        return self.pipeline.nothing_selected

    def subscribe(self, listener: Callable[[PreviewStatus], None]) -> None:
        self.pipeline.subscribe(listener)

    async def wait_idle(self) -> None:
        """Completes pending preview work and background thumbnails."""
        await self.pipeline.drain()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # --- Output ---

    async def trigger_download_assembly(self, options: Optional[OutputOptions] = None) -> Optional[AssemblyResult]:
        """
        Immediately assembles the sequence as it is now, with protection
        applied. Not debounced and independent of the preview.

        Returns:
            The document, or None if there are no pages to output.

        Raises:
            AssemblyError: If the document cannot be built.
        """
        options = options or self.options
        return await self.engine.assemble(
            self.sequence.current(),
            self.registry,
            options,
            selected_only=self.mode.uses_selection,
            protect=True,
        )

    def download_name(self, extension: str = "pdf") -> str:
        names = [get_base_name(s.name) for s in self.registry.sources()]
        if not names:
            names = ["extracted" if self.mode is WorkflowMode.SPLIT else "output"]
        return build_download_name(names, extension)

    def reset(self) -> None:
        """Drops all sources, pages, thumbnails and the preview."""
        for task in list(self._background):
            task.cancel()
        self.sequence.clear()
        self.registry.clear()
        self.thumbnails.invalidate_all()
        # Last, so timers scheduled by the clearing above are dropped too
        self.pipeline.reset()
        logger.info("Session reset")
