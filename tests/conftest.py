import asyncio
import io
import threading
from typing import Dict, List, Optional

import fitz
import pytest
from reportlab.pdfgen import canvas

from pageflux.codec import PikePdfCodec
from pageflux.exceptions import AssemblyError, DecodeError, RenderError
from pageflux.models.document import AssemblyResult


def make_pdf(labels: List[str]) -> bytes:
    """One page per label, the label drawn as the page text."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer)
    for label in labels:
        c.drawString(100, 700, label)
        c.showPage()
    c.save()
    return buffer.getvalue()


def page_texts(data: bytes) -> List[str]:
    """Extracted text of every page, stripped."""
    with fitz.open(stream=data, filetype="pdf") as doc:
        return [page.get_text().strip() for page in doc]


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def read_texts():
    return page_texts


@pytest.fixture
def src1():
    """3-page source: src1p1..src1p3"""
    return make_pdf(["src1p1", "src1p2", "src1p3"])


@pytest.fixture
def src2():
    """2-page source: src2p1..src2p2"""
    return make_pdf(["src2p1", "src2p2"])


class FakeRasterizer:
    """Records calls; renders '<source data length>:<page>' markers."""

    def __init__(self, fail_pages=None, gate: Optional[threading.Event] = None):
        self.fail_pages = set(fail_pages or [])
        self.gate = gate
        self.opened = 0
        self.closed = 0
        self.render_calls: List[tuple] = []

    def open_session(self, data: bytes):
        self.opened += 1
        return {"data": data, "open": True}

    def render_page(self, session, page_index: int, target_width: int) -> bytes:
        if self.gate is not None:
            self.gate.wait(5)
        assert session["open"], "render on a closed session"
        self.render_calls.append((page_index, target_width))
        if page_index in self.fail_pages:
            raise RenderError("broken page", page_index=page_index)
        return f"thumb:{page_index}:{target_width}".encode()

    def close_session(self, session) -> None:
        session["open"] = False
        self.closed += 1


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


class FailingCodec(PikePdfCodec):
    """Real codec that fails to reload sources after the first `allowed_loads` loads."""

    def __init__(self, allowed_loads: int = 10**6):
        self.allowed_loads = allowed_loads
        self.loads = 0

    def load_document(self, data: bytes):
        self.loads += 1
        if self.loads > self.allowed_loads:
            raise DecodeError("simulated reload failure")
        return super().load_document(data)


class ControlledEngine:
    """
    Assembly engine stand-in. Every call waits until the test releases it
    and then returns a result naming the generation it was issued for.
    """

    def __init__(self, auto_release: bool = True):
        self.auto_release = auto_release
        self.calls: List[Dict] = []
        self._events: List[asyncio.Event] = []
        self.fail_next = False

    async def assemble(self, sequence, registry, options=None, *, selected_only=False, protect=False, generation=None):
        event = asyncio.Event()
        if self.auto_release:
            event.set()
        self._events.append(event)
        self.calls.append({"generation": generation, "uids": [e.uid for e in sequence]})
        fail = self.fail_next
        self.fail_next = False
        await event.wait()
        if fail:
            raise AssemblyError("simulated failure")
        entries = [e for e in sequence if e.selected or not selected_only]
        if not entries:
            return None
        return AssemblyResult(data=f"gen{generation}".encode(), page_count=len(entries))

    def release(self, index: int) -> None:
        self._events[index].set()


@pytest.fixture
def controlled_engine():
    return ControlledEngine()


@pytest.fixture
def rasterizer_factory():
    return FakeRasterizer


@pytest.fixture
def failing_codec_factory():
    return FailingCodec


@pytest.fixture
def engine_factory():
    return ControlledEngine
