"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           tests/unit/test_registry.py
Version:        1.0.0
Description:    Unit tests for the source registry and the pikepdf codec.
------------------------------------------------------------------------------
"""

import io
import threading

import pikepdf
import pytest

from pageflux.codec import PikePdfCodec
from pageflux.exceptions import DecodeError
from pageflux.models.options import OutputOptions
from pageflux.registry import SourceRegistry


def test_add_reads_page_count(src1, src2):
    registry = SourceRegistry()
    a = registry.add(src1, "a.pdf")
    b = registry.add(src2, "b.pdf")

    assert a.page_count == 3
    assert b.page_count == 2
    assert a.id != b.id
    assert registry.get(a.id) is a
    assert [s.name for s in registry] == ["a.pdf", "b.pdf"]
    assert len(registry) == 2


def test_add_rejects_garbage_and_stays_unchanged(src1):
    registry = SourceRegistry()
    registry.add(src1, "a.pdf")

    with pytest.raises(DecodeError) as exc:
        registry.add(b"this is not a pdf", "broken.pdf")

    assert exc.value.name == "broken.pdf"
    assert "broken.pdf" in exc.value.user_message()
    assert len(registry) == 1


def test_remove_is_idempotent_and_notifies(src1):
    registry = SourceRegistry()
    removed = []
    registry.subscribe_removed(removed.append)
    source = registry.add(src1, "a.pdf")

    assert registry.remove(source.id) is True
    assert registry.remove(source.id) is False
    assert registry.get(source.id) is None
    assert source.id not in registry
    assert removed == [source.id]


def test_clear_notifies_each_source(src1, src2):
    registry = SourceRegistry()
    removed = []
    registry.subscribe_removed(removed.append)
    a = registry.add(src1, "a.pdf")
    b = registry.add(src2, "b.pdf")

    registry.clear()

    assert sorted(removed) == sorted([a.id, b.id])
    assert len(registry) == 0


def test_source_document_is_immutable(src1):
    source = SourceRegistry().add(src1, "a.pdf")
    with pytest.raises(Exception):
        source.page_count = 7


# --- Codec ---

def test_codec_copies_pages_in_requested_order(src1, read_texts):
    codec = PikePdfCodec()
    src = codec.load_document(src1)
    dest = codec.create_empty_document()
    for page in codec.copy_pages(dest, src, [2, 0]):
        codec.append_page(dest, page)

    data = codec.serialize(dest)
    assert read_texts(data) == ["src1p3", "src1p1"]


def test_codec_copy_out_of_range(src1):
    codec = PikePdfCodec()
    src = codec.load_document(src1)
    with pytest.raises(IndexError):
        codec.copy_pages(codec.create_empty_document(), src, [3])


def test_codec_writes_document_properties(src1):
    codec = PikePdfCodec()
    src = codec.load_document(src1)
    doc = codec.create_empty_document()
    for page in codec.copy_pages(doc, src, [0]):
        codec.append_page(doc, page)
    codec.set_document_properties(doc, {"title": "Report", "keywords": ["a", "b"], "author": ""})
    data = codec.serialize(doc)

    with pikepdf.Pdf.open(io.BytesIO(data)) as pdf:
        assert str(pdf.docinfo["/Title"]) == "Report"
        assert str(pdf.docinfo["/Keywords"]) == "a, b"
        assert "/Author" not in pdf.docinfo


def test_codec_encrypts_when_asked(src1):
    codec = PikePdfCodec()
    doc = codec.load_document(src1)
    data = codec.serialize(doc, OutputOptions(user_password="secret", owner_password="owner", allow_copy=False))

    with pytest.raises(DecodeError):
        codec.load_document(data)

    with pikepdf.Pdf.open(io.BytesIO(data), password="secret") as pdf:
        assert pdf.is_encrypted
        assert len(pdf.pages) == 3
        assert pdf.allow.extract is False


class ThreadRecordingCodec(PikePdfCodec):
    def __init__(self):
        self.load_threads = []

    def load_document(self, data):
        self.load_threads.append(threading.get_ident())
        return super().load_document(data)


@pytest.mark.asyncio
async def test_add_async_parses_off_the_event_loop(src1):
    codec = ThreadRecordingCodec()
    registry = SourceRegistry(codec)

    source = await registry.add_async(src1, "a.pdf")

    assert source.page_count == 3
    assert registry.get(source.id) is source
    assert codec.load_threads and threading.get_ident() not in codec.load_threads


@pytest.mark.asyncio
async def test_add_async_rejects_garbage_without_storing():
    registry = SourceRegistry()
    with pytest.raises(DecodeError) as exc:
        await registry.add_async(b"garbage", "bad.pdf")
    assert exc.value.name == "bad.pdf"
    assert len(registry) == 0
