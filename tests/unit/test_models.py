"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           tests/unit/test_models.py
Version:        1.0.0
Description:    Unit tests for option models, error messages and the small
                formatting and colour helpers.
------------------------------------------------------------------------------
"""

import pytest
from pydantic import ValidationError

from pageflux.exceptions import AssemblyError, DecodeError, RenderError
from pageflux.models.document import AssemblyResult, PageEntry, SheetData
from pageflux.models.options import ImageLayout, OutputOptions
from pageflux.models.types import MM_TO_PT, ColorMode, Orientation, PageSize, WorkflowMode
from pageflux.utils.color import convert_color, luminance, to_unit_rgb
from pageflux.utils.formatting import build_download_name, format_file_size, get_base_name, page_label


# --- OutputOptions ---

def test_output_options_defaults():
    options = OutputOptions()
    assert not options.has_properties
    assert not options.has_encryption
    assert options.document_properties() == {}
    assert options.image_quality == 0.75


def test_keywords_are_split_and_trimmed():
    options = OutputOptions(keywords=" invoices, 2024 ,, tax ")
    assert options.keyword_list() == ["invoices", "2024", "tax"]
    assert options.document_properties() == {"keywords": ["invoices", "2024", "tax"]}


def test_owner_password_falls_back_to_user_password():
    assert OutputOptions(user_password="u").effective_owner_password() == "u"
    assert OutputOptions(user_password="u", owner_password="o").effective_owner_password() == "o"
    assert OutputOptions(owner_password="o").has_encryption


@pytest.mark.parametrize("quality", [0.0, 1.5])
def test_image_quality_bounds(quality):
    with pytest.raises(ValidationError):
        OutputOptions(image_quality=quality)


def test_unknown_option_keys_are_ignored():
    assert OutputOptions(**{"title": "x", "legacyFlag": True}).title == "x"


# --- ImageLayout ---

@pytest.mark.parametrize("orientation, size, landscape", [
    (Orientation.AUTO, (400, 300), True),
    (Orientation.AUTO, (300, 400), False),
    (Orientation.AUTO, (300, 300), False),
    (Orientation.PORTRAIT, (400, 300), False),
    (Orientation.LANDSCAPE, (300, 400), True),
])
def test_orientation(orientation, size, landscape):
    assert ImageLayout(orientation=orientation).is_landscape(*size) is landscape


def test_page_size_in_points():
    layout = ImageLayout(page_size=PageSize.LEGAL, orientation=Orientation.PORTRAIT)
    w, h = layout.page_size_pt(10, 10)
    assert w == pytest.approx(215.9 * MM_TO_PT)
    assert h == pytest.approx(355.6 * MM_TO_PT)


def test_tall_image_fills_height():
    layout = ImageLayout(page_size=PageSize.A4, orientation=Orientation.PORTRAIT, margin_mm=0)
    x0, y0, x1, y1 = layout.image_rect_pt(100, 1000)
    assert y0 == pytest.approx(0)
    assert y1 == pytest.approx(297 * MM_TO_PT)
    assert (x0 + x1) / 2 == pytest.approx(210 * MM_TO_PT / 2)


# --- Documents ---

def test_page_entry_helpers():
    entry = PageEntry(uid=1, source_id=2, page_index=4)
    assert entry.page_number == 5
    assert entry.ref == (2, 4)
    assert entry.selected is True


def test_page_entry_rejects_negative_index():
    with pytest.raises(ValidationError):
        PageEntry(uid=1, source_id=1, page_index=-1)


def test_assembly_result_repr_hides_bytes():
    assert "data" not in repr(AssemblyResult(data=b"x" * 10, page_count=1))


def test_sheet_data_emptiness():
    assert SheetData().is_empty
    assert SheetData(rows=[[None, "  "]]).is_empty
    assert not SheetData(rows=[["h"], [0]]).is_empty


def test_only_split_uses_selection():
    assert WorkflowMode.SPLIT.uses_selection
    assert not any(m.uses_selection for m in (WorkflowMode.MERGE, WorkflowMode.IMAGES, WorkflowMode.SHEETS))


# --- Errors ---

def test_user_messages():
    assert "report.pdf" in DecodeError("bad xref", name="report.pdf").user_message()
    assert "3" in RenderError("x", source_id=1, page_index=2).user_message()
    assert AssemblyError("boom").user_message()
    assert str(AssemblyError("boom")) == "boom"


# --- Helpers ---

def test_luminance_and_color_modes():
    assert luminance((255, 255, 255)) == 255
    assert luminance((255, 0, 0)) == 76
    assert convert_color((10, 20, 30), ColorMode.COLOR) == (10, 20, 30)
    assert convert_color((255, 0, 0), ColorMode.GRAYSCALE) == (76, 76, 76)
    assert convert_color((255, 0, 0), ColorMode.MONO) == (0, 0, 0)
    assert convert_color((200, 200, 200), ColorMode.MONO) == (255, 255, 255)
    assert to_unit_rgb((255, 0, 51)) == pytest.approx((1.0, 0.0, 0.2))


def test_formatting_helpers():
    assert format_file_size(512) == "512 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.0 MB"
    assert get_base_name("/tmp/archive.tar.gz") == "archive.tar"
    assert get_base_name("README") == "README"
    assert page_label("scan.pdf", 0) == "scan.pdf - P1"


@pytest.mark.parametrize("names, expected", [
    ("report", "report.pdf"),
    (["a", "b", "a"], "a_b.pdf"),
    (["a", "b", "c", "d"], "a_b_c_etc.pdf"),
    (["my file?"], "my_file.pdf"),
    ([], "output.pdf"),
])
def test_build_download_name(names, expected):
    assert build_download_name(names, ".pdf") == expected
