import fitz
import pytest

from pageflux.models.document import SheetData
from pageflux.models.options import SheetLayout
from pageflux.models.types import MM_TO_PT, ColorMode, Orientation, PageSize
from pageflux.sheets import SheetRenderer


def texts(data):
    with fitz.open(stream=data, filetype="pdf") as doc:
        return [page.get_text() for page in doc]


def test_renders_header_and_rows():
    sheet = SheetData(title="Q1", rows=[["Name", "Amount"], ["Alice", 10], ["Bob", None]])
    pages = texts(SheetRenderer().render([sheet]))

    assert len(pages) == 1
    assert "Name" in pages[0]
    assert "Alice" in pages[0]
    assert "Bob" in pages[0]
    # Single sheet: no title
    assert "Q1" not in pages[0]
    assert "1 / 1" in pages[0]


def test_titles_shown_for_multiple_sheets():
    sheets = [SheetData(title="First", rows=[["a"], ["1"]]), SheetData(title="Second", rows=[["b"], ["2"]])]
    pages = texts(SheetRenderer().render(sheets))

    assert len(pages) == 2
    assert "First" in pages[0]
    assert "Second" in pages[1]
    assert "2 / 2" in pages[1]


def test_header_repeats_on_every_page():
    rows = [["Header"]] + [[f"row {i}"] for i in range(200)]
    pages = texts(SheetRenderer(SheetLayout(font_size=12)).render([SheetData(rows=rows)]))

    assert len(pages) > 1
    assert all("Header" in p for p in pages)
    assert f"1 / {len(pages)}" in pages[0]


def test_empty_sheet_still_produces_a_page():
    pages = texts(SheetRenderer().render([SheetData(title="Empty", rows=[["", None]])]))
    assert len(pages) == 1


def test_ragged_rows_are_padded():
    sheet = SheetData(rows=[["a", "b", "c"], ["only one"]])
    assert "only one" in texts(SheetRenderer().render([sheet]))[0]


def test_markup_characters_are_escaped():
    sheet = SheetData(rows=[["expr"], ["a < b & c"]])
    assert "a < b & c" in texts(SheetRenderer().render([sheet]))[0]


def test_landscape_page_size():
    renderer = SheetRenderer(SheetLayout(page_size=PageSize.A3, orientation=Orientation.LANDSCAPE))
    with fitz.open(stream=renderer.render([SheetData(rows=[["x"]])]), filetype="pdf") as doc:
        assert doc[0].rect.width == pytest.approx(420 * MM_TO_PT, abs=0.5)


def test_grayscale_colors():
    renderer = SheetRenderer(color_mode=ColorMode.GRAYSCALE)
    color = renderer._color((255, 0, 0))
    assert color.red == color.green == color.blue


def test_invalid_font_size_rejected():
    with pytest.raises(ValueError):
        SheetLayout(font_size=11)


def test_auto_orientation_means_portrait():
    assert SheetLayout(orientation=Orientation.AUTO).orientation is Orientation.PORTRAIT
