import pytest

from pageflux.page_ranges import compact_page_range, parse_page_range


@pytest.mark.parametrize("text, max_pages, expected", [
    ("3,1-2", 5, [3, 1, 2]),
    ("1-3, 5", 5, [1, 2, 3, 5]),
    ("  2 ,  4 ", 5, [2, 4]),
    ("4-10", 5, [4, 5]),
    ("0-2", 5, [1, 2]),
    ("2,2,1-3", 5, [2, 1, 3]),
    ("7, 2", 5, [2]),
    ("abc, 1, x-y", 5, [1]),
    ("", 5, []),
    ("3-1", 5, []),
    ("3x, 2-", 5, [3, 2]),
    ("-2, +4, 1.5", 5, [4, 1]),
])
def test_parse_page_range(text, max_pages, expected):
    assert parse_page_range(text, max_pages) == expected


def test_parse_none_is_empty():
    assert parse_page_range(None, 3) == []


@pytest.mark.parametrize("pages, expected", [
    ([1, 2, 3, 5], "1-3, 5"),
    ([3, 1, 2], "3, 1-2"),
    ([4], "4"),
    ([], ""),
    ([2, 3, 1, 5, 6, 7], "2-3, 1, 5-7"),
])
def test_compact_page_range(pages, expected):
    assert compact_page_range(pages) == expected


def test_compact_output_parses_back_to_same_order():
    pages = [5, 1, 2, 3, 8]
    assert parse_page_range(compact_page_range(pages), 10) == pages
