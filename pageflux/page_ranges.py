"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/page_ranges.py
Version:        1.0.0
Description:    Conversion between human-entered page range text ("3,1-2")
                and ordered lists of 1-based page numbers.
------------------------------------------------------------------------------
"""

import re
from typing import Iterable, List

_RANGE_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")
# Leading integer of a part; trailing text is ignored ("3x" -> 3)
_NUMBER_RE = re.compile(r"^[+-]?\d+")


def parse_page_range(text: str, max_pages: int) -> List[int]:
    """
    Parses an ordered page range expression.

    Parts are separated by commas. A part is either a single number or a
    range 'a-b'. Range ends are clamped to [1, max_pages]. Any other part
    counts as its leading integer ('3x' -> 3, '2-' -> 2); numbers outside
    [1, max_pages] and parts without one are skipped. The first
    occurrence of a number wins, later duplicates are ignored.

    Args:
        text: The user input, e.g. "3, 1-2".
        max_pages: Highest valid page number.

    Returns:
        The page numbers in the order they were given.
    """
    pages: List[int] = []
    seen = set()

    def _add(num: int) -> None:
        if num not in seen:
            pages.append(num)
            seen.add(num)

    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        match = _RANGE_RE.match(part)
        if match:
            start = max(1, int(match.group(1)))
            end = min(max_pages, int(match.group(2)))
            for num in range(start, end + 1):
                _add(num)
        else:
            number = _NUMBER_RE.match(part)
            if number:
                num = int(number.group())
                if 1 <= num <= max_pages:
                    _add(num)
    return pages


def compact_page_range(pages: Iterable[int]) -> str:
    """
    Collapses runs of consecutive numbers, keeping the given order.
    [1, 2, 3, 5] -> "1-3, 5"; [3, 1, 2] -> "3, 1-2"
    """
    pages = list(pages)
    if not pages:
        return ""

    parts = []
    start = end = pages[0]
    for num in pages[1:]:
        if num == end + 1:
            end = num
            continue
        parts.append(str(start) if start == end else f"{start}-{end}")
        start = end = num
    parts.append(str(start) if start == end else f"{start}-{end}")
    return ", ".join(parts)
