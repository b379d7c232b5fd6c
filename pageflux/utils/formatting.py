import re
from pathlib import PurePath
from typing import Iterable, Union

def format_file_size(size: int) -> str:
    """
    Formats a byte count for display.
    512 -> '512 B', 2048 -> '2.0 KB', 3145728 -> '3.0 MB'
    """
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"

def get_base_name(filename: str) -> str:
    """File name without directory and last extension."""
    name = PurePath(filename).name
    return re.sub(r"\.[^.]+$", "", name) or name

def page_label(source_name: str, page_index: int) -> str:
    """Grid label of a page: '<file> - P<n>' (1-based)."""
    return f"{source_name} - P{page_index + 1}"

def build_download_name(base_names: Union[str, Iterable[str]], extension: str, max_parts: int = 3) -> str:
    """
    Builds a download file name from one or more source base names.
    Duplicates are dropped, at most `max_parts` names are joined and
    the rest is summarized as '_etc'.
    """
    if isinstance(base_names, str):
        base_names = [base_names]

    parts = []
    for name in base_names:
        clean = re.sub(r'[\\/:*?"<>|\s]+', "_", name.strip()).strip("_")
        if clean and clean not in parts:
            parts.append(clean)

    if not parts:
        parts = ["output"]

    stem = "_".join(parts[:max_parts])
    if len(parts) > max_parts:
        stem += "_etc"
    return f"{stem}.{extension.lstrip('.')}"
