"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/logger.py
Version:        1.0.0
Description:    Centralized logging for PageFlux.
                One 'pageflux' logger tree with per-component levels; console
                output goes to stderr so stdout stays free for CLI results.
                Assembly traces are emitted on 'pageflux.assembly.trace'.
------------------------------------------------------------------------------
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

APP_LOGGER_NAME = "pageflux"

DEFAULT_FORMAT = "%(asctime)s [%(levelname).4s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

Level = Union[str, int]


def _resolve_level(level: Level) -> Optional[int]:
    """'debug', 'DEBUG' or logging.DEBUG -> 10. Unknown names -> None."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else None


def _build_handlers(log_file: Optional[str], console: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))
    return handlers


def setup_logging(
    level: Level = "WARNING",
    log_file: Optional[str] = None,
    component_levels: Optional[Dict[str, Level]] = None,
    console: bool = True,
) -> None:
    """
    (Re)configures the 'pageflux' logger tree. Safe to call repeatedly:
    handlers of a previous setup are closed and replaced.

    Args:
        level: Default level for all components. Unknown names mean WARNING.
        log_file: Optional log file; parent directories are created.
        component_levels: Overrides such as {'preview': 'DEBUG'}.
        console: Also log to stderr.
    """
    root = logging.getLogger(APP_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(_resolve_level(level) or logging.WARNING)

    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(log_file, console):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for component, component_level in (component_levels or {}).items():
        set_component_level(component, component_level)


def get_logger(name: str) -> logging.Logger:
    """Logger of one component, e.g. 'preview' -> 'pageflux.preview'."""
    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def set_component_level(component: str, level: Level) -> bool:
    """
    Changes the level of one component at runtime.
    Returns False and leaves the logger untouched for an unknown level.
    """
    numeric_level = _resolve_level(level)
    if numeric_level is None:
        return False
    get_logger(component).setLevel(numeric_level)
    return True


def log_assembly(
    generation: Optional[int],
    page_refs: Iterable[Tuple[int, int]],
    result_pages: int = 0,
    purpose: str = "preview",
) -> None:
    """
    Traces one finished assembly at DEBUG level on 'pageflux.assembly.trace'.
    Pages are written as 'source:page' with 1-based page numbers.
    """
    logger = get_logger("assembly.trace")
    if not logger.isEnabledFor(logging.DEBUG):
        return
    refs = ", ".join(f"{sid}:{idx + 1}" for sid, idx in page_refs)
    logger.debug(f"ASSEMBLY[{purpose}] gen={generation} | PAGES: [{refs}] | RESULT: {result_pages}")
