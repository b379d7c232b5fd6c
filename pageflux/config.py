"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/config.py
Version:        1.0.0
Description:    Manages application configuration using QSettings. Standardizes
                paths for configuration and data across different platforms
                (XDG standards on Linux).
------------------------------------------------------------------------------
"""

import json
from pathlib import Path
from typing import Any, Optional

from PyQt6.QtCore import QSettings, QStandardPaths


class AppConfig:
    """
    Manages application configuration using QSettings.
    Singleton-like usage via class methods or single instance.
    """

    KEY_DEBOUNCE_MS: str = "debounce_ms"
    KEY_THUMB_WIDTH: str = "width"
    KEY_THUMB_YIELD_MS: str = "yield_ms"
    KEY_THUMB_QUALITY: str = "jpeg_quality"
    KEY_PAGE_SIZE: str = "page_size"
    KEY_ORIENTATION: str = "orientation"
    KEY_MARGIN_MM: str = "margin_mm"
    KEY_FONT_SIZE: str = "font_size"
    KEY_AUTHOR: str = "author"
    KEY_LOG_LEVEL: str = "log_level"
    KEY_LOG_COMPONENTS: str = "log_components"

    # Defaults
    DEFAULT_DEBOUNCE_MS: int = 300
    DEFAULT_THUMB_WIDTH: int = 180
    DEFAULT_THUMB_YIELD_MS: int = 10
    DEFAULT_THUMB_QUALITY: int = 75
    DEFAULT_PAGE_SIZE: str = "a4"
    DEFAULT_ORIENTATION: str = "auto"
    DEFAULT_MARGIN_MM: int = 10
    DEFAULT_FONT_SIZE: int = 9

    APP_ID: str = "pageflux"
    _active_profile: Optional[str] = None

    def __init__(self, profile: Optional[str] = None) -> None:
        """
        Initializes the configuration manager.

        Args:
            profile: Optional profile name (e.g. 'dev', 'test').
                    If provided, all paths and settings will be isolated (e.g. pageflux-dev).
        """
        # If no profile provided, use the last active one
        if profile is None:
            profile = AppConfig._active_profile
        else:
            AppConfig._active_profile = profile

        self.profile = profile
        self.active_id = self.APP_ID
        if profile:
            self.active_id = f"{self.APP_ID}-{profile}"

        self.settings = QSettings(self.active_id, self.active_id)

    def get_config_dir(self) -> Path:
        """
        Returns the path to the application configuration directory.
        Forces a flat structure: ~/.config/pageflux[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.ConfigLocation)
        config_dir = Path(base_path) / self.active_id
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def get_data_dir(self) -> Path:
        """
        Returns the path to the application data directory.
        Forces a flat structure: ~/.local/share/pageflux[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
        data_dir = Path(base_path) / self.active_id
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def _get_setting(self, group: str, key: str, default: Any = None) -> Any:
        """
        Helper to retrieve a setting value from a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            default: The default value if not found.

        Returns:
            The retrieved value or default.
        """
        if group:
            self.settings.beginGroup(group)
        val = self.settings.value(key, default)
        if group:
            self.settings.endGroup()
        return val

    def _set_setting(self, group: str, key: str, value: Any) -> None:
        """
        Helper to save a setting value into a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            value: The value to save.
        """
        if isinstance(value, str):
            value = value.strip()

        if group:
            self.settings.beginGroup(group)
        self.settings.setValue(key, value)
        if group:
            self.settings.endGroup()

    def _get_int(self, group: str, key: str, default: int) -> int:
        """Reads an integer setting, falling back to the default on garbage."""
        try:
            return int(self._get_setting(group, key, default))
        except (TypeError, ValueError):
            return default

    def get_debounce_ms(self) -> int:
        """
        Retrieves the quiet interval after the last edit before a preview rebuild.

        Returns:
            The debounce window in milliseconds.
        """
        return max(0, self._get_int("Preview", self.KEY_DEBOUNCE_MS, self.DEFAULT_DEBOUNCE_MS))

    def set_debounce_ms(self, value: int) -> None:
        """
        Saves the preview debounce window.

        Args:
            value: The debounce window in milliseconds.
        """
        self._set_setting("Preview", self.KEY_DEBOUNCE_MS, int(value))

    def get_thumbnail_width(self) -> int:
        """Retrieves the target width of rendered thumbnails in pixels."""
        return max(16, self._get_int("Thumbnails", self.KEY_THUMB_WIDTH, self.DEFAULT_THUMB_WIDTH))

    def set_thumbnail_width(self, width: int) -> None:
        """Saves the thumbnail target width."""
        self._set_setting("Thumbnails", self.KEY_THUMB_WIDTH, int(width))

    def get_thumbnail_yield_ms(self) -> int:
        """Retrieves the pause between two thumbnails of a grid render."""
        return max(0, self._get_int("Thumbnails", self.KEY_THUMB_YIELD_MS, self.DEFAULT_THUMB_YIELD_MS))

    def set_thumbnail_yield_ms(self, value: int) -> None:
        """Saves the pause between two thumbnails of a grid render."""
        self._set_setting("Thumbnails", self.KEY_THUMB_YIELD_MS, int(value))

    def get_thumbnail_quality(self) -> int:
        """Retrieves the JPEG quality (1-100) used for thumbnails."""
        return min(100, max(1, self._get_int("Thumbnails", self.KEY_THUMB_QUALITY, self.DEFAULT_THUMB_QUALITY)))

    def set_thumbnail_quality(self, quality: int) -> None:
        """Saves the JPEG quality used for thumbnails."""
        self._set_setting("Thumbnails", self.KEY_THUMB_QUALITY, int(quality))

    def get_page_size(self) -> str:
        """
        Retrieves the default page size for image and sheet pages.

        Returns:
            One of 'a4', 'a3', 'letter', 'legal'.
        """
        return str(self._get_setting("Layout", self.KEY_PAGE_SIZE, self.DEFAULT_PAGE_SIZE))

    def set_page_size(self, page_size: str) -> None:
        """
        Saves the default page size.

        Args:
            page_size: One of 'a4', 'a3', 'letter', 'legal'.
        """
        self._set_setting("Layout", self.KEY_PAGE_SIZE, page_size.lower())

    def get_orientation(self) -> str:
        """Retrieves the default orientation ('portrait', 'landscape' or 'auto')."""
        return str(self._get_setting("Layout", self.KEY_ORIENTATION, self.DEFAULT_ORIENTATION))

    def set_orientation(self, orientation: str) -> None:
        """Saves the default orientation."""
        self._set_setting("Layout", self.KEY_ORIENTATION, orientation.lower())

    def get_margin_mm(self) -> int:
        """Retrieves the page margin for image pages in millimetres."""
        return max(0, self._get_int("Layout", self.KEY_MARGIN_MM, self.DEFAULT_MARGIN_MM))

    def set_margin_mm(self, margin: int) -> None:
        """Saves the page margin for image pages."""
        self._set_setting("Layout", self.KEY_MARGIN_MM, int(margin))

    def get_sheet_font_size(self) -> int:
        """Retrieves the default font size for sheet tables (7, 8, 9, 10 or 12)."""
        size = self._get_int("Sheets", self.KEY_FONT_SIZE, self.DEFAULT_FONT_SIZE)
        return size if size in (7, 8, 9, 10, 12) else self.DEFAULT_FONT_SIZE

    def set_sheet_font_size(self, size: int) -> None:
        """Saves the default font size for sheet tables."""
        self._set_setting("Sheets", self.KEY_FONT_SIZE, int(size))

    def get_default_author(self) -> str:
        """Retrieves the author written into assembled documents."""
        return str(self._get_setting("Output", self.KEY_AUTHOR, ""))

    def set_default_author(self, author: str) -> None:
        """Saves the author written into assembled documents."""
        self._set_setting("Output", self.KEY_AUTHOR, author)

    def get_log_level(self) -> str:
        """Retrieves the global log level."""
        return str(self._get_setting("Logging", self.KEY_LOG_LEVEL, "WARNING"))

    def set_log_level(self, level: str) -> None:
        """Saves the global log level."""
        self._set_setting("Logging", self.KEY_LOG_LEVEL, level.upper())

    def get_log_components(self) -> dict:
        """Retrieves a dictionary of component-specific log levels."""
        raw = str(self._get_setting("Logging", self.KEY_LOG_COMPONENTS, "{}"))
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return {}
        return data if isinstance(data, dict) else {}

    def set_log_components(self, components: dict) -> None:
        """Saves a dictionary of component-specific log levels."""
        self._set_setting("Logging", self.KEY_LOG_COMPONENTS, json.dumps(components))

    def get_log_file_path(self) -> Path:
        """Returns the absolute path to the log file."""
        return self.get_data_dir() / "app.log"
