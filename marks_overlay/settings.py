"""Configuration helpers for the marks overlay."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

_LOGGER = logging.getLogger("MarksOverlay.Settings")

_LOG_LEVEL_NAMES = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ReaderSettings:
    """Reader typography values that highlights normalise their height against."""

    line_spacing: Optional[float] = None
    font_size: Optional[float] = None

    def normalised_line_height(self) -> Optional[float]:
        if not self.line_spacing or not self.font_size:
            return None
        return self.font_size * self.line_spacing


SettingsProvider = Callable[[], ReaderSettings]


class MutableSettingsProvider:
    """Holds the current reader settings; marks call it on every render."""

    def __init__(self, initial: Optional[ReaderSettings] = None) -> None:
        self._current = initial or ReaderSettings()

    def __call__(self) -> ReaderSettings:
        return self._current

    @property
    def current(self) -> ReaderSettings:
        return self._current

    def update(self, **changes: Any) -> ReaderSettings:
        self._current = replace(self._current, **changes)
        _LOGGER.debug(
            "Reader settings updated: line_spacing=%s font_size=%s",
            self._current.line_spacing,
            self._current.font_size,
        )
        return self._current


def _positive_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric) or numeric <= 0.0:
        return None
    return numeric


@dataclass
class OverlaySettings:
    """Values used to bootstrap the overlay before the host supplies live settings."""

    line_spacing: Optional[float] = None
    font_size: Optional[float] = None
    highlight_fill: str = "yellow"
    highlight_opacity: int = 30
    underline_stroke: str = "black"
    log_level: Optional[str] = None
    log_retention: int = 5

    def reader_settings(self) -> ReaderSettings:
        return ReaderSettings(line_spacing=self.line_spacing, font_size=self.font_size)

    def highlight_fill_opacity(self) -> float:
        """``highlight_opacity`` as the SVG ``fill-opacity`` fraction."""
        return max(0, min(self.highlight_opacity, 100)) / 100.0

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "OverlaySettings":
        """Create an instance from a settings mapping, keeping defaults for bad values."""
        defaults = cls()

        def _int(value: Any, fallback: int) -> int:
            if value is None:
                return fallback
            try:
                return int(value)
            except (TypeError, ValueError):
                return fallback

        def _str(value: Any, fallback: str) -> str:
            if value is None:
                return fallback
            text = str(value).strip()
            return text or fallback

        opacity = max(0, min(_int(payload.get("highlight_opacity"), defaults.highlight_opacity), 100))
        level: Optional[str] = _str(payload.get("log_level"), "").upper()
        if level not in _LOG_LEVEL_NAMES:
            level = None

        return cls(
            line_spacing=_positive_float(payload.get("line_spacing")),
            font_size=_positive_float(payload.get("font_size")),
            highlight_fill=_str(payload.get("highlight_fill"), defaults.highlight_fill),
            highlight_opacity=opacity,
            underline_stroke=_str(payload.get("underline_stroke"), defaults.underline_stroke),
            log_level=level,
            log_retention=max(1, _int(payload.get("log_retention"), defaults.log_retention)),
        )

    def log_level_value(self) -> Optional[int]:
        """Numeric level, or None to let the build decide (see ``configure_logging``)."""
        if self.log_level is None:
            return None
        return getattr(logging, self.log_level, None)


def load_overlay_settings(settings_path: Path) -> OverlaySettings:
    """Read overlay settings from JSON, falling back to defaults on any problem."""
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return OverlaySettings()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        _LOGGER.warning("Ignoring malformed overlay settings in %s: %s", settings_path, exc)
        return OverlaySettings()
    if not isinstance(data, dict):
        _LOGGER.warning("Ignoring overlay settings in %s: expected an object", settings_path)
        return OverlaySettings()
    return OverlaySettings.from_payload(data)
