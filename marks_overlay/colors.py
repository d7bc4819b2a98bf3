"""Helpers for resolving surface paint attributes into Qt colors."""
from __future__ import annotations

from typing import Any, Optional

from PyQt6.QtGui import QColor


def coerce_percent(value: Any, default: int = 100) -> int:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return default
    numeric = int(round(numeric))
    if numeric < 0:
        return 0
    if numeric > 100:
        return 100
    return numeric


def opacity_percent(value: Any, default: int = 100) -> int:
    """Convert an SVG ``fill-opacity`` fraction (``0.3``) into a clamped percentage."""

    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return default
    return coerce_percent(numeric * 100.0, default)


def alpha_percent_from_qcolor(color: QColor) -> int:
    try:
        alpha = int(color.alpha())
    except Exception:
        return 100
    alpha = max(0, min(alpha, 255))
    return int(round((alpha / 255.0) * 100))


def apply_opacity(color: QColor, percent: Any) -> QColor:
    if not color.isValid():
        return color
    percent = coerce_percent(percent, 100)
    if percent >= 100:
        return color
    base_percent = alpha_percent_from_qcolor(color)
    effective = int(round(base_percent * percent / 100.0))
    new_alpha = int(round(255 * (effective / 100.0)))
    if new_alpha == color.alpha():
        return color
    return QColor(color.red(), color.green(), color.blue(), new_alpha)


def resolve_color(value: Any, opacity: Any = None) -> Optional[QColor]:
    """Return a QColor for an SVG paint value, or None for ``none``/invalid values."""

    if value is None:
        return None
    token = str(value).strip()
    if not token or token.lower() == "none":
        return None
    color = QColor(token)
    if not color.isValid():
        return None
    if opacity is None:
        return color
    return apply_opacity(color, opacity_percent(opacity))
