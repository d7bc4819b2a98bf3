"""Highlight and underline overlays pinned to text ranges."""
from __future__ import annotations

from marks_overlay.events import InteractionEvent, POINTER_EVENTS
from marks_overlay.geometry import Rect, apply_box, box_relative_to, read_box
from marks_overlay.marks import Mark, MarkKind, MarkNotBoundError, highlight, underline
from marks_overlay.pane import Pane
from marks_overlay.rect_filter import dedupe_rects, filter_adjacent_rects, highlight_rects, sort_rects
from marks_overlay.settings import MutableSettingsProvider, OverlaySettings, ReaderSettings

__all__ = [
    "InteractionEvent",
    "POINTER_EVENTS",
    "Rect",
    "apply_box",
    "box_relative_to",
    "read_box",
    "Mark",
    "MarkKind",
    "MarkNotBoundError",
    "highlight",
    "underline",
    "Pane",
    "dedupe_rects",
    "filter_adjacent_rects",
    "highlight_rects",
    "sort_rects",
    "MutableSettingsProvider",
    "OverlaySettings",
    "ReaderSettings",
]
