"""Rectangle value type and pure coordinate helpers (no Qt types)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol

_BOX_KEYS = ("top", "left", "height", "width")


@dataclass(frozen=True)
class Rect:
    """Viewport-relative box as reported by a text layout engine."""

    top: float
    left: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(top=self.top + dy, left=self.left + dx, width=self.width, height=self.height)

    def as_dict(self) -> Dict[str, float]:
        return {"top": self.top, "left": self.left, "width": self.width, "height": self.height}

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rect":
        return cls(top=top, left=left, width=right - left, height=bottom - top)


class BoxElement(Protocol):
    def bounding_client_rect(self) -> Rect: ...
    def scroll_width(self) -> float: ...
    def scroll_height(self) -> float: ...


class StyledSurface(Protocol):
    def set_style(self, name: str, value: Any, *, important: bool = False) -> None: ...
    def style_value(self, name: str) -> Optional[Any]: ...


def box_relative_to(element: BoxElement, container: BoxElement) -> Dict[str, float]:
    """Position of ``element`` inside ``container``, sized to the element's scrollable extent.

    Height and width come from the scroll size rather than the visible box so an
    overlay placed with this box also covers content scrolled out of view.
    """

    offset = container.bounding_client_rect()
    rect = element.bounding_client_rect()
    return {
        "top": rect.top - offset.top,
        "left": rect.left - offset.left,
        "height": float(element.scroll_height()),
        "width": float(element.scroll_width()),
    }


def apply_box(surface: StyledSurface, box: Dict[str, float]) -> None:
    for key in _BOX_KEYS:
        surface.set_style(key, float(box[key]), important=True)


def read_box(surface: StyledSurface) -> Dict[str, float]:
    box: Dict[str, float] = {}
    for key in _BOX_KEYS:
        value = surface.style_value(key)
        box[key] = float(value) if value is not None else 0.0
    return box


def union_rect(rects: Iterable[Rect]) -> Optional[Rect]:
    left = top = float("inf")
    right = bottom = float("-inf")
    seen = False
    for rect in rects:
        seen = True
        left = min(left, rect.left)
        top = min(top, rect.top)
        right = max(right, rect.right)
        bottom = max(bottom, rect.bottom)
    if not seen:
        return None
    return Rect.from_edges(left, top, right, bottom)


def rect_contains_point(rect: Rect, x: float, y: float) -> bool:
    # Closed on every edge.
    return rect.top <= y <= rect.bottom and rect.left <= x <= rect.right
