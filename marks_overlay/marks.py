"""Overlay marks bound to text ranges and their highlight/underline render policies."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from marks_overlay.events import InteractionEvent
from marks_overlay.geometry import Rect
from marks_overlay.rect_filter import dedupe_rects, highlight_rects
from marks_overlay.settings import ReaderSettings, SettingsProvider
from marks_overlay.surface import SurfaceFactory, SurfaceHost, SurfaceNode

_LOGGER = logging.getLogger("MarksOverlay.Marks")

UNDERLINE_STROKE = "black"

_DEFAULT_FACTORY = SurfaceFactory()


class TextRange(Protocol):
    def client_rects(self) -> Sequence[Rect]: ...


class MarkNotBoundError(RuntimeError):
    """Raised when painted geometry is requested from a mark with no surface."""


class MarkKind(enum.Enum):
    HIGHLIGHT = "highlight"
    UNDERLINE = "underline"


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float

    def build(self, factory: SurfaceFactory) -> SurfaceNode:
        node = factory.create_element("rect")
        node.set_attribute("x", self.x)
        node.set_attribute("y", self.y)
        node.set_attribute("height", self.height)
        node.set_attribute("width", self.width)
        return node


@dataclass(frozen=True)
class OutlineRect(FillRect):
    def build(self, factory: SurfaceFactory) -> SurfaceNode:
        node = super().build(factory)
        node.set_attribute("fill", "none")
        return node


@dataclass(frozen=True)
class Stroke:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = UNDERLINE_STROKE

    def build(self, factory: SurfaceFactory) -> SurfaceNode:
        node = factory.create_element("line")
        node.set_attribute("x1", self.x1)
        node.set_attribute("x2", self.x2)
        node.set_attribute("y1", self.y1)
        node.set_attribute("y2", self.y2)
        node.set_attribute("stroke-width", 1)
        node.set_attribute("stroke", self.color)
        node.set_attribute("stroke-linecap", "square")
        return node


PaintPrimitive = Union[FillRect, OutlineRect, Stroke]


def paint_highlight(
    rects: Sequence[Rect],
    offset: Rect,
    container: Rect,
    reader: Optional[ReaderSettings] = None,
) -> List[PaintPrimitive]:
    """One fill box per rect, optionally normalised to the reader's line height."""

    line_height = reader.normalised_line_height() if reader is not None else None
    primitives: List[PaintPrimitive] = []
    for rect in highlight_rects(rects):
        height = rect.height
        y = rect.top - offset.top + container.top
        if line_height is not None:
            height = line_height
            y -= (height - rect.height) / 2
        primitives.append(
            FillRect(
                x=rect.left - offset.left + container.left,
                y=y,
                width=rect.width,
                height=height,
            )
        )
    return primitives


def paint_underline(
    rects: Sequence[Rect],
    offset: Rect,
    container: Rect,
    stroke: str = UNDERLINE_STROKE,
) -> List[PaintPrimitive]:
    """An unfilled box plus a 1px baseline stroke for every rect; no filtering."""

    primitives: List[PaintPrimitive] = []
    for rect in rects:
        x = rect.left - offset.left + container.left
        y = rect.top - offset.top + container.top
        baseline = y + rect.height - 1
        primitives.append(OutlineRect(x=x, y=y, width=rect.width, height=rect.height))
        primitives.append(Stroke(x1=x, y1=baseline, x2=x + rect.width, y2=baseline, color=stroke))
    return primitives


class Mark:
    """A paintable annotation bound to one text range.

    The mark owns nothing until :meth:`bind` hands it a group surface; every
    :meth:`render` then replaces that surface's children with fresh geometry.
    """

    def __init__(
        self,
        text_range: Optional[TextRange] = None,
        class_name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        *,
        kind: Optional[MarkKind] = None,
        settings: Optional[SettingsProvider] = None,
        factory: Optional[SurfaceFactory] = None,
    ) -> None:
        self.range = text_range
        self.class_name = class_name
        self.data: Dict[str, Any] = dict(data or {})
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self.kind = kind
        self.settings = settings
        self._factory = factory or _DEFAULT_FACTORY
        self.element: Optional[SurfaceNode] = None
        self.container: Optional[SurfaceHost] = None

    @classmethod
    def highlight(
        cls,
        text_range: Optional[TextRange],
        class_name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> "Mark":
        return cls(text_range, class_name, data, attributes, kind=MarkKind.HIGHLIGHT, **kwargs)

    @classmethod
    def underline(
        cls,
        text_range: Optional[TextRange],
        class_name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> "Mark":
        return cls(text_range, class_name, data, attributes, kind=MarkKind.UNDERLINE, **kwargs)

    def __repr__(self) -> str:
        kind = self.kind.value if self.kind else "plain"
        return f"Mark({kind}, range_id={self.range_id!r}, bound={self.is_bound()})"

    @property
    def range_id(self) -> Optional[Any]:
        return getattr(self.range, "range_id", None)

    def is_bound(self) -> bool:
        return self.element is not None

    # Lifecycle ------------------------------------------------------------

    def bind(self, element: SurfaceNode, container: SurfaceHost) -> None:
        self.element = element
        self.container = container
        if self.kind is None:
            return
        for key, value in self.data.items():
            element.dataset[key] = str(value)
        for key, value in self.attributes.items():
            element.set_attribute(key, value)
        if self.class_name:
            element.add_class(self.class_name)

    def unbind(self) -> Optional[SurfaceNode]:
        element = self.element
        self.element = None
        return element

    # Rendering ------------------------------------------------------------

    def filtered_rects(self) -> List[Rect]:
        if self.range is None:
            return []
        return dedupe_rects(self.range.client_rects())

    def _reader_settings(self) -> Optional[ReaderSettings]:
        if self.settings is None:
            return None
        return self.settings()

    def render(self) -> None:
        element = self.element
        if element is None or self.kind is None or self.container is None:
            return
        element.clear_children()
        rects = self.filtered_rects()
        offset = element.bounding_client_rect()
        container = self.container.bounding_client_rect()
        if self.kind is MarkKind.HIGHLIGHT:
            primitives = paint_highlight(rects, offset, container, self._reader_settings())
        else:
            stroke = str(self.attributes.get("stroke") or UNDERLINE_STROKE)
            primitives = paint_underline(rects, offset, container, stroke)
        _LOGGER.debug("Rendered %r: rects=%d primitives=%d", self, len(rects), len(primitives))
        element.append_children(primitive.build(self._factory) for primitive in primitives)

    # Interaction ----------------------------------------------------------

    def dispatch_event(self, event: InteractionEvent) -> None:
        if self.element is None:
            return
        self.element.dispatch_event(event.for_range(self.range_id))

    def _require_element(self) -> SurfaceNode:
        if self.element is None:
            raise MarkNotBoundError(f"{self!r} has no surface")
        return self.element

    def get_bounding_client_rect(self) -> Rect:
        return self._require_element().bounding_client_rect()

    def get_client_rects(self) -> List[Rect]:
        return [child.bounding_client_rect() for child in self._require_element().children]


def highlight(text_range: Optional[TextRange], *args: Any, **kwargs: Any) -> Mark:
    return Mark.highlight(text_range, *args, **kwargs)


def underline(text_range: Optional[TextRange], *args: Any, **kwargs: Any) -> Mark:
    return Mark.underline(text_range, *args, **kwargs)
