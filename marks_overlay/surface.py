"""Retained paint-surface tree used as the default surface factory.

The tree mirrors the handful of SVG primitives the marks need: an ``svg`` root
positioned inside a host container, ``g`` groups (one per mark) and ``rect`` /
``line`` leaves. Geometry is kept in surface-local units; client rects are
derived from the root's forced ``top``/``left`` style plus the host's client
box so hit-testing works without a browser.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from marks_overlay.events import EventTarget
from marks_overlay.geometry import Rect, union_rect

SURFACE_KINDS = frozenset({"svg", "g", "rect", "line"})


class SurfaceHost(Protocol):
    def bounding_client_rect(self) -> Rect: ...


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class SurfaceNode(EventTarget):
    def __init__(self, kind: str) -> None:
        super().__init__()
        self.kind = kind
        self.attributes: Dict[str, Any] = {}
        self.dataset: Dict[str, str] = {}
        self.classes: List[str] = []
        self.parent: Optional["SurfaceNode"] = None
        self.host: Optional[SurfaceHost] = None
        self._style: Dict[str, Tuple[Any, bool]] = {}
        self._children: List["SurfaceNode"] = []

    def __repr__(self) -> str:
        return f"SurfaceNode({self.kind!r}, attributes={self.attributes!r})"

    # Attributes and style ---------------------------------------------------

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def add_class(self, name: str) -> None:
        if name and name not in self.classes:
            self.classes.append(name)

    def set_style(self, name: str, value: Any, *, important: bool = False) -> None:
        current = self._style.get(name)
        if current is not None and current[1] and not important:
            return
        self._style[name] = (value, important)

    def style_value(self, name: str) -> Optional[Any]:
        entry = self._style.get(name)
        return entry[0] if entry is not None else None

    def style_is_important(self, name: str) -> bool:
        entry = self._style.get(name)
        return bool(entry and entry[1])

    # Tree -------------------------------------------------------------------

    @property
    def children(self) -> Tuple["SurfaceNode", ...]:
        return tuple(self._children)

    @property
    def first_child(self) -> Optional["SurfaceNode"]:
        return self._children[0] if self._children else None

    def append_child(self, child: "SurfaceNode") -> "SurfaceNode":
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self._children.append(child)
        return child

    def append_children(self, children: Iterable["SurfaceNode"]) -> None:
        """Attach a prepared batch in one step, like inserting a document fragment."""

        batch = list(children)
        for child in batch:
            if child.parent is not None:
                child.parent.remove_child(child)
            child.parent = self
        self._children.extend(batch)

    def remove_child(self, child: "SurfaceNode") -> "SurfaceNode":
        try:
            self._children.remove(child)
        except ValueError:
            raise ValueError(f"{child!r} is not a child of {self!r}") from None
        child.parent = None
        return child

    def clear_children(self) -> None:
        for child in self._children:
            child.parent = None
        self._children = []

    def walk(self) -> Iterator["SurfaceNode"]:
        yield self
        for child in self._children:
            yield from child.walk()

    def root(self) -> "SurfaceNode":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    # Geometry ---------------------------------------------------------------

    def client_origin(self) -> Tuple[float, float]:
        root = self.root()
        if root.host is None:
            return 0.0, 0.0
        host_rect = root.host.bounding_client_rect()
        left = _as_float(root.style_value("left"))
        top = _as_float(root.style_value("top"))
        return host_rect.left + left, host_rect.top + top

    def local_rect(self) -> Optional[Rect]:
        attrs = self.attributes
        if self.kind == "rect":
            return Rect(
                top=_as_float(attrs.get("y")),
                left=_as_float(attrs.get("x")),
                width=_as_float(attrs.get("width")),
                height=_as_float(attrs.get("height")),
            )
        if self.kind == "line":
            x1, x2 = _as_float(attrs.get("x1")), _as_float(attrs.get("x2"))
            y1, y2 = _as_float(attrs.get("y1")), _as_float(attrs.get("y2"))
            return Rect.from_edges(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))
        if self.kind == "svg":
            return Rect(
                top=0.0,
                left=0.0,
                width=_as_float(self.style_value("width")),
                height=_as_float(self.style_value("height")),
            )
        return union_rect(rect for rect in (child.local_rect() for child in self._children) if rect is not None)

    def bounding_client_rect(self) -> Rect:
        origin_x, origin_y = self.client_origin()
        local = self.local_rect()
        if local is None:
            # Empty groups report a zero-size box at the surface origin.
            return Rect(top=origin_y, left=origin_x, width=0.0, height=0.0)
        return local.translated(origin_x, origin_y)


class SurfaceFactory:
    """Create detached surface primitives by kind."""

    def create_element(self, kind: str) -> SurfaceNode:
        if kind not in SURFACE_KINDS:
            raise ValueError(f"Unsupported surface primitive: {kind!r}")
        return SurfaceNode(kind)


class HostElement(EventTarget):
    """Headless stand-in for a laid-out host element (target or container)."""

    def __init__(self, rect: Rect, *, scroll_width: Optional[float] = None, scroll_height: Optional[float] = None) -> None:
        super().__init__()
        self.rect = rect
        self._scroll_width = scroll_width
        self._scroll_height = scroll_height
        self.surfaces: List[SurfaceNode] = []

    def bounding_client_rect(self) -> Rect:
        return self.rect

    def scroll_width(self) -> float:
        return self._scroll_width if self._scroll_width is not None else self.rect.width

    def scroll_height(self) -> float:
        return self._scroll_height if self._scroll_height is not None else self.rect.height

    def scroll_to(self, top: float, left: float) -> None:
        self.rect = Rect(top=top, left=left, width=self.rect.width, height=self.rect.height)

    def append_child(self, surface: SurfaceNode) -> SurfaceNode:
        surface.host = self
        self.surfaces.append(surface)
        return surface

    def remove_child(self, surface: SurfaceNode) -> SurfaceNode:
        self.surfaces.remove(surface)
        surface.host = None
        return surface
