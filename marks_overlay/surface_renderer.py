from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from marks_overlay.surface import SurfaceNode

TraceFn = Callable[[str, Mapping[str, Any]], None]

# SVG initial values for presentation attributes nobody set.
_DEFAULT_FILL = "black"
_DEFAULT_STROKE = "none"


class SurfacePainterAdapter:
    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: Optional[str],
        fill_opacity: Optional[Any],
        stroke: Optional[str],
        stroke_width: float,
    ) -> None: ...
    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        stroke: Optional[str],
        stroke_width: float,
        square_cap: bool,
    ) -> None: ...


def _inherited(node: SurfaceNode, name: str, default: Any = None) -> Any:
    current: Optional[SurfaceNode] = node
    while current is not None:
        if name in current.attributes:
            return current.attributes[name]
        current = current.parent
    return default


def _float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _paint_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    token = str(value).strip()
    if not token or token.lower() == "none":
        return None
    return token


def render_surface(adapter: SurfacePainterAdapter, root: SurfaceNode, *, trace: Optional[TraceFn] = None) -> int:
    """Paint every rect/line under ``root`` in document order; returns the primitive count."""

    painted = 0
    for node in root.walk():
        attrs = node.attributes
        if node.kind == "rect":
            fill = _paint_value(_inherited(node, "fill", _DEFAULT_FILL))
            stroke = _paint_value(_inherited(node, "stroke", _DEFAULT_STROKE))
            adapter.draw_rect(
                _float(attrs.get("x"), 0.0),
                _float(attrs.get("y"), 0.0),
                _float(attrs.get("width"), 0.0),
                _float(attrs.get("height"), 0.0),
                fill=fill,
                fill_opacity=_inherited(node, "fill-opacity"),
                stroke=stroke,
                stroke_width=_float(_inherited(node, "stroke-width"), 1.0),
            )
            painted += 1
        elif node.kind == "line":
            stroke = _paint_value(_inherited(node, "stroke", _DEFAULT_STROKE))
            if stroke is None:
                continue
            adapter.draw_line(
                _float(attrs.get("x1"), 0.0),
                _float(attrs.get("y1"), 0.0),
                _float(attrs.get("x2"), 0.0),
                _float(attrs.get("y2"), 0.0),
                stroke=stroke,
                stroke_width=_float(_inherited(node, "stroke-width"), 1.0),
                square_cap=str(_inherited(node, "stroke-linecap", "butt")) == "square",
            )
            painted += 1
    if trace:
        trace("render_surface:painted", {"primitives": painted})
    return painted
