"""QPainter adapter for the surface renderer."""
from __future__ import annotations

from typing import Any, Optional

from PyQt6.QtCore import QLineF, QRectF, Qt
from PyQt6.QtGui import QBrush, QPainter, QPen

from marks_overlay.colors import resolve_color
from marks_overlay.surface_renderer import SurfacePainterAdapter


class QtSurfacePainterAdapter(SurfacePainterAdapter):
    def __init__(self, painter: QPainter) -> None:
        self._painter = painter

    def _pen(self, stroke: Optional[str], stroke_width: float) -> QPen:
        color = resolve_color(stroke)
        if color is None:
            return QPen(Qt.PenStyle.NoPen)
        pen = QPen(color)
        pen.setWidthF(max(0.0, stroke_width))
        return pen

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
    ) -> None:
        color = resolve_color(fill, fill_opacity)
        brush = QBrush(color) if color is not None else QBrush(Qt.BrushStyle.NoBrush)
        self._painter.setPen(self._pen(stroke, stroke_width))
        self._painter.setBrush(brush)
        self._painter.drawRect(QRectF(x, y, width, height))

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
    ) -> None:
        pen = self._pen(stroke, stroke_width)
        pen.setCapStyle(Qt.PenCapStyle.SquareCap if square_cap else Qt.PenCapStyle.FlatCap)
        self._painter.setPen(pen)
        self._painter.setBrush(Qt.BrushStyle.NoBrush)
        self._painter.drawLine(QLineF(x1, y1, x2, y2))
