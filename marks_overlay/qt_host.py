"""PyQt6 host for marks: text ranges over QTextEdit layouts and a painting overlay widget.

Client coordinates here are the coordinates of the container widget the
overlay lives in, so the container's own client box is always at the origin
and targets must be descendants of it.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from PyQt6.QtCore import QEvent, QObject, QPoint, QPointF, QRect, Qt
from PyQt6.QtGui import QPainter, QTextBlock, QTextLine
from PyQt6.QtWidgets import QTextEdit, QWidget

from marks_overlay.events import EventTarget, InteractionEvent
from marks_overlay.geometry import Rect, read_box
from marks_overlay.logging_utils import configure_logging
from marks_overlay.marks import Mark
from marks_overlay.pane import Pane
from marks_overlay.qt_painter import QtSurfacePainterAdapter
from marks_overlay.settings import MutableSettingsProvider, OverlaySettings, SettingsProvider, load_overlay_settings
from marks_overlay.surface import SurfaceNode
from marks_overlay.surface_renderer import render_surface

_LOGGER = logging.getLogger("MarksOverlay.Qt")

_MOUSE_EVENT_KINDS = {
    QEvent.Type.MouseButtonPress: ("mousedown",),
    QEvent.Type.MouseButtonRelease: ("mouseup", "click"),
}


def _origin_in(widget: QWidget, root: QWidget) -> QPoint:
    if widget is root:
        return QPoint(0, 0)
    return widget.mapTo(root, QPoint(0, 0))


class QtWidgetElement(EventTarget):
    """Client-box view of a widget, measured in ``root`` coordinates."""

    def __init__(self, widget: QWidget, root: Optional[QWidget] = None) -> None:
        super().__init__()
        self.widget = widget
        self.root = root or widget.window()
        self.surfaces: List[SurfaceNode] = []

    def bounding_client_rect(self) -> Rect:
        origin = _origin_in(self.widget, self.root)
        return Rect(
            top=float(origin.y()),
            left=float(origin.x()),
            width=float(self.widget.width()),
            height=float(self.widget.height()),
        )

    def scroll_width(self) -> float:
        return float(self.widget.width())

    def scroll_height(self) -> float:
        return float(self.widget.height())

    def append_child(self, surface: SurfaceNode) -> SurfaceNode:
        surface.host = self
        self.surfaces.append(surface)
        return surface

    def remove_child(self, surface: SurfaceNode) -> SurfaceNode:
        self.surfaces.remove(surface)
        surface.host = None
        return surface


class _ViewportEventFilter(QObject):
    def __init__(self, owner: "QtScrollTarget") -> None:
        super().__init__(owner.editor)
        self._owner = owner

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        event_type = event.type()
        if event_type in _MOUSE_EVENT_KINDS:
            position = event.position()
            for kind in _MOUSE_EVENT_KINDS[event_type]:
                self._owner.emit_pointer(kind, position)
        elif event_type == QEvent.Type.TouchBegin:
            points = event.points()
            if points:
                self._owner.emit_pointer("touchstart", points[0].position())
        elif event_type == QEvent.Type.Resize:
            self._owner.notify_geometry_changed()
        return False


class QtScrollTarget(QtWidgetElement):
    """Scrollable text editor seen as an element whose box moves as its content scrolls.

    The client box starts at the content origin (viewport origin minus the
    scroll offsets) and the scroll size is the full document extent.
    """

    def __init__(self, editor: QTextEdit, root: Optional[QWidget] = None) -> None:
        super().__init__(editor.viewport(), root or editor.window())
        self.editor = editor
        self._geometry_listeners: List[Callable[[], None]] = []
        self._filter = _ViewportEventFilter(self)
        editor.viewport().installEventFilter(self._filter)
        editor.verticalScrollBar().valueChanged.connect(self._on_scrolled)
        editor.horizontalScrollBar().valueChanged.connect(self._on_scrolled)
        self._layout = editor.document().documentLayout()
        self._layout.documentSizeChanged.connect(self._on_document_resized)
        self._attached = True

    def detach(self) -> None:
        """Stop watching the editor; safe to call more than once."""
        if not self._attached:
            return
        self._attached = False
        self.editor.viewport().removeEventFilter(self._filter)
        self.editor.verticalScrollBar().valueChanged.disconnect(self._on_scrolled)
        self.editor.horizontalScrollBar().valueChanged.disconnect(self._on_scrolled)
        self._layout.documentSizeChanged.disconnect(self._on_document_resized)
        self._geometry_listeners.clear()

    def scroll_offset(self) -> QPoint:
        return QPoint(self.editor.horizontalScrollBar().value(), self.editor.verticalScrollBar().value())

    def content_origin(self) -> QPointF:
        origin = _origin_in(self.widget, self.root)
        scrolled = self.scroll_offset()
        return QPointF(float(origin.x() - scrolled.x()), float(origin.y() - scrolled.y()))

    def bounding_client_rect(self) -> Rect:
        origin = self.content_origin()
        return Rect(
            top=origin.y(),
            left=origin.x(),
            width=float(self.widget.width()),
            height=float(self.widget.height()),
        )

    def scroll_width(self) -> float:
        bar = self.editor.horizontalScrollBar()
        return float(max(self.widget.width(), bar.maximum() - bar.minimum() + self.widget.width()))

    def scroll_height(self) -> float:
        bar = self.editor.verticalScrollBar()
        return float(max(self.widget.height(), bar.maximum() - bar.minimum() + self.widget.height()))

    def add_geometry_listener(self, callback: Callable[[], None]) -> None:
        self._geometry_listeners.append(callback)

    def notify_geometry_changed(self) -> None:
        for callback in list(self._geometry_listeners):
            callback()

    def emit_pointer(self, kind: str, position: QPointF) -> None:
        origin = _origin_in(self.widget, self.root)
        self.dispatch_event(InteractionEvent(kind=kind, x=origin.x() + position.x(), y=origin.y() + position.y()))

    def _on_scrolled(self, _value: int) -> None:
        self.notify_geometry_changed()

    def _on_document_resized(self, _size: Any) -> None:
        self.notify_geometry_changed()


def _cursor_x(line: QTextLine, position: int) -> float:
    value = line.cursorToX(position)
    if isinstance(value, tuple):
        value = value[0]
    return float(value)


class QtTextRange:
    """Character range ``[start, end)`` of a QTextEdit document.

    Produces one rect per laid-out line the range touches, in the client
    coordinates of ``root``.
    """

    def __init__(self, editor: QTextEdit, start: int, end: int, *, range_id: Any = None, root: Optional[QWidget] = None) -> None:
        self.editor = editor
        self.start = min(start, end)
        self.end = max(start, end)
        self.range_id = range_id
        self.root = root or editor.window()

    def __repr__(self) -> str:
        return f"QtTextRange({self.start}, {self.end}, range_id={self.range_id!r})"

    def _line_rects(self, block: QTextBlock, base: QPointF) -> List[Rect]:
        document = self.editor.document()
        # Asking the layout for the block's box lays the block out if needed.
        document.documentLayout().blockBoundingRect(block)
        layout = block.layout()
        origin = layout.position()
        block_start = block.position()
        rects: List[Rect] = []
        for index in range(layout.lineCount()):
            line = layout.lineAt(index)
            line_start = block_start + line.textStart()
            line_end = line_start + line.textLength()
            first = max(self.start, line_start)
            last = min(self.end, line_end)
            if first >= last:
                continue
            x1 = _cursor_x(line, first - block_start)
            x2 = _cursor_x(line, last - block_start)
            rects.append(
                Rect(
                    top=base.y() + origin.y() + line.y(),
                    left=base.x() + origin.x() + min(x1, x2),
                    width=abs(x2 - x1),
                    height=line.height(),
                )
            )
        return rects

    def client_rects(self) -> List[Rect]:
        if self.start == self.end:
            return []
        viewport = self.editor.viewport()
        origin = _origin_in(viewport, self.root)
        base = QPointF(
            float(origin.x() - self.editor.horizontalScrollBar().value()),
            float(origin.y() - self.editor.verticalScrollBar().value()),
        )
        rects: List[Rect] = []
        block = self.editor.document().findBlock(self.start)
        while block.isValid() and block.position() < self.end:
            rects.extend(self._line_rects(block, base))
            block = block.next()
        return rects


class OverlayWidget(QWidget):
    """Transparent child widget that paints the pane's surface tree.

    The widget spans the target's whole scroll extent, so painting is clipped
    to the visible viewport of ``clip_to``.
    """

    def __init__(self, container: QWidget, clip_to: Optional[QWidget] = None) -> None:
        super().__init__(container)
        self._surface: Optional[SurfaceNode] = None
        self._clip_to = clip_to
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAutoFillBackground(False)

    def set_surface(self, surface: SurfaceNode) -> None:
        self._surface = surface

    def clip_rect(self) -> Optional[QRect]:
        if self._clip_to is None:
            return None
        container = self.parentWidget()
        origin = _origin_in(self._clip_to, container) - self.pos()
        return QRect(origin, self._clip_to.size())

    def sync_geometry(self) -> None:
        if self._surface is None:
            return
        box = read_box(self._surface)
        self.setGeometry(
            int(round(box["left"])),
            int(round(box["top"])),
            max(1, int(round(box["width"]))),
            max(1, int(round(box["height"]))),
        )
        self.raise_()

    def paintEvent(self, event) -> None:  # noqa: N802, ANN001
        if self._surface is None:
            return
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, False)
            clip = self.clip_rect()
            if clip is not None:
                painter.setClipRect(clip)
            render_surface(QtSurfacePainterAdapter(painter), self._surface)
        finally:
            painter.end()


class QtOverlayBinding(QObject):
    """Wire a Pane to a QTextEdit: re-render on scroll/resize/reflow and route clicks to marks."""

    def __init__(
        self,
        editor: QTextEdit,
        container: Optional[QWidget] = None,
        *,
        settings: Optional[OverlaySettings] = None,
        reader: Optional[SettingsProvider] = None,
    ) -> None:
        super().__init__(editor)
        self.editor = editor
        self.container_widget = container or editor.window()
        self.overlay_settings = settings or OverlaySettings()
        self.reader: SettingsProvider = reader or MutableSettingsProvider(self.overlay_settings.reader_settings())
        self.container = QtWidgetElement(self.container_widget, root=self.container_widget)
        self.target = QtScrollTarget(editor, root=self.container_widget)
        self.widget = OverlayWidget(self.container_widget, clip_to=editor.viewport())
        self._closed = False
        self.pane = Pane(self.target, self.container, settings=self.reader)
        self.widget.set_surface(self.pane.element)
        self.target.add_geometry_listener(self.refresh)
        self.refresh()
        # Children added to an already visible parent stay hidden until shown.
        self.widget.show()
        _LOGGER.debug(
            "Overlay bound to %s inside %s",
            type(editor).__name__,
            type(self.container_widget).__name__,
        )

    def _range(self, start: int, end: int, range_id: Any) -> QtTextRange:
        return QtTextRange(self.editor, start, end, range_id=range_id, root=self.container_widget)

    def add_highlight(
        self,
        start: int,
        end: int,
        *,
        range_id: Any = None,
        class_name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Mark:
        merged = {
            "fill": self.overlay_settings.highlight_fill,
            "fill-opacity": self.overlay_settings.highlight_fill_opacity(),
        }
        merged.update(attributes or {})
        mark = Mark.highlight(self._range(start, end, range_id), class_name, data, merged)
        return self._add(mark)

    def add_underline(
        self,
        start: int,
        end: int,
        *,
        range_id: Any = None,
        class_name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Mark:
        merged = {"stroke": self.overlay_settings.underline_stroke}
        merged.update(attributes or {})
        mark = Mark.underline(self._range(start, end, range_id), class_name, data, merged)
        return self._add(mark)

    def _add(self, mark: Mark) -> Mark:
        self.pane.add_mark(mark)
        self.widget.update()
        return mark

    def remove_mark(self, mark: Mark) -> None:
        self.pane.remove_mark(mark)
        self.widget.update()

    def refresh(self) -> None:
        self.pane.render()
        self.widget.sync_geometry()
        self.widget.update()

    def close(self) -> None:
        """Remove every mark and the overlay widget, and stop following the editor."""
        if self._closed:
            return
        self._closed = True
        self.target.detach()
        self.pane.destroy()
        self.widget.hide()
        self.widget.setParent(None)
        self.widget.deleteLater()
        _LOGGER.debug("Overlay closed for %s", type(self.editor).__name__)

    @classmethod
    def from_settings_file(
        cls,
        editor: QTextEdit,
        settings_path: Path,
        container: Optional[QWidget] = None,
        *,
        log_dir: Optional[Path] = None,
    ) -> "QtOverlayBinding":
        """Load overlay settings from JSON, configure logging from them and bind ``editor``."""
        settings = load_overlay_settings(settings_path)
        configure_logging(settings.log_level_value(), log_dir, settings.log_retention)
        _LOGGER.debug("Loaded overlay settings from %s: %s", settings_path, settings)
        return cls(editor, container, settings=settings)
