"""Overlay plane that keeps a set of marks pinned above a target element."""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from marks_overlay.events import EventSource, PointerProxy, proxy_pointer_events
from marks_overlay.geometry import BoxElement, Rect, apply_box, box_relative_to
from marks_overlay.marks import Mark
from marks_overlay.settings import SettingsProvider
from marks_overlay.surface import SurfaceFactory, SurfaceNode

_LOGGER = logging.getLogger("MarksOverlay.Pane")


class PaneTarget(BoxElement, EventSource, Protocol):
    """Element whose content the pane overlays; it also sources pointer events."""


class PaneContainer(Protocol):
    def bounding_client_rect(self) -> Rect: ...
    def append_child(self, surface: SurfaceNode) -> SurfaceNode: ...
    def remove_child(self, surface: SurfaceNode) -> SurfaceNode: ...


class Pane:
    """Own the root surface for one target and render its marks in insertion order."""

    def __init__(
        self,
        target: PaneTarget,
        container: PaneContainer,
        *,
        factory: Optional[SurfaceFactory] = None,
        settings: Optional[SettingsProvider] = None,
    ) -> None:
        self.target = target
        self.container = container
        self.settings = settings
        self._factory = factory or SurfaceFactory()
        self.marks: List[Mark] = []

        self.element = self._factory.create_element("svg")
        self.element.set_style("position", "absolute")
        # The plane itself is never hit-tested; the proxy below routes pointer
        # events to individual marks instead.
        self.element.set_attribute("pointer-events", "none")

        self._proxy: Optional[PointerProxy] = proxy_pointer_events(self.target, self.marks)

        self.container.append_child(self.element)
        self.render()

    def add_mark(self, mark: Mark) -> Mark:
        group = self._factory.create_element("g")
        self.element.append_child(group)
        if mark.settings is None:
            mark.settings = self.settings
        mark.bind(group, self.container)
        self.marks.append(mark)
        mark.render()
        _LOGGER.debug("Mark added: %r (total=%d)", mark, len(self.marks))
        return mark

    def remove_mark(self, mark: Mark) -> None:
        try:
            idx = self.marks.index(mark)
        except ValueError:
            return
        element = mark.unbind()
        if element is not None:
            self.element.remove_child(element)
        del self.marks[idx]
        _LOGGER.debug("Mark removed: %r (total=%d)", mark, len(self.marks))

    def render(self) -> None:
        apply_box(self.element, box_relative_to(self.target, self.container))
        for mark in self.marks:
            mark.render()

    def destroy(self) -> None:
        for mark in list(self.marks):
            self.remove_mark(mark)
        if self._proxy is not None:
            self._proxy.detach()
            self._proxy = None
        if self.element.host is not None:
            self.container.remove_child(self.element)
