"""Interaction event values and the pointer proxy from a target element to marks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from marks_overlay.geometry import Rect, rect_contains_point

_LOGGER = logging.getLogger("MarksOverlay.Events")

POINTER_EVENTS: Tuple[str, ...] = ("mouseup", "mousedown", "click", "touchstart")

Listener = Callable[["InteractionEvent"], None]


@dataclass(frozen=True)
class InteractionEvent:
    kind: str
    x: float
    y: float
    range_id: Optional[Any] = None

    def for_range(self, range_id: Optional[Any]) -> "InteractionEvent":
        return replace(self, range_id=range_id)


class EventTarget:
    """Listener registry shared by surfaces and host elements."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add_event_listener(self, kind: str, listener: Listener) -> None:
        self._listeners.setdefault(kind, []).append(listener)

    def remove_event_listener(self, kind: str, listener: Listener) -> None:
        listeners = self._listeners.get(kind)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[kind]

    def has_listeners(self, kind: str) -> bool:
        return bool(self._listeners.get(kind))

    def dispatch_event(self, event: InteractionEvent) -> None:
        for listener in list(self._listeners.get(event.kind, ())):
            try:
                listener(event)
            except Exception as exc:
                _LOGGER.warning("Listener for %s raised: %s", event.kind, exc, exc_info=exc)


class EventSource(Protocol):
    def add_event_listener(self, kind: str, listener: Listener) -> None: ...
    def remove_event_listener(self, kind: str, listener: Listener) -> None: ...


class HitTestable(Protocol):
    def is_bound(self) -> bool: ...
    def get_bounding_client_rect(self) -> Rect: ...
    def get_client_rects(self) -> List[Rect]: ...
    def dispatch_event(self, event: InteractionEvent) -> None: ...


def hit_test(item: HitTestable, x: float, y: float) -> bool:
    """Cheap bounding-box rejection first, then the per-fragment rects."""

    if not item.is_bound():
        return False
    bounds = item.get_bounding_client_rect()
    if not rect_contains_point(bounds, x, y):
        return False
    return any(rect_contains_point(rect, x, y) for rect in item.get_client_rects())


class PointerProxy:
    """Forward pointer events seen on ``source`` to the topmost mark under the pointer."""

    def __init__(self, source: EventSource, tracked: Sequence[HitTestable], kinds: Sequence[str] = POINTER_EVENTS) -> None:
        self._source = source
        self._tracked = tracked
        self._kinds = tuple(kinds)
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        for kind in self._kinds:
            self._source.add_event_listener(kind, self.forward)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        for kind in self._kinds:
            self._source.remove_event_listener(kind, self.forward)
        self._attached = False

    def forward(self, event: InteractionEvent) -> None:
        # Later marks paint above earlier ones, so search from the end.
        for item in reversed(list(self._tracked)):
            if hit_test(item, event.x, event.y):
                item.dispatch_event(event)
                return


def proxy_pointer_events(source: EventSource, tracked: Sequence[HitTestable]) -> PointerProxy:
    proxy = PointerProxy(source, tracked)
    proxy.attach()
    return proxy
