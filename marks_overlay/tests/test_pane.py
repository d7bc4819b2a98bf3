from __future__ import annotations

from typing import List, Optional

from marks_overlay.events import InteractionEvent
from marks_overlay.geometry import Rect, read_box
from marks_overlay.marks import Mark
from marks_overlay.pane import Pane
from marks_overlay.settings import MutableSettingsProvider
from marks_overlay.surface import HostElement


class _StubRange:
    def __init__(self, rects: List[Rect], range_id: Optional[str] = None) -> None:
        self.rects = list(rects)
        self.range_id = range_id

    def client_rects(self) -> List[Rect]:
        return list(self.rects)


def _pane(**kwargs) -> Pane:
    container = HostElement(Rect(top=0.0, left=0.0, width=800.0, height=600.0))
    target = HostElement(Rect(top=50.0, left=20.0, width=400.0, height=300.0), scroll_height=1200.0)
    return Pane(target, container, **kwargs)


def test_pane_creates_positioned_surface_in_container() -> None:
    pane = _pane()
    assert pane.container.surfaces == [pane.element]
    assert pane.element.kind == "svg"
    assert pane.element.get_attribute("pointer-events") == "none"
    assert pane.element.style_value("position") == "absolute"
    assert read_box(pane.element) == {"top": 50.0, "left": 20.0, "height": 1200.0, "width": 400.0}


def test_add_mark_binds_renders_and_returns_mark() -> None:
    pane = _pane()
    mark = Mark.highlight(_StubRange([Rect(top=100.0, left=60.0, width=30.0, height=12.0)]))
    assert pane.add_mark(mark) is mark
    assert pane.marks == [mark]
    assert mark.element is not None
    assert mark.element.parent is pane.element
    assert mark.element.first_child.attributes["x"] == 40.0


def test_marks_render_in_insertion_order() -> None:
    pane = _pane()
    first = pane.add_mark(Mark.highlight(_StubRange([])))
    second = pane.add_mark(Mark.underline(_StubRange([])))
    assert list(pane.element.children) == [first.element, second.element]


def test_remove_mark_detaches_surface() -> None:
    pane = _pane()
    mark = pane.add_mark(Mark.highlight(_StubRange([Rect(0, 0, 10, 10)])))
    group = mark.element
    pane.remove_mark(mark)
    assert pane.marks == []
    assert mark.element is None
    assert group.parent is None
    assert pane.element.children == ()


def test_remove_unknown_mark_is_a_no_op() -> None:
    pane = _pane()
    kept = pane.add_mark(Mark.highlight(_StubRange([])))
    pane.remove_mark(Mark.highlight(_StubRange([])))
    assert pane.marks == [kept]


def test_render_resyncs_box_and_marks_after_scroll() -> None:
    pane = _pane()
    text_range = _StubRange([Rect(top=100.0, left=60.0, width=30.0, height=12.0)])
    mark = pane.add_mark(Mark.highlight(text_range))
    pane.target.scroll_to(top=-150.0, left=20.0)
    text_range.rects = [Rect(top=-100.0, left=60.0, width=30.0, height=12.0)]
    pane.render()
    assert read_box(pane.element)["top"] == -150.0
    assert mark.element.first_child.attributes["y"] == 50.0
    assert mark.get_client_rects() == text_range.rects


def test_pane_settings_are_injected_into_marks_without_their_own() -> None:
    provider = MutableSettingsProvider()
    pane = _pane(settings=provider)
    inherited = pane.add_mark(Mark.highlight(_StubRange([Rect(top=100.0, left=60.0, width=30.0, height=12.0)])))
    own_provider = MutableSettingsProvider()
    own = pane.add_mark(Mark.highlight(_StubRange([]), settings=own_provider))
    assert inherited.settings is provider
    assert own.settings is own_provider
    provider.update(line_spacing=1.5, font_size=16.0)
    pane.render()
    assert inherited.element.first_child.attributes["height"] == 24.0


def test_pointer_events_on_target_reach_topmost_mark() -> None:
    pane = _pane()
    rect = Rect(top=100.0, left=60.0, width=30.0, height=12.0)
    lower = pane.add_mark(Mark.highlight(_StubRange([rect], range_id="lower")))
    upper = pane.add_mark(Mark.underline(_StubRange([rect], range_id="upper")))
    seen: List[InteractionEvent] = []
    lower.element.add_event_listener("click", seen.append)
    upper.element.add_event_listener("click", seen.append)
    pane.target.dispatch_event(InteractionEvent("click", 70.0, 105.0))
    assert seen == [InteractionEvent("click", 70.0, 105.0, range_id="upper")]



def test_pointer_on_mark_edge_reaches_mark() -> None:
    pane = _pane()
    mark = pane.add_mark(Mark.highlight(_StubRange([Rect(top=100.0, left=60.0, width=30.0, height=12.0)])))
    seen: List[InteractionEvent] = []
    mark.element.add_event_listener("click", seen.append)
    pane.target.dispatch_event(InteractionEvent("click", 90.0, 112.0))
    assert [(event.x, event.y) for event in seen] == [(90.0, 112.0)]

def test_pointer_events_outside_marks_are_dropped() -> None:
    pane = _pane()
    mark = pane.add_mark(Mark.highlight(_StubRange([Rect(top=100.0, left=60.0, width=30.0, height=12.0)])))
    seen: List[InteractionEvent] = []
    mark.element.add_event_listener("click", seen.append)
    pane.target.dispatch_event(InteractionEvent("click", 10.0, 10.0))
    pane.target.dispatch_event(InteractionEvent("mousemove", 70.0, 105.0))
    assert seen == []


def test_destroy_releases_everything() -> None:
    pane = _pane()
    mark = pane.add_mark(Mark.highlight(_StubRange([])))
    pane.destroy()
    assert pane.marks == []
    assert not mark.is_bound()
    assert pane.container.surfaces == []
    assert not pane.target.has_listeners("click")
