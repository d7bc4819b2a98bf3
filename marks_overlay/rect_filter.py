"""Turn a text range's raw client rects into one box per painted fragment.

Layout engines report a rect for every inline box a range touches, so nested
markup produces exact duplicates and wrapper boxes that overlap the glyph-level
fragments. ``dedupe_rects`` removes the duplicates; ``highlight_rects`` orders
what is left and drops the wrapper artifacts with a pairwise adjacency pass.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from marks_overlay.geometry import Rect

_LOGGER = logging.getLogger("MarksOverlay.Filter")

# Horizontal slack before a wider neighbour counts as containing the previous box.
CONTAINMENT_TOLERANCE = 1.0
# Height ratio above which a box sharing an edge is treated as a line-box artifact.
EDGE_SHARE_HEIGHT_RATIO = 1.5

_RectKey = Tuple[float, float, float, float]


def _encode(rect: Rect) -> _RectKey:
    return (rect.top, rect.left, rect.width, rect.height)


def _decode(key: _RectKey) -> Rect:
    top, left, width, height = key
    return Rect(top=top, left=left, width=width, height=height)


def dedupe_rects(rects: Iterable[Rect]) -> List[Rect]:
    """Drop rects whose four fields are identical to another one.

    Order is not preserved; callers that need an order sort afterwards.
    """

    encoded = {_encode(rect) for rect in rects}
    return [_decode(key) for key in encoded]


def sort_key(rect: Rect) -> _RectKey:
    return (rect.top, rect.height, rect.width, rect.left)


def sort_rects(rects: Iterable[Rect]) -> List[Rect]:
    """Top to bottom, then thin to thick, narrow to wide, left to right."""

    return sorted(rects, key=sort_key)


def _discard_reason(rect: Rect, previous: Rect) -> str:
    if (
        rect.left < previous.left - CONTAINMENT_TOLERANCE
        and rect.right > previous.right + CONTAINMENT_TOLERANCE
    ):
        return "contains-previous"
    if (rect.left == previous.left or rect.right == previous.right) and (
        rect.height > EDGE_SHARE_HEIGHT_RATIO * previous.height
    ):
        return "taller-shared-edge"
    return ""


def filter_adjacent_rects(rects: Sequence[Rect]) -> List[Rect]:
    """Filter an already sorted sequence against each rect's array predecessor.

    The comparison is always with ``rects[index - 1]`` even when that rect was
    itself discarded.
    """

    kept: List[Rect] = []
    for index, rect in enumerate(rects):
        if index == 0:
            kept.append(rect)
            continue
        previous = rects[index - 1]
        reason = _discard_reason(rect, previous)
        if reason:
            _LOGGER.debug("Discarded rect (%s): rect=%s previous=%s", reason, rect, previous)
            continue
        kept.append(rect)
    return kept


def highlight_rects(rects: Iterable[Rect]) -> List[Rect]:
    return filter_adjacent_rects(sort_rects(rects))
