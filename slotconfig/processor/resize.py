"""Grid resize calculator — pointer drag deltas to grid span changes.

The editor renders child slots on a 12-column grid where one column is
50px wide and one row is 25px tall.  A resize handle reports how far the
pointer has moved since the drag started; this module snaps that distance
to whole columns/rows and clamps the result to the grid.

All functions are pure: the same start span and delta always give the
same result, so they can be called on every pointer-move event.
"""

import math
from dataclasses import dataclass

from slotconfig.schema.models import ComponentSize, SlotSpan

COLUMN_UNIT_PX = 50
ROW_UNIT_PX = 25
MIN_COMPONENT_PX = 20


@dataclass(frozen=True)
class GridGeometry:
    """Pixel size of one grid cell; must match the rendered grid."""
    column_unit_px: float = COLUMN_UNIT_PX
    row_unit_px: float = ROW_UNIT_PX


DEFAULT_GEOMETRY = GridGeometry()


@dataclass(frozen=True)
class PointerDelta:
    """Pointer movement in pixels since the drag started."""
    x: float = 0.0
    y: float = 0.0


def _round_half_up(value: float) -> int:
    """Round to nearest integer, halves towards +inf (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def _as_delta(delta) -> PointerDelta:
    if isinstance(delta, PointerDelta):
        return delta
    if isinstance(delta, dict):
        return PointerDelta(x=delta.get("x", 0.0), y=delta.get("y", 0.0))
    x, y = delta
    return PointerDelta(x=x, y=y)


def compute_span_delta(start_span: SlotSpan, pointer_delta_px,
                       geometry: GridGeometry = DEFAULT_GEOMETRY) -> SlotSpan:
    """Return the span after dragging a resize handle by *pointer_delta_px*.

    *pointer_delta_px* may be a PointerDelta, an ``(x, y)`` pair or a
    ``{"x": .., "y": ..}`` mapping.  The result is clamped to
    ``col in [1, 12]`` and ``row in [1, 4]``.  When the drag does not change
    the span, *start_span* itself is returned.
    """
    delta = _as_delta(pointer_delta_px)
    if delta.x == 0 and delta.y == 0:
        return start_span
    col_delta = _round_half_up(delta.x / geometry.column_unit_px)
    row_delta = _round_half_up(delta.y / geometry.row_unit_px)

    new_span = SlotSpan.clamped(start_span.col + col_delta, start_span.row + row_delta)
    if new_span == start_span:
        return start_span
    return new_span


def span_from_pixels(width_px: float, height_px: float,
                     geometry: GridGeometry = DEFAULT_GEOMETRY) -> SlotSpan:
    """Snap an absolute pixel size to the nearest grid span."""
    return SlotSpan.clamped(_round_half_up(width_px / geometry.column_unit_px),
                            _round_half_up(height_px / geometry.row_unit_px))


def span_to_pixels(span: SlotSpan,
                   geometry: GridGeometry = DEFAULT_GEOMETRY) -> tuple[float, float]:
    return span.col * geometry.column_unit_px, span.row * geometry.row_unit_px


def resize_component(size: ComponentSize, pointer_delta_px,
                     min_px: float = MIN_COMPONENT_PX) -> ComponentSize:
    """Pixel resize for elements sized outside the grid (``componentSizes``).

    Unset dimensions stay unset; set ones never shrink below *min_px*.
    """
    delta = _as_delta(pointer_delta_px)
    width = size.width
    height = size.height
    if width is not None:
        width = max(min_px, width + round(delta.x))
    if height is not None:
        height = max(min_px, height + round(delta.y))
    return ComponentSize(width=width, height=height)


class ResizeGesture:
    """Tracks one drag of a resize handle.

    The start span is pinned when the drag begins and every pointer move is
    measured from the drag origin, so rounding never accumulates.

    Usage::

        gesture = ResizeGesture(span, origin=(event.x, event.y))
        span = gesture.move(event.x, event.y)   # on every pointer move
        final = gesture.end()
    """

    def __init__(self, start_span: SlotSpan, origin: tuple[float, float] = (0.0, 0.0),
                 geometry: GridGeometry = DEFAULT_GEOMETRY) -> None:
        self.start_span = start_span
        self.origin = origin
        self.geometry = geometry
        self.current = start_span
        self.active = True

    def move(self, x: float, y: float) -> SlotSpan:
        if not self.active:
            return self.current
        delta = PointerDelta(x=x - self.origin[0], y=y - self.origin[1])
        self.current = compute_span_delta(self.start_span, delta, self.geometry)
        return self.current

    def end(self) -> SlotSpan:
        self.active = False
        return self.current

    @property
    def changed(self) -> bool:
        return self.current != self.start_span

