"""Configuration processing for the slot editor."""

from .editing import (
    add_custom_slot,
    move_child,
    move_major,
    remove_slot,
    resize_slot,
    restore_slot,
    set_classes,
    set_content,
)
from .resize import (
    GridGeometry,
    PointerDelta,
    ResizeGesture,
    compute_span_delta,
    resize_component,
    span_from_pixels,
)
from .transcoder import (
    decode,
    decode_flat,
    encode,
)
