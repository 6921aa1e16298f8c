"""Editor operations — in-place edits on an EditorState.

Each function applies one user action from the layout editor (edit text,
restyle, resize, reorder, add or remove a slot) to an
:class:`EditorState`.  The caller encodes the state afterwards and hands
the configuration to the draft session, which takes care of saving.

Built-in slots are never deleted: removing one only hides it from its
section so it can be restored later.  User-added (custom) slots are
removed completely.
"""

import copy
import re
from datetime import datetime, timezone

from slotconfig.schema.models import EditorState, SlotDefinition, SlotSpan

ALIGNMENT_CLASSES = ("text-left", "text-center", "text-right")
CUSTOM_MARKER = ".custom_"

_CUSTOM_ID = re.compile(r"\.custom_(\d+)$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _touch(state: EditorState, slot_id: str) -> None:
    stamp = datetime.now(timezone.utc).isoformat()
    state.slot_metadata.setdefault(slot_id, {})["lastModified"] = stamp
    custom = state.custom_slots.get(slot_id)
    if custom is not None:
        custom.metadata["lastModified"] = stamp


def _sync_custom(state: EditorState, slot_id: str) -> None:
    """Mirror the flat maps onto the customSlots entry, if *slot_id* has one."""
    custom = state.custom_slots.get(slot_id)
    if custom is None:
        return
    custom.content = state.contents.get(slot_id, "")
    custom.class_name = state.element_classes.get(slot_id, "")
    custom.parent_class_name = state.parent_classes.get(slot_id, "")
    custom.styles = copy.deepcopy(state.styles.get(slot_id, {}))


def _require_known(state: EditorState, slot_id: str) -> None:
    if slot_id not in state.contents and slot_id not in state.custom_slots:
        raise KeyError(f"Unknown slot: {slot_id!r}")


def _require_section(state: EditorState, major_id: str) -> list[str]:
    if major_id not in state.major_slots:
        raise KeyError(f"Unknown section: {major_id!r}")
    return state.micro_slot_orders.setdefault(major_id, [])


def _move(items: list[str], item: str, index: int) -> None:
    items.remove(item)
    index = max(0, min(index, len(items)))
    items.insert(index, item)


def section_of(state: EditorState, slot_id: str) -> str | None:
    """Return the section whose order lists *slot_id*, if any."""
    for major_id, children in state.micro_slot_orders.items():
        if slot_id in children:
            return major_id
    return None


def is_custom_slot(state: EditorState, slot_id: str) -> bool:
    return slot_id in state.custom_slots or CUSTOM_MARKER in slot_id


# ---------------------------------------------------------------------------
# Content and presentation
# ---------------------------------------------------------------------------

def set_content(state: EditorState, slot_id: str, text: str) -> None:
    """Replace the template text of a slot."""
    _require_known(state, slot_id)
    state.contents[slot_id] = text
    _sync_custom(state, slot_id)
    _touch(state, slot_id)


def set_classes(state: EditorState, slot_id: str, class_name: str,
                styles: dict | None = None, alignment: bool = False) -> None:
    """Apply classes and styles to a slot.

    Alignment classes (``text-left``/``text-center``/``text-right``) belong
    to the wrapper and are moved to the parent class; everything else stays
    on the element.  When no alignment class is involved the existing
    wrapper class is kept.  *styles* are merged into the current styles.
    """
    _require_known(state, slot_id)
    merged = dict(state.styles.get(slot_id, {}))
    merged.update(styles or {})
    state.styles[slot_id] = merged

    classes = class_name.split()
    aligned = [c for c in classes if c in ALIGNMENT_CLASSES]
    if alignment or aligned:
        state.element_classes[slot_id] = " ".join(c for c in classes if c not in ALIGNMENT_CLASSES)
        state.parent_classes[slot_id] = " ".join(aligned)
    else:
        state.element_classes[slot_id] = class_name
    _sync_custom(state, slot_id)
    _touch(state, slot_id)


# ---------------------------------------------------------------------------
# Grid placement and ordering
# ---------------------------------------------------------------------------

def resize_slot(state: EditorState, major_id: str, child_id: str, span: SlotSpan) -> SlotSpan:
    """Store a new grid span for a child slot; the span is clamped to the grid."""
    children = _require_section(state, major_id)
    if child_id not in children:
        raise KeyError(f"{child_id!r} is not a child of section {major_id!r}")
    clamped = SlotSpan.clamped(span.col, span.row)
    state.micro_slot_spans.setdefault(major_id, {})[child_id] = clamped
    return clamped


def move_child(state: EditorState, major_id: str, child_id: str, index: int) -> None:
    """Move a child slot to *index* within its section."""
    children = _require_section(state, major_id)
    if child_id not in children:
        raise KeyError(f"{child_id!r} is not a child of section {major_id!r}")
    _move(children, child_id, index)


def move_major(state: EditorState, major_id: str, index: int) -> None:
    """Move a whole section to *index* in the page's vertical order."""
    if major_id not in state.major_slots:
        raise KeyError(f"Unknown section: {major_id!r}")
    _move(state.major_slots, major_id, index)


# ---------------------------------------------------------------------------
# Adding and removing slots
# ---------------------------------------------------------------------------

def _next_custom_index(state: EditorState, major_id: str) -> int:
    used = [0]
    prefix = f"{major_id}{CUSTOM_MARKER}"
    for slot_id in list(state.contents) + list(state.custom_slots):
        if slot_id.startswith(prefix):
            match = _CUSTOM_ID.search(slot_id)
            if match:
                used.append(int(match.group(1)))
    return max(used) + 1


def add_custom_slot(state: EditorState, major_id: str, content: str = "",
                    class_name: str = "", span: SlotSpan | None = None) -> str:
    """Append a user-defined slot to a section and return its id."""
    children = _require_section(state, major_id)
    slot_id = f"{major_id}{CUSTOM_MARKER}{_next_custom_index(state, major_id)}"

    state.contents[slot_id] = content
    state.element_classes[slot_id] = class_name
    state.styles[slot_id] = {}
    state.custom_slots[slot_id] = SlotDefinition(content=content, class_name=class_name)
    children.append(slot_id)
    span = span or SlotSpan()
    state.micro_slot_spans.setdefault(major_id, {})[slot_id] = SlotSpan.clamped(span.col, span.row)
    _touch(state, slot_id)
    return slot_id


def remove_slot(state: EditorState, slot_id: str) -> bool:
    """Remove a slot from the layout.

    Returns ``True`` when the slot was deleted outright (custom slots) and
    ``False`` when it was only hidden from its section (built-in slots).
    """
    _require_known(state, slot_id)
    major_id = section_of(state, slot_id)
    if major_id is not None:
        state.micro_slot_orders[major_id].remove(slot_id)

    if not is_custom_slot(state, slot_id):
        if major_id is None:
            raise KeyError(f"Slot {slot_id!r} is not placed in any section")
        return False

    for mapping in (state.contents, state.element_classes, state.parent_classes,
                    state.styles, state.slot_metadata, state.slot_extras,
                    state.custom_slots, state.component_sizes):
        mapping.pop(slot_id, None)
    for spans in state.micro_slot_spans.values():
        spans.pop(slot_id, None)
    return True


def restore_slot(state: EditorState, major_id: str, slot_id: str,
                 index: int | None = None) -> None:
    """Put a hidden built-in slot back into a section."""
    _require_known(state, slot_id)
    children = _require_section(state, major_id)
    if slot_id in children:
        return
    if index is None:
        children.append(slot_id)
    else:
        children.insert(max(0, min(index, len(children))), slot_id)
