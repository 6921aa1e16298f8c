"""Configuration transcoder — persisted configuration <-> editor state.

``decode`` turns whatever the store returned into an :class:`EditorState`
the editor can work with, and ``encode`` turns it back into a
:class:`SlotConfiguration`.  Decoding never fails: missing, unparseable or
structurally invalid input is replaced by the built-in layout for the page
type.  For any well-formed configuration ``c``::

    encode(decode(c)) == c

Usage::

    from slotconfig.processor.transcoder import decode, encode

    state = decode(draft.configuration, page_type="cart")
    state.contents["header.title"] = "Your Bag"
    session.update(encode(state))
"""

import copy
import json
import logging
from typing import Any

from slotconfig.qa.validator import validate_configuration
from slotconfig.schema.defaults import build_default_configuration
from slotconfig.schema.models import (
    EditorState,
    SlotConfiguration,
    SlotDefinition,
    SlotSpan,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def _coerce_document(persisted: Any) -> Any:
    """Turn raw persisted input into a plain document, or ``None``."""
    if persisted is None:
        return None
    if isinstance(persisted, (bytes, bytearray)):
        persisted = persisted.decode("utf-8", errors="replace")
    if isinstance(persisted, str):
        try:
            return json.loads(persisted)
        except ValueError:
            logger.warning("Persisted configuration is not valid JSON; using defaults")
            return None
    return persisted


def _load_configuration(persisted: Any) -> SlotConfiguration | None:
    if isinstance(persisted, SlotConfiguration):
        config = persisted.copy()
        config.micro_slot_spans = {
            major_id: {slot_id: SlotSpan.clamped(span.col, span.row) for slot_id, span in spans.items()}
            for major_id, spans in config.micro_slot_spans.items()
        }
        return config

    document = _coerce_document(persisted)
    if document is None:
        return None

    result = validate_configuration(document)
    if not result.passed:
        logger.warning(f"Discarding malformed configuration ({result.summary()})")
        for issue in result.errors:
            logger.debug(f"  {issue}")
        return None
    for issue in result.warnings:
        logger.info(f"Configuration repaired on load: {issue}")

    try:
        return SlotConfiguration.from_dict(document)
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        logger.warning(f"Could not build configuration from document ({exc}); using defaults")
        return None


# ---------------------------------------------------------------------------
# decode / encode
# ---------------------------------------------------------------------------

def decode(persisted: Any, page_type: str = "cart") -> EditorState:
    """Convert a persisted configuration into editable state.

    *persisted* may be ``None``, a JSON string, a mapping or a
    SlotConfiguration.  Anything unusable yields the default layout for
    *page_type* with ``from_default`` set.
    """
    config = _load_configuration(persisted)
    from_default = config is None
    if config is None:
        config = build_default_configuration(page_type)

    state = EditorState(
        page_type=page_type,
        major_slots=list(config.major_slots),
        micro_slot_orders=copy.deepcopy(config.micro_slot_orders),
        micro_slot_spans=copy.deepcopy(config.micro_slot_spans),
        custom_slots=copy.deepcopy(config.custom_slots),
        component_sizes=copy.deepcopy(config.component_sizes),
        metadata=copy.deepcopy(config.metadata),
        from_default=from_default,
    )
    for slot_id, slot in config.slots.items():
        state.contents[slot_id] = slot.content
        state.element_classes[slot_id] = slot.class_name
        state.styles[slot_id] = copy.deepcopy(slot.styles)
        if slot.parent_class_name:
            state.parent_classes[slot_id] = slot.parent_class_name
        if slot.metadata:
            state.slot_metadata[slot_id] = copy.deepcopy(slot.metadata)
        if slot.extra:
            state.slot_extras[slot_id] = copy.deepcopy(slot.extra)
    return state


def encode(state: EditorState) -> SlotConfiguration:
    """Rebuild a SlotConfiguration from editor state (inverse of decode)."""
    slots: dict[str, SlotDefinition] = {}
    for slot_id in state.slot_ids():
        slots[slot_id] = SlotDefinition(
            content=state.contents.get(slot_id, ""),
            class_name=state.element_classes.get(slot_id, ""),
            parent_class_name=state.parent_classes.get(slot_id, ""),
            styles=copy.deepcopy(state.styles.get(slot_id, {})),
            metadata=copy.deepcopy(state.slot_metadata.get(slot_id, {})),
            extra=copy.deepcopy(state.slot_extras.get(slot_id, {})),
        )
    return SlotConfiguration(
        slots=slots,
        major_slots=list(state.major_slots),
        micro_slot_orders=copy.deepcopy(state.micro_slot_orders),
        micro_slot_spans=copy.deepcopy(state.micro_slot_spans),
        custom_slots=copy.deepcopy(state.custom_slots),
        component_sizes=copy.deepcopy(state.component_sizes),
        metadata=copy.deepcopy(state.metadata),
    )


def decode_flat(persisted: Any, page_type: str = "cart") -> dict[str, dict]:
    """Decode into the legacy three-map form used by older editor panels.

    Returns ``{"contents": ..., "classes": ..., "styles": ...}`` where the
    class map carries ``<slot-id>_wrapper`` keys for wrapper classes.
    """
    state = decode(persisted, page_type)
    return {
        "contents": dict(state.contents),
        "classes": state.class_map(),
        "styles": copy.deepcopy(state.styles),
    }
