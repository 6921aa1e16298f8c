"""Experiment override merge.

Applies the slot overrides of active experiment variants on top of a base
configuration to produce the layout a visitor actually sees.  The merge is
pure: the base configuration is never modified.

Rules:
- variants are applied in the order given; a later variant wins per slot
- an override is shallow-merged onto an existing slot (``styles`` and
  ``metadata`` are replaced as a whole, not merged key by key)
- a slot the base does not have is created unless ``enabled`` is ``False``
- section order and grid spans are never touched
- control variants carry no overrides and are skipped
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from slotconfig.drafts.store import PersistenceBackend
from slotconfig.errors import PersistenceFailure, RecordNotFound
from slotconfig.schema.defaults import build_default_configuration
from slotconfig.schema.models import SlotConfiguration, SlotDefinition, VariantOverride

logger = logging.getLogger(__name__)

ENABLED_FLAG = "enabled"


def _as_variant(variant: VariantOverride | dict) -> VariantOverride:
    if isinstance(variant, VariantOverride):
        return variant
    return VariantOverride.from_dict(variant)


def _apply_override(slots: dict[str, SlotDefinition], slot_id: str,
                    override: dict[str, Any]) -> bool:
    fields = {k: v for k, v in override.items() if k != ENABLED_FLAG}
    existing = slots.get(slot_id)
    if existing is not None:
        slots[slot_id] = SlotDefinition.from_dict({**existing.to_dict(), **fields})
        return True
    if override.get(ENABLED_FLAG) is False:
        return False
    slots[slot_id] = SlotDefinition.from_dict(fields)
    return True


def merge(base: SlotConfiguration,
          variants: Iterable[VariantOverride | dict] = ()) -> SlotConfiguration:
    """Return a copy of *base* with every variant's slot overrides applied."""
    merged = base.copy()
    for variant in map(_as_variant, variants):
        if variant.is_control:
            logger.debug(f"Skipping control variant {variant.test_id}/{variant.variant_name}")
            continue
        for slot_id, override in variant.slot_overrides.items():
            if not isinstance(override, dict):
                logger.warning(f"Ignoring non-mapping override for {slot_id!r} "
                               f"in {variant.test_id}/{variant.variant_name}")
                continue
            _apply_override(merged.slots, slot_id, override)
    return merged


# ---------------------------------------------------------------------------
# Render-time resolution
# ---------------------------------------------------------------------------

@dataclass
class ResolvedLayout:
    """Published layout with experiment overrides applied."""
    configuration: SlotConfiguration
    version_number: int | None = None     # None = built-in default, nothing published
    applied_variants: list[str] = field(default_factory=list)

    @property
    def from_default(self) -> bool:
        return self.version_number is None


async def resolve_layout(store: PersistenceBackend, store_id: str, page_type: str,
                         variants: Iterable[VariantOverride | dict] = ()) -> ResolvedLayout:
    """Load the live configuration for a page and apply *variants* to it.

    Falls back to the built-in default layout when nothing has been
    published for the page yet.
    """
    try:
        record = await store.get_published(store_id, page_type)
        base, version = record.configuration, record.version_number
    except RecordNotFound:
        logger.info(f"Nothing published for {store_id}/{page_type}, using default layout")
        base, version = build_default_configuration(page_type), None
    except Exception as exc:
        raise PersistenceFailure("resolve", str(exc)) from exc

    active = [_as_variant(v) for v in variants]
    applied = [f"{v.test_id}:{v.variant_name}" for v in active if not v.is_control]
    return ResolvedLayout(
        configuration=merge(base, active),
        version_number=version,
        applied_variants=applied,
    )
