"""Slot configuration models - the contract between editor, store, and renderer.

Defines the typed structure of a page layout: which slots exist, how they
are ordered into sections, how much of the 12-column grid each one spans,
and the draft/published records that carry a configuration through its
lifecycle.  Every model converts to and from the persisted camelCase
document with ``to_dict`` / ``from_dict``.
"""

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


GRID_COLUMNS = 12
MAX_ROW_SPAN = 4
WRAPPER_SUFFIX = "_wrapper"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PublishStatus(Enum):
    """Lifecycle state of a published record."""
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


# ---------------------------------------------------------------------------
# Grid and sizing primitives
# ---------------------------------------------------------------------------

def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _whole(value: Any) -> int:
    """Nearest whole cell count; JSON and YAML may hand back 6.0 for 6."""
    if isinstance(value, float):
        return math.floor(value + 0.5)
    return int(value)


@dataclass(frozen=True)
class SlotSpan:
    """Grid placement size of a child slot, in columns and rows."""
    col: int = GRID_COLUMNS
    row: int = 1

    @classmethod
    def clamped(cls, col: int, row: int) -> "SlotSpan":
        """Build a span with both axes forced into the grid bounds."""
        return cls(col=_clamp(int(col), 1, GRID_COLUMNS),
                   row=_clamp(int(row), 1, MAX_ROW_SPAN))

    @property
    def in_bounds(self) -> bool:
        return 1 <= self.col <= GRID_COLUMNS and 1 <= self.row <= MAX_ROW_SPAN

    def to_dict(self) -> dict:
        return {"col": self.col, "row": self.row}

    @classmethod
    def from_dict(cls, d: dict) -> "SlotSpan":
        return cls.clamped(_whole(d.get("col", GRID_COLUMNS)), _whole(d.get("row", 1)))


@dataclass
class ComponentSize:
    """Explicit pixel dimensions for an element placed outside the grid."""
    width: float | None = None
    height: float | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {}
        if self.width is not None:
            d["width"] = self.width
        if self.height is not None:
            d["height"] = self.height
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "ComponentSize":
        return cls(width=d.get("width"), height=d.get("height"))


# ---------------------------------------------------------------------------
# SlotDefinition: content and presentation of a single slot
# ---------------------------------------------------------------------------

_SLOT_KEYS = ("content", "className", "parentClassName", "styles", "metadata")


@dataclass
class SlotDefinition:
    """Content and presentation of one slot.

    ``parent_class_name`` is applied to the wrapper around the slot (used
    for alignment), not to the slot element itself.  Keys the engine does
    not model (``component``, ``props`` ...) are kept in ``extra`` so they
    survive a load/save cycle untouched.
    """
    content: str = ""
    class_name: str = ""
    parent_class_name: str = ""
    styles: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def last_modified(self) -> str | None:
        return self.metadata.get("lastModified")

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "content": self.content,
            "className": self.class_name,
            "parentClassName": self.parent_class_name,
            "styles": copy.deepcopy(self.styles),
        }
        if self.metadata:
            d["metadata"] = copy.deepcopy(self.metadata)
        for key, value in self.extra.items():
            d[key] = copy.deepcopy(value)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "SlotDefinition":
        return cls(
            content=d.get("content") or "",
            class_name=d.get("className") or "",
            parent_class_name=d.get("parentClassName") or "",
            styles=copy.deepcopy(d.get("styles") or {}),
            metadata=copy.deepcopy(d.get("metadata") or {}),
            extra={k: copy.deepcopy(v) for k, v in d.items() if k not in _SLOT_KEYS},
        )


# ---------------------------------------------------------------------------
# SlotConfiguration: the persisted unit
# ---------------------------------------------------------------------------

@dataclass
class ConfigurationMetadata:
    """Timestamps and page name for a configuration."""
    created: str | None = None
    last_modified: str | None = None
    page_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {}
        if self.created is not None:
            d["created"] = self.created
        if self.last_modified is not None:
            d["lastModified"] = self.last_modified
        if self.page_name is not None:
            d["pageName"] = self.page_name
        d.update(copy.deepcopy(self.extra))
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "ConfigurationMetadata":
        known = ("created", "lastModified", "pageName")
        return cls(
            created=d.get("created"),
            last_modified=d.get("lastModified"),
            page_name=d.get("pageName"),
            extra={k: copy.deepcopy(v) for k, v in d.items() if k not in known},
        )


@dataclass
class SlotConfiguration:
    """Complete layout of one page.

    ``major_slots`` orders the page sections top to bottom;
    ``micro_slot_orders`` and ``micro_slot_spans`` place child slots inside
    each section.  ``custom_slots`` records user-added slots so removal
    logic can tell them apart from built-in ones.
    """
    slots: dict[str, SlotDefinition] = field(default_factory=dict)
    major_slots: list[str] = field(default_factory=list)
    micro_slot_orders: dict[str, list[str]] = field(default_factory=dict)
    micro_slot_spans: dict[str, dict[str, SlotSpan]] = field(default_factory=dict)
    custom_slots: dict[str, SlotDefinition] = field(default_factory=dict)
    component_sizes: dict[str, ComponentSize] = field(default_factory=dict)
    metadata: ConfigurationMetadata = field(default_factory=ConfigurationMetadata)

    def copy(self) -> "SlotConfiguration":
        """Deep structural clone; shares nothing with ``self``."""
        return copy.deepcopy(self)

    def children(self, major_id: str) -> list[str]:
        """Child slot ids of a section, in display order."""
        return list(self.micro_slot_orders.get(major_id, []))

    def span_for(self, major_id: str, child_id: str) -> SlotSpan | None:
        return self.micro_slot_spans.get(major_id, {}).get(child_id)

    def is_custom(self, slot_id: str) -> bool:
        return slot_id in self.custom_slots

    def to_dict(self) -> dict:
        return {
            "slots": {sid: s.to_dict() for sid, s in self.slots.items()},
            "majorSlots": list(self.major_slots),
            "microSlotOrders": {k: list(v) for k, v in self.micro_slot_orders.items()},
            "microSlotSpans": {
                major: {child: span.to_dict() for child, span in spans.items()}
                for major, spans in self.micro_slot_spans.items()
            },
            "customSlots": {sid: s.to_dict() for sid, s in self.custom_slots.items()},
            "componentSizes": {sid: s.to_dict() for sid, s in self.component_sizes.items()},
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SlotConfiguration":
        return cls(
            slots={sid: SlotDefinition.from_dict(s) for sid, s in (d.get("slots") or {}).items()},
            major_slots=list(d.get("majorSlots") or []),
            micro_slot_orders={k: list(v) for k, v in (d.get("microSlotOrders") or {}).items()},
            micro_slot_spans={
                major: {child: SlotSpan.from_dict(span) for child, span in spans.items()}
                for major, spans in (d.get("microSlotSpans") or {}).items()
            },
            custom_slots={sid: SlotDefinition.from_dict(s)
                          for sid, s in (d.get("customSlots") or {}).items()},
            component_sizes={sid: ComponentSize.from_dict(s)
                             for sid, s in (d.get("componentSizes") or {}).items()},
            metadata=ConfigurationMetadata.from_dict(d.get("metadata") or {}),
        )


# ---------------------------------------------------------------------------
# EditorState: flattened in-memory editing representation
# ---------------------------------------------------------------------------

@dataclass
class EditorState:
    """Editable form of a SlotConfiguration.

    Text, element classes and styles live in separate maps keyed by slot id
    so the editor can patch one concern without touching the others.  The
    wrapper class (``parentClassName``) has its own map; the legacy flat
    class map with ``"<slot-id>_wrapper"`` keys is produced by
    :meth:`class_map` and accepted by :meth:`from_flat_maps`.
    """
    page_type: str
    contents: dict[str, str] = field(default_factory=dict)
    element_classes: dict[str, str] = field(default_factory=dict)
    parent_classes: dict[str, str] = field(default_factory=dict)
    styles: dict[str, dict[str, Any]] = field(default_factory=dict)
    slot_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)
    slot_extras: dict[str, dict[str, Any]] = field(default_factory=dict)
    major_slots: list[str] = field(default_factory=list)
    micro_slot_orders: dict[str, list[str]] = field(default_factory=dict)
    micro_slot_spans: dict[str, dict[str, SlotSpan]] = field(default_factory=dict)
    custom_slots: dict[str, SlotDefinition] = field(default_factory=dict)
    component_sizes: dict[str, ComponentSize] = field(default_factory=dict)
    metadata: ConfigurationMetadata = field(default_factory=ConfigurationMetadata)
    from_default: bool = False  # True when decode substituted the built-in layout

    def slot_ids(self) -> list[str]:
        """Every slot id held by the flat maps, in first-seen order."""
        seen: dict[str, None] = {}
        for mapping in (self.contents, self.element_classes,
                        self.parent_classes, self.styles):
            for key in mapping:
                seen.setdefault(key, None)
        return list(seen)

    def class_map(self) -> dict[str, str]:
        """Element classes plus a synthesized ``<id>_wrapper`` entry per slot."""
        classes: dict[str, str] = {}
        for sid in self.slot_ids():
            classes[sid] = self.element_classes.get(sid, "")
            classes[sid + WRAPPER_SUFFIX] = self.parent_classes.get(sid, "")
        return classes

    @classmethod
    def from_flat_maps(cls, page_type: str, contents: dict[str, str],
                       classes: dict[str, str],
                       styles: dict[str, dict[str, Any]],
                       **structure: Any) -> "EditorState":
        """Build a state from legacy maps where wrapper classes share the class map.

        A ``<id>_wrapper`` key only counts as a wrapper entry when ``<id>``
        is itself a slot; otherwise it is an ordinary slot id.
        """
        known = set(contents) | set(styles) | {
            k for k in classes if not k.endswith(WRAPPER_SUFFIX)
        }
        element: dict[str, str] = {}
        parent: dict[str, str] = {}
        for key, value in classes.items():
            base = key[: -len(WRAPPER_SUFFIX)] if key.endswith(WRAPPER_SUFFIX) else None
            if base is not None and base in known:
                parent[base] = value
            else:
                element[key] = value
        return cls(page_type=page_type, contents=dict(contents),
                   element_classes=element, parent_classes=parent,
                   styles=copy.deepcopy(styles), **structure)


# ---------------------------------------------------------------------------
# Lifecycle records
# ---------------------------------------------------------------------------

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class DraftRecord:
    """The single mutable draft for a (store, page type) pair."""
    id: str
    store_id: str
    page_type: str
    configuration: SlotConfiguration
    version_number: int | None = None   # last published version, None before first publish
    updated_at: datetime | None = None
    has_unpublished_changes: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "pageType": self.page_type,
            "configuration": self.configuration.to_dict(),
            "versionNumber": self.version_number,
            "updatedAt": _iso(self.updated_at),
            "hasUnpublishedChanges": self.has_unpublished_changes,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "DraftRecord":
        return cls(
            id=d["id"],
            store_id=d["storeId"],
            page_type=d["pageType"],
            configuration=SlotConfiguration.from_dict(d.get("configuration") or {}),
            version_number=d.get("versionNumber"),
            updated_at=_parse_dt(d.get("updatedAt")),
            has_unpublished_changes=bool(d.get("hasUnpublishedChanges", False)),
        )


@dataclass
class PublishedRecord:
    """An immutable published snapshot; only ``status`` changes, on supersede."""
    id: str
    store_id: str
    page_type: str
    configuration: SlotConfiguration
    version_number: int
    published_at: datetime
    status: PublishStatus = PublishStatus.PUBLISHED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "pageType": self.page_type,
            "configuration": self.configuration.to_dict(),
            "versionNumber": self.version_number,
            "publishedAt": _iso(self.published_at),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PublishedRecord":
        return cls(
            id=d["id"],
            store_id=d["storeId"],
            page_type=d["pageType"],
            configuration=SlotConfiguration.from_dict(d.get("configuration") or {}),
            version_number=int(d["versionNumber"]),
            published_at=_parse_dt(d["publishedAt"]),
            status=PublishStatus(d.get("status", "published")),
        )


# ---------------------------------------------------------------------------
# VariantOverride: experiment data consumed read-only
# ---------------------------------------------------------------------------

@dataclass
class VariantOverride:
    """Slot overrides of one experiment variant.

    Each override is a partial slot definition in persisted form
    (``content``, ``className``, ``styles`` ...) with an optional
    ``enabled`` flag that only matters when the slot does not exist yet.
    """
    test_id: str
    variant_name: str
    slot_overrides: dict[str, dict[str, Any]] = field(default_factory=dict)
    is_control: bool = False

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "testId": self.test_id,
            "variantName": self.variant_name,
            "slotOverrides": copy.deepcopy(self.slot_overrides),
        }
        if self.is_control:
            d["isControl"] = True
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "VariantOverride":
        return cls(
            test_id=str(d["testId"]),
            variant_name=str(d.get("variantName", "")),
            slot_overrides=copy.deepcopy(d.get("slotOverrides") or {}),
            is_control=bool(d.get("isControl", False)),
        )
