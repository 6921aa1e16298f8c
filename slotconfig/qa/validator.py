"""Configuration validator — structural checks on persisted slot documents.

Persisted configurations are plain JSON/YAML documents with no enforced
schema, so every document is checked here before it is turned into typed
models.  Errors make a document unusable (the transcoder then substitutes
the built-in layout); warnings describe problems that are repaired on load,
such as an out-of-range span that gets clamped.

Usage::

    from slotconfig.qa.validator import validate_configuration

    result = validate_configuration(document)
    if not result.passed:
        print(result.report())
"""

import math
from dataclasses import dataclass, field
from typing import Any

from slotconfig.errors import MalformedConfiguration
from slotconfig.schema.models import GRID_COLUMNS, MAX_ROW_SPAN


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single problem found in a configuration document."""
    severity: str       # "error" or "warning"
    path: str           # dotted location, e.g. "microSlotSpans.header"
    category: str       # e.g. "structure", "type", "span_range"
    message: str

    def __str__(self) -> str:
        loc = self.path or "<root>"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregated result of validating one document."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        """One-line summary string."""
        status = "VALID" if self.passed else "INVALID"
        return (
            f"Configuration {status}: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)


def _is_whole(value: Any) -> bool:
    return _is_finite(value) and float(value).is_integer()


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


# ---------------------------------------------------------------------------
# ConfigurationValidator
# ---------------------------------------------------------------------------

class ConfigurationValidator:
    """Validates a persisted slot configuration document."""

    def validate(self, data: Any) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(data, dict):
            self._error(result, "", "structure",
                        f"Expected a mapping, got {type(data).__name__}")
            return result

        self._check_slot_map(data, "slots", result, required=True)
        self._check_major_slots(data, result)
        self._check_orders(data, result)
        self._check_spans(data, result)
        self._check_slot_map(data, "customSlots", result, required=False)
        self._check_component_sizes(data, result)

        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            self._error(result, "metadata", "type", "metadata must be a mapping")

        if result.passed:
            self._check_references(data, result)
        return result

    # ------------------------------------------------------------------
    # Section checks
    # ------------------------------------------------------------------

    def _check_slot_map(self, data: dict, key: str, result: ValidationResult,
                        required: bool) -> None:
        slots = data.get(key)
        if slots is None:
            if required:
                self._error(result, key, "structure", f"Missing '{key}' mapping")
            return
        if not isinstance(slots, dict):
            self._error(result, key, "type", f"'{key}' must be a mapping")
            return
        for slot_id, slot in slots.items():
            path = f"{key}.{slot_id}"
            if not isinstance(slot, dict):
                self._error(result, path, "type", "Slot definition must be a mapping")
                continue
            content = slot.get("content")
            if content is not None and not isinstance(content, str):
                self._error(result, path, "type", "content must be a string")
            for attr in ("className", "parentClassName"):
                value = slot.get(attr)
                if value is not None and not isinstance(value, str):
                    self._error(result, path, "type", f"{attr} must be a string")
            for attr in ("styles", "metadata"):
                value = slot.get(attr)
                if value is not None and not isinstance(value, dict):
                    self._error(result, path, "type", f"{attr} must be a mapping")

    def _check_major_slots(self, data: dict, result: ValidationResult) -> None:
        majors = data.get("majorSlots")
        if majors is None:
            self._error(result, "majorSlots", "structure", "Missing 'majorSlots' list")
            return
        if not _is_str_list(majors):
            self._error(result, "majorSlots", "type", "majorSlots must be a list of slot ids")
            return
        if not majors:
            self._error(result, "majorSlots", "structure", "majorSlots is empty")
        if len(set(majors)) != len(majors):
            self._error(result, "majorSlots", "duplicate", "majorSlots contains duplicates")

    def _check_orders(self, data: dict, result: ValidationResult) -> None:
        orders = data.get("microSlotOrders")
        if orders is None:
            return
        if not isinstance(orders, dict):
            self._error(result, "microSlotOrders", "type", "microSlotOrders must be a mapping")
            return
        for major_id, children in orders.items():
            path = f"microSlotOrders.{major_id}"
            if not _is_str_list(children):
                self._error(result, path, "type", "Child order must be a list of slot ids")
            elif len(set(children)) != len(children):
                self._error(result, path, "duplicate", "Child order contains duplicates")

    def _check_spans(self, data: dict, result: ValidationResult) -> None:
        spans = data.get("microSlotSpans")
        if spans is None:
            return
        if not isinstance(spans, dict):
            self._error(result, "microSlotSpans", "type", "microSlotSpans must be a mapping")
            return
        for major_id, child_spans in spans.items():
            if not isinstance(child_spans, dict):
                self._error(result, f"microSlotSpans.{major_id}", "type",
                            "Span table must be a mapping")
                continue
            for child_id, span in child_spans.items():
                path = f"microSlotSpans.{major_id}.{child_id}"
                if not isinstance(span, dict):
                    self._error(result, path, "type", "Span must be a mapping")
                    continue
                col, row = span.get("col"), span.get("row")
                if not (_is_finite(col) and _is_finite(row)):
                    self._error(result, path, "type", "Span col/row must be numbers")
                elif not (_is_whole(col) and _is_whole(row)):
                    self._warn(result, path, "span_value",
                               f"Span {col}x{row} is not whole columns/rows; will be rounded")
                elif not (1 <= col <= GRID_COLUMNS and 1 <= row <= MAX_ROW_SPAN):
                    self._warn(result, path, "span_range",
                               f"Span {col}x{row} outside 1-{GRID_COLUMNS} x 1-{MAX_ROW_SPAN}; "
                               "will be clamped")

    def _check_component_sizes(self, data: dict, result: ValidationResult) -> None:
        sizes = data.get("componentSizes")
        if sizes is None:
            return
        if not isinstance(sizes, dict):
            self._error(result, "componentSizes", "type", "componentSizes must be a mapping")
            return
        for slot_id, size in sizes.items():
            path = f"componentSizes.{slot_id}"
            if not isinstance(size, dict):
                self._error(result, path, "type", "Component size must be a mapping")
                continue
            for dim in ("width", "height"):
                value = size.get(dim)
                if value is not None and not _is_number(value):
                    self._error(result, path, "type", f"{dim} must be a number")

    def _check_references(self, data: dict, result: ValidationResult) -> None:
        """Cross-reference checks; only run once the shapes are sound."""
        slots = data.get("slots") or {}
        customs = data.get("customSlots") or {}
        majors = data.get("majorSlots") or []
        for major_id, children in (data.get("microSlotOrders") or {}).items():
            if major_id not in majors:
                self._warn(result, f"microSlotOrders.{major_id}", "orphan_section",
                           "Ordered section is not listed in majorSlots")
            for child_id in children:
                if child_id not in slots and child_id not in customs:
                    self._warn(result, f"microSlotOrders.{major_id}", "orphan_child",
                               f"Child {child_id!r} has no slot definition")

    # ------------------------------------------------------------------

    @staticmethod
    def _error(result: ValidationResult, path: str, category: str, message: str) -> None:
        result.issues.append(Issue("error", path, category, message))

    @staticmethod
    def _warn(result: ValidationResult, path: str, category: str, message: str) -> None:
        result.issues.append(Issue("warning", path, category, message))


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def validate_configuration(data: Any) -> ValidationResult:
    """Validate a persisted configuration document."""
    return ConfigurationValidator().validate(data)


def require_valid(data: Any) -> ValidationResult:
    """Validate *data*, raising MalformedConfiguration on any error."""
    result = validate_configuration(data)
    if not result.passed:
        raise MalformedConfiguration(result.errors)
    return result
