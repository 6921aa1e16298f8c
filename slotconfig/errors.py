"""Error types raised by the slot configuration engine.

Structural problems with a persisted configuration are recovered locally
(the transcoder substitutes the built-in default), so only persistence
errors normally reach callers.  Span values are clamped, never rejected.
"""


class SlotConfigError(Exception):
    """Base class for all engine errors."""


class RecordNotFound(SlotConfigError):
    """No draft or published record exists for the requested key."""

    def __init__(self, kind: str, store_id: str | None = None,
                 page_type: str | None = None, record_id: str | None = None) -> None:
        self.kind = kind
        self.store_id = store_id
        self.page_type = page_type
        self.record_id = record_id
        if record_id is not None:
            where = f"id {record_id!r}"
        else:
            where = f"store {store_id!r}, page {page_type!r}"
        super().__init__(f"No {kind} record for {where}")


class PersistenceFailure(SlotConfigError):
    """A load, save or publish call against the backend failed.

    The original exception is available as ``__cause__``.  Callers may
    retry; the engine never does so on its own.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class MalformedConfiguration(SlotConfigError):
    """A persisted configuration failed structural validation."""

    def __init__(self, issues: list) -> None:
        self.issues = issues
        summary = "; ".join(str(i) for i in issues[:3])
        if len(issues) > 3:
            summary += f" (+{len(issues) - 3} more)"
        super().__init__(f"Malformed slot configuration: {summary}")
