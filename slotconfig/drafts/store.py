"""Persistence backends for drafts and published configurations.

The draft session talks to storage only through :class:`PersistenceBackend`.
Two implementations ship with the package:

- :class:`InMemoryStore` keeps records in dictionaries (tests, embedding).
- :class:`YamlFileStore` writes one YAML document per record under a root
  directory::

      <root>/<store_id>/<page_type>/draft.yaml
      <root>/<store_id>/<page_type>/published/v0001.yaml

Lookups that find nothing raise :class:`RecordNotFound`; every other error
propagates unchanged and is wrapped by the session.  Records handed out are
copies, so callers can never mutate stored state by accident.
"""

import asyncio
import copy
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from slotconfig.errors import RecordNotFound
from slotconfig.schema.loader import dump_yaml, read_yaml
from slotconfig.schema.models import (
    DraftRecord,
    PublishedRecord,
    PublishStatus,
    SlotConfiguration,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Backend contract
# ---------------------------------------------------------------------------

class PersistenceBackend(Protocol):
    """Storage contract used by DraftSession and resolve_layout."""

    async def get_draft(self, store_id: str, page_type: str) -> DraftRecord: ...

    async def create_draft(self, store_id: str, page_type: str,
                           configuration: SlotConfiguration) -> DraftRecord: ...

    async def update_draft(self, draft_id: str,
                           configuration: SlotConfiguration) -> DraftRecord: ...

    async def get_published(self, store_id: str, page_type: str) -> PublishedRecord: ...

    async def publish(self, draft_id: str) -> PublishedRecord: ...

    async def list_published(self, store_id: str, page_type: str,
                             limit: int | None = None) -> list[PublishedRecord]: ...

    async def reset_from_published(self, draft_id: str) -> DraftRecord: ...

    async def discard_draft(self, draft_id: str) -> None: ...


def _next_published(history: list[PublishedRecord], draft: DraftRecord,
                    ) -> tuple[list[PublishedRecord], PublishedRecord]:
    """Supersede the live record in *history* and build the next version."""
    updated = [
        replace(r, status=PublishStatus.SUPERSEDED) if r.status is PublishStatus.PUBLISHED else r
        for r in history
    ]
    version = max((r.version_number for r in history), default=0) + 1
    record = PublishedRecord(
        id=str(uuid.uuid4()),
        store_id=draft.store_id,
        page_type=draft.page_type,
        configuration=draft.configuration.copy(),
        version_number=version,
        published_at=_utcnow(),
    )
    return updated, record


def _adopt_published(draft: DraftRecord, live: PublishedRecord) -> None:
    """Overwrite *draft* with the live layout; the draft is then clean."""
    draft.configuration = live.configuration.copy()
    draft.version_number = live.version_number
    draft.has_unpublished_changes = False
    draft.updated_at = _utcnow()


# ---------------------------------------------------------------------------
# InMemoryStore
# ---------------------------------------------------------------------------

class InMemoryStore:
    """Dictionary-backed store; one draft and an append-only history per page."""

    def __init__(self) -> None:
        self._drafts: dict[tuple[str, str], DraftRecord] = {}
        self._draft_keys: dict[str, tuple[str, str]] = {}
        self._published: dict[tuple[str, str], list[PublishedRecord]] = {}
        self._lock = asyncio.Lock()

    async def get_draft(self, store_id: str, page_type: str) -> DraftRecord:
        draft = self._drafts.get((store_id, page_type))
        if draft is None:
            raise RecordNotFound("draft", store_id, page_type)
        return copy.deepcopy(draft)

    async def create_draft(self, store_id: str, page_type: str,
                           configuration: SlotConfiguration) -> DraftRecord:
        key = (store_id, page_type)
        existing = self._drafts.get(key)
        if existing is not None:
            return copy.deepcopy(existing)
        draft = DraftRecord(
            id=str(uuid.uuid4()),
            store_id=store_id,
            page_type=page_type,
            configuration=configuration.copy(),
            updated_at=_utcnow(),
        )
        self._drafts[key] = draft
        self._draft_keys[draft.id] = key
        return copy.deepcopy(draft)

    async def update_draft(self, draft_id: str,
                           configuration: SlotConfiguration) -> DraftRecord:
        key = self._draft_keys.get(draft_id)
        if key is None:
            raise RecordNotFound("draft", record_id=draft_id)
        draft = self._drafts[key]
        draft.configuration = configuration.copy()
        draft.updated_at = _utcnow()
        draft.has_unpublished_changes = True
        return copy.deepcopy(draft)

    async def get_published(self, store_id: str, page_type: str) -> PublishedRecord:
        for record in self._published.get((store_id, page_type), []):
            if record.status is PublishStatus.PUBLISHED:
                return copy.deepcopy(record)
        raise RecordNotFound("published", store_id, page_type)

    async def publish(self, draft_id: str) -> PublishedRecord:
        async with self._lock:
            key = self._draft_keys.get(draft_id)
            if key is None:
                raise RecordNotFound("draft", record_id=draft_id)
            draft = self._drafts[key]
            history, record = _next_published(self._published.get(key, []), draft)
            history.append(record)
            self._published[key] = history
            draft.version_number = record.version_number
            draft.has_unpublished_changes = False
            return copy.deepcopy(record)

    async def list_published(self, store_id: str, page_type: str,
                             limit: int | None = None) -> list[PublishedRecord]:
        history = sorted(self._published.get((store_id, page_type), []),
                         key=lambda r: r.version_number, reverse=True)
        if limit is not None:
            history = history[:limit]
        return copy.deepcopy(history)

    async def reset_from_published(self, draft_id: str) -> DraftRecord:
        async with self._lock:
            key = self._draft_keys.get(draft_id)
            if key is None:
                raise RecordNotFound("draft", record_id=draft_id)
            live = await self.get_published(*key)
            draft = self._drafts[key]
            _adopt_published(draft, live)
            return copy.deepcopy(draft)

    async def discard_draft(self, draft_id: str) -> None:
        async with self._lock:
            key = self._draft_keys.pop(draft_id, None)
            if key is None:
                raise RecordNotFound("draft", record_id=draft_id)
            del self._drafts[key]


# ---------------------------------------------------------------------------
# YamlFileStore
# ---------------------------------------------------------------------------

def _check_component(value: str) -> str:
    if not value or "/" in value or "\\" in value or value in (".", ".."):
        raise ValueError(f"Invalid store/page identifier: {value!r}")
    return value


class YamlFileStore:
    """Stores each record as a YAML document under *root*.

    Draft ids have the form ``"<store_id>/<page_type>"`` so a draft can be
    located from its id alone.  File access runs in a worker thread to keep
    the event loop responsive.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _page_dir(self, store_id: str, page_type: str) -> Path:
        return self.root / _check_component(store_id) / _check_component(page_type)

    def _draft_path(self, store_id: str, page_type: str) -> Path:
        return self._page_dir(store_id, page_type) / "draft.yaml"

    def _published_dir(self, store_id: str, page_type: str) -> Path:
        return self._page_dir(store_id, page_type) / "published"

    @staticmethod
    def _split_draft_id(draft_id: str) -> tuple[str, str]:
        store_id, sep, page_type = draft_id.partition("/")
        if not sep:
            raise RecordNotFound("draft", record_id=draft_id)
        return store_id, page_type

    # ------------------------------------------------------------------
    # Synchronous helpers (run via asyncio.to_thread)
    # ------------------------------------------------------------------

    def _read_draft(self, store_id: str, page_type: str) -> DraftRecord:
        path = self._draft_path(store_id, page_type)
        if not path.exists():
            raise RecordNotFound("draft", store_id, page_type)
        return DraftRecord.from_dict(read_yaml(path))

    def _write_draft(self, draft: DraftRecord) -> None:
        dump_yaml(draft.to_dict(), self._draft_path(draft.store_id, draft.page_type))

    def _read_history(self, store_id: str, page_type: str) -> list[PublishedRecord]:
        directory = self._published_dir(store_id, page_type)
        if not directory.exists():
            return []
        return [PublishedRecord.from_dict(read_yaml(p))
                for p in sorted(directory.glob("v*.yaml"))]

    def _write_published(self, record: PublishedRecord) -> None:
        path = self._published_dir(record.store_id, record.page_type) / f"v{record.version_number:04d}.yaml"
        dump_yaml(record.to_dict(), path)

    def _create_draft(self, store_id: str, page_type: str,
                      configuration: SlotConfiguration) -> DraftRecord:
        try:
            return self._read_draft(store_id, page_type)
        except RecordNotFound:
            pass
        draft = DraftRecord(
            id=f"{store_id}/{page_type}",
            store_id=store_id,
            page_type=page_type,
            configuration=configuration.copy(),
            updated_at=_utcnow(),
        )
        self._write_draft(draft)
        logger.debug(f"Created draft file for {draft.id}")
        return draft

    def _update_draft(self, draft_id: str, configuration: SlotConfiguration) -> DraftRecord:
        draft = self._read_draft(*self._split_draft_id(draft_id))
        draft.configuration = configuration.copy()
        draft.updated_at = _utcnow()
        draft.has_unpublished_changes = True
        self._write_draft(draft)
        return draft

    def _get_published(self, store_id: str, page_type: str) -> PublishedRecord:
        for record in reversed(self._read_history(store_id, page_type)):
            if record.status is PublishStatus.PUBLISHED:
                return record
        raise RecordNotFound("published", store_id, page_type)

    def _publish(self, draft_id: str) -> PublishedRecord:
        draft = self._read_draft(*self._split_draft_id(draft_id))
        previous = self._read_history(draft.store_id, draft.page_type)
        history, record = _next_published(previous, draft)
        # New version first, then demote the old one: a crash in between
        # leaves two live records and readers take the newest one.
        self._write_published(record)
        for old, new in zip(previous, history):
            if old.status is not new.status:
                self._write_published(new)
        draft.version_number = record.version_number
        draft.has_unpublished_changes = False
        self._write_draft(draft)
        return record

    def _list_published(self, store_id: str, page_type: str,
                        limit: int | None) -> list[PublishedRecord]:
        history = sorted(self._read_history(store_id, page_type),
                         key=lambda r: r.version_number, reverse=True)
        return history if limit is None else history[:limit]

    def _reset_from_published(self, draft_id: str) -> DraftRecord:
        draft = self._read_draft(*self._split_draft_id(draft_id))
        _adopt_published(draft, self._get_published(draft.store_id, draft.page_type))
        self._write_draft(draft)
        return draft

    def _discard_draft(self, draft_id: str) -> None:
        path = self._draft_path(*self._split_draft_id(draft_id))
        if not path.exists():
            raise RecordNotFound("draft", record_id=draft_id)
        path.unlink()
        logger.debug(f"Deleted draft file for {draft_id}")

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def get_draft(self, store_id: str, page_type: str) -> DraftRecord:
        return await asyncio.to_thread(self._read_draft, store_id, page_type)

    async def create_draft(self, store_id: str, page_type: str,
                           configuration: SlotConfiguration) -> DraftRecord:
        async with self._lock:
            return await asyncio.to_thread(self._create_draft, store_id, page_type, configuration)

    async def update_draft(self, draft_id: str,
                           configuration: SlotConfiguration) -> DraftRecord:
        async with self._lock:
            return await asyncio.to_thread(self._update_draft, draft_id, configuration)

    async def get_published(self, store_id: str, page_type: str) -> PublishedRecord:
        return await asyncio.to_thread(self._get_published, store_id, page_type)

    async def publish(self, draft_id: str) -> PublishedRecord:
        async with self._lock:
            return await asyncio.to_thread(self._publish, draft_id)

    async def list_published(self, store_id: str, page_type: str,
                             limit: int | None = None) -> list[PublishedRecord]:
        return await asyncio.to_thread(self._list_published, store_id, page_type, limit)

    async def reset_from_published(self, draft_id: str) -> DraftRecord:
        async with self._lock:
            return await asyncio.to_thread(self._reset_from_published, draft_id)

    async def discard_draft(self, draft_id: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._discard_draft, draft_id)
