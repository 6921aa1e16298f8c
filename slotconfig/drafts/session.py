"""Draft lifecycle for one (store, page type) pair.

A :class:`DraftSession` owns the in-memory working copy of a page layout
while it is being edited.  Edits are applied immediately in memory and
written to the backend after a quiet period (debounce), so a burst of
drags or keystrokes produces a single save of the final state.

Typical use::

    async with DraftSession(store, "store-1", "cart") as session:
        session.update(new_configuration)      # saved after the debounce
        await session.publish()                # flush, then publish

Persistence errors are raised as :class:`PersistenceFailure`.  A failed
background save leaves ``has_unsaved_changes`` set and records the error
in ``last_error``; nothing is retried automatically.
"""

import asyncio
import logging

from slotconfig.config import EngineSettings
from slotconfig.drafts.debounce import Debouncer
from slotconfig.drafts.store import PersistenceBackend
from slotconfig.errors import PersistenceFailure, RecordNotFound
from slotconfig.schema.defaults import build_default_configuration
from slotconfig.schema.models import (
    DraftRecord,
    PublishedRecord,
    PublishStatus,
    SlotConfiguration,
)

logger = logging.getLogger(__name__)


class DraftSession:
    """Editing session bound to one draft record.

    Parameters
    ----------
    store : PersistenceBackend
        Backend holding drafts and published records.
    store_id, page_type : str
        Key of the draft being edited.
    settings : EngineSettings, optional
        Supplies the debounce delay; defaults to ``EngineSettings()``.
    """

    def __init__(self, store: PersistenceBackend, store_id: str, page_type: str,
                 settings: EngineSettings | None = None):
        self.store = store
        self.store_id = store_id
        self.page_type = page_type
        self.settings = settings or EngineSettings()

        self._draft: DraftRecord | None = None
        self._configuration: SlotConfiguration | None = None
        # Edits bump _revision; a save records the revision it wrote.
        self._revision = 0
        self._saved_revision = 0
        self._save_lock = asyncio.Lock()
        self._debouncer = Debouncer(self.settings.debounce_seconds, self._debounced_save)
        self.last_error: Exception | None = None

    async def __aenter__(self) -> "DraftSession":
        await self.load_or_create()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.flush_on_exit()
        await self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def draft(self) -> DraftRecord | None:
        return self._draft

    @property
    def has_unsaved_changes(self) -> bool:
        return self._revision != self._saved_revision

    @property
    def has_unpublished_changes(self) -> bool:
        """True when the draft differs from what was last published."""
        if self._draft is None:
            return False
        return self.has_unsaved_changes or self._draft.has_unpublished_changes

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def get_configuration(self) -> SlotConfiguration:
        self._require_loaded()
        return self._configuration.copy()

    def get_version_number(self) -> int | None:
        self._require_loaded()
        return self._draft.version_number

    def _require_loaded(self) -> None:
        if self._draft is None:
            raise RuntimeError("Draft session not loaded; call load_or_create() first")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_or_create(self) -> DraftRecord:
        """Fetch the draft, creating it from the default layout if missing."""
        try:
            draft = await self.store.get_draft(self.store_id, self.page_type)
        except RecordNotFound:
            logger.info(f"No draft for {self.store_id}/{self.page_type}, creating from defaults")
            configuration = build_default_configuration(self.page_type)
            try:
                draft = await self.store.create_draft(self.store_id, self.page_type, configuration)
            except Exception as exc:
                raise PersistenceFailure("create_draft", str(exc)) from exc
        except Exception as exc:
            raise PersistenceFailure("load", str(exc)) from exc

        self._adopt(draft)
        logger.debug(f"Loaded draft {draft.id} (version {draft.version_number})")
        return draft

    def _adopt(self, draft: DraftRecord) -> None:
        self._draft = draft
        self._configuration = draft.configuration.copy()
        self._revision = self._saved_revision = 0
        self.last_error = None

    # ------------------------------------------------------------------
    # Editing and saving
    # ------------------------------------------------------------------

    def update(self, configuration: SlotConfiguration) -> None:
        """Replace the working configuration and schedule a debounced save."""
        self._require_loaded()
        self._configuration = configuration.copy()
        self._revision += 1
        self._debouncer.schedule()

    async def save_immediately(self, configuration: SlotConfiguration | None = None) -> DraftRecord:
        """Cancel any pending debounce and persist the latest state now."""
        self._require_loaded()
        self._debouncer.cancel()
        if configuration is not None:
            self._configuration = configuration.copy()
            self._revision += 1
        return await self._save_latest()

    async def _save_latest(self) -> DraftRecord:
        async with self._save_lock:
            revision = self._revision
            snapshot = self._configuration.copy()
            try:
                draft = await self.store.update_draft(self._draft.id, snapshot)
            except Exception as exc:
                self.last_error = exc
                logger.error(f"Saving draft {self._draft.id} failed: {exc}")
                raise PersistenceFailure("save", str(exc)) from exc

            self._draft = draft
            self._saved_revision = max(self._saved_revision, revision)
            self.last_error = None
            logger.debug(f"Saved draft {draft.id} at revision {revision}")
            return draft

    async def _debounced_save(self) -> None:
        try:
            await self._save_latest()
        except PersistenceFailure:
            # Already logged and kept in last_error; the next edit retries.
            return

    # ------------------------------------------------------------------
    # Publishing and history
    # ------------------------------------------------------------------

    async def publish(self) -> PublishedRecord:
        """Flush unsaved edits, then publish the draft as a new version."""
        self._require_loaded()
        if self.has_unsaved_changes or self._debouncer.pending:
            await self.save_immediately()
        try:
            record = await self.store.publish(self._draft.id)
        except Exception as exc:
            raise PersistenceFailure("publish", str(exc)) from exc
        self._draft.version_number = record.version_number
        self._draft.has_unpublished_changes = False
        logger.info(f"Published {self.store_id}/{self.page_type} as version {record.version_number}")
        return record

    async def history(self, limit: int | None = 20) -> list[PublishedRecord]:
        """Published records for this page, newest first."""
        try:
            return await self.store.list_published(self.store_id, self.page_type, limit)
        except Exception as exc:
            raise PersistenceFailure("history", str(exc)) from exc

    async def revert_to_version(self, version_number: int) -> DraftRecord:
        """Copy a published version back into the draft and save it.

        The reverted layout goes live only once it is published again.
        Reverting to the live version is the same as
        :meth:`reset_from_published` and leaves nothing to publish.
        """
        self._require_loaded()
        for record in await self.history(limit=None):
            if record.version_number == version_number:
                if record.status is PublishStatus.PUBLISHED:
                    return await self.reset_from_published()
                logger.info(f"Reverting draft {self._draft.id} to version {version_number}")
                return await self.save_immediately(record.configuration)
        raise RecordNotFound(f"published version {version_number}", self.store_id, self.page_type)

    async def reset_from_published(self) -> DraftRecord:
        """Replace the draft with the live published layout.

        Pending edits are dropped.  Raises :class:`RecordNotFound` when the
        page has never been published.
        """
        self._require_loaded()
        await self._drop_pending()
        async with self._save_lock:
            try:
                draft = await self.store.reset_from_published(self._draft.id)
            except RecordNotFound:
                raise
            except Exception as exc:
                raise PersistenceFailure("reset", str(exc)) from exc
            self._adopt(draft)
        logger.info(f"Reset draft {draft.id} to published version {draft.version_number}")
        return draft

    async def discard_draft(self) -> DraftRecord:
        """Delete the draft and start over from the live layout.

        Before the first publish the new draft holds the default layout.
        """
        self._require_loaded()
        await self._drop_pending()
        async with self._save_lock:
            try:
                await self.store.discard_draft(self._draft.id)
                draft = await self.store.create_draft(
                    self.store_id, self.page_type, build_default_configuration(self.page_type))
                try:
                    draft = await self.store.reset_from_published(draft.id)
                except RecordNotFound:
                    pass
            except Exception as exc:
                raise PersistenceFailure("discard", str(exc)) from exc
            self._adopt(draft)
        logger.info(f"Discarded draft for {self.store_id}/{self.page_type}")
        return draft

    async def _drop_pending(self) -> None:
        self._debouncer.cancel()
        await self._debouncer.wait_idle()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def flush_on_exit(self) -> bool:
        """Best-effort save of pending edits; returns whether a save succeeded."""
        self._debouncer.cancel()
        if self._draft is None or not self.has_unsaved_changes:
            return False
        try:
            await self._save_latest()
        except PersistenceFailure as exc:
            logger.warning(f"Exit flush for {self.store_id}/{self.page_type} failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        """Drop the pending debounce and wait for saves already running."""
        self._debouncer.cancel()
        await self._debouncer.wait_idle()
