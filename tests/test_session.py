"""Tests for the draft lifecycle (slotconfig.drafts.session).

Uses a short debounce so the timing-dependent behaviour can be observed
without slowing the suite down.
"""

import asyncio
import logging

import pytest

from slotconfig.config import EngineSettings
from slotconfig.drafts.session import DraftSession
from slotconfig.drafts.store import InMemoryStore
from slotconfig.errors import PersistenceFailure, RecordNotFound
from slotconfig.processor.editing import set_content
from slotconfig.processor.transcoder import decode, encode
from slotconfig.schema.models import PublishStatus

DELAY = 0.05


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class RecordingStore(InMemoryStore):
    """InMemoryStore that records saves and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.saved = []
        self.attempts = 0
        self.fail_updates = False

    async def update_draft(self, draft_id, configuration):
        self.attempts += 1
        if self.fail_updates:
            raise ConnectionError("backend down")
        self.saved.append(configuration.copy())
        return await super().update_draft(draft_id, configuration)


class BrokenStore(InMemoryStore):
    async def get_draft(self, store_id, page_type):
        raise OSError("disk unavailable")


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def settings():
    return EngineSettings(debounce_seconds=DELAY)


@pytest.fixture
def session(store, settings):
    return DraftSession(store, "store-1", "cart", settings)


def _titled(session, text):
    state = decode(session.get_configuration(), session.page_type)
    set_content(state, "header.title", text)
    return encode(state)


def _title(config):
    return config.slots["header.title"].content


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoadOrCreate:

    @pytest.mark.asyncio
    async def test_creates_default_draft(self, session, store):
        draft = await session.load_or_create()
        assert draft.version_number is None
        assert _title(session.get_configuration()) == "My Cart"
        assert (await store.get_draft("store-1", "cart")).id == draft.id

    @pytest.mark.asyncio
    async def test_loads_existing_draft(self, session, store, settings):
        first = await session.load_or_create()
        other = DraftSession(store, "store-1", "cart", settings)
        assert (await other.load_or_create()).id == first.id

    @pytest.mark.asyncio
    async def test_backend_error_is_wrapped(self, settings):
        session = DraftSession(BrokenStore(), "store-1", "cart", settings)
        with pytest.raises(PersistenceFailure) as exc:
            await session.load_or_create()
        assert exc.value.operation == "load"
        assert isinstance(exc.value.__cause__, OSError)

    def test_requires_load(self, session):
        with pytest.raises(RuntimeError):
            session.get_configuration()


# ---------------------------------------------------------------------------
# Debounced saving
# ---------------------------------------------------------------------------

class TestDebouncedSave:

    @pytest.mark.asyncio
    async def test_update_applies_immediately_saves_later(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "Bag"))
        assert _title(session.get_configuration()) == "Bag"
        assert session.has_unsaved_changes
        assert store.saved == []

        await asyncio.sleep(DELAY * 4)
        assert len(store.saved) == 1
        assert not session.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_burst_coalesces_to_last_state(self, session, store):
        await session.load_or_create()
        for i in range(5):
            session.update(_titled(session, f"Title {i}"))
            await asyncio.sleep(DELAY / 5)
        await asyncio.sleep(DELAY * 4)
        assert len(store.saved) == 1
        assert _title(store.saved[0]) == "Title 4"

    @pytest.mark.asyncio
    async def test_save_immediately_supersedes_pending(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "Pending"))
        await session.save_immediately()
        await asyncio.sleep(DELAY * 4)
        assert len(store.saved) == 1
        assert _title(store.saved[0]) == "Pending"
        assert not session.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_save_immediately_replaces_pending_update(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "A"))
        await session.save_immediately(_titled(session, "B"))
        await asyncio.sleep(DELAY * 4)
        assert [_title(c) for c in store.saved] == ["B"]
        assert _title(session.get_configuration()) == "B"
        assert not session.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_save_immediately_with_configuration(self, session, store):
        await session.load_or_create()
        draft = await session.save_immediately(_titled(session, "Now"))
        assert _title(draft.configuration) == "Now"
        assert not session.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_update_copies_configuration(self, session):
        await session.load_or_create()
        config = _titled(session, "Bag")
        session.update(config)
        config.slots["header.title"].content = "mutated"
        assert _title(session.get_configuration()) == "Bag"
        await session.close()


class TestSaveFailure:

    @pytest.mark.asyncio
    async def test_flag_stays_set_and_no_retry(self, session, store):
        await session.load_or_create()
        store.fail_updates = True
        session.update(_titled(session, "Bag"))
        await asyncio.sleep(DELAY * 4)

        assert session.has_unsaved_changes
        assert isinstance(session.last_error, ConnectionError)
        assert store.attempts == 1
        await asyncio.sleep(DELAY * 4)
        assert store.attempts == 1

    @pytest.mark.asyncio
    async def test_save_immediately_raises(self, session, store):
        await session.load_or_create()
        store.fail_updates = True
        with pytest.raises(PersistenceFailure) as exc:
            await session.save_immediately(_titled(session, "Bag"))
        assert exc.value.operation == "save"
        assert session.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_next_save_clears_error(self, session, store):
        await session.load_or_create()
        store.fail_updates = True
        session.update(_titled(session, "Bag"))
        await asyncio.sleep(DELAY * 4)
        store.fail_updates = False
        await session.save_immediately()
        assert session.last_error is None
        assert not session.has_unsaved_changes


# ---------------------------------------------------------------------------
# Publishing and history
# ---------------------------------------------------------------------------

class TestPublish:

    @pytest.mark.asyncio
    async def test_versioning_scenario(self, session, store):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "First"))
        v1 = await session.publish()
        assert v1.version_number == 1
        assert _title(v1.configuration) == "First"
        assert session.get_version_number() == 1

        session.update(_titled(session, "Bag"))
        v2 = await session.publish()
        assert v2.version_number == 2
        assert session.get_version_number() == 2

        live = await store.get_published("store-1", "cart")
        assert live.version_number == 2
        assert _title(live.configuration) == "Bag"

        history = await session.history()
        assert [r.version_number for r in history] == [2, 1]
        assert history[1].status is PublishStatus.SUPERSEDED

    @pytest.mark.asyncio
    async def test_publish_flushes_pending_edit(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "Unsaved"))
        record = await session.publish()
        assert _title(record.configuration) == "Unsaved"
        assert not session.has_unsaved_changes
        assert not session.save_pending

    @pytest.mark.asyncio
    async def test_history_limit(self, session):
        await session.load_or_create()
        for _ in range(3):
            await session.publish()
        assert len(await session.history(limit=2)) == 2


class TestRevert:

    @pytest.mark.asyncio
    async def test_revert_to_version(self, session, store):
        await session.load_or_create()
        await session.publish()
        await session.save_immediately(_titled(session, "Second"))
        await session.publish()

        draft = await session.revert_to_version(1)
        assert _title(draft.configuration) == "My Cart"
        assert _title(session.get_configuration()) == "My Cart"
        # Live layout is unchanged until the revert is published.
        assert _title((await store.get_published("store-1", "cart")).configuration) == "Second"

        v3 = await session.publish()
        assert v3.version_number == 3
        assert _title(v3.configuration) == "My Cart"

    @pytest.mark.asyncio
    async def test_revert_unknown_version(self, session):
        await session.load_or_create()
        with pytest.raises(RecordNotFound):
            await session.revert_to_version(7)


# ---------------------------------------------------------------------------
# Unpublished changes, reset and discard
# ---------------------------------------------------------------------------

class TestUnpublishedChanges:

    @pytest.mark.asyncio
    async def test_flag_follows_saves_and_publish(self, session):
        await session.load_or_create()
        assert session.has_unpublished_changes is False

        session.update(_titled(session, "Edited"))
        assert session.has_unpublished_changes is True
        await session.save_immediately()
        assert session.has_unsaved_changes is False
        assert session.has_unpublished_changes is True

        await session.publish()
        assert session.has_unpublished_changes is False

    @pytest.mark.asyncio
    async def test_flag_survives_reload(self, session, store, settings):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "Edited"))

        other = DraftSession(store, "store-1", "cart", settings)
        await other.load_or_create()
        assert other.has_unpublished_changes is True

    @pytest.mark.asyncio
    async def test_revert_to_live_version_clears_flag(self, session):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "Live"))
        await session.publish()
        await session.save_immediately(_titled(session, "Scratch"))

        draft = await session.revert_to_version(1)
        assert _title(draft.configuration) == "Live"
        assert session.has_unpublished_changes is False

    @pytest.mark.asyncio
    async def test_revert_to_older_version_needs_publish(self, session):
        await session.load_or_create()
        await session.publish()
        await session.save_immediately(_titled(session, "Second"))
        await session.publish()

        await session.revert_to_version(1)
        assert session.has_unpublished_changes is True


class TestResetAndDiscard:

    @pytest.mark.asyncio
    async def test_reset_from_published(self, session, store):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "Live"))
        await session.publish()
        session.update(_titled(session, "Scratch"))

        draft = await session.reset_from_published()
        assert _title(draft.configuration) == "Live"
        assert _title(session.get_configuration()) == "Live"
        assert session.get_version_number() == 1
        assert not session.save_pending
        assert not session.has_unsaved_changes
        assert not session.has_unpublished_changes

        await asyncio.sleep(DELAY * 3)
        assert [_title(c) for c in store.saved] == ["Live"]

    @pytest.mark.asyncio
    async def test_reset_without_published(self, session):
        await session.load_or_create()
        with pytest.raises(RecordNotFound):
            await session.reset_from_published()

    @pytest.mark.asyncio
    async def test_discard_before_publish_gives_default(self, session, store):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "Scratch"))

        draft = await session.discard_draft()
        assert _title(draft.configuration) == "My Cart"
        assert draft.version_number is None
        assert not session.has_unpublished_changes
        assert _title((await store.get_draft("store-1", "cart")).configuration) == "My Cart"

    @pytest.mark.asyncio
    async def test_discard_after_publish_starts_from_live(self, session, store):
        await session.load_or_create()
        await session.save_immediately(_titled(session, "Live"))
        await session.publish()
        session.update(_titled(session, "Scratch"))

        draft = await session.discard_draft()
        assert _title(draft.configuration) == "Live"
        assert session.get_version_number() == 1
        assert not session.save_pending
        assert not session.has_unpublished_changes
        assert len(await session.history()) == 1

    @pytest.mark.asyncio
    async def test_discard_backend_failure(self, session, store):
        await session.load_or_create()

        async def fail(draft_id):
            raise OSError("disk unavailable")

        store.discard_draft = fail
        with pytest.raises(PersistenceFailure) as exc:
            await session.discard_draft()
        assert exc.value.operation == "discard"


# ---------------------------------------------------------------------------
# Shutdown
# ---------------------------------------------------------------------------

class TestShutdown:

    @pytest.mark.asyncio
    async def test_flush_on_exit_saves_pending(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "Bag"))
        assert await session.flush_on_exit() is True
        assert len(store.saved) == 1
        await asyncio.sleep(DELAY * 4)
        assert len(store.saved) == 1

    @pytest.mark.asyncio
    async def test_flush_on_exit_nothing_to_do(self, session, store):
        await session.load_or_create()
        assert await session.flush_on_exit() is False
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_flush_on_exit_never_raises(self, session, store, caplog):
        await session.load_or_create()
        store.fail_updates = True
        session.update(_titled(session, "Bag"))
        with caplog.at_level(logging.WARNING, logger="slotconfig.drafts.session"):
            assert await session.flush_on_exit() is False
        assert "Exit flush" in caplog.text

    @pytest.mark.asyncio
    async def test_context_manager(self, store, settings):
        async with DraftSession(store, "store-1", "cart", settings) as session:
            session.update(_titled(session, "Bag"))
        assert len(store.saved) == 1
        assert _title((await store.get_draft("store-1", "cart")).configuration) == "Bag"

    @pytest.mark.asyncio
    async def test_close_waits_for_running_save(self, session, store):
        await session.load_or_create()
        session.update(_titled(session, "Bag"))
        await asyncio.sleep(DELAY * 2)
        await session.close()
        assert not session.save_pending
        assert len(store.saved) == 1
