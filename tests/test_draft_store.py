"""Tests for the draft/commit record store.

Uses AsyncMock clients in place of the HTTP adapter, so every test runs
without a backend.  Covers:
- Local edits touch only the working copy and track dirtiness
- save_changes / discard_changes and their failure paths
- fetch_all / fetch_one state transitions, including stale responses
"""

import asyncio
import copy
from unittest.mock import AsyncMock

import pytest

from cms_admin.errors import (
    DuplicateKeyError,
    InvalidKeyError,
    MissingKeyError,
    RecordNotFoundError,
    SaveInProgressError,
    TransportError,
)
from cms_admin.store.draft import DraftStore, key_error
from cms_admin.store.models import LoadState

RECORDS = {
    "support_bot": {"description": "Answers support tickets"},
    "sales_bot": {"description": "Qualifies inbound leads"},
}


def _client(records: dict | None = None) -> AsyncMock:
    """Fake RecordStoreClient serving a copy of *records*."""
    data = copy.deepcopy(RECORDS if records is None else records)
    client = AsyncMock()
    client.fetch_collection = AsyncMock(return_value=copy.deepcopy(data))

    async def fetch_record(key):
        if key not in data:
            raise RecordNotFoundError(key)
        return {"id": key, **data[key]}

    client.fetch_record = AsyncMock(side_effect=fetch_record)
    client.save_collection = AsyncMock(return_value=None)
    return client


async def _loaded_store(records: dict | None = None) -> tuple[DraftStore, AsyncMock]:
    client = _client(records)
    store = DraftStore(client)
    await store.fetch_all()
    return store, client


# ------------------------------------------------------------------
# Key rules
# ------------------------------------------------------------------


class TestKeyError:
    """key_error() identifier rules."""

    def test_valid(self):
        assert key_error("bot_01") is None

    def test_too_short(self):
        assert key_error("ab") == "ID must be at least 3 characters"

    @pytest.mark.parametrize("key", ["has space", "dash-ed", "dot.ted", "ümlaut"])
    def test_bad_characters(self, key):
        assert key_error(key) == "ID can only contain letters, numbers, and underscores"


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


class TestFetchAll:
    """fetch_all() load states."""

    async def test_loads_both_copies(self):
        """After a load, working equals committed and nothing is dirty."""
        store, _ = await _loaded_store()
        assert store.state is LoadState.LOADED
        assert store.working == RECORDS
        assert store.committed == RECORDS
        assert not store.is_dirty

    async def test_copies_are_independent(self):
        """Mutating a returned view never reaches the store."""
        store, _ = await _loaded_store()
        view = store.working
        view["support_bot"]["description"] = "changed"
        assert store.working == RECORDS

    async def test_failure_from_empty(self):
        """A failed first load stays EMPTY and records the error."""
        client = _client()
        client.fetch_collection.side_effect = TransportError("backend down")
        store = DraftStore(client)

        with pytest.raises(TransportError):
            await store.fetch_all()

        assert store.state is LoadState.EMPTY
        assert store.error == "backend down"
        assert store.working == {}

    async def test_failure_keeps_previous_data(self):
        """A failed reload leaves the loaded copies untouched."""
        store, client = await _loaded_store()
        store.delete("sales_bot")
        client.fetch_collection.side_effect = TransportError("timeout")

        with pytest.raises(TransportError):
            await store.fetch_all()

        assert store.state is LoadState.LOADED
        assert "sales_bot" not in store.working
        assert store.is_dirty

    async def test_foreign_exception_wrapped(self):
        """Non-transport client failures surface as TransportError."""
        client = _client()
        client.fetch_collection.side_effect = RuntimeError("socket closed")
        store = DraftStore(client)

        with pytest.raises(TransportError, match="socket closed"):
            await store.fetch_all()

    async def test_reload_clears_dirty(self):
        """A successful reload replaces local edits."""
        store, _ = await _loaded_store()
        store.delete("sales_bot")
        await store.fetch_all()
        assert not store.is_dirty
        assert store.working == RECORDS


class TestFetchOne:
    """fetch_one() selection handling."""

    async def test_sets_selected(self):
        store, _ = await _loaded_store()
        record = await store.fetch_one("support_bot")
        assert record["id"] == "support_bot"
        assert store.selected == record

    async def test_does_not_touch_collection(self):
        """Selection is independent of working and committed."""
        store = DraftStore(_client())
        await store.fetch_one("support_bot")
        assert store.working == {}
        assert store.state is LoadState.EMPTY

    async def test_not_found_clears_selection(self):
        store, _ = await _loaded_store()
        await store.fetch_one("support_bot")
        with pytest.raises(RecordNotFoundError):
            await store.fetch_one("ghost")
        assert store.selected is None
        assert store.error == "Agent with ID ghost not found"

    async def test_stale_response_not_applied(self):
        """An older fetch that finishes last does not overwrite the selection."""
        gate = asyncio.Event()

        async def fetch_record(key):
            if key == "slow_one":
                await gate.wait()
            return {"id": key}

        client = _client()
        client.fetch_record = AsyncMock(side_effect=fetch_record)
        store = DraftStore(client)

        slow = asyncio.create_task(store.fetch_one("slow_one"))
        await asyncio.sleep(0)
        await store.fetch_one("fast_one")
        gate.set()
        late = await slow

        assert late == {"id": "slow_one"}
        assert store.selected == {"id": "fast_one"}

    async def test_clear_selection_discards_pending(self):
        """clear_selection() wins over a fetch still in flight."""
        gate = asyncio.Event()

        async def fetch_record(key):
            await gate.wait()
            return {"id": key}

        client = _client()
        client.fetch_record = AsyncMock(side_effect=fetch_record)
        store = DraftStore(client)

        pending = asyncio.create_task(store.fetch_one("support_bot"))
        await asyncio.sleep(0)
        store.clear_selection()
        gate.set()
        await pending

        assert store.selected is None


# ------------------------------------------------------------------
# Local edits
# ------------------------------------------------------------------


class TestLocalEdits:
    """create / update / delete touch working only."""

    async def test_update_marks_dirty(self):
        """Updating a body leaves committed alone and marks dirty."""
        store, client = await _loaded_store()
        store.update("support_bot", {"description": "Handles escalations"})
        assert store.is_dirty
        assert store.committed == RECORDS
        assert store.get("support_bot") == {"description": "Handles escalations"}
        client.save_collection.assert_not_awaited()

    async def test_update_strips_id(self):
        """Bodies never carry their own key."""
        store, _ = await _loaded_store()
        store.update("support_bot", {"id": "other", "description": "x"})
        assert store.get("support_bot") == {"description": "x"}
        assert "other" not in store

    async def test_update_missing_key(self):
        """update never creates."""
        store, _ = await _loaded_store()
        with pytest.raises(MissingKeyError):
            store.update("ghost", {"description": "x"})
        assert not store.is_dirty

    async def test_create_duplicate_never_overwrites(self):
        """A duplicate create raises and keeps the original body."""
        store, _ = await _loaded_store()
        with pytest.raises(DuplicateKeyError, match="support_bot"):
            store.create("support_bot", {"description": "impostor"})
        assert store.get("support_bot") == RECORDS["support_bot"]
        assert not store.is_dirty

    async def test_create_invalid_key(self):
        store, _ = await _loaded_store()
        with pytest.raises(InvalidKeyError):
            store.create("no", {"description": "x"})
        assert len(store) == 2

    async def test_create_then_delete_is_clean(self):
        """Reverting an edit by hand clears dirtiness."""
        store, _ = await _loaded_store()
        store.create("new_bot", {"description": "x"})
        assert store.is_dirty
        store.delete("new_bot")
        assert not store.is_dirty

    async def test_delete_absent_is_noop(self):
        """Deleting a missing key changes nothing."""
        store, _ = await _loaded_store()
        store.delete("ghost")
        assert store.working == RECORDS
        assert not store.is_dirty

    async def test_body_is_copied(self):
        """The caller's dict is not aliased into the store."""
        store, _ = await _loaded_store()
        body = {"description": "x", "tags": ["a"]}
        store.create("new_bot", body)
        body["tags"].append("b")
        assert store.get("new_bot")["tags"] == ["a"]

    async def test_records_merge_keys(self):
        store, _ = await _loaded_store()
        rows = store.records()
        assert {"id": "sales_bot", "description": "Qualifies inbound leads"} in rows


# ------------------------------------------------------------------
# Save and discard
# ------------------------------------------------------------------


class TestSaveChanges:
    """save_changes() persistence."""

    async def test_save_sends_whole_map(self):
        """The full working map is sent and becomes committed."""
        store, client = await _loaded_store()
        store.create("new_bot", {"description": "Brand new agent"})
        store.delete("sales_bot")

        await store.save_changes()

        sent = client.save_collection.await_args.args[0]
        assert sent == {
            "support_bot": {"description": "Answers support tickets"},
            "new_bot": {"description": "Brand new agent"},
        }
        assert store.committed == sent
        assert not store.is_dirty

    async def test_save_failure_keeps_draft(self):
        """On failure working is untouched and the store stays dirty."""
        store, client = await _loaded_store()
        store.update("support_bot", {"description": "edited"})
        client.save_collection.side_effect = TransportError("write refused")

        with pytest.raises(TransportError):
            await store.save_changes()

        assert store.is_dirty
        assert store.get("support_bot") == {"description": "edited"}
        assert store.committed == RECORDS
        assert store.error == "write refused"
        assert not store.is_saving

    async def test_retry_after_failure(self):
        """A retry after a failed save succeeds and clears dirty."""
        store, client = await _loaded_store()
        store.update("support_bot", {"description": "edited"})
        client.save_collection.side_effect = [TransportError("flaky"), None]

        with pytest.raises(TransportError):
            await store.save_changes()
        await store.save_changes()

        assert not store.is_dirty
        assert store.error is None
        assert client.save_collection.await_count == 2

    async def test_concurrent_save_rejected(self):
        """A second save while one is in flight never reaches the client."""
        release = asyncio.Event()

        async def slow_save(records):
            await release.wait()

        store, client = await _loaded_store()
        client.save_collection = AsyncMock(side_effect=slow_save)
        store.delete("sales_bot")

        first = asyncio.create_task(store.save_changes())
        await asyncio.sleep(0)
        assert store.is_saving

        with pytest.raises(SaveInProgressError):
            await store.save_changes()

        release.set()
        await first
        assert client.save_collection.await_count == 1
        assert not store.is_saving

    async def test_edit_during_save_stays_dirty(self):
        """Edits made while a save is in flight are not marked committed."""
        release = asyncio.Event()

        async def slow_save(records):
            await release.wait()

        store, client = await _loaded_store()
        client.save_collection = AsyncMock(side_effect=slow_save)
        store.delete("sales_bot")

        task = asyncio.create_task(store.save_changes())
        await asyncio.sleep(0)
        store.create("late_bot", {"description": "added mid-save"})
        release.set()
        await task

        assert "late_bot" not in store.committed
        assert "sales_bot" not in store.committed
        assert store.is_dirty


class TestDiscardChanges:
    """discard_changes() reverts to committed."""

    async def test_discard_restores_committed(self):
        """Update then discard gives back the loaded map, clean."""
        store, _ = await _loaded_store()
        store.update("support_bot", {"description": "scratch"})
        store.create("temp_bot", {"description": "x"})

        store.discard_changes()

        assert store.working == RECORDS
        assert not store.is_dirty

    async def test_discard_is_idempotent(self):
        store, _ = await _loaded_store()
        store.discard_changes()
        store.discard_changes()
        assert store.working == store.committed
        assert not store.is_dirty

    async def test_discard_after_failed_save(self):
        """Discard after a failed save returns to the last persisted map."""
        store, client = await _loaded_store()
        store.delete("support_bot")
        client.save_collection.side_effect = TransportError("nope")
        with pytest.raises(TransportError):
            await store.save_changes()

        store.discard_changes()
        assert store.working == RECORDS


class TestEditCycle:
    """End-to-end edit cycle on a two-record collection."""

    async def test_load_update_save_discard(self):
        """Load, update one body, save, then discard is a no-op."""
        store, client = await _loaded_store({"a1": {"n": 1}, "b2": {"n": 2}})

        store.update("a1", {"n": 10})
        assert store.is_dirty
        assert store.committed["a1"] == {"n": 1}

        await store.save_changes()
        client.save_collection.assert_awaited_once_with({"a1": {"n": 10}, "b2": {"n": 2}})
        assert store.committed == store.working
        assert not store.is_dirty

        store.discard_changes()
        assert store.working == {"a1": {"n": 10}, "b2": {"n": 2}}

    async def test_repr(self):
        store, _ = await _loaded_store()
        assert repr(store) == "DraftStore(state=loaded, records=2, dirty=False)"
