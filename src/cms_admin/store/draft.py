"""Draft/commit store for a keyed record collection.

Holds two copies of the collection: ``working`` (what the user edits) and
``committed`` (the last state known to be persisted).  Create, update and
delete touch only ``working``.  ``save_changes`` sends the whole working
map to the backing store; ``discard_changes`` reverts to ``committed``.

Only ``fetch_all``, ``fetch_one`` and ``save_changes`` cross the external
boundary; they are coroutines.  Everything else is synchronous.

Usage:
    from cms_admin.store.draft import DraftStore

    store = DraftStore(adapter)
    await store.fetch_all()
    store.update("support_bot", {"description": "Answers tickets"})
    if store.is_dirty:
        await store.save_changes()
"""

import copy
import logging
from collections.abc import Awaitable
from typing import TypeVar

from cms_admin.adapters.base import RecordStoreClient
from cms_admin.errors import (
    DuplicateKeyError,
    InvalidKeyError,
    MissingKeyError,
    SaveInProgressError,
    TransportError,
)
from cms_admin.store.models import (
    KEY_MIN_LENGTH,
    KEY_PATTERN,
    LoadState,
    Record,
    RecordMap,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def key_error(key: str) -> str | None:
    """Return why *key* is not a valid record identifier, or ``None``.

    Example:
        >>> key_error("ab")
        'ID must be at least 3 characters'
        >>> key_error("support_bot") is None
        True
    """
    if len(key) < KEY_MIN_LENGTH:
        return f"ID must be at least {KEY_MIN_LENGTH} characters"
    if not KEY_PATTERN.match(key):
        return "ID can only contain letters, numbers, and underscores"
    return None


def _body(record: Record) -> Record:
    """Deep copy of a record without its ``id``; keys live outside bodies."""
    return copy.deepcopy({k: v for k, v in record.items() if k != "id"})


class DraftStore:
    """Working copy of a record collection over a ``RecordStoreClient``.

    Args:
        client: Backing store; injected so tests can pass a fake.

    Attributes:
        state: ``LoadState`` of the bulk collection.
        selected: Record loaded by the latest ``fetch_one``, or ``None``.
        error: Message of the last failed external call, or ``None``.
    """

    def __init__(self, client: RecordStoreClient) -> None:
        self._client = client
        self.state: LoadState = LoadState.EMPTY
        self.selected: Record | None = None
        self.error: str | None = None
        self._working: RecordMap = {}
        self._committed: RecordMap = {}
        self._dirty: bool = False
        self._saving: bool = False
        self._selection_generation: int = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def working(self) -> RecordMap:
        """Deep copy of the editable collection."""
        return copy.deepcopy(self._working)

    @property
    def committed(self) -> RecordMap:
        """Deep copy of the last persisted collection."""
        return copy.deepcopy(self._committed)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def is_loaded(self) -> bool:
        return self.state is LoadState.LOADED

    def __contains__(self, key: object) -> bool:
        return key in self._working

    def __len__(self) -> int:
        return len(self._working)

    def get(self, key: str) -> Record | None:
        """Copy of one working record body, or ``None``."""
        body = self._working.get(key)
        return copy.deepcopy(body) if body is not None else None

    def records(self) -> list[Record]:
        """Working records as a list, each with its key merged in as ``id``."""
        return [{"id": key, **copy.deepcopy(body)} for key, body in self._working.items()]

    # ------------------------------------------------------------------
    # External operations
    # ------------------------------------------------------------------

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a client call, recording and normalizing failures."""
        try:
            return await awaitable
        except TransportError as e:
            self.error = str(e)
            logger.error("%s failed: %s", operation, e)
            raise
        except Exception as e:
            self.error = str(e) or f"{operation} failed"
            logger.error("%s failed: %s", operation, e)
            raise TransportError(self.error) from e

    async def fetch_all(self) -> None:
        """Load the full collection into ``working`` and ``committed``.

        On failure the previous load state and both copies are left
        untouched and ``TransportError`` is raised.
        """
        previous_state = self.state
        self.state = LoadState.LOADING
        self.error = None
        try:
            records = await self._call("fetch_all", self._client.fetch_collection())
        except TransportError:
            self.state = previous_state
            raise

        self._committed = copy.deepcopy(records)
        self._working = copy.deepcopy(records)
        self._dirty = False
        self.state = LoadState.LOADED
        logger.debug("Loaded %d records", len(records))

    async def fetch_one(self, key: str) -> Record:
        """Load one record as the current selection.

        Does not touch ``working`` or ``committed``.  If another
        ``fetch_one`` or ``clear_selection`` happens while this call is
        suspended, the late response is returned to this caller but not
        applied to ``selected``.

        Raises:
            TransportError: On failure; the selection is cleared.
        """
        self._selection_generation += 1
        generation = self._selection_generation

        try:
            record = await self._call(f"fetch_one({key})", self._client.fetch_record(key))
        except TransportError:
            if generation == self._selection_generation:
                self.selected = None
            raise

        if generation == self._selection_generation:
            self.selected = copy.deepcopy(record)
        else:
            logger.debug("Dropped stale response for %s", key)
        return record

    def clear_selection(self) -> None:
        """Forget the selection; pending ``fetch_one`` calls won't apply."""
        self._selection_generation += 1
        self.selected = None

    async def save_changes(self) -> None:
        """Persist the entire working collection.

        Only one save may be in flight per store: a second call while one
        is outstanding raises ``SaveInProgressError`` without contacting
        the backing store.  On success ``committed`` becomes the map that
        was sent.  On failure ``working`` is untouched, the store stays
        dirty and ``TransportError`` is raised so the caller can retry.
        """
        if self._saving:
            raise SaveInProgressError("A save is already in progress")

        self._saving = True
        self.error = None
        snapshot = copy.deepcopy(self._working)
        try:
            await self._call("save_changes", self._client.save_collection(copy.deepcopy(snapshot)))
        finally:
            self._saving = False

        self._committed = snapshot
        self._dirty = self._working != self._committed
        logger.debug("Saved %d records", len(snapshot))

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    def discard_changes(self) -> None:
        """Revert ``working`` to ``committed``; always clears dirty."""
        try:
            self._working = copy.deepcopy(self._committed)
        finally:
            self._dirty = False

    def create(self, key: str, body: Record) -> None:
        """Insert a new record into ``working``.

        Raises:
            InvalidKeyError: If *key* is not a valid identifier.
            DuplicateKeyError: If *key* already exists (never overwrites).
        """
        problem = key_error(key)
        if problem is not None:
            raise InvalidKeyError(f"Invalid ID '{key}': {problem}")
        if key in self._working:
            raise DuplicateKeyError(f"An agent with ID '{key}' already exists")

        self._working[key] = _body(body)
        self._mark()

    def update(self, key: str, body: Record) -> None:
        """Replace an existing record body; the key itself never changes.

        Raises:
            MissingKeyError: If *key* is not in ``working`` (never creates).
        """
        if key not in self._working:
            raise MissingKeyError(f"No agent with ID '{key}' to update")

        self._working[key] = _body(body)
        self._mark()

    def delete(self, key: str) -> None:
        """Remove a record from ``working``; absent keys are a no-op."""
        self._working.pop(key, None)
        self._mark()

    def _mark(self) -> None:
        self._dirty = self._working != self._committed

    def __repr__(self) -> str:
        return (
            f"DraftStore(state={self.state.value}, records={len(self._working)}, "
            f"dirty={self._dirty})"
        )
