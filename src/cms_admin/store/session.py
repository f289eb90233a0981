"""Create/edit flow on top of a ``DraftStore``.

``RecordEditor`` is the calling layer the store relies on: it checks the
identifier rules and uniqueness, validates the submitted values, and only
then mutates the store and (optionally) saves.  Nothing reaches the store
unless every check passed.

Usage:
    from cms_admin.store.session import RecordEditor

    editor = RecordEditor(store, plan=plans.get("agents"))
    outcome = await editor.submit_create("support_bot", form_values)
    if not outcome.ok:
        print(outcome.errors, outcome.save_error)
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from cms_admin.errors import TransportError
from cms_admin.schema.plan import FormPlan
from cms_admin.store.draft import DraftStore, key_error
from cms_admin.store.models import AgentProfile, Record

logger = logging.getLogger(__name__)


class EditOutcome(BaseModel):
    """Result of a submit on the editor.

    ``errors`` holds per-field problems (``"id"`` for the identifier);
    ``save_error`` is set when the edit was applied but persisting failed,
    in which case the draft is kept for a retry.
    """

    key: str
    applied: bool = False
    saved: bool = False
    errors: dict[str, str] = Field(default_factory=dict)
    save_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.applied and not self.errors and self.save_error is None


def _agent_errors(key: str, values: Record) -> tuple[Record, dict[str, str]]:
    """Validate against the agent form rules when no table plan is given."""
    try:
        agent = AgentProfile.from_entry(key, values)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for item in e.errors():
            field_name = str(item["loc"][0]) if item["loc"] else "__root__"
            errors.setdefault(field_name, item["msg"])
        return values, errors
    return agent.to_body(), {}


class RecordEditor:
    """Precondition-checking front end for a ``DraftStore``.

    Args:
        store: The draft store to edit.
        plan: Form plan for the collection; ``None`` uses ``AgentProfile``
            rules.
    """

    def __init__(self, store: DraftStore, plan: FormPlan | None = None) -> None:
        self.store = store
        self.plan = plan

    def validate_key(self, key: str) -> str | None:
        """Identifier problem for *key*, or ``None`` when usable."""
        return key_error(key)

    def _validate(self, key: str, values: Record) -> tuple[Record, dict[str, str]]:
        if self.plan is None:
            return _agent_errors(key, values)
        result = self.plan.schema.validate(values)
        return result.values, dict(result.errors)

    async def _persist(self, outcome: EditOutcome, save: bool) -> EditOutcome:
        if not save:
            return outcome
        try:
            await self.store.save_changes()
        except TransportError as e:
            outcome.save_error = str(e)
            logger.error("Save after edit of %s failed: %s", outcome.key, e)
            return outcome
        outcome.saved = True
        return outcome

    async def submit_create(self, key: str, values: Record, save: bool = True) -> EditOutcome:
        """Create a record after checking the key and the values.

        A duplicate key is reported as an ``"id"`` error and never reaches
        the store.
        """
        outcome = EditOutcome(key=key)

        problem = self.validate_key(key)
        if problem is not None:
            outcome.errors["id"] = problem
        elif key in self.store:
            outcome.errors["id"] = f"An agent with ID '{key}' already exists"

        body, field_errors = self._validate(key, values)
        field_errors.pop("id", None)
        outcome.errors.update(field_errors)
        if outcome.errors:
            return outcome

        self.store.create(key, body)
        outcome.applied = True
        return await self._persist(outcome, save)

    async def submit_update(self, key: str, values: Record, save: bool = True) -> EditOutcome:
        """Replace an existing record after validating the values."""
        outcome = EditOutcome(key=key)

        if key not in self.store:
            outcome.errors["id"] = f"No agent with ID '{key}'"
            return outcome

        body, field_errors = self._validate(key, values)
        field_errors.pop("id", None)
        if field_errors:
            outcome.errors.update(field_errors)
            return outcome

        self.store.update(key, body)
        outcome.applied = True
        return await self._persist(outcome, save)

    def remove(self, key: str) -> bool:
        """Delete a record from the draft; ``False`` if it wasn't there."""
        existed = key in self.store
        self.store.delete(key)
        return existed

    def list_records(
        self,
        search: str | None = None,
        sort_field: str = "id",
        descending: bool = False,
    ) -> list[Record]:
        """Working records filtered by *search* and sorted by *sort_field*.

        Search is a case-insensitive substring match over ``id`` and
        ``description``.  Numbers sort before everything else; other values
        sort by their text, case-insensitively.  Records missing the sort
        field go last.
        """
        rows = self.store.records()

        if search:
            needle = search.lower()
            rows = [
                row for row in rows
                if needle in str(row.get("id", "")).lower()
                or needle in str(row.get("description", "")).lower()
            ]

        def sort_key(row: Record) -> tuple[int, Any]:
            value = row[sort_field]
            if isinstance(value, (int, float)):
                return 0, value
            return 1, str(value).casefold()

        present = [row for row in rows if row.get(sort_field) is not None]
        missing = [row for row in rows if row.get(sort_field) is None]
        present.sort(key=sort_key, reverse=descending)
        return present + missing
