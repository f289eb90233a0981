"""Draft/commit store and the editor that fronts it."""

from cms_admin.store.draft import DraftStore, key_error
from cms_admin.store.models import (
    AgentConfigEnvelope,
    AgentProfile,
    AuthResponse,
    LoadState,
    Record,
    RecordMap,
)
from cms_admin.store.session import EditOutcome, RecordEditor

__all__ = [
    "DraftStore",
    "key_error",
    "RecordEditor",
    "EditOutcome",
    "AgentProfile",
    "AgentConfigEnvelope",
    "AuthResponse",
    "LoadState",
    "Record",
    "RecordMap",
]
