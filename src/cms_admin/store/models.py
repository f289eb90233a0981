"""Models for the agent collection and store state.

Records travel as plain dicts (``Record``) because their shape is set by
the table configuration.  ``AgentProfile`` is the typed view of the one
collection the backend serves today.
"""

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

Record = dict[str, Any]
RecordMap = dict[str, Record]

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
KEY_MIN_LENGTH = 3


class LoadState(str, Enum):
    """Load state of a draft store; dirtiness is tracked separately."""

    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"


class AgentProfile(BaseModel):
    """One agent profile as edited on the agent form.

    Example:
        >>> agent = AgentProfile.from_entry("support_bot", {
        ...     "description": "Answers support tickets",
        ...     "behaviorInstructions": "Be kind",
        ...     "functionalDirectives": "Triage",
        ...     "knowledgeConstraints": "Docs only",
        ...     "ethicalGuidelines": "No PII",
        ... })
        >>> "id" in agent.to_body()
        False
    """

    id: str = Field(min_length=KEY_MIN_LENGTH, pattern=KEY_PATTERN.pattern)
    description: str = Field(min_length=10)
    behaviorInstructions: str = Field(min_length=5)
    functionalDirectives: str = Field(min_length=5)
    knowledgeConstraints: str = Field(min_length=5)
    ethicalGuidelines: str = Field(min_length=5)

    @classmethod
    def from_entry(cls, key: str, body: Record) -> "AgentProfile":
        return cls(id=key, **{k: v for k, v in body.items() if k != "id"})

    def to_body(self) -> Record:
        return self.model_dump(exclude={"id"})


class AgentConfigEnvelope(BaseModel):
    """Wire envelope of the agent collection.

    ``data`` arrives either as a JSON string or already decoded.
    ``lock`` and ``requestId`` are carried through but not acted upon.
    """

    data: RecordMap = Field(default_factory=dict)
    lock: bool = False
    requestId: str = ""

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value.strip() else {}
        return value


class AuthUser(BaseModel):
    id: str
    email: str
    name: str = ""


class AuthResponse(BaseModel):
    """Result of a successful login."""

    token: str
    user: AuthUser
