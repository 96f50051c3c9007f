"""Pydantic models for CTFd API payloads.

Field names match CTFd's JSON keys (``next_id``, ``initial``, ``anonymize``).
Unknown keys in responses are ignored, CTFd adds plenty of them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RequirementsPayload(BaseModel):
    """``requirements`` object of a challenge."""

    model_config = ConfigDict(extra="ignore")

    prerequisites: list[int] = Field(default_factory=list)
    # CTFd omits the key for "hidden"; True means anonymized
    anonymize: bool | None = None


class ChallengeParams(BaseModel):
    """Body of ``POST /challenges`` and ``PATCH /challenges/{id}``."""

    name: str
    category: str
    description: str
    connection_info: str | None = None
    max_attempts: int | None = None
    function: str | None = None
    value: int | None = None
    initial: int | None = None
    decay: int | None = None
    minimum: int | None = None
    state: str
    type: str | None = None
    next_id: int | None = None
    requirements: RequirementsPayload | None = None


class ChallengeRecord(BaseModel):
    """A challenge as returned by ``GET /challenges/{id}``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    category: str = ""
    description: str = ""
    connection_info: str | None = None
    max_attempts: int | None = None
    function: str | None = None
    value: int | None = None
    initial: int | None = None
    decay: int | None = None
    minimum: int | None = None
    state: str = "hidden"
    type: str = "standard"
    next_id: int | None = None


class TagRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    challenge_id: int | None = None
    value: str


class TopicRecord(BaseModel):
    """A challenge/topic association. ``id`` is the association id."""

    model_config = ConfigDict(extra="ignore")

    id: int
    challenge_id: int | None = None
    topic_id: int | None = None
    value: str = ""
