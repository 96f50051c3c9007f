"""Desired-state model for a CTFd challenge.

This is the shape users declare in manifests and the shape every
reconciliation returns. Enum membership and per-field types are checked by
pydantic on load; cross-field rules live in the field policy.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChallengeType(str, Enum):
    """Scoring type. Cannot change once the challenge exists remotely."""

    STANDARD = "standard"
    DYNAMIC = "dynamic"


class ChallengeState(str, Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class DecayFunction(str, Enum):
    """Decay curve of a dynamic challenge's value."""

    LINEAR = "linear"
    LOGARITHMIC = "logarithmic"


class Behavior(str, Enum):
    """How a locked challenge is shown to players."""

    HIDDEN = "hidden"
    ANONYMIZED = "anonymized"


class Requirements(BaseModel):
    """Prerequisites gating access to a challenge."""

    model_config = ConfigDict(extra="forbid")

    # None until the field policy injects the configured default
    behavior: Behavior | None = None
    prerequisites: list[str] = Field(default_factory=list)

    @field_validator("prerequisites")
    @classmethod
    def numeric_ids(cls, v: list[str]) -> list[str]:
        """Prerequisites are CTFd challenge ids."""
        for challenge_id in v:
            if not challenge_id.isdigit():
                raise ValueError(f"prerequisite {challenge_id!r} is not a challenge id")
        return v


class Challenge(BaseModel):
    """A challenge as declared by the user and as read back from CTFd."""

    model_config = ConfigDict(extra="forbid")

    # --- Identity ---
    id: str = ""

    # --- Descriptive ---
    name: str
    category: str
    description: str
    connection_info: str = ""

    # --- Scoring ---
    type: ChallengeType = ChallengeType.DYNAMIC
    value: int
    decay: int | None = None
    minimum: int | None = None
    function: DecayFunction | None = None

    # --- Visibility / gating ---
    state: ChallengeState = ChallengeState.HIDDEN
    next: int | None = None
    max_attempts: int | None = 0

    # --- Owned sub-collections ---
    requirements: Requirements | None = None
    tags: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)

    @property
    def is_created(self) -> bool:
        return self.id != ""
