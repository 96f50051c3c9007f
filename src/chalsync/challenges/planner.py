"""Decide which procedure converges a challenge and report drift."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from chalsync.challenges.policy import FieldPolicy
from chalsync.challenges.schemas import Challenge

# Scalar fields compared one to one; ``id`` is owned by CTFd
_SCALAR_FIELDS = (
    "name",
    "category",
    "description",
    "connection_info",
    "type",
    "value",
    "decay",
    "minimum",
    "function",
    "state",
    "next",
    "max_attempts",
)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


@dataclass
class Plan:
    name: str
    action: Action
    drift: list[str] = field(default_factory=list)


def diff_challenges(desired: Challenge, observed: Challenge) -> list[str]:
    """Names of the fields where ``observed`` differs from ``desired``.

    Tags, topics and prerequisites are sets: order and duplicates are ignored.
    """
    drift = [name for name in _SCALAR_FIELDS if getattr(desired, name) != getattr(observed, name)]

    if set(desired.tags) != set(observed.tags):
        drift.append("tags")
    if set(desired.topics) != set(observed.topics):
        drift.append("topics")

    want, have = desired.requirements, observed.requirements
    if (want is None) != (have is None):
        drift.append("requirements")
    elif want is not None and have is not None:
        if want.behavior != have.behavior or set(want.prerequisites) != set(have.prerequisites):
            drift.append("requirements")

    return drift


def plan_change(
    name: str,
    desired: Challenge | None,
    stored: Challenge | None,
    observed: Challenge | None,
    policy: FieldPolicy | None = None,
) -> Plan:
    """Pick the action converging ``name``.

    ``stored`` is the model saved by the last successful run, ``observed``
    the fresh read of it (None when the challenge disappeared remotely).
    """
    if desired is None:
        return Plan(name, Action.DELETE if stored is not None else Action.NOOP)
    if stored is None:
        return Plan(name, Action.CREATE)
    if desired.type != stored.type:
        # The scoring type cannot be changed in place
        return Plan(name, Action.REPLACE, ["type"])
    if observed is None:
        return Plan(name, Action.CREATE)

    normalized, _ = (policy or FieldPolicy()).validate(desired)
    drift = diff_challenges(normalized, observed)
    return Plan(name, Action.UPDATE if drift else Action.NOOP, drift)
