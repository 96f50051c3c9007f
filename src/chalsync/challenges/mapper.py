"""Translation between the challenge model and CTFd payloads.

Local and remote encodings differ in a few places:

- ids are strings locally and integers remotely;
- ``value`` maps to CTFd's ``value`` for standard challenges and to
  ``initial`` for dynamic ones (``value`` is the live, decayed score there);
- the requirements behavior is a two-variant enum locally and an optional
  ``anonymize`` boolean remotely (absent = hidden, true = anonymized).

Optional integers stay ``None`` when unset; zero is never used as "absent".
"""

from __future__ import annotations

from chalsync.challenges.schemas import (
    Behavior,
    Challenge,
    ChallengeState,
    ChallengeType,
    DecayFunction,
    Requirements,
)
from chalsync.ctfd.schemas import ChallengeParams, ChallengeRecord, RequirementsPayload
from chalsync.diagnostics import InvariantViolation

# ── Ids ──


def encode_id(challenge_id: str) -> int:
    """Remote id of a challenge. Raises ValueError on a malformed id."""
    return int(challenge_id)


def decode_id(challenge_id: int) -> str:
    return str(challenge_id)


# ── Anonymization ──


def encode_anonymize(behavior: Behavior | None) -> bool | None:
    if behavior is None or behavior is Behavior.HIDDEN:
        return None
    if behavior is Behavior.ANONYMIZED:
        return True
    raise InvariantViolation(f"invalid anonymization value: {behavior!r}")


def decode_anonymize(flag: bool | None) -> Behavior:
    if flag is None:
        return Behavior.HIDDEN
    if flag is True:
        return Behavior.ANONYMIZED
    # CTFd omits the flag instead of storing false
    raise InvariantViolation("invalid anonymization value, got boolean false")


# ── Requirements ──


def encode_requirements(requirements: Requirements | None) -> RequirementsPayload | None:
    if requirements is None:
        return None
    return RequirementsPayload(
        prerequisites=[encode_id(p) for p in requirements.prerequisites],
        anonymize=encode_anonymize(requirements.behavior),
    )


def decode_requirements(payload: RequirementsPayload | None) -> Requirements | None:
    if payload is None:
        return None
    return Requirements(
        behavior=decode_anonymize(payload.anonymize),
        prerequisites=[decode_id(p) for p in payload.prerequisites],
    )


# ── Scoring ──


def decode_value(record: ChallengeRecord) -> int | None:
    """Effective points of a remote challenge, selected by its type."""
    if record.type == ChallengeType.DYNAMIC.value:
        return record.initial
    return record.value


def _on_dynamic(model: Challenge, value: int | None) -> int | None:
    return value if model.type is ChallengeType.DYNAMIC else None


# ── Challenge ──


def to_create_params(model: Challenge) -> ChallengeParams:
    """Body of the create call. Dynamic scoring fields are only sent for dynamic challenges."""
    return ChallengeParams(
        name=model.name,
        category=model.category,
        description=model.description,
        connection_info=model.connection_info,
        max_attempts=model.max_attempts,
        function=model.function.value if model.function is not None else None,
        value=model.value,
        initial=_on_dynamic(model, model.value),
        decay=_on_dynamic(model, model.decay),
        minimum=_on_dynamic(model, model.minimum),
        state=model.state.value,
        type=model.type.value,
        next_id=model.next,
        requirements=encode_requirements(model.requirements),
    )


def to_update_params(model: Challenge) -> ChallengeParams:
    """Body of the update call. Every field is sent, ``type`` excepted."""
    return ChallengeParams(
        name=model.name,
        category=model.category,
        description=model.description,
        connection_info=model.connection_info,
        max_attempts=model.max_attempts,
        function=model.function.value if model.function is not None else None,
        value=model.value,
        initial=model.value,
        decay=model.decay,
        minimum=model.minimum,
        state=model.state.value,
        next_id=model.next,
        requirements=encode_requirements(model.requirements),
    )


def apply_record(model: Challenge, record: ChallengeRecord) -> None:
    """Overwrite every scalar field of ``model`` with the remote record."""
    model.name = record.name
    model.category = record.category
    model.description = record.description
    model.connection_info = record.connection_info or ""
    model.max_attempts = record.max_attempts
    model.state = ChallengeState(record.state)
    model.type = ChallengeType(record.type)
    model.next = record.next_id

    if model.type is ChallengeType.DYNAMIC:
        model.function = DecayFunction(record.function) if record.function else None
        model.decay = record.decay
        model.minimum = record.minimum
    else:
        # Newer CTFd releases report decay settings on standard challenges too
        model.function = None
        model.decay = None
        model.minimum = None

    value = decode_value(record)
    if value is None:
        raise InvariantViolation(f"challenge {record.id} has no {record.type} value")
    model.value = value
