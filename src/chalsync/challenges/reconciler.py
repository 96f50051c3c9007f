"""Convergence procedures for a CTFd challenge.

Create, read, update and delete are independent procedures. Each one runs
its remote calls strictly one after the other, stops at the first failure
and reports it as a diagnostic; nothing is retried or rolled back, the
caller converges by running the procedure again.

Tags and topics are fully replaced on update: every remote record is
deleted, then every desired value is created. Ids change on each update,
the value set always ends up equal to the desired one.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from chalsync.challenges import mapper
from chalsync.challenges.policy import FieldPolicy
from chalsync.challenges.schemas import Challenge, ChallengeType
from chalsync.ctfd.base import ChallengeBackend
from chalsync.ctfd.errors import CTFdError, CTFdNotFoundError
from chalsync.diagnostics import Diagnostics

logger = structlog.get_logger()

CLIENT_ERROR = "Client Error"
INVALID_STATE = "Invalid state"

# CTFd multiplexes topics of several owner kinds through one collection
TOPIC_OWNER_KIND = "challenge"


@dataclass
class ReconcileResult:
    """Outcome of one procedure.

    ``model`` is the converged challenge when ``ok``; on failure it is the
    best known partial state and must not be trusted as converged.
    ``missing`` is set when the challenge no longer exists remotely.
    """

    model: Challenge | None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    missing: bool = False

    @property
    def ok(self) -> bool:
        return not self.missing and not self.diagnostics.has_error()


class ChallengeReconciler:
    """Converges CTFd challenges to their desired state."""

    def __init__(self, backend: ChallengeBackend, policy: FieldPolicy | None = None) -> None:
        self.backend = backend
        self.policy = policy or FieldPolicy()

    # ── Create ──

    async def create(self, desired: Challenge) -> ReconcileResult:
        if desired.is_created:
            diags = Diagnostics()
            diags.add_error(INVALID_STATE, f"Challenge {desired.id} already exists, use update instead")
            return ReconcileResult(desired, diags)

        model, diags = self.policy.validate(desired)
        if diags.has_error():
            return ReconcileResult(model, diags)

        try:
            record = await self.backend.create_challenge(mapper.to_create_params(model))
        except CTFdError as exc:
            diags.add_error(CLIENT_ERROR, f"Unable to create challenge, got error: {exc}")
            return ReconcileResult(model, diags)

        # CTFd may normalize the scoring settings it was given
        model.id = mapper.decode_id(record.id)
        if model.type is ChallengeType.DYNAMIC:
            model.decay = record.decay
            model.minimum = record.minimum

        with structlog.contextvars.bound_contextvars(challenge_id=model.id):
            logger.info("challenge_created", name=model.name, type=model.type.value)

            # Only what was actually created is reported back
            tags, topics = model.tags, model.topics
            model.tags, model.topics = [], []

            model.tags = await self._create_tags(record.id, tags, diags)
            if diags.has_error():
                return ReconcileResult(model, diags)

            model.topics = await self._create_topics(record.id, topics, diags)

        return ReconcileResult(model, diags)

    # ── Read ──

    async def read(self, current: Challenge) -> ReconcileResult:
        """Read the remote challenge back into the model shape."""
        diags = Diagnostics()
        model = current.model_copy(deep=True)
        challenge_id = mapper.encode_id(model.id)

        with structlog.contextvars.bound_contextvars(challenge_id=model.id):
            try:
                record = await self.backend.get_challenge(challenge_id)
            except CTFdNotFoundError:
                logger.info("challenge_missing")
                return ReconcileResult(model, diags, missing=True)
            except CTFdError as exc:
                diags.add_error(CLIENT_ERROR, f"Unable to read challenge {model.id}, got error: {exc}")
                return ReconcileResult(model, diags)

            mapper.apply_record(model, record)

            try:
                requirements = await self.backend.get_requirements(challenge_id)
            except CTFdError as exc:
                diags.add_error(
                    CLIENT_ERROR,
                    f"Unable to read challenge {challenge_id} requirements, got error: {exc}",
                )
                return ReconcileResult(model, diags)
            model.requirements = mapper.decode_requirements(requirements)

            try:
                tags = await self.backend.list_tags(challenge_id)
            except CTFdError as exc:
                diags.add_error(CLIENT_ERROR, f"Unable to read challenge {challenge_id} tags, got error: {exc}")
                return ReconcileResult(model, diags)
            model.tags = [tag.value for tag in tags]

            try:
                topics = await self.backend.list_topics(challenge_id)
            except CTFdError as exc:
                diags.add_error(CLIENT_ERROR, f"Unable to read challenge {challenge_id} topics, got error: {exc}")
                return ReconcileResult(model, diags)
            model.topics = [topic.value for topic in topics]

            logger.debug("challenge_read", tags=len(model.tags), topics=len(model.topics))

        return ReconcileResult(model, diags)

    async def import_challenge(self, challenge_id: str) -> ReconcileResult:
        """Adopt an existing remote challenge by id."""
        mapper.encode_id(challenge_id)
        placeholder = Challenge(id=challenge_id, name="", category="", description="", value=0)
        return await self.read(placeholder)

    # ── Update ──

    async def update(self, desired: Challenge, previous: Challenge) -> ReconcileResult:
        """Overwrite the remote challenge with ``desired``.

        ``previous`` only provides the id when ``desired`` carries none; no
        field-by-field diff is made.
        """
        model, diags = self.policy.validate(desired)
        if not model.id:
            model.id = previous.id
        if diags.has_error():
            return ReconcileResult(model, diags)

        challenge_id = mapper.encode_id(model.id)

        with structlog.contextvars.bound_contextvars(challenge_id=model.id):
            try:
                await self.backend.update_challenge(challenge_id, mapper.to_update_params(model))
            except CTFdError as exc:
                diags.add_error(CLIENT_ERROR, f"Unable to update challenge, got error: {exc}")
                return ReconcileResult(model, diags)
            logger.info("challenge_updated", name=model.name)

            # Tags: drop them all, create new ones
            if not await self._purge_tags(challenge_id, diags):
                return ReconcileResult(model, diags)
            model.tags = await self._create_tags(challenge_id, model.tags, diags)
            if diags.has_error():
                return ReconcileResult(model, diags)

            # Topics: same, scoped to the challenge owner kind
            if not await self._purge_topics(challenge_id, diags):
                return ReconcileResult(model, diags)
            model.topics = await self._create_topics(challenge_id, model.topics, diags)

        return ReconcileResult(model, diags)

    # ── Delete ──

    async def delete(self, current: Challenge) -> ReconcileResult:
        """Delete the challenge. CTFd cascades tags, topics and requirements."""
        diags = Diagnostics()
        challenge_id = mapper.encode_id(current.id)

        with structlog.contextvars.bound_contextvars(challenge_id=current.id):
            try:
                await self.backend.delete_challenge(challenge_id)
            except CTFdNotFoundError:
                diags.add_warning("Challenge missing", f"Challenge {current.id} was already deleted")
                logger.warning("challenge_already_deleted")
                return ReconcileResult(None, diags)
            except CTFdError as exc:
                diags.add_error(CLIENT_ERROR, f"Unable to delete challenge, got error: {exc}")
                return ReconcileResult(current, diags)
            logger.info("challenge_deleted")

        return ReconcileResult(None, diags)

    # ── Sub-collections ──

    async def _create_tags(self, challenge_id: int, values: list[str], diags: Diagnostics) -> list[str]:
        """Create tags in order; return the values actually created."""
        created: list[str] = []
        for value in values:
            try:
                tag = await self.backend.create_tag(challenge_id, value)
            except CTFdError as exc:
                diags.add_error(
                    CLIENT_ERROR,
                    f"Unable to create tag {value!r} of challenge {challenge_id}, got error: {exc}",
                )
                break
            logger.debug("tag_created", tag_id=tag.id, value=value)
            created.append(value)
        return created

    async def _create_topics(self, challenge_id: int, values: list[str], diags: Diagnostics) -> list[str]:
        created: list[str] = []
        for value in values:
            try:
                topic = await self.backend.create_topic(challenge_id, TOPIC_OWNER_KIND, value)
            except CTFdError as exc:
                diags.add_error(
                    CLIENT_ERROR,
                    f"Unable to create topic {value!r} of challenge {challenge_id}, got error: {exc}",
                )
                break
            logger.debug("topic_created", topic_id=topic.id, value=value)
            created.append(value)
        return created

    async def _purge_tags(self, challenge_id: int, diags: Diagnostics) -> bool:
        """Delete every remote tag of the challenge. False on failure."""
        try:
            tags = await self.backend.list_tags(challenge_id)
        except CTFdError as exc:
            diags.add_error(CLIENT_ERROR, f"Unable to get all tags of challenge {challenge_id}, got error: {exc}")
            return False
        for tag in tags:
            try:
                await self.backend.delete_tag(tag.id)
            except CTFdError as exc:
                diags.add_error(
                    CLIENT_ERROR,
                    f"Unable to delete tag {tag.id} of challenge {challenge_id}, got error: {exc}",
                )
                return False
            logger.debug("tag_deleted", tag_id=tag.id, value=tag.value)
        return True

    async def _purge_topics(self, challenge_id: int, diags: Diagnostics) -> bool:
        try:
            topics = await self.backend.list_topics(challenge_id)
        except CTFdError as exc:
            diags.add_error(
                CLIENT_ERROR,
                f"Unable to get all topics of challenge {challenge_id}, got error: {exc}",
            )
            return False
        for topic in topics:
            try:
                await self.backend.delete_topic(topic.id, TOPIC_OWNER_KIND)
            except CTFdError as exc:
                diags.add_error(
                    CLIENT_ERROR,
                    f"Unable to delete topic {topic.id} of challenge {challenge_id}, got error: {exc}",
                )
                return False
            logger.debug("topic_deleted", topic_id=topic.id, value=topic.value)
        return True
