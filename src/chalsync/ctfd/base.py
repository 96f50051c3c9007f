"""Backend contract used by the reconciler.

Every method is a single remote operation. Implementations raise
CTFdNotFoundError for missing objects and another CTFdError subclass for
any other failure; they never retry on their own beyond transport level.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from chalsync.ctfd.schemas import (
    ChallengeParams,
    ChallengeRecord,
    RequirementsPayload,
    TagRecord,
    TopicRecord,
)


class ChallengeBackend(ABC):
    """Abstract base class for CTFd challenge backends."""

    # --- Challenges ---

    @abstractmethod
    async def create_challenge(self, params: ChallengeParams) -> ChallengeRecord:
        """Create a challenge. The record carries the assigned id, decay and minimum."""
        ...

    @abstractmethod
    async def get_challenge(self, challenge_id: int) -> ChallengeRecord:
        ...

    @abstractmethod
    async def update_challenge(self, challenge_id: int, params: ChallengeParams) -> ChallengeRecord:
        ...

    @abstractmethod
    async def delete_challenge(self, challenge_id: int) -> None:
        ...

    # --- Requirements ---

    @abstractmethod
    async def get_requirements(self, challenge_id: int) -> RequirementsPayload | None:
        """Return the challenge requirements, None when none are configured."""
        ...

    # --- Tags ---

    @abstractmethod
    async def list_tags(self, challenge_id: int) -> list[TagRecord]:
        ...

    @abstractmethod
    async def create_tag(self, challenge_id: int, value: str) -> TagRecord:
        ...

    @abstractmethod
    async def delete_tag(self, tag_id: int) -> None:
        ...

    # --- Topics ---

    @abstractmethod
    async def list_topics(self, challenge_id: int) -> list[TopicRecord]:
        ...

    @abstractmethod
    async def create_topic(self, challenge_id: int, owner_kind: str, value: str) -> TopicRecord:
        ...

    @abstractmethod
    async def delete_topic(self, topic_id: int, owner_kind: str) -> None:
        ...
