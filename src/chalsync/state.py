"""JSON state file holding the last converged model of each challenge."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from chalsync.challenges.schemas import Challenge

STATE_VERSION = 1


class StateError(ValueError):
    """Raised when the state file is unreadable or from an unknown version."""


class StateFile:
    """Name -> Challenge mapping persisted as JSON."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.challenges: dict[str, Challenge] = {}

    @classmethod
    def load(cls, path: str | Path) -> StateFile:
        """Load the state file, or return an empty state if it does not exist yet."""
        state = cls(path)
        if not state.path.exists():
            return state

        try:
            raw = json.loads(state.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"cannot read state {state.path}: {exc}") from exc

        if not isinstance(raw, dict) or raw.get("version") != STATE_VERSION:
            raise StateError(f"unsupported state format in {state.path}")
        try:
            state.challenges = {
                name: Challenge.model_validate(fields) for name, fields in raw.get("challenges", {}).items()
            }
        except ValidationError as exc:
            raise StateError(f"corrupted state {state.path}: {exc}") from exc
        return state

    def get(self, name: str) -> Challenge | None:
        return self.challenges.get(name)

    def put(self, name: str, model: Challenge) -> None:
        self.challenges[name] = model

    def remove(self, name: str) -> None:
        self.challenges.pop(name, None)

    def save(self) -> None:
        """Write the state atomically (temp file + rename)."""
        body = {
            "version": STATE_VERSION,
            "challenges": {name: model.model_dump(mode="json") for name, model in sorted(self.challenges.items())},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(body, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
