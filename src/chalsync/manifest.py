"""Load desired challenges from a YAML or JSON manifest.

Expected layout::

    challenges:
      warmup:
        name: Warmup
        category: misc
        description: Say hello
        type: standard
        value: 100
        tags: [easy]

Keys under ``challenges`` are local names used to track each challenge in the
state file. Ids are assigned by CTFd and cannot be declared.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from chalsync.challenges.schemas import Challenge


class ManifestError(ValueError):
    """Raised when a manifest cannot be parsed or fails validation."""


def parse_manifest(raw: Any) -> dict[str, Challenge]:
    """Validate an already decoded manifest document."""
    if not isinstance(raw, dict) or not isinstance(raw.get("challenges"), dict):
        raise ManifestError("manifest must contain a 'challenges' mapping")

    desired: dict[str, Challenge] = {}
    for name, fields in raw["challenges"].items():
        if not isinstance(fields, dict):
            raise ManifestError(f"challenge {name!r} must be a mapping")
        if "id" in fields:
            raise ManifestError(f"challenge {name!r}: id is assigned by CTFd and cannot be set")
        try:
            desired[str(name)] = Challenge.model_validate(fields)
        except ValidationError as exc:
            raise ManifestError(f"challenge {name!r}: {exc}") from exc
    return desired


def load_manifest(path: str | Path) -> dict[str, Challenge]:
    """Read and validate a manifest file. ``.json`` files are parsed as JSON, anything else as YAML."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"cannot read {path}: {exc}") from exc

    try:
        raw = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ManifestError(f"cannot parse {path}: {exc}") from exc
    return parse_manifest(raw)
