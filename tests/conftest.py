"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

from chalsync.challenges.policy import FieldPolicy
from chalsync.challenges.reconciler import ChallengeReconciler
from chalsync.config import get_settings
from helpers.fake_ctfd import FakeCTFd


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from CHALSYNC_* variables of the developer's shell."""
    for key in list(os.environ):
        if key.startswith("CHALSYNC_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ctfd() -> FakeCTFd:
    """Fresh in-memory CTFd for each test."""
    return FakeCTFd()


@pytest.fixture
def reconciler(ctfd: FakeCTFd) -> ChallengeReconciler:
    return ChallengeReconciler(ctfd, FieldPolicy())
