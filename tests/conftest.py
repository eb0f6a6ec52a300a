"""Shared fixtures for the contribution review tests."""

from __future__ import annotations

import pytest

from support import InMemoryStore, RecordingPublisher


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()
