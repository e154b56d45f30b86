"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from ballot.coordination.memory import InMemoryCoordinationService


@pytest.fixture
def service() -> InMemoryCoordinationService:
    """Fresh in-memory coordination service."""
    return InMemoryCoordinationService()
