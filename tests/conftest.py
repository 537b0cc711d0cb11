"""
Shared fixtures for docparse tests.
"""
from datetime import datetime, timedelta, timezone

import pytest

from docparse.jobs.store import JobStore
from docparse.storage.uploads import UploadStore


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Job store with a one-hour TTL driven by the fake clock."""
    return JobStore(ttl_seconds=3600, clock=clock)


@pytest.fixture
def uploads(tmp_path):
    return UploadStore(base_dir=str(tmp_path / "uploads"), ttl_seconds=3600)


@pytest.fixture
def sample_markdown():
    return "# Title\n\nHello world. More text.\n- item one\n- item two\n1. first\n2. second"
