"""Job record data model for async parsing tasks."""

import random
import string
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LEN = 7


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Edges of the job state machine; terminal states have none.
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id(now: Optional[datetime] = None) -> str:
    """Build a task id of the form ``task-<epoch ms>-<7 base36 chars>``.

    Not a secret: anyone holding (or guessing) an id can read its result.
    """
    now = now or utcnow()
    suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LEN))
    return f"task-{int(now.timestamp() * 1000)}-{suffix}"


class JobRecord(BaseModel):
    """Tracks the lifecycle of one async parsing job.

    Records are treated as immutable snapshots: the store swaps in a new copy
    on every transition instead of mutating fields in place.
    """
    id: str
    status: JobStatus = JobStatus.PENDING
    message: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def new(cls, job_id: str, payload: Dict[str, Any], ttl_seconds: int,
            now: Optional[datetime] = None) -> "JobRecord":
        now = now or utcnow()
        return cls(
            id=job_id,
            payload=payload,
            message="Queued for parsing",
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def created_at_ms(self) -> int:
        return int(self.created_at.timestamp() * 1000)

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0
