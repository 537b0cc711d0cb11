"""Thread-safe in-memory job store with TTL expiry.

Records are written by exactly one worker each and read by any number of
status pollers. The progress callback runs on executor threads, so the map is
guarded by a plain ``threading.Lock`` rather than an asyncio one.
"""

import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from docparse.errors import InvalidTransition
from docparse.jobs.models import (
    ALLOWED_TRANSITIONS,
    JobRecord,
    JobStatus,
    new_job_id,
    utcnow,
)


class JobStore:
    """Maps job id -> latest ``JobRecord`` snapshot.

    Expiry is passive by default: ``get`` hides records whose ``expires_at``
    has passed. ``cleanup_expired`` reclaims them when called (the queue's
    optional sweep and the shutdown hook do this).
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], datetime] = utcnow):
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def create(self, payload: Dict[str, Any]) -> JobRecord:
        """Insert a new pending record under a fresh id and return it."""
        now = self._clock()
        with self._lock:
            job_id = new_job_id(now)
            while self._is_live(job_id, now):
                job_id = new_job_id(now)
            job = JobRecord.new(job_id, payload, self._ttl_seconds, now=now)
            self._jobs[job_id] = job
        return job

    def get(self, job_id: str) -> Optional[JobRecord]:
        now = self._clock()
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if job.is_expired(now):
                del self._jobs[job_id]
                return None
            return job

    def transition(
        self,
        job_id: str,
        status: JobStatus,
        *,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Optional[JobRecord]:
        """Move a job to ``status``, replacing its record as a whole.

        Returns the new snapshot, or None if the record is gone. Raises
        ``InvalidTransition`` for edges outside pending -> running -> terminal.
        """
        now = self._clock()
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.is_expired(now):
                return None
            if status not in ALLOWED_TRANSITIONS[job.status]:
                raise InvalidTransition(job_id, job.status.value, status.value)

            update: Dict[str, Any] = {"status": status}
            if message is not None:
                update["message"] = message
            if status == JobStatus.RUNNING:
                update["started_at"] = now
            elif status == JobStatus.COMPLETED:
                update["completed_at"] = now
                update["result"] = result if result is not None else {}
            elif status == JobStatus.FAILED:
                update["completed_at"] = now
                update["error"] = error or "Unknown error"

            updated = job.model_copy(update=update)
            self._jobs[job_id] = updated
            return updated

    def set_message(self, job_id: str, message: str) -> bool:
        """Update the progress message of a running job. Terminal jobs are left alone."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.RUNNING:
                return False
            self._jobs[job_id] = job.model_copy(update={"message": message})
            return True

    def cleanup_expired(self) -> int:
        """Remove every expired record. Returns how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [job_id for job_id, job in self._jobs.items() if job.is_expired(now)]
            for job_id in expired:
                del self._jobs[job_id]
        return len(expired)

    def counts(self) -> Dict[str, int]:
        """Live (non-expired) job counts per status."""
        now = self._clock()
        counts = {status.value: 0 for status in JobStatus}
        with self._lock:
            for job in self._jobs.values():
                if not job.is_expired(now):
                    counts[job.status.value] += 1
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _is_live(self, job_id: str, now: datetime) -> bool:
        job = self._jobs.get(job_id)
        return job is not None and not job.is_expired(now)
