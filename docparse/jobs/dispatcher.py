"""Job dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from docparse.jobs.models import JobRecord


class JobDispatcher(ABC):
    """Abstract interface for async job tracking."""

    @abstractmethod
    async def submit(self, payload: Dict[str, Any]) -> str:
        """Register a job for ``payload`` and schedule it. Returns the job id at once."""
        ...

    @abstractmethod
    async def get_status(self, job_id: str) -> Optional[JobRecord]:
        """Current snapshot of a job, or None if unknown or expired."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., start worker loops)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...
