"""In-process job queue using asyncio.

Jobs are pulled off an asyncio queue by a fixed number of worker loops; each
loop hands the blocking parse work to a thread pool so the event loop keeps
serving submit and status requests. No external broker (Redis, Celery) needed.
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from docparse.errors import InvalidTransition
from docparse.jobs.dispatcher import JobDispatcher
from docparse.jobs.models import JobRecord, JobStatus
from docparse.jobs.store import JobStore

logger = logging.getLogger(__name__)

# worker_fn(job, report) -> result dict; report(message) updates job.message
WorkerFn = Callable[[JobRecord, Callable[[str], bool]], Dict[str, Any]]


class InProcessQueue(JobDispatcher):
    """Local async job tracker. Runs up to ``workers`` jobs at once."""

    def __init__(
        self,
        worker_fn: WorkerFn,
        store: Optional[JobStore] = None,
        workers: int = 4,
        timeout_seconds: float = 600,
        sweep_interval_seconds: float = 0,
        on_sweep: Optional[Callable[[], Any]] = None,
        on_abandon: Optional[Callable[[JobRecord], Any]] = None,
    ):
        """
        worker_fn: callable(job, report) -> dict
            Synchronous function that does the work. Called in a thread
            executor; whatever it raises is recorded as the job's error.
        timeout_seconds: bound on the work itself, counted from the moment a
            pool thread starts it (time spent waiting for a free thread is
            not charged to the job).
        sweep_interval_seconds: when > 0, expired records are evicted on this
            period and ``on_sweep`` is called; otherwise expiry is lookup-only.
        on_abandon: callable(job) run when the tracker stops waiting on a job
            (timeout, shutdown) so the job's staged input can be released.
        """
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._store = store or JobStore()
        self._worker_fn = worker_fn
        self._workers = max(1, workers)
        self._timeout_seconds = timeout_seconds
        self._sweep_interval = sweep_interval_seconds
        self._on_sweep = on_sweep
        self._on_abandon = on_abandon
        self._executor = ThreadPoolExecutor(
            max_workers=self._workers, thread_name_prefix="parse-worker"
        )
        self._tasks: List[asyncio.Task] = []
        self._running = False

    @property
    def store(self) -> JobStore:
        return self._store

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    async def submit(self, payload: Dict[str, Any]) -> str:
        job = self._store.create(payload)
        self._queue.put_nowait(job.id)
        logger.info("Task %s created (%s)", job.id, payload.get("filename") or payload.get("url"))
        return job.id

    async def get_status(self, job_id: str) -> Optional[JobRecord]:
        return self._store.get(job_id)

    async def start(self) -> None:
        self._running = True
        self._tasks = [
            asyncio.create_task(self._worker_loop(), name=f"parse-worker-{i}")
            for i in range(self._workers)
        ]
        if self._sweep_interval > 0:
            self._tasks.append(asyncio.create_task(self._sweep_loop(), name="job-sweep"))

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._executor.shutdown(wait=False, cancel_futures=True)

    async def _worker_loop(self) -> None:
        """Process jobs from the queue until stopped."""
        while self._running:
            try:
                job_id = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await self._run_job(job_id)
            except InvalidTransition:
                logger.exception("Task %s: state machine violated", job_id)
            finally:
                self._queue.task_done()

    async def _run_job(self, job_id: str) -> None:
        job = self._store.transition(job_id, JobStatus.RUNNING, message="Parsing")
        if job is None:
            # expired (and swept) before a worker got to it
            return
        logger.info("Task %s started", job_id)

        report = functools.partial(self._store.set_message, job_id)
        loop = asyncio.get_running_loop()
        started = asyncio.Event()

        def run():
            loop.call_soon_threadsafe(started.set)
            return self._worker_fn(job, report)

        future = loop.run_in_executor(self._executor, run)
        try:
            # a timed-out job may still hold a pool thread; wait for our own
            # thread before starting the clock
            await started.wait()
            done, _ = await asyncio.wait({future}, timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            future.cancel()
            self._abandon(job)
            raise

        if not done:
            self._abandon(job)
            self._fail(job_id, f"Timed out after {self._timeout_seconds:g} seconds")
            return

        try:
            result = future.result()
        except Exception as e:
            logger.debug("Task %s raised", job_id, exc_info=True)
            self._fail(job_id, str(e) or type(e).__name__)
            return

        if not isinstance(result, dict):
            self._fail(job_id, f"Executor returned {type(result).__name__}, expected a mapping")
            return

        done_job = self._store.transition(
            job_id,
            JobStatus.COMPLETED,
            result=result,
            message=result.get("message") or "Completed",
        )
        if done_job is not None:
            logger.info("Task %s completed in %.1fs", job_id, done_job.duration_seconds)

    def _fail(self, job_id: str, error: str) -> None:
        self._store.transition(job_id, JobStatus.FAILED, error=error, message="Failed")
        logger.warning("Task %s failed: %s", job_id, error)

    def _abandon(self, job: JobRecord) -> None:
        if self._on_abandon is None:
            return
        try:
            self._on_abandon(job)
        except Exception:
            logger.exception("Task %s: releasing input failed", job.id)

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._sweep_interval)
            except asyncio.CancelledError:
                break
            try:
                removed = self._store.cleanup_expired()
                if removed:
                    logger.info("Evicted %d expired task(s)", removed)
                if self._on_sweep is not None:
                    self._on_sweep()
            except Exception:
                logger.exception("Job sweep failed; retrying next interval")
