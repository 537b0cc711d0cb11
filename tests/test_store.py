"""
Unit tests for the in-memory job store.
"""
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from docparse.errors import InvalidTransition
from docparse.jobs import store as store_module
from docparse.jobs.models import JobStatus

ID_PATTERN = re.compile(r"^task-\d+-[a-z0-9]{7}$")


def test_create_inserts_pending_record(store, clock):
    job = store.create({"filename": "a.pdf"})

    assert ID_PATTERN.match(job.id)
    assert job.status == JobStatus.PENDING
    assert job.payload == {"filename": "a.pdf"}
    assert job.result is None and job.error is None
    assert job.created_at == clock.now
    assert job.expires_at == clock.now + timedelta(hours=1)
    assert store.get(job.id) == job


def test_unknown_id_is_not_found(store):
    assert store.get("task-0-missing") is None


def test_expired_record_is_not_found_and_dropped(store, clock):
    job = store.create({})
    clock.advance(3599)
    assert store.get(job.id) is not None

    clock.advance(2)
    assert store.get(job.id) is None
    assert len(store) == 0


def test_full_success_lifecycle(store):
    job = store.create({})
    running = store.transition(job.id, JobStatus.RUNNING)
    assert running.started_at is not None

    done = store.transition(job.id, JobStatus.COMPLETED, result={"paragraphs": ["x"]})
    assert done.status == JobStatus.COMPLETED
    assert done.result == {"paragraphs": ["x"]}
    assert done.error is None
    assert done.completed_at is not None


def test_failure_records_error_and_no_result(store):
    job = store.create({})
    store.transition(job.id, JobStatus.RUNNING)
    failed = store.transition(job.id, JobStatus.FAILED, error="boom")

    assert failed.error == "boom"
    assert failed.result is None


def test_transition_replaces_record_instead_of_mutating(store):
    job = store.create({})
    running = store.transition(job.id, JobStatus.RUNNING)

    assert job.status == JobStatus.PENDING
    assert running is not job


@pytest.mark.parametrize("path", [
    [JobStatus.COMPLETED],
    [JobStatus.FAILED],
    [JobStatus.RUNNING, JobStatus.PENDING],
    [JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.RUNNING],
    [JobStatus.RUNNING, JobStatus.FAILED, JobStatus.COMPLETED],
])
def test_illegal_transitions_are_rejected(store, path):
    job = store.create({})
    *legal, illegal = path
    for status in legal:
        store.transition(job.id, status)

    before = store.get(job.id)
    with pytest.raises(InvalidTransition):
        store.transition(job.id, illegal)
    assert store.get(job.id) == before


def test_transition_of_missing_job_returns_none(store):
    assert store.transition("task-0-missing", JobStatus.RUNNING) is None


def test_set_message_only_applies_while_running(store):
    job = store.create({})
    assert store.set_message(job.id, "too early") is False

    store.transition(job.id, JobStatus.RUNNING)
    assert store.set_message(job.id, "Downloading file") is True
    assert store.get(job.id).message == "Downloading file"

    store.transition(job.id, JobStatus.COMPLETED, result={}, message="Done")
    assert store.set_message(job.id, "late") is False
    assert store.get(job.id).message == "Done"


def test_cleanup_expired_only_removes_old_records(store, clock):
    old = store.create({})
    clock.advance(1800)
    fresh = store.create({})
    clock.advance(1801)

    assert store.cleanup_expired() == 1
    assert store.get(old.id) is None
    assert store.get(fresh.id) is not None


def test_counts_by_status(store):
    a = store.create({})
    store.create({})
    store.transition(a.id, JobStatus.RUNNING)

    counts = store.counts()
    assert counts["pending"] == 1
    assert counts["running"] == 1
    assert counts["completed"] == 0


def test_ids_are_distinct_within_the_same_instant(store):
    ids = {store.create({}).id for _ in range(500)}
    assert len(ids) == 500


def test_colliding_id_is_regenerated(store, monkeypatch):
    generated = iter(["task-1-aaaaaaa", "task-1-aaaaaaa", "task-1-bbbbbbb"])
    monkeypatch.setattr(store_module, "new_job_id", lambda now=None: next(generated))

    first = store.create({})
    second = store.create({})
    assert first.id == "task-1-aaaaaaa"
    assert second.id == "task-1-bbbbbbb"


def test_concurrent_creates_from_threads(store):
    with ThreadPoolExecutor(max_workers=8) as pool:
        jobs = list(pool.map(lambda i: store.create({"i": i}), range(200)))

    assert len({job.id for job in jobs}) == 200
    assert len(store) == 200
