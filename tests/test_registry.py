import threading

import pytest

from jobctl.dispatch import DispatchQueue
from jobctl.errors import StoreWriteError
from jobctl.models import PENDING
from jobctl.registry import JobRegistry
from jobctl.repository import JobStore


class FailingInsertStore(JobStore):
    def insert(self, job):
        raise StoreWriteError("disk full")


class OrderCheckingQueue(DispatchQueue):
    """Records whether the row was already in the store when put() ran."""

    def __init__(self, store, capacity=5):
        super().__init__(capacity)
        self.store = store
        self.persisted_at_put = []

    def put(self, job):
        self.persisted_at_put.append(self.store.select_by_id(job.id) is not None)
        super().put(job)


def test_create_returns_fresh_pending_job(store):
    registry = JobRegistry(store, DispatchQueue())
    job = registry.create()

    assert job.status == PENDING
    assert job.created_at == job.updated_at
    assert job.created_at.utcoffset().total_seconds() == 0
    assert store.select_by_id(job.id) == job


def test_create_persists_before_enqueue(store):
    dispatch = OrderCheckingQueue(store)
    job = JobRegistry(store, dispatch).create()

    assert dispatch.persisted_at_put == [True]
    assert dispatch.get(timeout=1) == job


def test_failed_insert_enqueues_nothing(conn):
    dispatch = DispatchQueue()
    registry = JobRegistry(FailingInsertStore(conn), dispatch)

    with pytest.raises(StoreWriteError):
        registry.create()
    assert dispatch.qsize() == 0
    assert dispatch.unfinished == 0


def test_create_blocks_while_queue_full(store):
    dispatch = DispatchQueue(capacity=1)
    registry = JobRegistry(store, dispatch)
    first = registry.create()

    created = []
    t = threading.Thread(target=lambda: created.append(registry.create()), daemon=True)
    t.start()
    t.join(0.2)
    assert t.is_alive()
    # already persisted while waiting for room
    assert len(store.list_jobs()) == 2

    assert dispatch.get(timeout=1) == first
    t.join(2)
    assert not t.is_alive()
    assert dispatch.get(timeout=1) == created[0]


def test_concurrent_creates_get_distinct_ids(store):
    n = 20
    dispatch = DispatchQueue(capacity=n)
    registry = JobRegistry(store, dispatch)
    results = []
    lock = threading.Lock()

    def worker():
        job = registry.create()
        with lock:
            results.append(job)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    ids = {job.id for job in results}
    assert len(ids) == n
    assert all(store.select_by_id(job_id) is not None for job_id in ids)
    assert dispatch.qsize() == n
