import pytest

from jobctl.dispatch import DispatchQueue
from jobctl.errors import JobNotFound, StoreReadError
from jobctl.registry import JobRegistry
from jobctl.repository import JobStore
from jobctl.status import StatusReader


class BrokenReadStore(JobStore):
    def select_by_id(self, job_id):
        raise StoreReadError("database is locked")


def test_unknown_id_is_not_found(store):
    with pytest.raises(JobNotFound) as exc:
        StatusReader(store).status("nonexistent-id")
    assert exc.value.job_id == "nonexistent-id"
    assert not isinstance(exc.value, StoreReadError)


def test_read_failure_is_store_read_error(conn):
    with pytest.raises(StoreReadError):
        StatusReader(BrokenReadStore(conn)).status("any")


def test_repeated_status_is_stable_without_completion(store):
    job = JobRegistry(store, DispatchQueue()).create()
    reader = StatusReader(store)

    first = reader.status(job.id)
    assert first == job
    assert reader.status(job.id) == first
    assert reader.status(job.id).to_dict() == first.to_dict()
