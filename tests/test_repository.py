from datetime import timedelta

import pytest

from jobctl.config import DEFAULT_CONFIG
from jobctl.errors import StoreReadError, StoreWriteError
from jobctl.models import COMPLETED, PENDING, Job
from jobctl.repository import get_config, set_config
from jobctl.utils import utc_now


def _job(job_id="job-1"):
    now = utc_now()
    return Job(id=job_id, created_at=now, updated_at=now, status=PENDING)


# ---------- Config ----------
def test_init_db_seeds_defaults(conn):
    assert get_config(conn) == DEFAULT_CONFIG


def test_set_config_normalises_values(conn):
    set_config(conn, "queue_capacity", " 10 ")
    set_config(conn, "work_seconds", "500ms")
    set_config(conn, "failure_policy", "mark_failed")
    cfg = get_config(conn)
    assert cfg["queue_capacity"] == "10"
    assert cfg["work_seconds"] == "0.5"
    assert cfg["failure_policy"] == "mark_failed"


@pytest.mark.parametrize(
    "key, value",
    [
        ("nope", "1"),
        ("queue_capacity", "0"),
        ("queue_capacity", "many"),
        ("work_seconds", "soon"),
        ("failure_policy", "retry"),
    ],
)
def test_set_config_rejects_bad_input(conn, key, value):
    with pytest.raises(ValueError):
        set_config(conn, key, value)
    assert get_config(conn) == DEFAULT_CONFIG


# ---------- Jobs ----------
def test_insert_then_select_round_trips(store):
    job = _job()
    store.insert(job)
    assert store.select_by_id(job.id) == job


def test_select_missing_returns_none(store):
    assert store.select_by_id("missing") is None


def test_duplicate_id_is_a_write_error(store):
    store.insert(_job("dup"))
    with pytest.raises(StoreWriteError):
        store.insert(_job("dup"))


def test_update_status_sets_status_and_timestamp(store):
    job = _job()
    store.insert(job)
    later = job.created_at + timedelta(seconds=5)

    assert store.update_status_by_id(job.id, COMPLETED, later) == 1

    stored = store.select_by_id(job.id)
    assert stored.status == COMPLETED
    assert stored.updated_at == later
    assert stored.created_at == job.created_at


def test_update_missing_affects_no_rows(store):
    assert store.update_status_by_id("missing", COMPLETED, utc_now()) == 0


def test_list_and_counts(store):
    for i in range(3):
        store.insert(_job(f"job-{i}"))
    store.update_status_by_id("job-1", COMPLETED, utc_now())

    assert sorted(j.id for j in store.list_jobs()) == ["job-0", "job-1", "job-2"]
    assert sorted(j.id for j in store.list_jobs(status=PENDING)) == ["job-0", "job-2"]
    assert store.counts() == {"pending": 2, "completed": 1, "failed": 0}


def test_driver_errors_are_wrapped(conn, store):
    conn.close()
    with pytest.raises(StoreReadError):
        store.select_by_id("job-1")
    with pytest.raises(StoreWriteError):
        store.insert(_job())
    with pytest.raises(StoreWriteError):
        store.update_status_by_id("job-1", COMPLETED, utc_now())


def test_naive_updated_at_is_stored_as_utc(store):
    job = _job()
    store.insert(job)
    naive = (job.created_at + timedelta(seconds=5)).replace(tzinfo=None)

    store.update_status_by_id(job.id, COMPLETED, naive)

    assert store.select_by_id(job.id).updated_at == job.created_at + timedelta(seconds=5)
