"""
Shared fixtures: a fresh SQLite database per test and services whose
executors are stopped before the connection is closed.
"""

import time

import pytest

from jobctl.db import init_db
from jobctl.repository import JobStore
from jobctl.service import build_service


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "jobs.db")


@pytest.fixture
def conn(db_path):
    conn = init_db(db_path)
    yield conn
    conn.close()


@pytest.fixture
def store(conn):
    return JobStore(conn)


@pytest.fixture
def make_service(conn):
    """Build (not start) a JobService on the test database; defaults to 10ms of work."""
    services = []

    def _make(**kwargs):
        kwargs.setdefault("work_seconds", 0.01)
        service = build_service(conn, **kwargs)
        service.executor.poll_interval = 0.05
        services.append(service)
        return service

    yield _make

    for service in services:
        service.stop(timeout=2)
        service.executor.drain(timeout=2)


@pytest.fixture
def wait_until():
    def _wait(predicate, timeout=5.0, interval=0.02):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
