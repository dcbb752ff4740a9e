"""
Transport-facing job service.

Wires store, dispatch queue, registry, executor and status reader together
and exposes the two operations the HTTP API and the CLI call:
create_job() and status_job(job_id). Errors are raised as the kinds in
jobctl.errors and left for the transport to map.
"""

import logging
from typing import Callable, Optional

from .config import DEFAULT_CONFIG
from .dispatch import DispatchQueue
from .models import Job
from .registry import JobRegistry
from .repository import JobStore, get_config
from .status import StatusReader
from .utils import parse_duration
from .worker import JobExecutor, simulated_work

logger = logging.getLogger(__name__)


class JobService:
    def __init__(self, store: JobStore, dispatch: DispatchQueue, executor: JobExecutor):
        self.store = store
        self.dispatch = dispatch
        self.executor = executor
        self.registry = JobRegistry(store, dispatch)
        self.reader = StatusReader(store)

    def create_job(self) -> Job:
        return self.registry.create()

    def status_job(self, job_id: str) -> Job:
        return self.reader.status(job_id)

    def start(self) -> None:
        self.executor.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self.executor.stop(timeout)


def build_service(
    conn,
    *,
    capacity: Optional[int] = None,
    work_seconds: Optional[float] = None,
    failure_policy: Optional[str] = None,
    work: Optional[Callable[[Job], None]] = None,
) -> JobService:
    """Build a JobService on conn; unset arguments come from the config table."""
    cfg = {**DEFAULT_CONFIG, **get_config(conn)}
    if capacity is None:
        capacity = int(cfg["queue_capacity"])
    if work_seconds is None:
        work_seconds = parse_duration(cfg["work_seconds"])
    if failure_policy is None:
        failure_policy = cfg["failure_policy"]

    store = JobStore(conn)
    dispatch = DispatchQueue(capacity)
    executor = JobExecutor(
        store,
        dispatch,
        work=work or simulated_work(work_seconds),
        failure_policy=failure_policy,
    )
    logger.info(
        "Job service ready (capacity=%d, work=%.3fs, failure_policy=%s)",
        capacity, work_seconds, failure_policy,
    )
    return JobService(store, dispatch, executor)
