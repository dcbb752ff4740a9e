import logging
import threading
import time
from typing import Callable, Optional

from .config import FAILURE_POLICIES, LEAVE_PENDING, MARK_FAILED
from .dispatch import DispatchQueue
from .errors import JobError, JobNotFound, UpdateRaceError
from .models import COMPLETED, FAILED, Job
from .repository import JobStore
from .utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_WORK_SECONDS = 5.0


def simulated_work(seconds: float = DEFAULT_WORK_SECONDS) -> Callable[[Job], None]:
    """Work function that only sleeps; stands in for real processing."""
    def _work(job: Job) -> None:
        time.sleep(seconds)
    return _work


class JobExecutor:
    """
    Consumes the dispatch queue and runs every job on its own thread.

    run() is the dequeue loop; it never waits for a job to finish, so one slow
    job cannot hold up the ones behind it. Each job's thread performs the
    work, moves the row to its terminal status and re-reads it for the log.
    Failures inside a job's thread are logged and end that job; nothing is
    retried and nothing is raised to whoever created the job.

    Live job threads are tracked so callers can watch in_flight or drain(),
    but stop() only ends the dequeue loop and waits for nothing.
    """

    def __init__(
        self,
        store: JobStore,
        dispatch: DispatchQueue,
        work: Optional[Callable[[Job], None]] = None,
        failure_policy: str = LEAVE_PENDING,
        poll_interval: float = 0.5,
        name: str = "executor",
    ):
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"failure_policy must be one of: {', '.join(FAILURE_POLICIES)}")
        self.store = store
        self.dispatch = dispatch
        self.work = work or simulated_work()
        self.failure_policy = failure_policy
        self.poll_interval = poll_interval
        self.name = name

        self._stop = threading.Event()
        self._loop_thread: Optional[threading.Thread] = None
        self._tasks = set()
        self._tasks_lock = threading.Lock()

    # ---------- Loop ----------
    def run(self) -> None:
        logger.info("[%s] Dequeue loop started", self.name)
        while not self._stop.is_set():
            job = self.dispatch.get(timeout=self.poll_interval)
            if job is None:
                continue
            self._spawn(job)
        logger.info("[%s] Dequeue loop stopped", self.name)

    def start(self) -> threading.Thread:
        """Run the dequeue loop on a daemon thread."""
        old = self._loop_thread
        if old is not None and old.is_alive():
            if not self._stop.is_set():
                logger.warning("[%s] Executor is already running", self.name)
                return old
            # a stopped loop may still be inside its last get(); let it exit first
            old.join()
        self._stop.clear()
        self._loop_thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._loop_thread.start()
        return self._loop_thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop dequeuing. Queued and in-flight jobs are not waited for."""
        self._stop.set()
        if self._loop_thread is not None:
            self._loop_thread.join(timeout)

    @property
    def in_flight(self) -> int:
        with self._tasks_lock:
            return len(self._tasks)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for every enqueued job to finish; False if timeout elapses."""
        return self.dispatch.join(timeout)

    def _spawn(self, job: Job) -> None:
        t = threading.Thread(
            target=self._run_task, args=(job,), name=f"job-{job.id[:8]}", daemon=True
        )
        with self._tasks_lock:
            self._tasks.add(t)
        logger.debug("[%s] Dispatched job %s", self.name, job.id)
        try:
            t.start()
        except RuntimeError as e:
            with self._tasks_lock:
                self._tasks.discard(t)
            self.dispatch.task_done()
            logger.error("[%s] Could not start thread for job %s, left pending: %s", self.name, job.id, e)

    def _run_task(self, job: Job) -> None:
        try:
            self.execute(job)
        finally:
            with self._tasks_lock:
                self._tasks.discard(threading.current_thread())
            self.dispatch.task_done()

    # ---------- Per-job task ----------
    def execute(self, job: Job) -> Optional[Job]:
        """Process one job; returns the re-read row, or None if it did not land."""
        previous = job.status
        logger.info("[%s] Executing job %s", self.name, job.id)
        try:
            self.work(job)
        except Exception as e:
            logger.error("[%s] Work for job %s failed: %s", self.name, job.id, e, exc_info=True)
            if self.failure_policy == MARK_FAILED:
                return self._transition(job, previous, FAILED)
            logger.warning("[%s] Job %s left %s (policy=%s)", self.name, job.id, previous, self.failure_policy)
            return None
        return self._transition(job, previous, COMPLETED)

    def _transition(self, job: Job, previous: str, status: str) -> Optional[Job]:
        # never stamp an updated_at earlier than created_at
        updated_at = max(utc_now(), job.created_at)
        try:
            rows = self.store.update_status_by_id(job.id, status, updated_at)
            if rows == 0:
                raise UpdateRaceError(job.id)
            updated = self.store.select_by_id(job.id)
            if updated is None:
                raise JobNotFound(job.id)
        except JobError as e:
            logger.error("[%s] Failed to move job %s to %s: %s", self.name, job.id, status, e)
            return None

        logger.info("[%s] updated job %s from %s to %s", self.name, job.id, previous, updated.status)
        return updated
