import queue
import threading
from typing import Optional

from .models import Job

DEFAULT_CAPACITY = 5


class DispatchQueue:
    """
    Bounded FIFO of job handles between the registry and the executor.

    Besides the queue itself it counts unfinished jobs: a job counts from the
    moment a producer starts putting it until a consumer calls task_done(),
    so join() also covers jobs that are already off the queue but still
    executing.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._q: "queue.Queue[Job]" = queue.Queue(maxsize=capacity)
        self._unfinished = 0
        self._all_done = threading.Condition()

    def put(self, job: Job) -> None:
        with self._all_done:
            self._unfinished += 1
        # blocks while full, no timeout
        self._q.put(job)

    def get(self, timeout: Optional[float] = None) -> Optional[Job]:
        """Next job in FIFO order, or None if timeout elapses first."""
        try:
            return self._q.get(timeout=timeout)
        except queue.Empty:
            return None

    def task_done(self) -> None:
        with self._all_done:
            if self._unfinished <= 0:
                raise ValueError("task_done() called too many times")
            self._unfinished -= 1
            if self._unfinished == 0:
                self._all_done.notify_all()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until every put job is done. Returns False on timeout."""
        with self._all_done:
            return self._all_done.wait_for(lambda: self._unfinished == 0, timeout)

    @property
    def unfinished(self) -> int:
        with self._all_done:
            return self._unfinished

    def qsize(self) -> int:
        return self._q.qsize()

    def full(self) -> bool:
        return self._q.full()
