import logging
import uuid

from .dispatch import DispatchQueue
from .models import Job, PENDING
from .repository import JobStore
from .utils import utc_now

logger = logging.getLogger(__name__)


class JobRegistry:
    """Creates jobs: persist first, then hand them to the dispatch queue."""

    def __init__(self, store: JobStore, dispatch: DispatchQueue):
        self.store = store
        self.dispatch = dispatch

    def create(self) -> Job:
        """
        Insert a new pending job and enqueue it.

        Raises StoreWriteError if the insert fails, in which case nothing is
        enqueued. Blocks while the dispatch queue is full.
        """
        now = utc_now()
        job = Job(id=str(uuid.uuid4()), created_at=now, updated_at=now, status=PENDING)

        self.store.insert(job)
        logger.debug("Inserted job %s", job.id)

        if self.dispatch.full():
            logger.info("Dispatch queue full (capacity=%d), waiting to enqueue %s",
                        self.dispatch.capacity, job.id)
        self.dispatch.put(job)
        logger.info("Created job %s", job.id)
        return job
