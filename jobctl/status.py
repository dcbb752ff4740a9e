from .errors import JobNotFound
from .models import Job
from .repository import JobStore


class StatusReader:
    """Uncached point lookups of job state."""

    def __init__(self, store: JobStore):
        self.store = store

    def status(self, job_id: str) -> Job:
        # StoreReadError from the store propagates unchanged
        job = self.store.select_by_id(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job
