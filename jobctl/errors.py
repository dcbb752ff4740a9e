class JobError(Exception):
    """Base class for job lifecycle errors."""


class StoreWriteError(JobError, RuntimeError):
    """Insert or update against the record store failed."""


class StoreReadError(JobError, RuntimeError):
    """Select against the record store failed for a reason other than absence."""


class JobNotFound(JobError, LookupError):
    def __init__(self, job_id: str):
        super().__init__(f"job with id {job_id} not found")
        self.job_id = job_id


class UpdateRaceError(JobError, RuntimeError):
    """An update that should have hit exactly one row affected none."""

    def __init__(self, job_id: str):
        super().__init__(f"no job found with id {job_id}")
        self.job_id = job_id
