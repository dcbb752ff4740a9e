from dataclasses import dataclass
from datetime import datetime

from .utils import to_iso

# Job statuses
PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"  # only written under the mark_failed policy

STATUSES = (PENDING, COMPLETED, FAILED)


@dataclass(frozen=True)
class Job:
    id: str
    created_at: datetime
    updated_at: datetime
    status: str = PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createAt": to_iso(self.created_at),
            "updateAt": to_iso(self.updated_at),
            "status": self.status,
        }
