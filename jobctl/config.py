import os

from .utils import parse_duration

DB_FILE = os.environ.get("JOBCTL_DB", "jobs.db")

LEAVE_PENDING = "leave_pending"
MARK_FAILED = "mark_failed"
FAILURE_POLICIES = (LEAVE_PENDING, MARK_FAILED)

DEFAULT_CONFIG = {
    "queue_capacity": "5",
    "work_seconds": "5",
    "failure_policy": LEAVE_PENDING,
}

ALLOWED_CONFIG_KEYS = set(DEFAULT_CONFIG.keys())


def _positive_int(value: str) -> str:
    try:
        n = int(value)
    except ValueError:
        raise ValueError(f"queue_capacity must be an integer, got {value!r}")
    if n <= 0:
        raise ValueError("queue_capacity must be > 0")
    return str(n)


def _duration(value: str) -> str:
    seconds = parse_duration(value)
    if seconds < 0:
        raise ValueError("work_seconds must be >= 0")
    return str(seconds)


def _policy(value: str) -> str:
    if value not in FAILURE_POLICIES:
        raise ValueError(f"failure_policy must be one of: {', '.join(FAILURE_POLICIES)}")
    return value


VALIDATORS = {
    "queue_capacity": _positive_int,
    "work_seconds": _duration,
    "failure_policy": _policy,
}


def validate_config_value(key: str, value: str) -> str:
    """Return the normalised value for key, or raise ValueError."""
    if key not in ALLOWED_CONFIG_KEYS:
        raise ValueError(f"Allowed keys: {', '.join(sorted(ALLOWED_CONFIG_KEYS))}")
    return VALIDATORS[key](str(value).strip())
