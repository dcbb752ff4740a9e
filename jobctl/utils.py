import logging
import re
import sys
from datetime import datetime, timezone

# e.g., "5", "500ms", "2s", "1m30s", "1h", "  90s  "
DURATION_RE = re.compile(
    r"(?i)^\s*(?:(\d+)\s*h)?\s*(?:(\d+)\s*m(?!s))?\s*(?:(\d+(?:\.\d+)?)\s*s)?\s*(?:(\d+)\s*ms)?\s*$"
)
BARE_NUMBER_RE = re.compile(r"^\s*\d+(?:\.\d+)?\s*$")


def parse_duration(s: str) -> float:
    """
    Parse duration strings like '5', '500ms', '2s', '1m30s', '1h'.
    A bare number is taken as seconds. Returns total seconds (float).
    Raises ValueError on bad input.
    """
    if s is None or not str(s).strip():
        raise ValueError("duration string is empty")
    s = str(s)
    if BARE_NUMBER_RE.match(s):
        return float(s)
    m = DURATION_RE.match(s)
    if not m or not any(m.groups()):
        raise ValueError(f"Invalid duration format: {s!r}")
    h, m_, s_, ms = m.groups()
    total = 0.0
    if h:  total += int(h) * 3600
    if m_: total += int(m_) * 60
    if s_: total += float(s_)
    if ms: total += int(ms) / 1000
    return total


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """UTC timestamp like '2025-11-06T09:12:34.123456Z'; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    """Inverse of to_iso; naive values are assumed to be UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # uvicorn's access log is noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
