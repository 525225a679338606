"""Repeatable job scheduling core."""

from .repeat import Repeat
from .registry import RepeatRegistry
from .jobs import JobStore
from .keys import RepeatKey, get_repeat_key, get_repeat_job_id, digest
from .strategy import RepeatStrategy, RepeatConfigError, get_next_millis, validate_cron

__all__ = [
    "Repeat",
    "RepeatRegistry",
    "JobStore",
    "RepeatKey",
    "get_repeat_key",
    "get_repeat_job_id",
    "digest",
    "RepeatStrategy",
    "RepeatConfigError",
    "get_next_millis",
    "validate_cron"
]
