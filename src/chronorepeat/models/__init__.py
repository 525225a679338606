"""Database models and option types for ChronoRepeat."""

from .job import Base, Job, JobState
from .registry import RepeatEntry
from .options import RepeatOptions, JobOptions, to_millis

__all__ = [
    "Base",
    "Job",
    "JobState",
    "RepeatEntry",
    "RepeatOptions",
    "JobOptions",
    "to_millis"
]
