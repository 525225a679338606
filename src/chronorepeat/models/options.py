"""Repeat and job option models."""

from datetime import datetime, timezone
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_millis(value: Union[int, float, str, datetime, None]) -> Optional[int]:
    """Normalize a date-like value to epoch milliseconds.

    Accepts epoch milliseconds, ``datetime`` objects (naive values are taken
    as UTC) and ISO-8601 strings. ``None`` passes through.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("dates must be epoch milliseconds, datetimes or ISO-8601 strings")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(round(value.timestamp() * 1000))
    raise ValueError(f"Unsupported date value: {value!r}")


class RepeatOptions(BaseModel):
    """Repeat configuration attached to a job.

    ``pattern`` (or the legacy ``cron`` alias) and ``every`` are mutually
    exclusive; the default strategy rejects options that set both.
    ``offset`` and ``count`` are maintained by the scheduler as a chain
    advances and are not meant to be supplied by callers.
    """

    pattern: Optional[str] = None
    cron: Optional[str] = None
    every: Optional[int] = Field(None, gt=0)  # milliseconds
    start_date: Optional[int] = None  # epoch milliseconds
    end_date: Optional[int] = None  # epoch milliseconds
    tz: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1)
    immediately: bool = False
    job_id: Optional[str] = None
    offset: Optional[int] = None
    count: Optional[int] = Field(None, ge=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Optional[int]:
        return to_millis(value)

    @property
    def effective_pattern(self) -> Optional[str]:
        return self.pattern or self.cron


class JobOptions(BaseModel):
    """Options a job is created with.

    Unknown fields (priority, attempts, ...) belong to the surrounding queue
    and are carried through untouched.
    """

    model_config = ConfigDict(extra="allow")

    repeat: Optional[RepeatOptions] = None
    prev_millis: Optional[int] = None
    job_id: Optional[str] = None
    delay: int = 0
    timestamp: Optional[int] = None
    repeat_job_key: Optional[str] = None
