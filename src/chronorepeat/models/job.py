"""Job instances materialized by the repeat scheduler."""

from datetime import datetime
from enum import Enum
from typing import Dict, Any
from sqlalchemy import Column, String, BigInteger, DateTime, JSON
from sqlalchemy.orm import declarative_base

from .options import JobOptions

Base = declarative_base()


class JobState(str, Enum):
    WAITING = "waiting"  # Ready to be picked up
    DELAYED = "delayed"  # Not due yet; cancellable by repeat removal


class Job(Base):
    __tablename__ = "jobs"

    # Identity: repeat occurrences use "repeat:<digest>:<next millis>"
    queue = Column(String(255), primary_key=True)
    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)

    # Payload and the options it was created with (JobOptions.model_dump())
    data = Column(JSON)
    opts = Column(JSON)

    # Timing, all in epoch milliseconds
    delay = Column(BigInteger, default=0)
    timestamp = Column(BigInteger, nullable=False)

    state = Column(String(20), default=JobState.WAITING.value)

    # Back-reference to the repeat definition that produced this job
    repeat_job_key = Column(String(1024), index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def options(self) -> JobOptions:
        """Options parsed back into a JobOptions model."""
        return JobOptions.model_validate(self.opts or {})

    @property
    def process_at(self) -> int:
        """Epoch milliseconds at which the job becomes due."""
        return self.timestamp + (self.delay or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "queue": self.queue,
            "name": self.name,
            "data": self.data,
            "opts": self.opts,
            "delay": self.delay,
            "timestamp": self.timestamp,
            "process_at": self.process_at,
            "state": self.state,
            "repeat_job_key": self.repeat_job_key,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
