"""Default job-creation collaborator backed by the jobs table."""

from typing import Any, Optional
from uuid import uuid4
from sqlalchemy.exc import IntegrityError
import logging
import time

from chronorepeat.database import DatabaseManager
from chronorepeat.models import Job, JobOptions, JobState

logger = logging.getLogger(__name__)


class JobStore:
    """Stores job instances; creation is idempotent on the job id."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def create(self, queue_name: str, name: str, data: Any, opts: JobOptions) -> Job:
        """Create a job, or return the existing one with the same id.

        Two schedulers that computed the same occurrence produce the same id,
        so the second create collapses onto the first instead of duplicating.
        """
        job_id = opts.job_id or uuid4().hex
        timestamp = opts.timestamp if opts.timestamp is not None else int(time.time() * 1000)
        delay = max(opts.delay or 0, 0)

        try:
            with self.db_manager.get_session() as session:
                existing = session.get(Job, (queue_name, job_id))
                if existing:
                    logger.debug(f"Job '{job_id}' already exists in '{queue_name}', not duplicating")
                    return existing

                job = Job(
                    queue=queue_name,
                    id=job_id,
                    name=name,
                    data=data,
                    opts=opts.model_dump(exclude_none=True),
                    delay=delay,
                    timestamp=timestamp,
                    state=JobState.DELAYED.value if delay > 0 else JobState.WAITING.value,
                    repeat_job_key=opts.repeat_job_key
                )
                session.add(job)
        except IntegrityError:
            logger.debug(f"Job '{job_id}' was created concurrently in '{queue_name}'")
            existing = self.get(queue_name, job_id)
            if existing is None:
                raise
            return existing

        return job

    def get(self, queue_name: str, job_id: str) -> Optional[Job]:
        with self.db_manager.get_session() as session:
            return session.get(Job, (queue_name, job_id))
