"""Repeatable job scheduling.

``Repeat`` turns a job that carries repeat options into the next concrete
job instance of its chain and keeps the queue's repeat registry current.
Each occurrence gets a deterministic id, so schedulers racing on the same
occurrence collapse onto one job at the storage layer.
"""

from typing import Any, Dict, List, Optional
import logging
import time

from chronorepeat.config import settings
from chronorepeat.database import DatabaseManager
from chronorepeat.models import Job, JobOptions, RepeatOptions
from .jobs import JobStore
from .keys import RepeatKey, digest, get_repeat_job_id
from .registry import RepeatRegistry
from .strategy import RepeatStrategy, get_next_millis

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class Repeat:
    """Schedules repeatable jobs for one queue."""

    def __init__(
        self,
        queue_name: Optional[str],
        db_manager: DatabaseManager,
        job_store: Optional[Any] = None,
        repeat_strategy: Optional[RepeatStrategy] = None,
        clock=None,
        hash_algorithm: Optional[str] = None
    ):
        """
        Args:
            queue_name: Queue whose registry and jobs this instance manages;
                None selects settings.default_queue
            db_manager: Database holding the registry
            job_store: Job-creation collaborator; anything with a
                ``create(queue_name, name, data, opts)`` method. Defaults to
                a JobStore on ``db_manager``
            repeat_strategy: Replacement for the default cron/interval
                strategy; must be safe to call concurrently
            clock: Callable returning the current epoch milliseconds
            hash_algorithm: hashlib algorithm for occurrence identifiers
        """
        self.queue_name = queue_name or settings.default_queue
        self.db_manager = db_manager
        self.registry = RepeatRegistry(db_manager, self.queue_name)
        self.job_store = job_store or JobStore(db_manager)
        self.repeat_strategy = repeat_strategy or get_next_millis
        self.clock = clock or _now_millis
        self.hash_algorithm = hash_algorithm or settings.repeat_key_hash_algorithm

    def add_repeatable_job(self, name: str, data: Any, opts: JobOptions) -> Optional[Job]:
        """Start a repeat chain, registering its definition."""
        job = self.add_next_repeatable_job(name, data, opts, skip_check_exists=True)
        if job:
            logger.info(f"Started repeatable '{name}' in '{self.queue_name}' ({job.repeat_job_key})")
        return job

    def schedule_after(self, job: Job) -> Optional[Job]:
        """Continue the chain of a previously materialized occurrence."""
        return self.add_next_repeatable_job(job.name, job.data, job.options)

    def add_next_repeatable_job(
        self,
        name: str,
        data: Any,
        opts: JobOptions,
        skip_check_exists: bool = False
    ) -> Optional[Job]:
        """Materialize the next occurrence of a repeat chain.

        Returns None when the chain is over: occurrence limit reached, end
        date passed, no further occurrence, or the definition was removed
        from the registry (not checked when ``skip_check_exists`` is set).
        """
        if opts.repeat is None:
            raise ValueError(f"Job '{name}' has no repeat options")

        repeat_opts = opts.repeat.model_copy()
        prev_millis = opts.prev_millis or 0
        current_count = repeat_opts.count + 1 if repeat_opts.count else 1

        if repeat_opts.limit is not None and current_count > repeat_opts.limit:
            logger.debug(f"Repeatable '{name}' reached its limit of {repeat_opts.limit}")
            return None

        now = self.clock()

        if repeat_opts.end_date is not None and now > repeat_opts.end_date:
            logger.debug(f"Repeatable '{name}' is past its end date")
            return None

        now = max(prev_millis, now)

        next_millis = self.repeat_strategy(now, repeat_opts, name)
        if not next_millis:
            logger.debug(f"Repeatable '{name}' has no next occurrence")
            return None

        pattern = repeat_opts.effective_pattern
        has_immediately = bool((repeat_opts.every or pattern) and repeat_opts.immediately)
        offset = now - next_millis if has_immediately else None

        # The caller's job id only seeds the first occurrence; it then lives in the repeat options
        if not prev_millis and opts.job_id:
            repeat_opts.job_id = opts.job_id

        repeat_job_key = RepeatKey.from_options(name, repeat_opts).encode()

        # Best effort: a removal landing after this check leaves one orphaned occurrence
        if not skip_check_exists and not self.registry.exists(repeat_job_key):
            logger.debug(f"Repeatable '{repeat_job_key}' was removed, not scheduling")
            return None

        # "immediately" applies to the first occurrence only; an offset already
        # carried by the chain keeps the phase of that occurrence
        next_repeat = repeat_opts.model_copy(update={
            "immediately": False,
            "offset": repeat_opts.offset if repeat_opts.offset is not None else offset
        })

        return self._create_next_job(
            name,
            next_millis,
            repeat_job_key,
            opts.model_copy(update={"repeat": next_repeat}),
            data,
            current_count,
            has_immediately
        )

    def _create_next_job(
        self,
        name: str,
        next_millis: int,
        repeat_job_key: str,
        opts: JobOptions,
        data: Any,
        current_count: int,
        has_immediately: bool
    ) -> Job:
        job_id = get_repeat_job_id(
            name,
            next_millis,
            digest(repeat_job_key, self.hash_algorithm),
            opts.repeat.job_id,
            self.hash_algorithm
        )
        now = self.clock()
        delay = next_millis + (opts.repeat.offset or 0) - now

        merged_opts = opts.model_copy(update={
            "job_id": job_id,
            "delay": 0 if delay < 0 or has_immediately else delay,
            "timestamp": now,
            "prev_millis": next_millis,
            "repeat_job_key": repeat_job_key,
            "repeat": opts.repeat.model_copy(update={"count": current_count})
        })

        # Registry first, so a listed definition never lags behind its job
        self.registry.upsert(repeat_job_key, next_millis)

        logger.debug(f"Scheduling '{job_id}' in '{self.queue_name}' with delay {merged_opts.delay}ms")
        return self.job_store.create(self.queue_name, name, data, merged_opts)

    def remove_repeatable(self, name: str, repeat: RepeatOptions, job_id: Optional[str] = None) -> int:
        """Remove a repeat definition identified by its options.

        ``job_id`` is the id the chain was started with; when omitted,
        ``repeat.job_id`` is used.
        """
        job_id = job_id or repeat.job_id
        repeat_job_key = RepeatKey.from_options(name, repeat.model_copy(update={"job_id": job_id})).encode()
        return self._remove(name, repeat_job_key, job_id)

    def remove_repeatable_by_key(self, repeat_job_key: str) -> int:
        """Remove a repeat definition by its registry key."""
        key = RepeatKey.decode(repeat_job_key)
        return self._remove(key.name, repeat_job_key, key.job_id)

    def _remove(self, name: str, repeat_job_key: str, job_id: Optional[str]) -> int:
        repeat_job_id = get_repeat_job_id(
            name,
            "",
            digest(repeat_job_key, self.hash_algorithm),
            job_id,
            self.hash_algorithm
        )
        removed = self.registry.remove(repeat_job_id, repeat_job_key)
        if removed:
            logger.info(f"Removed repeatable '{repeat_job_key}' from '{self.queue_name}'")
        return removed

    def get_repeatable_jobs(self, start: int = 0, end: int = -1, asc: bool = False) -> List[Dict[str, Any]]:
        """Decoded repeat definitions with next-due times in [start, end]."""
        return [
            RepeatKey.decode(key).to_dict(next_millis)
            for key, next_millis in self.registry.range(start, end, asc)
        ]

    def get_repeatable_count(self) -> int:
        return self.registry.cardinality()
