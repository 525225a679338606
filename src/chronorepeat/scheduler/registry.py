"""Durable, score-ordered registry of active repeat definitions."""

from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
import logging

from chronorepeat.database import DatabaseManager
from chronorepeat.models import Job, JobState, RepeatEntry

logger = logging.getLogger(__name__)


class RepeatRegistry:
    """Maps repeat key -> next-due millis for one queue.

    A repeat definition is active iff its key is present. Every call is a
    single bounded database transaction.
    """

    def __init__(self, db_manager: DatabaseManager, queue_name: str):
        self.db_manager = db_manager
        self.queue_name = queue_name

    def score_of(self, key: str) -> Optional[int]:
        """Next-due millis for ``key``, or None if it is not registered."""
        with self.db_manager.get_session() as session:
            entry = session.get(RepeatEntry, (self.queue_name, key))
            return entry.score if entry else None

    def exists(self, key: str) -> bool:
        return self.score_of(key) is not None

    def upsert(self, key: str, score: int):
        """Insert ``key`` or replace its score."""
        try:
            self._upsert(key, score)
        except IntegrityError:
            # Another process inserted the same key between our read and write
            logger.debug(f"Concurrent insert of repeat key '{key}', retrying as update")
            self._upsert(key, score)

    def _upsert(self, key: str, score: int):
        with self.db_manager.get_session() as session:
            entry = session.get(RepeatEntry, (self.queue_name, key))
            if entry:
                entry.score = score
            else:
                session.add(RepeatEntry(queue=self.queue_name, key=key, score=score))

    def range(self, start: int = 0, end: int = -1, asc: bool = False) -> List[Tuple[str, int]]:
        """Entries with ``start <= score <= end`` as (key, score) pairs.

        A negative ``end`` leaves the range open-ended. Descending order is
        the exact reverse of ascending order.
        """
        with self.db_manager.get_session() as session:
            query = session.query(RepeatEntry).filter(
                RepeatEntry.queue == self.queue_name,
                RepeatEntry.score >= start
            )
            if end >= 0:
                query = query.filter(RepeatEntry.score <= end)

            if asc:
                query = query.order_by(RepeatEntry.score.asc(), RepeatEntry.key.asc())
            else:
                query = query.order_by(RepeatEntry.score.desc(), RepeatEntry.key.desc())

            return [(entry.key, entry.score) for entry in query.all()]

    def cardinality(self) -> int:
        with self.db_manager.get_session() as session:
            return session.query(RepeatEntry).filter(
                RepeatEntry.queue == self.queue_name
            ).count()

    def remove(self, repeat_job_id: str, key: str) -> int:
        """Atomically drop ``key`` and cancel its pending occurrence.

        ``repeat_job_id`` is the occurrence identifier prefix (built with an
        empty timestamp); the pending job is ``repeat_job_id + <score>`` and
        is removed only while it is still delayed. Returns the number of
        registry entries this call removed (0 or 1); when two callers race
        on the same key only the one whose delete lands reports 1.
        """
        with self.db_manager.get_session() as session:
            entry = (
                session.query(RepeatEntry.score)
                .filter(RepeatEntry.queue == self.queue_name, RepeatEntry.key == key)
                .with_for_update()
                .first()
            )
            if not entry:
                return 0

            removed = session.query(RepeatEntry).filter(
                RepeatEntry.queue == self.queue_name,
                RepeatEntry.key == key
            ).delete(synchronize_session=False)
            if not removed:
                return 0

            pending_id = f"{repeat_job_id}{entry.score}"
            cancelled = session.query(Job).filter(
                Job.queue == self.queue_name,
                Job.id == pending_id,
                Job.state == JobState.DELAYED.value
            ).delete(synchronize_session=False)

        logger.debug(f"Removed repeat key '{key}' from '{self.queue_name}' (cancelled {cancelled} pending job)")
        return removed
