"""Repeat registry storage: one row per active repeat definition."""

from sqlalchemy import Column, String, BigInteger, Index
from .job import Base


class RepeatEntry(Base):
    __tablename__ = "repeat_registry"

    # Registry name; each queue owns one registry
    queue = Column(String(255), primary_key=True)
    # Encoded repeat key (see scheduler.keys.RepeatKey)
    key = Column(String(1024), primary_key=True)
    # Next-due timestamp in epoch milliseconds
    score = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_repeat_registry_queue_score", "queue", "score"),
    )

    def __repr__(self) -> str:
        return f"<RepeatEntry {self.queue}:{self.key} next={self.score}>"
