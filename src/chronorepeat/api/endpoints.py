"""API endpoints for repeatable job management."""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Any, Optional
from pydantic import BaseModel, Field

from chronorepeat.database import DatabaseManager, db_manager
from chronorepeat.models import JobOptions, RepeatOptions
from chronorepeat.scheduler import JobStore, Repeat, RepeatConfigError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db_manager() -> DatabaseManager:
    """Database manager dependency; overridden in tests."""
    return db_manager


def get_repeat(queue: str, manager: DatabaseManager = Depends(get_db_manager)) -> Repeat:
    """Repeat scheduler for the queue named in the path."""
    return Repeat(queue, manager)


# Pydantic models for request bodies
class RepeatableCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    data: Any = None
    opts: JobOptions


class RepeatableRemove(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    repeat: RepeatOptions
    job_id: Optional[str] = None


@router.post("/queues/{queue}/repeatables")
async def add_repeatable(body: RepeatableCreate, repeat: Repeat = Depends(get_repeat)):
    """Start a repeat chain and return its first job (null if none is due)."""
    if body.opts.repeat is None:
        raise HTTPException(status_code=422, detail="opts.repeat is required")

    try:
        job = repeat.add_repeatable_job(body.name, body.data, body.opts)
    except RepeatConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"job": job.to_dict() if job else None}


@router.get("/queues/{queue}/repeatables")
async def list_repeatables(
    start: int = Query(0, ge=0),
    end: int = Query(-1),
    asc: bool = False,
    repeat: Repeat = Depends(get_repeat)
):
    """List repeat definitions ordered by next-due time."""
    return {
        "total": repeat.get_repeatable_count(),
        "repeatables": repeat.get_repeatable_jobs(start, end, asc)
    }


@router.get("/queues/{queue}/repeatables/count")
async def count_repeatables(repeat: Repeat = Depends(get_repeat)):
    """Number of active repeat definitions."""
    return {"count": repeat.get_repeatable_count()}


@router.post("/queues/{queue}/repeatables/remove")
async def remove_repeatable(body: RepeatableRemove, repeat: Repeat = Depends(get_repeat)):
    """Remove a repeat definition identified by its options."""
    removed = repeat.remove_repeatable(body.name, body.repeat, body.job_id)
    return {"removed": removed}


@router.delete("/queues/{queue}/repeatables/{key:path}")
async def remove_repeatable_by_key(key: str, repeat: Repeat = Depends(get_repeat)):
    """Remove a repeat definition by its registry key."""
    removed = repeat.remove_repeatable_by_key(key)
    return {"removed": removed}


@router.get("/queues/{queue}/jobs/{job_id:path}")
async def get_job(
    queue: str,
    job_id: str,
    manager: DatabaseManager = Depends(get_db_manager)
):
    """Get a job by id."""
    job = JobStore(manager).get(queue, job_id)

    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return job.to_dict()
