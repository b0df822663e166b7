"""Visuals router — create a visual job, then poll it until it is done."""

from fastapi import APIRouter, Depends, HTTPException, status

from deckpipe.api.deps import get_job_store
from deckpipe.core.job_store import GenerationJob, JobStore
from deckpipe.schemas.generation import VisualJobRead, VisualRequest

router = APIRouter(prefix="/visuals", tags=["visuals"])


def _job_read(job: GenerationJob) -> VisualJobRead:
    return VisualJobRead(
        id=job.id,
        status=job.status.value,
        visual=job.result,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )


@router.post("", response_model=VisualJobRead, status_code=status.HTTP_202_ACCEPTED)
async def create_visual_job(
    payload: VisualRequest,
    job_store: JobStore = Depends(get_job_store),
):
    """Start generating a visual; answers at once with the pending job."""
    job_id = await job_store.create(payload)
    return _job_read(job_store.get(job_id))


@router.get("/{job_id}", response_model=VisualJobRead)
async def get_visual_job(
    job_id: str,
    job_store: JobStore = Depends(get_job_store),
):
    """Current status of a visual job; 404 for ids this process never issued."""
    job = job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Visual job not found")
    return _job_read(job)
