from fastapi import APIRouter, Depends, HTTPException, status

from cardintake.db.repository import CardRepository
from cardintake.routers.deps import get_profile_id, get_repository
from cardintake.schemas.job import JobDetail, JobEventRead, JobRead, ProcessPassResult
from cardintake.services.orchestrator import process_queued_jobs

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/process", response_model=ProcessPassResult)
def run_pass(
    limit: int | None = None,
    repo: CardRepository = Depends(get_repository),
    _: str = Depends(get_profile_id),
) -> ProcessPassResult:
    result = process_queued_jobs(repo, limit=limit)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.error)
    return result


@router.get("", response_model=list[JobRead])
def list_jobs(
    limit: int = 20,
    repo: CardRepository = Depends(get_repository),
    profile_id: str = Depends(get_profile_id),
) -> list[JobRead]:
    jobs = repo.list_recent_jobs(limit=min(max(limit, 1), 100), profile_id=profile_id)
    return [JobRead.model_validate(job) for job in jobs]


@router.get("/{job_id}", response_model=JobDetail)
def get_job(
    job_id: str,
    repo: CardRepository = Depends(get_repository),
    profile_id: str = Depends(get_profile_id),
) -> JobDetail:
    job = repo.get_job(job_id)
    if not job or job.profile_id != profile_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    events = [JobEventRead.model_validate(event) for event in repo.list_job_events(job.id)]
    return JobDetail(**JobRead.model_validate(job).model_dump(), events=events)
