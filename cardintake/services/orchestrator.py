"""Job queue orchestration: idempotent enqueue and sequential orchestration passes.

Lifecycle per job is ``queued -> running -> completed | failed``. Jobs are
claimed through :meth:`CardRepository.claim_next_batch` only, so overlapping
passes never run the same job twice. Failures stay inside their job: a pass
always reaches every job it claimed.
"""

import logging
from typing import Any, Callable

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from cardintake.core.config import get_settings
from cardintake.db.repository import CardRepository
from cardintake.models.job import JOB_TYPES, Job
from cardintake.schemas.card import ExtractionResult
from cardintake.schemas.job import JobOutcome, JobResult, ProcessPassResult, job_result_adapter
from cardintake.schemas.pairing import PairingResult
from cardintake.services.extraction import process_batch_extraction
from cardintake.services.pairing import pair_batch

logger = logging.getLogger(__name__)

JobHandler = Callable[[CardRepository, str, str], Any]

JOB_LABELS = {"pairing": "Pairing", "ocr": "OCR"}


def enqueue_job(repo: CardRepository, batch_id: str, profile_id: str, job_type: str) -> tuple[Job, bool]:
    """Return the active job of ``job_type`` for the batch, creating one only if none exists."""
    if job_type not in JOB_TYPES:
        raise ValueError(f"Unknown job type: {job_type}")
    existing = repo.find_active_job(batch_id, job_type)
    if existing is not None:
        logger.info("job_reused", extra={"job_id": existing.id, "batch_id": batch_id, "job_type": job_type})
        return existing, False
    job = repo.create_job(batch_id, profile_id, job_type)
    logger.info("job_enqueued", extra={"job_id": job.id, "batch_id": batch_id, "job_type": job_type})
    return job, True


def process_queued_jobs(
    repo: CardRepository,
    limit: int | None = None,
    handlers: dict[str, JobHandler] | None = None,
) -> ProcessPassResult:
    settings = get_settings()
    limit = limit or settings.job_batch_limit
    try:
        jobs = repo.claim_next_batch(limit)
    except SQLAlchemyError as exc:
        logger.exception("job_claim_failed")
        return ProcessPassResult(success=False, error=f"Failed to fetch jobs: {exc}")

    if not jobs:
        return ProcessPassResult(success=True)

    handlers = handlers or {"pairing": pair_batch, "ocr": process_batch_extraction}
    logger.info("job_pass_started", extra={"job_count": len(jobs)})
    outcomes = [_run_job(repo, job, handlers) for job in jobs]
    return ProcessPassResult(success=True, processed_jobs=len(outcomes), results=outcomes)


def _run_job(repo: CardRepository, job: Job, handlers: dict[str, JobHandler]) -> JobOutcome:
    job_id, job_type, batch_id, profile_id = job.id, job.type, job.batch_id, job.profile_id
    logger.info("job_started", extra={"job_id": job_id, "job_type": job_type, "batch_id": batch_id})
    try:
        handler = handlers.get(job_type)
        if handler is None:
            raise ValueError(f"Unknown job type: {job_type}")
        result = _validate_result(job_type, handler(repo, batch_id, profile_id))
    except Exception as exc:  # noqa: BLE001
        logger.exception("job_failed", extra={"job_id": job_id, "job_type": job_type})
        return _fail(repo, job_id, job_type, batch_id, str(exc) or exc.__class__.__name__, {"error": str(exc)})

    payload = result.model_dump(mode="json")
    if not result.success:
        error = "; ".join(result.errors) or "Job reported failure"
        return _fail(repo, job_id, job_type, batch_id, error, payload)
    return _complete(repo, job_id, job_type, batch_id, profile_id, result, payload)


def _validate_result(job_type: str, raw: Any) -> JobResult:
    data = raw.model_dump() if isinstance(raw, BaseModel) else raw
    result = job_result_adapter.validate_python(data)
    if result.kind != job_type:
        raise ValueError(f"Handler returned a {result.kind} result for a {job_type} job")
    return result


def derive_batch_status(result: JobResult) -> str:
    if isinstance(result, PairingResult):
        return "needs_pairing" if result.orphaned_upload_ids else "paired"
    return "ocr_complete"


def summarize(result: JobResult) -> tuple[str, dict[str, int]]:
    if isinstance(result, PairingResult):
        counts = {
            "pairs_created": result.pairs_created,
            "orphaned_count": len(result.orphaned_upload_ids),
            "error_count": len(result.errors),
        }
        return f"Pairing completed: {result.pairs_created} pairs created, {counts['orphaned_count']} orphaned", counts
    if not isinstance(result, ExtractionResult):
        raise TypeError(f"Unsupported job result: {type(result).__name__}")
    counts = {
        "cards_processed": result.cards_processed,
        "cards_created": result.cards_created,
        "error_count": len(result.errors),
    }
    return f"OCR completed: {result.cards_created} cards created, {counts['error_count']} errors", counts


def _complete(
    repo: CardRepository,
    job_id: str,
    job_type: str,
    batch_id: str,
    profile_id: str,
    result: JobResult,
    payload: dict,
) -> JobOutcome:
    message, counts = summarize(result)
    try:
        completed = repo.complete_job(job_id, payload)
    except SQLAlchemyError as exc:
        logger.exception("job_completion_failed", extra={"job_id": job_id})
        return _fail(repo, job_id, job_type, batch_id, f"Failed to record job completion: {exc}", payload)
    if not completed:
        return JobOutcome(
            job_id=job_id, batch_id=batch_id, type=job_type, status="failed", error="Job was no longer running"
        )

    try:
        status = derive_batch_status(result)
        # orphans left by an earlier run still need a manual pair
        if status == "paired" and repo.list_uploads(batch_id, profile_id, status="orphaned"):
            status = "needs_pairing"
        repo.set_batch_status(batch_id, status)
        repo.add_job_event(job_id, "info", message, payload)
        if job_type == "pairing" and status == "paired":
            _maybe_auto_extract(repo, batch_id, profile_id)
    except SQLAlchemyError:
        logger.exception("job_bookkeeping_failed", extra={"job_id": job_id, "batch_id": batch_id})

    logger.info("job_completed", extra={"job_id": job_id, "job_type": job_type, **counts})
    return JobOutcome(job_id=job_id, batch_id=batch_id, type=job_type, status="completed", summary=counts)


def _maybe_auto_extract(repo: CardRepository, batch_id: str, profile_id: str) -> None:
    if not get_settings().auto_extract_after_pairing:
        return
    if not repo.list_pairs(batch_id, profile_id, status="paired"):
        return
    enqueue_job(repo, batch_id, profile_id, "ocr")
    repo.set_batch_status(batch_id, "ocr_processing")


def _fail(repo: CardRepository, job_id: str, job_type: str, batch_id: str, error: str, data: dict) -> JobOutcome:
    label = JOB_LABELS.get(job_type, "Job")
    try:
        repo.rollback()
        if repo.fail_job(job_id, error):
            repo.set_batch_status(batch_id, "failed")
        repo.add_job_event(job_id, "error", f"{label} failed: {error}", data)
    except SQLAlchemyError:
        logger.exception("job_failure_not_recorded", extra={"job_id": job_id})
    return JobOutcome(job_id=job_id, batch_id=batch_id, type=job_type, status="failed", error=error)
