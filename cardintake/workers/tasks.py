import logging

from cardintake.core.config import get_settings
from cardintake.db.repository import CardRepository
from cardintake.db.session import SessionLocal
from cardintake.schemas.job import ProcessPassResult
from cardintake.services.orchestrator import process_queued_jobs
from cardintake.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_orchestration_pass(limit: int | None = None) -> ProcessPassResult:
    db = SessionLocal()
    try:
        return process_queued_jobs(CardRepository(db), limit=limit)
    finally:
        db.close()


@celery_app.task(name="cardintake.workers.tasks.process_queued_jobs_task")
def process_queued_jobs_task(limit: int | None = None) -> dict:
    result = run_orchestration_pass(limit)
    if not result.success:
        logger.error("orchestration_pass_failed", extra={"error": result.error})
    return result.model_dump(mode="json")


def trigger_orchestration_pass() -> None:
    """Run a pass inline in eager mode, otherwise hand it to a worker."""
    if get_settings().celery_task_always_eager:
        run_orchestration_pass()
        return
    try:
        process_queued_jobs_task.delay()
    except Exception as exc:  # noqa: BLE001
        # the beat schedule picks the job up on its next tick
        logger.warning("orchestration_trigger_failed", extra={"error": str(exc)})
