from celery import Celery

from cardintake.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "cardintake",
    broker=settings.get_celery_broker_url(),
    backend=settings.get_celery_result_backend(),
    include=["cardintake.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.celery_task_always_eager,
)

celery_app.conf.beat_schedule = {
    "process-queued-jobs": {
        "task": "cardintake.workers.tasks.process_queued_jobs_task",
        "schedule": float(settings.job_poll_interval_seconds),
    }
}
