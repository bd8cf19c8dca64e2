import logging

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from cardintake.core.config import get_settings
from cardintake.db.repository import CardRepository
from cardintake.models.batch import Batch
from cardintake.models.job import Job
from cardintake.models.upload import Upload
from cardintake.services.orchestrator import enqueue_job
from cardintake.services.storage import build_storage_path, delete_batch_files, save_upload_file, validate_image

logger = logging.getLogger(__name__)


def unique_files(files: list[UploadFile]) -> list[UploadFile]:
    """Drop repeated form entries carrying the same filename and size."""
    seen: set[tuple[str, int | None]] = set()
    unique: list[UploadFile] = []
    for file in files:
        key = (file.filename or "", file.size)
        if key in seen:
            continue
        seen.add(key)
        unique.append(file)
    return unique


async def ingest_batch(
    repo: CardRepository,
    profile_id: str,
    files: list[UploadFile],
    name: str | None = None,
    note: str | None = None,
) -> tuple[Batch, list[Upload], Job | None]:
    """Store a batch of card scans and queue its pairing job.

    A storage or insert failure removes the stored files and the batch row so
    a half-written batch is never left behind.
    """
    settings = get_settings()
    files = unique_files(files)
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files provided")
    if len(files) > settings.max_batch_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Batch size exceeds maximum of {settings.max_batch_size} images",
        )
    for file in files:
        validate_image(file)

    batch = repo.create_batch(profile_id, name or "Untitled Batch", note)
    batch_id = batch.id
    try:
        rows = []
        for file in files:
            filename = file.filename or ""
            storage_path = build_storage_path(profile_id, batch_id, filename)
            size = await save_upload_file(file, storage_path)
            rows.append(
                {
                    "profile_id": profile_id,
                    "batch_id": batch_id,
                    "filename": filename,
                    "storage_path": storage_path,
                    "mime_type": file.content_type,
                    "file_size": size,
                }
            )
        uploads = repo.add_uploads(rows)
    except (HTTPException, OSError, SQLAlchemyError):
        logger.exception("batch_ingest_failed", extra={"batch_id": batch_id})
        delete_batch_files(profile_id, batch_id)
        repo.rollback()
        repo.delete_batch(batch_id)
        raise

    repo.update_batch(batch_id, status="processing", progress=100, total_files=len(uploads))
    logger.info("batch_ingested", extra={"batch_id": batch_id, "upload_count": len(uploads)})

    job = None
    try:
        job, _ = enqueue_job(repo, batch_id, profile_id, "pairing")
    except SQLAlchemyError:
        logger.exception("pairing_enqueue_failed", extra={"batch_id": batch_id})

    return repo.get_batch(batch_id), uploads, job
