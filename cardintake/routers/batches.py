from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from cardintake.db.repository import CardRepository
from cardintake.models.batch import BATCH_STATUSES, Batch
from cardintake.routers.deps import get_owned_batch, get_profile_id, get_repository
from cardintake.schemas.batch import BatchCreateResponse, BatchRead, BatchSummary
from cardintake.schemas.card import CardRead, ExtractionStatus
from cardintake.schemas.job import EnqueueResponse
from cardintake.schemas.pairing import ManualPairRequest, PairingStatus, PairRead
from cardintake.schemas.upload import UploadRead
from cardintake.services.extraction import get_batch_extraction_status
from cardintake.services.intake import ingest_batch
from cardintake.services.orchestrator import enqueue_job
from cardintake.services.pairing import PairingError, create_manual_pair, get_batch_pairing_status
from cardintake.workers.tasks import trigger_orchestration_pass

router = APIRouter(prefix="/batches", tags=["batches"])

OCR_READY_STATUSES = {"paired", "ocr_complete"}


def _summary(repo: CardRepository, batch: Batch) -> BatchSummary:
    return BatchSummary(**BatchRead.model_validate(batch).model_dump(), **repo.batch_counts(batch.id))


@router.post("", response_model=BatchCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_batch(
    files: list[UploadFile] = File(...),
    name: str | None = Form(default=None),
    note: str | None = Form(default=None),
    repo: CardRepository = Depends(get_repository),
    profile_id: str = Depends(get_profile_id),
) -> BatchCreateResponse:
    batch, uploads, job = await ingest_batch(repo, profile_id, files, name=name, note=note)
    response = BatchCreateResponse(
        batch=BatchRead.model_validate(batch),
        uploads=[UploadRead.model_validate(u) for u in uploads],
        job_id=job.id if job else None,
    )
    if job is not None:
        trigger_orchestration_pass()
    return response


@router.get("", response_model=list[BatchSummary])
def list_batches(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 20,
    offset: int = 0,
    repo: CardRepository = Depends(get_repository),
    profile_id: str = Depends(get_profile_id),
) -> list[BatchSummary]:
    if status_filter and status_filter not in BATCH_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown batch status")
    batches = repo.list_batches(profile_id, status=status_filter, limit=min(max(limit, 1), 100), offset=max(offset, 0))
    return [_summary(repo, batch) for batch in batches]


@router.get("/{batch_id}", response_model=BatchSummary)
def get_batch(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> BatchSummary:
    return _summary(repo, batch)


@router.post("/{batch_id}/pair", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def enqueue_pairing(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> EnqueueResponse:
    job, created = enqueue_job(repo, batch.id, batch.profile_id, "pairing")
    response = EnqueueResponse(job_id=job.id, type="pairing", status=job.status, reused=not created)
    trigger_orchestration_pass()
    return response


@router.get("/{batch_id}/pair", response_model=PairingStatus)
def pairing_status(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> PairingStatus:
    return get_batch_pairing_status(repo, batch.id, batch.profile_id)


@router.post("/{batch_id}/manual-pair", response_model=PairRead, status_code=status.HTTP_201_CREATED)
def manual_pair(
    payload: ManualPairRequest,
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> PairRead:
    try:
        return create_manual_pair(repo, batch.id, batch.profile_id, payload.front_upload_id, payload.back_upload_id)
    except PairingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/{batch_id}/ocr", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def enqueue_extraction(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> EnqueueResponse:
    batch_id, profile_id = batch.id, batch.profile_id
    if batch.status not in OCR_READY_STATUSES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Batch must be paired before OCR processing")
    if not repo.list_pairs(batch_id, profile_id, status="paired"):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No card pairs found for OCR processing")

    job, created = enqueue_job(repo, batch_id, profile_id, "ocr")
    repo.set_batch_status(batch_id, "ocr_processing")
    response = EnqueueResponse(job_id=job.id, type="ocr", status=job.status, reused=not created)
    trigger_orchestration_pass()
    return response


@router.get("/{batch_id}/ocr", response_model=ExtractionStatus)
def extraction_status(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> ExtractionStatus:
    return get_batch_extraction_status(repo, batch.id, batch.profile_id)


@router.get("/{batch_id}/cards", response_model=list[CardRead])
def list_cards(
    batch: Batch = Depends(get_owned_batch),
    repo: CardRepository = Depends(get_repository),
) -> list[CardRead]:
    return [CardRead.model_validate(card) for card in repo.list_cards(batch.id, batch.profile_id)]
