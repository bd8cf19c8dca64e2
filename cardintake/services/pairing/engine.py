import logging

from sqlalchemy.exc import SQLAlchemyError

from cardintake.db.repository import CardRepository
from cardintake.schemas.pairing import PairingResult, PairingStatus, PairRead
from cardintake.schemas.upload import UploadRead
from cardintake.services.pairing.strategies import PairCandidate, UploadRef, match_by_filename, match_by_sequence

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 1.0


class PairingError(ValueError):
    """Raised when a manual pairing request cannot be honoured."""


def pair_batch(repo: CardRepository, batch_id: str, profile_id: str) -> PairingResult:
    """Pair every ``uploaded`` upload of a batch, orphaning what neither strategy matches.

    Uploads already ``paired`` or ``orphaned`` are never reconsidered, so the
    call is safe to repeat. A pair whose insert fails is reported in
    ``errors`` and its uploads stay ``uploaded`` for the next run.
    """
    try:
        uploads = repo.list_uploads(batch_id, profile_id, status="uploaded")
    except SQLAlchemyError as exc:
        logger.exception("pairing_load_failed", extra={"batch_id": batch_id})
        return PairingResult(success=False, errors=[f"Failed to load uploads: {exc}"])

    if not uploads:
        return PairingResult(success=True)

    result = PairingResult(success=True)
    remaining = [UploadRef(id=u.id, filename=u.filename) for u in uploads]
    remaining = _reconcile_paired(repo, batch_id, remaining, result.errors)
    if not remaining:
        return result
    logger.info("pairing_started", extra={"batch_id": batch_id, "upload_count": len(remaining)})

    filename_pairs = match_by_filename(remaining)
    result.pairs_created += _persist_pairs(repo, batch_id, profile_id, filename_pairs, result.errors)
    remaining = _without(remaining, filename_pairs)

    if len(remaining) >= 2:
        sequential_pairs = match_by_sequence(remaining)
        result.pairs_created += _persist_pairs(repo, batch_id, profile_id, sequential_pairs, result.errors)
        remaining = _without(remaining, sequential_pairs)

    orphaned = [u.id for u in remaining]
    if orphaned:
        try:
            repo.set_upload_status(orphaned, "orphaned")
            result.orphaned_upload_ids = orphaned
        except SQLAlchemyError as exc:
            result.errors.append(f"Failed to mark orphaned uploads: {exc}")

    logger.info(
        "pairing_finished",
        extra={
            "batch_id": batch_id,
            "pairs_created": result.pairs_created,
            "orphaned": len(result.orphaned_upload_ids),
            "errors": len(result.errors),
        },
    )
    return result


def _persist_pairs(
    repo: CardRepository,
    batch_id: str,
    profile_id: str,
    candidates: list[PairCandidate],
    errors: list[str],
) -> int:
    created = 0
    for candidate in candidates:
        try:
            repo.create_pair(
                batch_id=batch_id,
                profile_id=profile_id,
                front_upload_id=candidate.front.id,
                back_upload_id=candidate.back.id,
                method=candidate.method,
                confidence=candidate.confidence,
            )
        except SQLAlchemyError as exc:
            logger.warning("pair_insert_failed", extra={"batch_id": batch_id, "method": candidate.method})
            errors.append(f"Failed to create {candidate.method} pair {candidate.front.filename} + {candidate.back.filename}: {exc}")
            continue
        created += 1
        try:
            repo.set_upload_status([candidate.front.id, candidate.back.id], "paired")
        except SQLAlchemyError as exc:
            errors.append(f"Failed to update upload statuses: {exc}")
    return created


def _reconcile_paired(
    repo: CardRepository,
    batch_id: str,
    uploads: list[UploadRef],
    errors: list[str],
) -> list[UploadRef]:
    """Take uploads that already sit in a CardPair out of the pool and mark them ``paired``."""
    ids = [u.id for u in uploads]
    try:
        pairs = repo.pairs_touching(ids)
    except SQLAlchemyError as exc:
        errors.append(f"Failed to load existing pairs: {exc}")
        return uploads
    if not pairs:
        return uploads

    taken = {pair.front_upload_id for pair in pairs} | {pair.back_upload_id for pair in pairs if pair.back_upload_id}
    stale = [upload_id for upload_id in ids if upload_id in taken]
    try:
        repo.set_upload_status(stale, "paired")
    except SQLAlchemyError as exc:
        errors.append(f"Failed to update upload statuses: {exc}")
    logger.info("pairing_reconciled", extra={"batch_id": batch_id, "upload_count": len(stale)})
    return [u for u in uploads if u.id not in taken]


def _without(uploads: list[UploadRef], pairs: list[PairCandidate]) -> list[UploadRef]:
    taken = {ref.id for pair in pairs for ref in (pair.front, pair.back)}
    return [u for u in uploads if u.id not in taken]


def create_manual_pair(
    repo: CardRepository,
    batch_id: str,
    profile_id: str,
    front_upload_id: str,
    back_upload_id: str | None = None,
) -> PairRead:
    if back_upload_id is not None and back_upload_id == front_upload_id:
        raise PairingError("Front and back must be different uploads")

    wanted = [front_upload_id] + ([back_upload_id] if back_upload_id else [])
    uploads = repo.get_uploads(batch_id, profile_id, wanted)
    if len(uploads) != len(wanted):
        raise PairingError("Invalid upload IDs")
    if any(u.status == "deleted" for u in uploads):
        raise PairingError("Deleted uploads cannot be paired")
    if repo.pairs_touching(wanted):
        raise PairingError("Upload already belongs to a pair")

    pair = repo.create_pair(
        batch_id=batch_id,
        profile_id=profile_id,
        front_upload_id=front_upload_id,
        back_upload_id=back_upload_id,
        method="manual",
        confidence=MANUAL_CONFIDENCE,
    )
    repo.set_upload_status(wanted, "paired")

    if not repo.list_uploads(batch_id, profile_id, status="orphaned"):
        repo.set_batch_status(batch_id, "paired")

    logger.info("manual_pair_created", extra={"batch_id": batch_id, "pair_id": pair.id})
    return PairRead.model_validate(pair)


def get_batch_pairing_status(repo: CardRepository, batch_id: str, profile_id: str) -> PairingStatus:
    uploads = repo.list_uploads(batch_id, profile_id)
    pairs = repo.list_pairs(batch_id, profile_id)
    orphaned = [u for u in uploads if u.status == "orphaned"]
    return PairingStatus(
        total_uploads=len(uploads),
        paired_uploads=sum(1 for u in uploads if u.status == "paired"),
        orphaned_uploads=len(orphaned),
        pairs_created=len(pairs),
        pairs=[PairRead.model_validate(p) for p in pairs],
        orphaned_files=[UploadRead.model_validate(u) for u in orphaned],
    )
