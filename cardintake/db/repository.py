"""SQLAlchemy-backed persistence port shared by intake, pairing, orchestration and extraction.

Every write commits on its own. A failing write is rolled back and re-raised,
leaving earlier writes in place; callers decide whether the failure is local
(collected into a result) or fatal.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cardintake.models.batch import Batch
from cardintake.models.card import Card
from cardintake.models.card_pair import CardPair
from cardintake.models.common import utcnow
from cardintake.models.job import ACTIVE_JOB_STATUSES, JOB_TYPES, Job, JobEvent
from cardintake.models.upload import Upload

logger = logging.getLogger(__name__)


class CardRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # batches

    def create_batch(self, profile_id: str, name: str, note: str | None = None) -> Batch:
        batch = Batch(profile_id=profile_id, name=name, note=note, status="uploaded", total_files=0, progress=0)
        self.db.add(batch)
        self._commit()
        return batch

    def get_batch(self, batch_id: str, profile_id: str | None = None) -> Batch | None:
        stmt = select(Batch).where(Batch.id == batch_id)
        if profile_id is not None:
            stmt = stmt.where(Batch.profile_id == profile_id)
        return self.db.scalar(stmt)

    def list_batches(self, profile_id: str, status: str | None = None, limit: int = 20, offset: int = 0) -> list[Batch]:
        stmt = select(Batch).where(Batch.profile_id == profile_id)
        if status:
            stmt = stmt.where(Batch.status == status)
        stmt = stmt.order_by(Batch.created_at.desc()).offset(offset).limit(limit)
        return list(self.db.scalars(stmt).all())

    def batch_counts(self, batch_id: str) -> dict[str, int]:
        uploads = self.db.scalar(select(func.count(Upload.id)).where(Upload.batch_id == batch_id)) or 0
        pairs = self.db.scalar(select(func.count(CardPair.id)).where(CardPair.batch_id == batch_id)) or 0
        cards = self.db.scalar(select(func.count(Card.id)).where(Card.batch_id == batch_id)) or 0
        return {"upload_count": int(uploads), "pair_count": int(pairs), "card_count": int(cards)}

    def update_batch(self, batch_id: str, **values: Any) -> None:
        self.db.execute(update(Batch).where(Batch.id == batch_id).values(**values, updated_at=utcnow()))
        self._commit()

    def set_batch_status(self, batch_id: str, status: str) -> None:
        self.update_batch(batch_id, status=status)

    def delete_batch(self, batch_id: str) -> None:
        batch = self.db.get(Batch, batch_id)
        if batch is not None:
            self.db.delete(batch)
            self._commit()

    # uploads

    def add_uploads(self, rows: Iterable[dict[str, Any]]) -> list[Upload]:
        uploads = [Upload(status="uploaded", **row) for row in rows]
        self.db.add_all(uploads)
        self._commit()
        return uploads

    def list_uploads(self, batch_id: str, profile_id: str, status: str | None = None) -> list[Upload]:
        stmt = select(Upload).where(Upload.batch_id == batch_id, Upload.profile_id == profile_id)
        if status:
            stmt = stmt.where(Upload.status == status)
        return list(self.db.scalars(stmt.order_by(Upload.filename.asc(), Upload.id.asc())).all())

    def get_uploads(self, batch_id: str, profile_id: str, upload_ids: Sequence[str]) -> list[Upload]:
        stmt = select(Upload).where(
            Upload.batch_id == batch_id,
            Upload.profile_id == profile_id,
            Upload.id.in_(list(upload_ids)),
        )
        return list(self.db.scalars(stmt).all())

    def set_upload_status(self, upload_ids: Sequence[str], status: str) -> None:
        if not upload_ids:
            return
        self.db.execute(
            update(Upload)
            .where(Upload.id.in_(list(upload_ids)))
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._commit()

    # pairs

    def create_pair(
        self,
        batch_id: str,
        profile_id: str,
        front_upload_id: str,
        back_upload_id: str | None,
        method: str,
        confidence: float,
    ) -> CardPair:
        pair = CardPair(
            batch_id=batch_id,
            profile_id=profile_id,
            front_upload_id=front_upload_id,
            back_upload_id=back_upload_id,
            status="paired",
            method=method,
            confidence=confidence,
        )
        self.db.add(pair)
        self._commit()
        return pair

    def list_pairs(self, batch_id: str, profile_id: str, status: str | None = None) -> list[CardPair]:
        stmt = select(CardPair).where(CardPair.batch_id == batch_id, CardPair.profile_id == profile_id)
        if status:
            stmt = stmt.where(CardPair.status == status)
        return list(self.db.scalars(stmt.order_by(CardPair.created_at.asc())).all())

    def get_pair(self, pair_id: str, profile_id: str) -> CardPair | None:
        return self.db.scalar(select(CardPair).where(CardPair.id == pair_id, CardPair.profile_id == profile_id))

    def pairs_touching(self, upload_ids: Sequence[str]) -> list[CardPair]:
        ids = list(upload_ids)
        stmt = select(CardPair).where(CardPair.front_upload_id.in_(ids) | CardPair.back_upload_id.in_(ids))
        return list(self.db.scalars(stmt).all())

    # cards

    def create_card(self, **values: Any) -> Card:
        card = Card(**values)
        self.db.add(card)
        self._commit()
        return card

    def card_for_pair(self, pair_id: str) -> Card | None:
        return self.db.scalar(select(Card).where(Card.pair_id == pair_id))

    def list_cards(self, batch_id: str, profile_id: str) -> list[Card]:
        stmt = select(Card).where(Card.batch_id == batch_id, Card.profile_id == profile_id)
        return list(self.db.scalars(stmt.order_by(Card.created_at.asc())).all())

    # jobs

    def create_job(self, batch_id: str, profile_id: str, job_type: str) -> Job:
        job = Job(
            batch_id=batch_id,
            profile_id=profile_id,
            type=job_type,
            status="queued",
            payload={"batch_id": batch_id},
            attempts=0,
        )
        self.db.add(job)
        self._commit()
        return job

    def find_active_job(self, batch_id: str, job_type: str) -> Job | None:
        stmt = (
            select(Job)
            .where(Job.batch_id == batch_id, Job.type == job_type, Job.status.in_(ACTIVE_JOB_STATUSES))
            .order_by(Job.created_at.desc())
            .limit(1)
        )
        return self.db.scalar(stmt)

    def get_job(self, job_id: str) -> Job | None:
        return self.db.scalar(select(Job).where(Job.id == job_id))

    def list_recent_jobs(self, limit: int = 20, profile_id: str | None = None) -> list[Job]:
        stmt = select(Job)
        if profile_id is not None:
            stmt = stmt.where(Job.profile_id == profile_id)
        return list(self.db.scalars(stmt.order_by(Job.created_at.desc()).limit(limit)).all())

    def claim_next_batch(self, limit: int) -> list[Job]:
        """Atomically move up to ``limit`` queued jobs to ``running``, oldest first.

        A job is only returned when this call's conditional update flipped it
        from ``queued``; a concurrent pass that got there first wins the row.
        """
        candidate_ids = list(
            self.db.scalars(
                select(Job.id)
                .where(Job.type.in_(JOB_TYPES), Job.status == "queued")
                .order_by(Job.created_at.asc())
                .limit(limit)
                .with_for_update(skip_locked=True)
            ).all()
        )
        claimed: list[str] = []
        now = utcnow()
        for job_id in candidate_ids:
            outcome = self.db.execute(
                update(Job)
                .where(Job.id == job_id, Job.status == "queued")
                .values(status="running", started_at=now, updated_at=now, attempts=Job.attempts + 1)
                .execution_options(synchronize_session=False)
            )
            if outcome.rowcount == 1:
                claimed.append(job_id)
        self._commit()
        if not claimed:
            return []
        stmt = (
            select(Job)
            .where(Job.id.in_(claimed))
            .order_by(Job.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(self.db.scalars(stmt).all())

    def complete_job(self, job_id: str, result: dict[str, Any]) -> bool:
        return self._finish_job(job_id, status="completed", result=result)

    def fail_job(self, job_id: str, error: str, result: dict[str, Any] | None = None) -> bool:
        return self._finish_job(job_id, status="failed", error=error, result=result)

    def _finish_job(self, job_id: str, **values: Any) -> bool:
        now = utcnow()
        outcome = self.db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == "running")
            .values(completed_at=now, updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        self._commit()
        if outcome.rowcount != 1:
            logger.warning("job_finish_skipped", extra={"job_id": job_id, "target_status": values.get("status")})
            return False
        return True

    def add_job_event(self, job_id: str, level: str, message: str, data: dict[str, Any] | None = None) -> JobEvent:
        event = JobEvent(job_id=job_id, level=level, message=message, data=data or {})
        self.db.add(event)
        self._commit()
        return event

    def list_job_events(self, job_id: str) -> list[JobEvent]:
        return list(self.db.scalars(select(JobEvent).where(JobEvent.job_id == job_id).order_by(JobEvent.at.asc())).all())
