from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from cardintake.db.repository import CardRepository
from cardintake.db.session import get_db
from cardintake.models.batch import Batch


def get_profile_id(x_profile_id: str | None = Header(default=None)) -> str:
    profile_id = (x_profile_id or "").strip()
    if not profile_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing profile")
    return profile_id


def get_repository(db: Session = Depends(get_db)) -> CardRepository:
    return CardRepository(db)


def get_owned_batch(
    batch_id: str,
    repo: CardRepository = Depends(get_repository),
    profile_id: str = Depends(get_profile_id),
) -> Batch:
    batch = repo.get_batch(batch_id, profile_id)
    if not batch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    return batch
