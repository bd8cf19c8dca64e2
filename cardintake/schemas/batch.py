from datetime import datetime

from pydantic import BaseModel, Field

from cardintake.schemas.upload import UploadRead


class BatchRead(BaseModel):
    id: str
    name: str
    note: str | None = None
    status: str
    total_files: int
    progress: int
    created_at: datetime

    model_config = {"from_attributes": True}


class BatchSummary(BatchRead):
    upload_count: int = 0
    pair_count: int = 0
    card_count: int = 0


class BatchCreateResponse(BaseModel):
    batch: BatchRead
    uploads: list[UploadRead] = Field(default_factory=list)
    job_id: str | None = None
