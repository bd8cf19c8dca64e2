from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from cardintake.schemas.card import ExtractionResult
from cardintake.schemas.pairing import PairingResult

JobResult = Annotated[Union[PairingResult, ExtractionResult], Field(discriminator="kind")]
job_result_adapter: TypeAdapter[JobResult] = TypeAdapter(JobResult)


class JobEventRead(BaseModel):
    id: str
    level: str
    message: str
    data: dict
    at: datetime

    model_config = {"from_attributes": True}


class JobRead(BaseModel):
    id: str
    batch_id: str
    type: str
    status: str
    attempts: int
    error: str | None
    result: dict | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class JobDetail(JobRead):
    events: list[JobEventRead] = Field(default_factory=list)


class EnqueueResponse(BaseModel):
    job_id: str
    type: Literal["pairing", "ocr"]
    status: str
    reused: bool


class JobOutcome(BaseModel):
    job_id: str
    batch_id: str
    type: str
    status: Literal["completed", "failed"]
    summary: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class ProcessPassResult(BaseModel):
    success: bool
    processed_jobs: int = 0
    results: list[JobOutcome] = Field(default_factory=list)
    error: str | None = None
