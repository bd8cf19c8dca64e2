from typing import Literal

from pydantic import BaseModel, Field

from cardintake.schemas.upload import UploadRead


class PairingResult(BaseModel):
    kind: Literal["pairing"] = "pairing"
    success: bool
    pairs_created: int = 0
    orphaned_upload_ids: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class ManualPairRequest(BaseModel):
    front_upload_id: str
    back_upload_id: str | None = None


class PairRead(BaseModel):
    id: str
    batch_id: str
    front_upload_id: str
    back_upload_id: str | None
    status: str
    method: str
    confidence: float

    model_config = {"from_attributes": True}


class PairingStatus(BaseModel):
    total_uploads: int
    paired_uploads: int
    orphaned_uploads: int
    pairs_created: int
    pairs: list[PairRead] = Field(default_factory=list)
    orphaned_files: list[UploadRead] = Field(default_factory=list)
