from datetime import datetime

from pydantic import BaseModel


class UploadRead(BaseModel):
    id: str
    batch_id: str
    filename: str
    storage_path: str
    file_size: int
    status: str
    uploaded_at: datetime

    model_config = {"from_attributes": True}
