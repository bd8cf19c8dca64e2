from cardintake.schemas.batch import BatchCreateResponse, BatchRead, BatchSummary
from cardintake.schemas.card import CardAnalysis, CardRead, ExtractionResult, ExtractionStatus
from cardintake.schemas.job import (
    EnqueueResponse,
    JobDetail,
    JobEventRead,
    JobOutcome,
    JobRead,
    JobResult,
    ProcessPassResult,
    job_result_adapter,
)
from cardintake.schemas.pairing import ManualPairRequest, PairingResult, PairingStatus, PairRead
from cardintake.schemas.upload import UploadRead

__all__ = [
    "BatchCreateResponse",
    "BatchRead",
    "BatchSummary",
    "UploadRead",
    "PairingResult",
    "ManualPairRequest",
    "PairRead",
    "PairingStatus",
    "CardAnalysis",
    "CardRead",
    "ExtractionResult",
    "ExtractionStatus",
    "JobResult",
    "job_result_adapter",
    "JobRead",
    "JobDetail",
    "JobEventRead",
    "JobOutcome",
    "EnqueueResponse",
    "ProcessPassResult",
]
