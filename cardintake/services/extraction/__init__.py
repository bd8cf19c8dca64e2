from cardintake.services.extraction.parsing import extract_json_object, parse_card_analysis
from cardintake.services.extraction.worker import (
    ExtractionError,
    get_batch_extraction_status,
    process_batch_extraction,
    process_card_pair,
)

__all__ = [
    "process_batch_extraction",
    "process_card_pair",
    "get_batch_extraction_status",
    "ExtractionError",
    "extract_json_object",
    "parse_card_analysis",
]
