import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXTRACTION_CONFIDENCE = 0.5


def _optional_text(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


class CardAnalysis(BaseModel):
    """Fields recognized in the vision model's JSON answer.

    Validation never rejects a payload: malformed values fall back to
    ``None`` (or ``False``/``[]``) so a half-usable answer still yields a card.
    """

    player_name: str | None = None
    year: int | None = None
    card_number: str | None = None
    set_name: str | None = None
    brand: str | None = None
    sport: str | None = None

    rarity_type: str | None = None
    parallel_type: str | None = None
    insert_type: str | None = None
    rarity_indicators: list[str] = Field(default_factory=list)
    is_rookie_card: bool = False
    is_autographed: bool = False
    is_memorabilia: bool = False
    is_numbered: bool = False
    serial_number: str | None = None

    is_graded: bool = False
    grading_company: str | None = None
    grade: str | None = None
    certification_number: str | None = None

    condition_notes: list[str] = Field(default_factory=list)
    estimated_condition: str | None = None

    extraction_confidence: float = DEFAULT_EXTRACTION_CONFIDENCE
    needs_human_review: bool = False
    ai_notes: str = ""

    @field_validator(
        "player_name",
        "card_number",
        "set_name",
        "brand",
        "sport",
        "rarity_type",
        "parallel_type",
        "insert_type",
        "serial_number",
        "grading_company",
        "grade",
        "certification_number",
        "estimated_condition",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> int | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else None
        if isinstance(value, str):
            digits = value.strip()[:4]
            return int(digits) if digits.isdigit() else None
        return None

    @field_validator("rarity_indicators", "condition_notes", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]

    @field_validator(
        "is_rookie_card",
        "is_autographed",
        "is_memorabilia",
        "is_numbered",
        "is_graded",
        "needs_human_review",
        mode="before",
    )
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "yes", "1"}
        return bool(value)

    @field_validator("extraction_confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        if isinstance(value, bool) or value is None:
            return DEFAULT_EXTRACTION_CONFIDENCE
        try:
            number = float(value)
        except (TypeError, ValueError):
            return DEFAULT_EXTRACTION_CONFIDENCE
        if not math.isfinite(number):
            return DEFAULT_EXTRACTION_CONFIDENCE
        return max(0.0, min(number, 1.0))

    @field_validator("ai_notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> str:
        return _optional_text(value) or ""


class ExtractionResult(BaseModel):
    kind: Literal["ocr"] = "ocr"
    success: bool
    cards_processed: int = 0
    cards_created: int = 0
    errors: list[str] = Field(default_factory=list)


class ExtractionStatus(BaseModel):
    total_pairs: int
    processed_cards: int
    cards_needing_review: int
    ocr_complete: bool
    progress_percentage: int


class CardRead(BaseModel):
    id: str
    batch_id: str
    pair_id: str
    player: str | None
    year: int | None
    card_number: str | None
    set_name: str | None
    brand: str | None
    sport: str | None
    title: str | None
    condition: str | None
    is_graded: bool
    grading_company: str | None
    grade: str | None
    certification_number: str | None
    parallel_type: str | None
    insert_type: str | None
    rarity_type: str | None
    is_rookie: bool
    is_autographed: bool
    confidence: float
    needs_human_review: bool
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
