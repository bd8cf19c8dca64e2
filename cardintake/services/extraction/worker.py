import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from cardintake.core.config import get_settings
from cardintake.db.repository import CardRepository
from cardintake.models.card import Card
from cardintake.models.card_pair import CardPair
from cardintake.schemas.card import CardAnalysis, ExtractionResult, ExtractionStatus
from cardintake.services import llm, storage
from cardintake.services.extraction.parsing import failed_analysis, needs_review, parse_card_analysis
from cardintake.services.llm import VisionResponse

logger = logging.getLogger(__name__)

Analyzer = Callable[[str, str | None], VisionResponse]
UrlSigner = Callable[[str], str]


class ExtractionError(RuntimeError):
    """Raised when a single pair cannot be sent to the vision model."""


def process_batch_extraction(
    repo: CardRepository,
    batch_id: str,
    profile_id: str,
    analyzer: Analyzer | None = None,
    sign_url: UrlSigner | None = None,
) -> ExtractionResult:
    """Create one Card per ``paired`` CardPair of the batch.

    Pairs that already have a Card are skipped. A pair that fails while
    signing URLs, calling the model or inserting its card is reported in
    ``errors`` and the remaining pairs still run.
    """
    try:
        pairs = repo.list_pairs(batch_id, profile_id, status="paired")
    except SQLAlchemyError as exc:
        logger.exception("extraction_load_failed", extra={"batch_id": batch_id})
        return ExtractionResult(success=False, errors=[f"Failed to load card pairs: {exc}"])

    if not pairs:
        return ExtractionResult(success=True)

    result = ExtractionResult(success=True)
    pending = [pair for pair in pairs if repo.card_for_pair(pair.id) is None]
    logger.info("extraction_started", extra={"batch_id": batch_id, "pair_count": len(pending)})

    for index, pair in enumerate(pending, start=1):
        pair_id = pair.id
        try:
            card = _extract_pair(repo, pair, analyzer, sign_url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("extraction_pair_failed", extra={"batch_id": batch_id, "pair_id": pair_id, "error": str(exc)})
            result.errors.append(f"Pair {pair_id}: {exc}")
        else:
            result.cards_processed += 1
            result.cards_created += 1
            logger.info("card_created", extra={"pair_id": pair_id, "card_id": card.id, "confidence": card.confidence})
        _update_progress(repo, batch_id, index, len(pending))

    logger.info(
        "extraction_finished",
        extra={"batch_id": batch_id, "cards_created": result.cards_created, "errors": len(result.errors)},
    )
    return result


def process_card_pair(
    repo: CardRepository,
    pair_id: str,
    profile_id: str,
    analyzer: Analyzer | None = None,
    sign_url: UrlSigner | None = None,
) -> Card:
    pair = repo.get_pair(pair_id, profile_id)
    if pair is None:
        raise ExtractionError("Card pair not found")
    existing = repo.card_for_pair(pair.id)
    if existing is not None:
        return existing
    return _extract_pair(repo, pair, analyzer, sign_url)


def _extract_pair(
    repo: CardRepository,
    pair: CardPair,
    analyzer: Analyzer | None,
    sign_url: UrlSigner | None,
) -> Card:
    analyze = analyzer or llm.analyze_card_pair
    signer = sign_url or storage.create_signed_url

    if pair.front_upload is None or not pair.front_upload.storage_path:
        raise ExtractionError("Invalid card pair structure - missing front upload or storage path")
    front_url = signer(pair.front_upload.storage_path)
    back_url = signer(pair.back_upload.storage_path) if pair.back_upload is not None else None

    response = analyze(front_url, back_url)
    analysis = parse_card_analysis(response.text)
    if analysis is None:
        analysis = failed_analysis("Analysis failed - manual review required")

    return repo.create_card(**_card_values(pair, analysis, response))


def _card_values(pair: CardPair, analysis: CardAnalysis, response: VisionResponse) -> dict:
    threshold = get_settings().review_confidence_threshold
    review = needs_review(analysis, threshold)
    title = " ".join(str(part) for part in (analysis.player_name, analysis.year) if part) or None
    return {
        "profile_id": pair.profile_id,
        "batch_id": pair.batch_id,
        "pair_id": pair.id,
        "player": analysis.player_name,
        "year": analysis.year,
        "card_number": analysis.card_number,
        "set_name": analysis.set_name,
        "brand": analysis.brand,
        "sport": analysis.sport,
        "title": title,
        "condition": analysis.estimated_condition,
        "is_graded": analysis.is_graded,
        "grading_company": analysis.grading_company,
        "grade": analysis.grade,
        "certification_number": analysis.certification_number,
        "parallel_type": analysis.parallel_type,
        "insert_type": analysis.insert_type,
        "rarity_type": analysis.rarity_type,
        "is_rookie": analysis.is_rookie_card,
        "is_autographed": analysis.is_autographed,
        "confidence": analysis.extraction_confidence,
        "needs_human_review": review,
        "status": "needs_review" if review else "ocr_complete",
        "notes": analysis.ai_notes or None,
        "ocr_raw": {
            "ai_analysis": analysis.model_dump(mode="json"),
            "raw_response": response.text,
            "model": response.model,
            "processing_time_ms": response.processing_time_ms,
            "token_usage": response.usage,
        },
    }


def _update_progress(repo: CardRepository, batch_id: str, done: int, total: int) -> None:
    try:
        repo.update_batch(batch_id, progress=round(done / total * 100))
    except SQLAlchemyError:
        logger.warning("batch_progress_update_failed", extra={"batch_id": batch_id})


def get_batch_extraction_status(repo: CardRepository, batch_id: str, profile_id: str) -> ExtractionStatus:
    pairs = repo.list_pairs(batch_id, profile_id, status="paired")
    cards = repo.list_cards(batch_id, profile_id)
    total = len(pairs)
    return ExtractionStatus(
        total_pairs=total,
        processed_cards=len(cards),
        cards_needing_review=sum(1 for c in cards if c.status == "needs_review"),
        ocr_complete=total > 0 and len(cards) >= total,
        progress_percentage=round(len(cards) / total * 100) if total else 0,
    )
