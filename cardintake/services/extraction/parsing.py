import json
import logging

from pydantic import ValidationError

from cardintake.schemas.card import CardAnalysis

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> dict | None:
    """Return the first balanced ``{...}`` block in ``text`` decoded as a dict.

    Braces inside JSON strings are ignored, so prose around the object and
    values such as ``"notes": "see {front}"`` do not confuse the scan.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                try:
                    parsed = json.loads(text[start : index + 1])
                except json.JSONDecodeError:
                    return None
                return parsed if isinstance(parsed, dict) else None
    return None


def parse_card_analysis(text: str) -> CardAnalysis | None:
    payload = extract_json_object(text or "")
    if payload is None:
        logger.warning("card_analysis_unparseable", extra={"raw_response": text})
        return None
    try:
        return CardAnalysis.model_validate(payload)
    except ValidationError:
        logger.warning("card_analysis_invalid", extra={"raw_response": text})
        return None


def failed_analysis(reason: str) -> CardAnalysis:
    return CardAnalysis(extraction_confidence=0.0, needs_human_review=True, ai_notes=reason)


def needs_review(analysis: CardAnalysis, threshold: float) -> bool:
    return analysis.needs_human_review or analysis.extraction_confidence < threshold
