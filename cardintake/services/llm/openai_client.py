import time
from dataclasses import dataclass, field

from openai import OpenAI

from cardintake.core.config import get_settings

CARD_PAIR_PROMPT = """Analyze both images of this sports card (front and back) and extract all information in JSON format.

FRONT IMAGE: usually shows player photo, name, team, position.
BACK IMAGE: usually shows stats, copyright, card number, set details.

YEAR: look for the copyright symbol, often on the BACK image ("(c) 1993 Classic Games" = 1993).
SET NAME: product/series name, check BOTH images ("Classic Draft Picks", "Donruss Optic", "Prizm").
CARD NUMBER: small dedicated numbers, often in BACK image corners. Ignore jersey numbers, stats and years.
PLAYER NAME: full name as displayed, usually on the FRONT.
BRAND: manufacturer from copyright lines or logos on either image.

GRADING: look for slabs around the card (PSA red label, BGS colored labels, SGC black/gold labels).
Certification numbers are 8-11 digit codes on the label; grades look like "9", "10", "9.5".

PARALLEL/INSERT: Base, Prizm, Optic, Refractor, Preview, or named inserts such as Red Zone or Downtown.
ROOKIE: "RC", "Rookie", "Rated Rookie" text or logos.

Combine information from BOTH images. Return only this JSON:
{
  "player_name": "Full Name",
  "year": 2024,
  "card_number": "379",
  "set_name": "Donruss Optic",
  "brand": "Panini",
  "sport": "football",
  "rarity_type": "Preview",
  "parallel_type": "Blue Scope Prizm",
  "insert_type": "Preview",
  "is_rookie_card": true,
  "is_autographed": false,
  "is_memorabilia": false,
  "is_numbered": false,
  "serial_number": null,
  "is_graded": true,
  "grading_company": "PSA",
  "grade": "9",
  "certification_number": "115206587",
  "estimated_condition": "Mint",
  "extraction_confidence": 0.90,
  "ai_notes": "Graded PSA 9 Optic Preview Blue Scope Prizm rookie card"
}"""


@dataclass(slots=True)
class VisionResponse:
    text: str
    model: str
    processing_time_ms: int
    usage: dict = field(default_factory=dict)


def analyze_card_pair(front_url: str, back_url: str | None) -> VisionResponse:
    """Send one request carrying both card images and return the raw model text."""
    settings = get_settings()
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not configured.")

    client_kwargs = {"api_key": settings.openai_api_key}
    if settings.openai_timeout_seconds is not None:
        client_kwargs["timeout"] = settings.openai_timeout_seconds
    client = OpenAI(**client_kwargs)

    content = [{"type": "text", "text": CARD_PAIR_PROMPT}]
    for url in (front_url, back_url):
        if url:
            content.append({"type": "image_url", "image_url": {"url": url, "detail": "low"}})

    started = time.monotonic()
    completion = client.chat.completions.create(
        model=settings.openai_model,
        messages=[{"role": "user", "content": content}],
        max_tokens=settings.openai_max_tokens,
        temperature=0.1,
    )
    elapsed_ms = int((time.monotonic() - started) * 1000)

    text = completion.choices[0].message.content if completion.choices else None
    if not text:
        raise ValueError("No response content from the vision model")
    usage = completion.usage.model_dump() if completion.usage else {}
    return VisionResponse(text=text, model=completion.model or settings.openai_model, processing_time_ms=elapsed_ms, usage=usage)
