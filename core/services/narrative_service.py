# =============================================================================
# core/services/narrative_service.py - Narrative Pre-fill from Images
# =============================================================================
# Members often have a photo of a handwritten incident report. OCR text is
# appended to the narrative they are drafting, under a marker line, before
# the case is submitted and scored.
#
# OCR is best effort: if extraction fails or finds nothing, the narrative is
# returned unchanged and the member simply types it.
# =============================================================================

import logging

from pydantic import BaseModel

from app.exceptions import TextExtractionError
from lib.ocr import TextExtractor
from lib.utils import collapse_whitespace

logger = logging.getLogger(__name__)

OCR_MARKER = "[画像解析結果]"


class PrefillResult(BaseModel):
    """Outcome of a pre-fill attempt."""
    narrative: str
    extracted_text: str = ""
    extracted: bool = False


def append_extracted_text(existing: str, extracted: str) -> str:
    """
    Append cleaned OCR text to a narrative under the marker line.

    A blank line separates it from existing text.
    """
    block = f"{OCR_MARKER}\n{extracted}"
    return f"{existing}\n\n{block}" if existing else block


def prefill_narrative(
    existing: str | None,
    image_bytes: bytes,
    extractor: TextExtractor,
) -> PrefillResult:
    """
    Run OCR over an image and append the result to a narrative.

    Never raises for extraction problems; they are logged and the narrative
    is returned as it was.
    """
    existing = existing or ""

    try:
        raw = extractor.extract_text(image_bytes)
    except TextExtractionError as e:
        logger.warning(f"Narrative pre-fill skipped: {e.message}")
        return PrefillResult(narrative=existing)

    cleaned = collapse_whitespace(raw or "")
    if not cleaned:
        logger.info("Narrative pre-fill found no text in image")
        return PrefillResult(narrative=existing)

    return PrefillResult(
        narrative=append_extracted_text(existing, cleaned),
        extracted_text=cleaned,
        extracted=True,
    )
