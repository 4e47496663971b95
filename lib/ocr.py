# =============================================================================
# lib/ocr.py - Text Extraction Adapter
# =============================================================================
# Thin adapter over the Tesseract OCR engine, used to pre-populate a case
# narrative from a photo or scan of a written incident report.
#
# Anything that implements TextExtractor can be swapped in (tests use a
# stub); the rest of the application never imports pytesseract directly.
# =============================================================================

from __future__ import annotations

import io
import logging
from typing import Protocol

import pytesseract
from PIL import Image, UnidentifiedImageError

from app.exceptions import TextExtractionError

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """Anything that can turn image bytes into text."""

    def extract_text(self, image_bytes: bytes) -> str:
        ...


class TesseractTextExtractor:
    """
    TextExtractor backed by the local Tesseract binary.

    Args:
        language: Tesseract language pack, "jpn" for handwritten/printed Japanese
    """

    def __init__(self, language: str = "jpn"):
        self.language = language

    def extract_text(self, image_bytes: bytes) -> str:
        """
        Run OCR over an image.

        Raises:
            TextExtractionError: If the bytes are not a decodable image or Tesseract fails
        """
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                text = pytesseract.image_to_string(image, lang=self.language)
        except UnidentifiedImageError as e:
            raise TextExtractionError(f"not a readable image: {e}")
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            logger.error(f"Tesseract failed: {e}")
            raise TextExtractionError(str(e))
        except (OSError, SyntaxError, Image.DecompressionBombError) as e:
            # Truncated or corrupt data only surfaces once pixels are decoded
            logger.warning(f"Could not decode image for OCR: {e}")
            raise TextExtractionError(f"not a readable image: {e}")

        logger.debug(f"Extracted {len(text)} characters via OCR ({self.language})")
        return text
