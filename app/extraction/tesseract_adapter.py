import pytesseract
from PIL import Image

from app.extraction.base import BaseOcrEngine
from app.extraction.exceptions import ExtractionError


class TesseractOcrEngine(BaseOcrEngine):
    """Recognizes text in report images with Tesseract."""

    def __init__(self, languages: str = "eng") -> None:
        self._languages = languages

    def recognize(self, image: Image.Image) -> str:
        try:
            return pytesseract.image_to_string(image, lang=self._languages)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise ExtractionError(f"tesseract OCR failed: {exc}") from exc
