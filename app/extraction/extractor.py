"""Converts uploaded checkup documents into normalized text and fields.

PDFs are read through their text layer first. Scanned PDFs, whose text layer
is shorter than ``min_text_chars``, are rasterized page by page and passed
through OCR, up to ``max_ocr_pages`` pages.
JPEG and PNG uploads always go through OCR.
"""

import io
import re
import unicodedata
from itertools import islice

from PIL import Image, UnidentifiedImageError

from app.extraction.base import BaseContentExtractor, BaseOcrEngine, BasePdfExtractor
from app.extraction.exceptions import ExtractionError, UnsupportedMimeTypeError
from app.extraction.models import ExtractedContent, ExtractionMethod
from app.logging.logger import Log

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png"})

_MAX_FIELDS = 200
_FIELD_LINE = re.compile(r"^\s*([^:：]{1,60}?)\s*[:：]\s*(\S.*?)\s*$")
_INLINE_SPACE = re.compile(r"[ \t\u00a0\u3000]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_text(raw: str) -> str:
    """NFC-normalize, collapse inline whitespace, and trim blank runs."""
    text = unicodedata.normalize("NFC", raw).replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()


def detect_fields(text: str) -> dict[str, str]:
    """Collect ``label: value`` lines; the first occurrence of a label wins."""
    fields: dict[str, str] = {}
    for line in text.split("\n"):
        match = _FIELD_LINE.match(line)
        if match is None:
            continue
        label, value = match.group(1).strip(), match.group(2)
        if label and label not in fields:
            fields[label] = value
            if len(fields) >= _MAX_FIELDS:
                break
    return fields


class ContentExtractor(BaseContentExtractor):
    """Dispatches on MIME type to the PDF extractor or the OCR engine."""

    def __init__(
        self,
        *,
        pdf_extractor: BasePdfExtractor,
        ocr_engine: BaseOcrEngine,
        min_text_chars: int = 20,
        max_ocr_pages: int = 20,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._ocr_engine = ocr_engine
        self._min_text_chars = min_text_chars
        self._max_ocr_pages = max_ocr_pages

    def extract(self, file_bytes: bytes, mime_type: str) -> ExtractedContent:
        if mime_type == PDF_MIME_TYPE:
            text, method, page_count = self._extract_pdf(file_bytes)
        elif mime_type in IMAGE_MIME_TYPES:
            text, method, page_count = self._extract_image(file_bytes), "ocr", 1
        else:
            raise UnsupportedMimeTypeError(f"No extractor for MIME type '{mime_type}'")

        normalized = normalize_text(text)
        if not normalized:
            raise ExtractionError("No readable text found in the uploaded document")

        return ExtractedContent(
            text=normalized,
            mime_type=mime_type,
            method=method,
            page_count=page_count,
            fields=detect_fields(normalized),
        )

    def _extract_pdf(self, pdf_bytes: bytes) -> tuple[str, ExtractionMethod, int]:
        pages = self._pdf_extractor.extract_pages(pdf_bytes)
        text = "\n".join(pages).strip()
        if len(text) >= self._min_text_chars:
            return text, "text", len(pages)

        Log.info(
            "PDF text layer too short, falling back to OCR",
            text_chars=len(text),
            pages=len(pages),
        )
        if len(pages) > self._max_ocr_pages:
            Log.warning(
                "Scanned PDF exceeds OCR page limit, remaining pages skipped",
                pages=len(pages),
                max_ocr_pages=self._max_ocr_pages,
            )
        images = islice(self._pdf_extractor.render_pages(pdf_bytes), self._max_ocr_pages)
        ocr_text = "\n".join(self._ocr_engine.recognize(image) for image in images).strip()
        if len(ocr_text) > len(text):
            return ocr_text, "ocr", len(pages)
        return text, "text", len(pages)

    def _extract_image(self, image_bytes: bytes) -> str:
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image.load()
                return self._ocr_engine.recognize(image.convert("RGB"))
        except (UnidentifiedImageError, OSError) as exc:
            raise ExtractionError(f"Cannot decode image: {exc}") from exc
