import io
from collections.abc import Iterator

import pdfplumber
from PIL import Image

from app.extraction.base import BasePdfExtractor
from app.extraction.exceptions import ExtractionError


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise ExtractionError(f"pdfplumber extraction failed: {exc}") from exc

    def render_pages(self, pdf_bytes: bytes, dpi: int = 300) -> Iterator[Image.Image]:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                for page in pdf.pages:
                    yield page.to_image(resolution=dpi).original.convert("RGB")
        except Exception as exc:
            raise ExtractionError(f"pdfplumber rendering failed: {exc}") from exc
