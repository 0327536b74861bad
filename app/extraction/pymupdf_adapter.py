from collections.abc import Iterator

import pymupdf
from PIL import Image

from app.extraction.base import BasePdfExtractor
from app.extraction.exceptions import ExtractionError


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return [page.get_text() for page in doc]
        except Exception as exc:
            raise ExtractionError(f"pymupdf extraction failed: {exc}") from exc

    def render_pages(self, pdf_bytes: bytes, dpi: int = 300) -> Iterator[Image.Image]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                for page in doc:
                    pixmap = page.get_pixmap(dpi=dpi)
                    yield Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
        except Exception as exc:
            raise ExtractionError(f"pymupdf rendering failed: {exc}") from exc
