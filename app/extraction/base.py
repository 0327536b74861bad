from abc import ABC, abstractmethod
from collections.abc import Iterator

from PIL import Image

from app.extraction.models import ExtractedContent


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract_pages(self, pdf_bytes: bytes) -> list[str]:
        """Extract the text layer of every page.

        Raises:
            ExtractionError: if the document cannot be parsed.
        """

    @abstractmethod
    def render_pages(self, pdf_bytes: bytes, dpi: int = 300) -> Iterator[Image.Image]:
        """Rasterize pages lazily, one per iteration, for OCR of scanned documents.

        Raises:
            ExtractionError: if the document cannot be rendered.
        """


class BaseOcrEngine(ABC):
    """Contract for image text recognition adapters."""

    @abstractmethod
    def recognize(self, image: Image.Image) -> str:
        """Return the text recognized in the image.

        Raises:
            ExtractionError: if recognition fails.
        """


class BaseContentExtractor(ABC):
    """Contract for turning uploaded bytes into provider-agnostic content."""

    @abstractmethod
    def extract(self, file_bytes: bytes, mime_type: str) -> ExtractedContent:
        """Convert raw report bytes into normalized content.

        Raises:
            ExtractionError: on unsupported input, unreadable files, or when
                no text could be recovered.
        """
