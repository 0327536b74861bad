from app.config.settings import Settings
from app.extraction.base import BaseContentExtractor, BasePdfExtractor
from app.extraction.extractor import ContentExtractor
from app.extraction.pdfplumber_adapter import PdfPlumberAdapter
from app.extraction.pymupdf_adapter import PyMuPdfAdapter
from app.extraction.tesseract_adapter import TesseractOcrEngine


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


class ContentExtractorFactory:
    """Wires the PDF engine and OCR engine into a ContentExtractor."""

    @classmethod
    def create(cls, settings: Settings) -> BaseContentExtractor:
        return ContentExtractor(
            pdf_extractor=PdfExtractorFactory.create(settings),
            ocr_engine=TesseractOcrEngine(languages=settings.ocr_languages),
            min_text_chars=settings.ocr_min_text_chars,
            max_ocr_pages=settings.ocr_max_pages,
        )
