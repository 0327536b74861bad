from dataclasses import dataclass, field
from typing import Literal

ExtractionMethod = Literal["text", "ocr"]


@dataclass(frozen=True)
class ExtractedContent:
    """Normalized content handed to the analysis provider."""

    text: str
    mime_type: str
    method: ExtractionMethod
    page_count: int = 1
    fields: dict[str, str] = field(default_factory=dict)
