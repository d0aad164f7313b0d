"""Plain-text extraction for supported document types."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Protocol

try:  # pragma: no cover - optional dependency
    import pdfplumber  # type: ignore
except ImportError:  # pragma: no cover - executed when pdfplumber missing
    pdfplumber = None

try:  # pragma: no cover - optional dependency
    import docx  # type: ignore
except ImportError:  # pragma: no cover - executed when python-docx missing
    docx = None

try:  # pragma: no cover - optional dependency
    import pytesseract  # type: ignore
    from pdf2image import convert_from_path  # type: ignore
except ImportError:  # pragma: no cover - executed when OCR extras missing
    pytesseract = None
    convert_from_path = None

from docsort.config.models import ProcessingOptions
from docsort.organization.cancellation import CancellationToken, OrganizeCancelled

LOGGER = logging.getLogger(__name__)


class ContentExtractor(Protocol):
    """Convert one file into plain text."""

    def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
        """Return the text content of ``path``."""
        ...


class PlainTextExtractor:
    """Read text-like files as UTF-8, replacing undecodable bytes."""

    def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
        return path.read_text(encoding="utf-8", errors="replace")


class DocxExtractor:
    """Extract paragraphs and table rows from Word documents."""

    def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
        if docx is None:
            raise RuntimeError("python-docx is not installed")
        document = docx.Document(str(path))
        parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text]
        for table in document.tables:
            for row in table.rows:
                row_text = "\t".join(cell.text or "" for cell in row.cells)
                if row_text.strip():
                    parts.append(row_text)
        return "\n".join(parts)


class PdfExtractor:
    """Extract the PDF text layer, optionally augmenting sparse pages with OCR.

    Args:
        ocr_enabled: Whether OCR may run when the text layer is too short.
        ocr_min_chars: Minimum text length that skips OCR.
        ocr_language: Tesseract language code.
    """

    def __init__(
        self,
        *,
        ocr_enabled: bool = False,
        ocr_min_chars: int = 100,
        ocr_language: str = "eng",
    ) -> None:
        self.ocr_enabled = ocr_enabled
        self.ocr_min_chars = ocr_min_chars
        self.ocr_language = ocr_language

    def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
        if pdfplumber is None:
            raise RuntimeError("pdfplumber is not installed")
        parts: list[str] = []
        with pdfplumber.open(str(path)) as pdf:
            for page in pdf.pages:
                if cancellation is not None:
                    cancellation.raise_if_cancelled()
                page_text = page.extract_text() or ""
                if page_text.strip():
                    parts.append(page_text)
        text = "\n".join(parts)
        LOGGER.debug("PDF text extracted (chars=%d) for %s", len(text.strip()), path)

        if self.ocr_enabled and len(text.strip()) < self.ocr_min_chars:
            ocr_text = self._ocr(path, cancellation)
            if ocr_text.strip():
                text = f"{text}\n{ocr_text}" if text.strip() else ocr_text
        return text

    def _ocr(self, path: Path, cancellation: CancellationToken | None) -> str:
        if pytesseract is None or convert_from_path is None:
            LOGGER.debug("OCR requested for %s but pytesseract/pdf2image are unavailable.", path)
            return ""
        LOGGER.info("OCR triggered for %s", path)
        texts: list[str] = []
        for image in convert_from_path(str(path)):
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            texts.append(pytesseract.image_to_string(image, lang=self.ocr_language) or "")
        return "\n".join(texts).strip()


class ExtractorRegistry:
    """Dispatch extraction by file extension; never raises on bad content."""

    def __init__(self, extractors: Mapping[str, ContentExtractor]) -> None:
        self._extractors = {extension.lower(): extractor for extension, extractor in extractors.items()}

    @classmethod
    def from_settings(cls, processing: ProcessingOptions) -> "ExtractorRegistry":
        """Build the default registry for the configured processing options."""
        text = PlainTextExtractor()
        return cls(
            {
                ".txt": text,
                ".md": text,
                ".csv": text,
                ".log": text,
                ".docx": DocxExtractor(),
                ".pdf": PdfExtractor(
                    ocr_enabled=processing.ocr_enabled,
                    ocr_min_chars=processing.ocr_min_chars,
                    ocr_language=processing.ocr_language,
                ),
            }
        )

    def extractor_for(self, path: Path) -> Optional[ContentExtractor]:
        return self._extractors.get(path.suffix.lower())

    def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
        """Return the text of ``path``, or ``""`` when extraction is impossible.

        Raises:
            OrganizeCancelled: If the run is cancelled mid-extraction.
        """
        extractor = self.extractor_for(path)
        if extractor is None:
            LOGGER.debug("No extractor registered for %s", path.suffix or path.name)
            return ""
        try:
            return extractor.extract(path, cancellation)
        except OrganizeCancelled:
            raise
        except Exception as exc:
            LOGGER.warning("Text extraction failed for %s: %s", path, exc)
            return ""


__all__ = [
    "ContentExtractor",
    "DocxExtractor",
    "ExtractorRegistry",
    "PdfExtractor",
    "PlainTextExtractor",
]
