"""Discovery and text extraction for source documents."""

from .discovery import DirectoryScanner
from .extractors import (
    ContentExtractor,
    DocxExtractor,
    ExtractorRegistry,
    PdfExtractor,
    PlainTextExtractor,
)
from .models import PendingFile

__all__ = [
    "ContentExtractor",
    "DirectoryScanner",
    "DocxExtractor",
    "ExtractorRegistry",
    "PdfExtractor",
    "PendingFile",
    "PlainTextExtractor",
]
