"""PDF text extraction and structural sanity checks."""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from pdfqa.errors import ExtractionError, MissingFixtureError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.\w+")


class ExtractionReport(BaseModel):
    path: str
    page_count: int = 0
    text: str = ""
    producer: Optional[str] = None
    pdf_version: Optional[str] = None
    emails: list[str] = Field(default_factory=list)

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def line_count(self) -> int:
        return sum(1 for line in self.text.split("\n") if line.strip())


def extract_pdf(path: Path) -> ExtractionReport:
    """Read a PDF from disk and extract its text with pypdf."""
    if not path.is_file():
        raise MissingFixtureError(path)
    return extract_bytes(path.read_bytes(), source=str(path))


def extract_bytes(data: bytes, source: str = "<bytes>") -> ExtractionReport:
    try:
        reader = PdfReader(io.BytesIO(data))
        texts = [page.extract_text() or "" for page in reader.pages]
        page_count = len(reader.pages)
        metadata = reader.metadata
        pdf_header = reader.pdf_header
    except PdfReadError as e:
        raise ExtractionError(Path(source), str(e) or type(e).__name__) from e

    text = "\n".join(texts)
    producer = metadata.producer if metadata else None

    return ExtractionReport(
        path=source,
        page_count=page_count,
        text=text,
        producer=producer,
        pdf_version=pdf_header.lstrip("%") or None,
        emails=EMAIL_PATTERN.findall(text),
    )


def validate(report: ExtractionReport) -> ExtractionReport:
    """Require at least one page and some extracted text.

    Nothing about the actual content is checked.
    """
    if report.page_count <= 0:
        raise ExtractionError(Path(report.path), f"expected pages, got {report.page_count}")
    if not report.text.strip():
        raise ExtractionError(Path(report.path), "no text could be extracted")
    return report


def log_summary(report: ExtractionReport, show_text: bool = False) -> None:
    logger.info("PDF Summary:")
    logger.info("  Pages: %d", report.page_count)
    logger.info("  Text: %d chars, %d words", report.char_count, report.word_count)
    logger.info("  Producer: %s", report.producer or "Unknown")
    logger.info("  Version: %s", report.pdf_version or "Unknown")
    if show_text and report.text:
        logger.info("PDF Text: %s", report.text)
    logger.info("Found: %d emails, %d lines", len(report.emails), report.line_count)
