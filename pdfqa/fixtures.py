"""Fixture PDF discovery and selection."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pdfqa.errors import MissingFixtureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PdfFixture:
    path: Path
    filename: str
    name: str  # filename stem with whitespace runs replaced by "-"

    @classmethod
    def from_path(cls, path: Path) -> "PdfFixture":
        return cls(path=path, filename=path.name, name=fixture_name(path.name))

    def require(self) -> Path:
        """Return the path, failing hard if the file is gone."""
        if not self.path.is_file():
            raise MissingFixtureError(self.path)
        return self.path

    def read_bytes(self) -> bytes:
        return self.require().read_bytes()


def fixture_name(filename: str) -> str:
    stem = filename[:-4] if filename.lower().endswith(".pdf") else filename
    return re.sub(r"\s+", "-", stem)


def discover_pdfs(directory: Path) -> list[Path]:
    """List PDF files in a directory, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(".pdf"))


def select_fixture(directory: Path, override: Optional[str] = None) -> PdfFixture:
    """Pick the fixture to render: explicit override, else the first PDF found."""
    available = discover_pdfs(directory)
    if override:
        fixture = PdfFixture.from_path(directory / override)
    elif available:
        fixture = PdfFixture.from_path(available[0])
    else:
        raise MissingFixtureError(
            directory,
            f"No PDF files found in {directory}. Please add a PDF file to test.",
        )

    logger.info("Testing PDF: %s", fixture.filename)
    logger.info("Available PDFs: %s", ", ".join(p.name for p in available) or "(none)")
    return fixture


def resolve_named_fixture(directory: Path, filename: str) -> PdfFixture:
    return PdfFixture.from_path(directory / filename)
