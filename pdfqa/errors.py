"""Failure types raised by the harness. None of them are retried."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from pdfqa.models.results import ArtifactResult


class PdfQAError(Exception):
    """Base class for harness failures."""


class MissingFixtureError(PdfQAError):
    def __init__(self, path: Path, message: str | None = None):
        self.path = path
        super().__init__(message or f"PDF file not found at: {path}")


class MissingBaselineError(PdfQAError):
    def __init__(self, path: Path, command: str):
        self.path = path
        self.command = command
        super().__init__(
            f"Baseline missing: {path}\n"
            f"Run '{command}' to create baselines"
        )


class HarnessRenderError(PdfQAError):
    """The in-browser harness reported a rendering failure."""

    def __init__(self, message: str):
        self.render_message = message
        super().__init__(f"PDF harness failed to render: {message or 'unknown error'}")


class RenderTimeoutError(PdfQAError):
    def __init__(self, phase: str, timeout_ms: int):
        self.phase = phase
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {phase}")


class ScreenshotMismatchError(PdfQAError):
    def __init__(self, results: Sequence["ArtifactResult"]):
        self.results = list(results)
        lines = [f"{len(self.results)} screenshot(s) differ from baseline:"]
        for r in self.results:
            lines.append(f"  {r.artifact.display_name}: {r.message}")
        super().__init__("\n".join(lines))


class ExtractionError(PdfQAError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Extraction failed for {path}: {reason}")
