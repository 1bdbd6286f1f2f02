"""Render state, screenshot artifact and comparison result data structures."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from pdfqa.errors import HarnessRenderError, PdfQAError


class ArtifactKind(str, Enum):
    FULL = "full"
    PAGE = "page"
    CONTENT = "content"


class ArtifactId(BaseModel):
    pdf_name: str
    kind: ArtifactKind
    page_number: Optional[int] = None  # 1-based, PAGE artifacts only

    @classmethod
    def full(cls, pdf_name: str) -> "ArtifactId":
        return cls(pdf_name=pdf_name, kind=ArtifactKind.FULL)

    @classmethod
    def page(cls, pdf_name: str, page_number: int) -> "ArtifactId":
        if page_number < 1:
            raise ValueError(f"Page numbers start at 1, got {page_number}")
        return cls(pdf_name=pdf_name, kind=ArtifactKind.PAGE, page_number=page_number)

    @classmethod
    def content(cls, pdf_name: str) -> "ArtifactId":
        return cls(pdf_name=pdf_name, kind=ArtifactKind.CONTENT)

    @property
    def stem(self) -> str:
        if self.kind is ArtifactKind.PAGE:
            return f"{self.pdf_name}-page-{self.page_number}"
        return f"{self.pdf_name}-{self.kind.value}"

    @property
    def display_name(self) -> str:
        return f"{self.stem}.png"


class CanvasSize(BaseModel):
    width: int
    height: int


class RenderSnapshot(BaseModel):
    """Observable harness state read back from the DOM."""
    loaded: bool = False
    error: bool = False
    error_message: str = ""
    pages_count: int = 0
    canvases: list[CanvasSize] = Field(default_factory=list)

    def assert_consistent(self) -> None:
        if self.error:
            raise HarnessRenderError(self.error_message)
        if not self.loaded:
            raise PdfQAError("Harness never set its completion marker")
        if self.pages_count <= 0:
            raise PdfQAError(f"Harness reported {self.pages_count} pages")
        if len(self.canvases) != self.pages_count:
            raise PdfQAError(
                f"Canvas count {len(self.canvases)} does not match page count {self.pages_count}"
            )
        for i, canvas in enumerate(self.canvases, 1):
            if canvas.width <= 0 or canvas.height <= 0:
                raise PdfQAError(f"Canvas for page {i} has empty size {canvas.width}x{canvas.height}")


class DiffResult(BaseModel):
    diff_pixels: int = 0
    total_pixels: int = 0
    max_diff_pixels: int = 0
    threshold: float = 0.0
    size_mismatch: bool = False
    baseline_size: tuple[int, int] = (0, 0)
    candidate_size: tuple[int, int] = (0, 0)
    diff_image: Optional[Any] = Field(default=None, exclude=True)  # PIL image, failures only

    @property
    def passed(self) -> bool:
        return not self.size_mismatch and self.diff_pixels <= self.max_diff_pixels

    @property
    def message(self) -> str:
        if self.size_mismatch:
            return (
                f"Size mismatch: baseline {self.baseline_size[0]}x{self.baseline_size[1]}, "
                f"actual {self.candidate_size[0]}x{self.candidate_size[1]}"
            )
        return (
            f"{self.diff_pixels} pixels differ (max {self.max_diff_pixels}, "
            f"threshold {self.threshold})"
        )


class ArtifactResult(BaseModel):
    artifact: ArtifactId
    baseline_path: str
    diff: Optional[DiffResult] = None
    error: Optional[str] = None
    failure_images: list[str] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.error is None and self.diff is not None and self.diff.passed

    @property
    def message(self) -> str:
        if self.error:
            return self.error
        if self.diff is None:
            return "Not compared"
        return self.diff.message
