"""Configuration models for the PDF QA harness."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class StabilizationTiming(BaseModel):
    """Waits applied between navigation and the first screenshot.

    All values are empirical; tune them per rendering library and fixture size.
    """

    loaded_timeout_ms: int = 30000
    settle_delay_ms: int = 1000
    dimensions_timeout_ms: int = 15000
    reflow_passes: int = 3
    reflow_delay_ms: int = 50
    post_reflow_delay_ms: int = 500
    final_delay_ms: int = 200
    capture_timeout_ms: int = 30000


class ComparisonTolerance(BaseModel):
    threshold: float = 0.3  # normalized per-pixel colour distance, 0..1
    max_diff_pixels: int = 1000

    @field_validator("threshold")
    @classmethod
    def check_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {v}")
        return v

    @field_validator("max_diff_pixels")
    @classmethod
    def check_max_diff_pixels(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_diff_pixels must be >= 0")
        return v


class ToleranceConfig(BaseModel):
    full: ComparisonTolerance = Field(default_factory=lambda: ComparisonTolerance(threshold=0.3, max_diff_pixels=1000))
    page: ComparisonTolerance = Field(default_factory=lambda: ComparisonTolerance(threshold=0.3, max_diff_pixels=500))
    content: ComparisonTolerance = Field(default_factory=lambda: ComparisonTolerance(threshold=0.3, max_diff_pixels=1000))


class HarnessConfig(BaseModel):
    # Fixtures
    downloads_dir: str = "./downloads"
    test_pdf: Optional[str] = None
    extraction_default_pdf: str = "Credit limit-134333596.pdf"

    # Rendering
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    render_scale: float = 1.0
    pdfjs_version: str = "3.11.174"
    pdfjs_cdn: str = "https://cdnjs.cloudflare.com/ajax/libs/pdf.js"
    timing: StabilizationTiming = Field(default_factory=StabilizationTiming)

    # Local server
    port_range: tuple[int, int] = (3000, 3999)
    port_bind_attempts: int = 5

    # Baselines
    tolerances: ToleranceConfig = Field(default_factory=ToleranceConfig)
    snapshot_root: str = "./tests/e2e"
    browser_name: str = "chromium"
    platform: str = Field(default_factory=lambda: sys.platform)
    update_command: str = "pdfqa baselines create"

    # Reporting
    output_dir: str = "./pdfqa-results"

    @field_validator("test_pdf", mode="before")
    @classmethod
    def resolve_env_pdf(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("render_scale")
    @classmethod
    def check_scale(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("render_scale must be positive")
        return v

    @model_validator(mode="after")
    def check_port_range(self) -> "HarnessConfig":
        low, high = self.port_range
        if low < 1 or high > 65535 or low > high:
            raise ValueError(f"Invalid port range: {self.port_range}")
        return self

    def model_post_init(self, __context) -> None:
        if not self.test_pdf:
            self.test_pdf = os.environ.get("TEST_PDF") or None

    @property
    def downloads_path(self) -> Path:
        return Path(self.downloads_dir).resolve()

    @classmethod
    def load(cls, path: str | Path) -> "HarnessConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
