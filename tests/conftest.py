"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas as pdf_canvas

from pdfqa.fixtures import PdfFixture
from pdfqa.models.config import (
    ComparisonTolerance,
    HarnessConfig,
    StabilizationTiming,
    ViewportConfig,
)
from pdfqa.snapshots.store import BaselineStore


# ============================================================================
# Command line options
# ============================================================================


def pytest_addoption(parser):
    parser.addoption(
        "--run-e2e", action="store_true", default=False,
        help="Run browser end-to-end tests against the fixture PDFs",
    )
    parser.addoption(
        "--update-baselines", action="store_true", default=False,
        help="Run baseline creation instead of visual comparison",
    )


def pytest_collection_modifyitems(config, items):
    run_e2e = config.getoption("--run-e2e")
    update = config.getoption("--update-baselines")
    skip_e2e = pytest.mark.skip(reason="needs --run-e2e")
    skip_baselines = pytest.mark.skip(reason="baseline creation needs --update-baselines")
    skip_compare = pytest.mark.skip(reason="comparison disabled while updating baselines")
    for item in items:
        if "e2e" in item.keywords and not run_e2e:
            item.add_marker(skip_e2e)
        elif "baselines" in item.keywords and not update:
            item.add_marker(skip_baselines)
        elif "visual" in item.keywords and update:
            item.add_marker(skip_compare)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def viewport_config() -> ViewportConfig:
    return ViewportConfig(width=1280, height=720)


@pytest.fixture
def fast_timing() -> StabilizationTiming:
    """Timing with every delay collapsed, for mocked pages."""
    return StabilizationTiming(
        loaded_timeout_ms=1000,
        settle_delay_ms=0,
        dimensions_timeout_ms=1000,
        reflow_passes=3,
        reflow_delay_ms=0,
        post_reflow_delay_ms=0,
        final_delay_ms=0,
        capture_timeout_ms=1000,
    )


@pytest.fixture
def harness_config(tmp_path: Path, fast_timing: StabilizationTiming, monkeypatch) -> HarnessConfig:
    """Create a test harness configuration rooted in tmp_path."""
    monkeypatch.delenv("TEST_PDF", raising=False)
    return HarnessConfig(
        downloads_dir=str(tmp_path / "downloads"),
        timing=fast_timing,
        snapshot_root=str(tmp_path / "snapshots"),
        platform="linux",
        output_dir=str(tmp_path / "results"),
    )


@pytest.fixture
def tolerance() -> ComparisonTolerance:
    return ComparisonTolerance(threshold=0.3, max_diff_pixels=10)


# ============================================================================
# PDF Fixtures
# ============================================================================


def make_pdf(path: Path, pages: list[str]) -> Path:
    """Write a letter-size PDF with one line of text per page."""
    path.parent.mkdir(parents=True, exist_ok=True)
    c = pdf_canvas.Canvas(str(path), pagesize=letter)
    for text in pages:
        c.drawString(72, 720, text)
        c.showPage()
    c.save()
    return path


@pytest.fixture
def downloads_dir(harness_config: HarnessConfig) -> Path:
    path = Path(harness_config.downloads_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def two_page_pdf(downloads_dir: Path) -> Path:
    return make_pdf(
        downloads_dir / "sample-2page.pdf",
        ["First page, contact billing@example.com", "Second page of the sample"],
    )


@pytest.fixture
def pdf_fixture(two_page_pdf: Path) -> PdfFixture:
    return PdfFixture.from_path(two_page_pdf)


@pytest.fixture
def baseline_store(harness_config: HarnessConfig) -> BaselineStore:
    return BaselineStore(
        snapshot_root=Path(harness_config.snapshot_root),
        test_file="test_pdf_visual_regression.py",
        browser_name="chromium",
        platform="linux",
        update_command="pdfqa baselines create",
    )


# ============================================================================
# Image Helpers
# ============================================================================


def make_png(width: int, height: int, color: Any = "white", dots: list[tuple[int, int]] | None = None,
             dot_color: Any = "black") -> bytes:
    """Create a solid PNG, optionally with individual pixels painted another colour."""
    img = Image.new("RGB", (width, height), color)
    for xy in dots or []:
        img.putpixel(xy, Image.new("RGB", (1, 1), dot_color).getpixel((0, 0)))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_factory():
    """Fixture that provides the make_png function."""
    return make_png


# ============================================================================
# Mock Fixtures
# ============================================================================


def harness_state(pages: int = 2, error: str | None = None, width: int = 612, height: int = 792) -> dict:
    """DOM state as returned by the stabilizer's snapshot script."""
    if error is not None:
        return {"loaded": False, "error": True, "error_message": error, "pages_count": 0, "canvases": []}
    return {
        "loaded": True,
        "error": False,
        "error_message": "",
        "pages_count": pages,
        "canvases": [{"width": width, "height": height} for _ in range(pages)],
    }


@pytest.fixture
def mock_page() -> MagicMock:
    """Create a mock Playwright page driving a finished two-page render."""
    page = MagicMock()
    page.set_viewport_size = AsyncMock()
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_function = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock(return_value=make_png(40, 30))
    page.close = AsyncMock()

    state = harness_state(pages=2)

    async def evaluate(expression, arg=None):
        if "pages_count" in expression:
            return state
        return None

    page.evaluate = AsyncMock(side_effect=evaluate)
    page.harness_state = state

    locators: dict[str, MagicMock] = {}

    def locator(selector):
        if selector not in locators:
            loc = MagicMock()
            loc.wait_for = AsyncMock()
            loc.screenshot = AsyncMock(return_value=make_png(20, 20))
            loc.count = AsyncMock(return_value=len(state["canvases"]))
            locators[selector] = loc
        return locators[selector]

    page.locator = MagicMock(side_effect=locator)
    page.locators = locators
    return page
