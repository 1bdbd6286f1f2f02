"""Visual regression runner: baseline creation and comparison modes."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import BrowserContext, Page

from pdfqa.errors import MissingBaselineError, PdfQAError, ScreenshotMismatchError
from pdfqa.fixtures import PdfFixture
from pdfqa.harness.page import (
    CANVAS_SELECTOR,
    CONTAINER_SELECTOR,
    page_canvas_selector,
    render_harness_html,
)
from pdfqa.harness.stabilizer import RenderStabilizer
from pdfqa.models.config import ComparisonTolerance, HarnessConfig
from pdfqa.models.results import ArtifactId, ArtifactResult, RenderSnapshot
from pdfqa.server import ContentServer
from pdfqa.snapshots.compare import compare_images, write_failure_artifacts
from pdfqa.snapshots.store import BaselineStore

logger = logging.getLogger(__name__)


class VisualRegressionRunner:
    """Serves one fixture, renders it, and captures full/page/content screenshots.

    Creation mode writes every artifact as a new baseline. Comparison mode
    diffs each artifact against its baseline and reports per-artifact results;
    a failing artifact never stops its siblings from being evaluated.
    """

    def __init__(self, config: HarnessConfig, fixture: PdfFixture, store: BaselineStore):
        self.config = config
        self.fixture = fixture
        self.store = store
        self.html = render_harness_html(config.render_scale, config.pdfjs_version, config.pdfjs_cdn)

    def server(self) -> ContentServer:
        return ContentServer(
            self.fixture,
            self.html,
            port_range=self.config.port_range,
            bind_attempts=self.config.port_bind_attempts,
        )

    async def _prepare(self, page: Page, server: ContentServer) -> tuple[RenderStabilizer, RenderSnapshot]:
        stabilizer = RenderStabilizer(self.config.timing, self.config.viewport)
        snapshot = await stabilizer.prepare(page, server.url)
        return stabilizer, snapshot

    async def _screenshot_page(self, page: Page) -> bytes:
        return await page.screenshot(
            full_page=True, animations="disabled", timeout=self.config.timing.capture_timeout_ms
        )

    async def _screenshot_element(self, page: Page, selector: str) -> bytes:
        locator = page.locator(selector)
        await locator.wait_for(state="visible", timeout=self.config.timing.capture_timeout_ms)
        return await locator.screenshot(animations="disabled", timeout=self.config.timing.capture_timeout_ms)

    # ------------------------------------------------------------------
    # Creation mode
    # ------------------------------------------------------------------

    async def create_baselines(self, page: Page) -> list[Path]:
        """Capture every artifact and overwrite its baseline unconditionally."""
        self.fixture.require()
        logger.info("Creating baselines for PDF visual regression...")
        name = self.fixture.name
        written: list[Path] = []

        async with self.server() as server:
            stabilizer, snapshot = await self._prepare(page, server)
            logger.info("Creating baseline screenshots...")

            written.append(self.store.write(ArtifactId.full(name), await self._screenshot_page(page)))

            for page_number in range(1, snapshot.pages_count + 1):
                data = await self._screenshot_element(page, page_canvas_selector(page_number))
                written.append(self.store.write(ArtifactId.page(name, page_number), data))

            data = await self._screenshot_element(page, CONTAINER_SELECTOR)
            written.append(self.store.write(ArtifactId.content(name), data))
            stabilizer.mark_captured()

        logger.info("Successfully created %d baseline screenshots!", len(written))
        return written

    # ------------------------------------------------------------------
    # Comparison mode
    # ------------------------------------------------------------------

    def _compare(self, artifact: ArtifactId, candidate: bytes, tolerance: ComparisonTolerance) -> ArtifactResult:
        baseline_path = self.store.path_for(artifact)
        try:
            baseline = self.store.read(artifact)
        except MissingBaselineError as e:
            logger.error("%s", e)
            return ArtifactResult(artifact=artifact, baseline_path=str(baseline_path), error=str(e))

        diff = compare_images(baseline, candidate, tolerance)
        result = ArtifactResult(artifact=artifact, baseline_path=str(baseline_path), diff=diff)
        if result.passed:
            logger.info("%s matches baseline (%s)", artifact.display_name, diff.message)
        else:
            out_dir = Path(self.config.output_dir) / self.store.test_file
            images = write_failure_artifacts(diff, out_dir, artifact.stem, baseline, candidate)
            result.failure_images = [str(p) for p in images]
            logger.error("%s differs from baseline: %s", artifact.display_name, diff.message)
        return result

    async def compare_full_page(self, page: Page) -> list[ArtifactResult]:
        self.fixture.require()
        artifact = ArtifactId.full(self.fixture.name)
        self.store.require(artifact)
        logger.info("Setting up PDF visual regression test...")

        async with self.server() as server:
            stabilizer, _ = await self._prepare(page, server)
            logger.info("Taking visual regression screenshot...")
            candidate = await self._screenshot_page(page)
            stabilizer.mark_captured()

        return [self._compare(artifact, candidate, self.config.tolerances.full)]

    async def compare_pages(self, page: Page) -> list[ArtifactResult]:
        self.fixture.require()
        name = self.fixture.name
        self.store.require(ArtifactId.page(name, 1))
        results: list[ArtifactResult] = []

        async with self.server() as server:
            stabilizer, snapshot = await self._prepare(page, server)
            logger.info("Testing %d individual pages...", snapshot.pages_count)

            for page_number in range(1, snapshot.pages_count + 1):
                logger.info("Testing page %d...", page_number)
                candidate = await self._screenshot_element(page, page_canvas_selector(page_number))
                results.append(
                    self._compare(ArtifactId.page(name, page_number), candidate, self.config.tolerances.page)
                )
            stabilizer.mark_captured()

        return results

    async def compare_content(self, page: Page) -> list[ArtifactResult]:
        self.fixture.require()
        artifact = ArtifactId.content(self.fixture.name)
        self.store.require(artifact)

        async with self.server() as server:
            stabilizer, snapshot = await self._prepare(page, server)
            snapshot.assert_consistent()
            canvas_count = await page.locator(CANVAS_SELECTOR).count()
            if canvas_count != snapshot.pages_count:
                raise AssertionError(
                    f"Found {canvas_count} canvases for {snapshot.pages_count} pages"
                )
            logger.info("PDF loaded with %d pages", snapshot.pages_count)

            candidate = await self._screenshot_element(page, CONTAINER_SELECTOR)
            stabilizer.mark_captured()

        return [self._compare(artifact, candidate, self.config.tolerances.content)]

    async def run_comparisons(self, context: BrowserContext) -> list[ArtifactResult]:
        """Run all three comparisons, each on a fresh page and server.

        A comparison that raises is recorded as a failed result for its first
        artifact; the remaining comparisons still run.
        """
        name = self.fixture.name
        comparisons = (
            (self.compare_full_page, ArtifactId.full(name)),
            (self.compare_pages, ArtifactId.page(name, 1)),
            (self.compare_content, ArtifactId.content(name)),
        )
        results: list[ArtifactResult] = []
        for compare, artifact in comparisons:
            page = await context.new_page()
            try:
                results.extend(await compare(page))
            except (PdfQAError, AssertionError) as e:
                logger.error("%s failed: %s", artifact.display_name, e)
                results.append(
                    ArtifactResult(artifact=artifact, baseline_path=str(self.store.path_for(artifact)), error=str(e))
                )
            finally:
                await page.close()
        return results


def raise_for_failures(results: list[ArtifactResult]) -> None:
    failed = [r for r in results if not r.passed]
    if failed:
        raise ScreenshotMismatchError(failed)
