"""Render stabilization: waits for the harness to settle before capture.

Rendering is asynchronous and multi-page, and paint can lag behind DOM
mutation, so screenshots are only taken once the harness has walked through

    LOADING -> PAGES_RENDERING -> STABLE -> CAPTURED

Any failure ends in ERRORED (the harness reported an error) or TIMED_OUT (a
bounded wait expired, navigation included). Neither is retried.
"""

from __future__ import annotations

import logging
from enum import Enum

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pdfqa.errors import HarnessRenderError, RenderTimeoutError
from pdfqa.harness.page import (
    ERROR_ATTR,
    ERROR_MESSAGE_ATTR,
    LOADED_ATTR,
    PAGES_COUNT_ATTR,
)
from pdfqa.models.config import StabilizationTiming, ViewportConfig
from pdfqa.models.results import RenderSnapshot

logger = logging.getLogger(__name__)


class RenderPhase(str, Enum):
    LOADING = "loading"
    PAGES_RENDERING = "pages_rendering"
    STABLE = "stable"
    CAPTURED = "captured"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"


_TRANSITIONS: dict[RenderPhase, set[RenderPhase]] = {
    RenderPhase.LOADING: {RenderPhase.PAGES_RENDERING, RenderPhase.ERRORED, RenderPhase.TIMED_OUT},
    RenderPhase.PAGES_RENDERING: {RenderPhase.STABLE, RenderPhase.ERRORED, RenderPhase.TIMED_OUT},
    RenderPhase.STABLE: {RenderPhase.CAPTURED, RenderPhase.ERRORED},
    RenderPhase.CAPTURED: set(),
    RenderPhase.ERRORED: set(),
    RenderPhase.TIMED_OUT: set(),
}

_LOADED_OR_ERROR_JS = f"""() => {{
    const body = document.body;
    return !!body && (body.getAttribute('{LOADED_ATTR}') === 'true'
        || body.getAttribute('{ERROR_ATTR}') === 'true');
}}"""

_CANVASES_SIZED_JS = """() => {
    const canvases = document.querySelectorAll('canvas');
    return Array.from(canvases).every((c) => c.width > 0 && c.height > 0);
}"""

_FORCE_REFLOW_JS = """([passes, delay]) => new Promise((resolve) => {
    for (let i = 0; i < passes; i++) {
        document.body.offsetHeight;
        document.body.offsetWidth;
    }
    setTimeout(resolve, delay);
})"""

_SNAPSHOT_JS = f"""() => {{
    const body = document.body;
    return {{
        loaded: body.getAttribute('{LOADED_ATTR}') === 'true',
        error: body.getAttribute('{ERROR_ATTR}') === 'true',
        error_message: body.getAttribute('{ERROR_MESSAGE_ATTR}') || '',
        pages_count: parseInt(body.getAttribute('{PAGES_COUNT_ATTR}') || '0', 10) || 0,
        canvases: Array.from(document.querySelectorAll('canvas')).map(
            (c) => ({{ width: c.width, height: c.height }})
        ),
    }};
}}"""


class RenderStabilizer:
    """Drives one render session to a stable, capturable state."""

    def __init__(self, timing: StabilizationTiming, viewport: ViewportConfig):
        self.timing = timing
        self.viewport = viewport
        self.transitions: list[RenderPhase] = [RenderPhase.LOADING]

    @property
    def phase(self) -> RenderPhase:
        return self.transitions[-1]

    def _advance(self, phase: RenderPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise ValueError(f"Illegal render phase transition: {self.phase.value} -> {phase.value}")
        logger.debug("Render phase %s -> %s", self.phase.value, phase.value)
        self.transitions.append(phase)

    def mark_captured(self) -> None:
        self._advance(RenderPhase.CAPTURED)

    async def read_snapshot(self, page: Page) -> RenderSnapshot:
        data = await page.evaluate(_SNAPSHOT_JS)
        return RenderSnapshot(**data)

    async def prepare(self, page: Page, url: str) -> RenderSnapshot:
        """Navigate to the harness and block until rendering has settled."""
        t = self.timing

        await page.set_viewport_size({"width": self.viewport.width, "height": self.viewport.height})
        try:
            await page.goto(url, timeout=t.loaded_timeout_ms)
            await page.wait_for_load_state("networkidle", timeout=t.loaded_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise self._timed_out("harness page load", t.loaded_timeout_ms) from e
        self._advance(RenderPhase.PAGES_RENDERING)

        await self._poll(page, _LOADED_OR_ERROR_JS, t.loaded_timeout_ms, "PDF render completion marker")
        snapshot = await self.read_snapshot(page)
        if snapshot.error:
            self._advance(RenderPhase.ERRORED)
            raise HarnessRenderError(snapshot.error_message)
        logger.debug("Harness reported %d pages", snapshot.pages_count)

        await page.wait_for_timeout(t.settle_delay_ms)
        await self._poll(page, _CANVASES_SIZED_JS, t.dimensions_timeout_ms, "non-zero canvas dimensions")

        await page.evaluate(_FORCE_REFLOW_JS, [t.reflow_passes, t.reflow_delay_ms])
        await page.wait_for_timeout(t.post_reflow_delay_ms)
        await page.evaluate(_FORCE_REFLOW_JS, [1, 0])
        await page.wait_for_timeout(t.final_delay_ms)

        snapshot = await self.read_snapshot(page)
        self._advance(RenderPhase.STABLE)
        return snapshot

    async def _poll(self, page: Page, expression: str, timeout_ms: int, what: str) -> None:
        try:
            await page.wait_for_function(expression, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise self._timed_out(what, timeout_ms) from e

    def _timed_out(self, what: str, timeout_ms: int) -> RenderTimeoutError:
        self._advance(RenderPhase.TIMED_OUT)
        return RenderTimeoutError(what, timeout_ms)
