"""Browser setup tuned for reproducible screenshots."""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Playwright

from pdfqa.models.config import ViewportConfig

# Rasterization flags that keep canvas and text output identical across runs.
_LAUNCH_ARGS = [
    "--disable-gpu",
    "--font-render-hinting=none",
    "--disable-lcd-text",
    "--force-color-profile=srgb",
]


async def launch_browser(playwright: Playwright, browser_name: str = "chromium", headless: bool = True) -> Browser:
    """Launch the browser engine named in the config."""
    browser_type = getattr(playwright, browser_name, None)
    if browser_type is None:
        raise ValueError(f"Unknown browser: {browser_name}")
    args = _LAUNCH_ARGS if browser_name == "chromium" else []
    return await browser_type.launch(headless=headless, args=args)


async def new_render_context(
    browser: Browser,
    viewport: ViewportConfig,
) -> BrowserContext:
    """Create an isolated context with a fixed viewport and pixel ratio."""
    context_kwargs: dict = {
        "viewport": {"width": viewport.width, "height": viewport.height},
        "device_scale_factor": 1,
        "locale": "en-US",
        "timezone_id": "UTC",
        "color_scheme": "light",
        "reduced_motion": "reduce",
    }
    return await browser.new_context(**context_kwargs)
