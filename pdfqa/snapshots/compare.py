"""Pixel comparison between a baseline PNG and a freshly captured candidate."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, ImageChops

from pdfqa.models.config import ComparisonTolerance
from pdfqa.models.results import DiffResult

logger = logging.getLogger(__name__)

# Largest possible YIQ distance between two colours; threshold scales against it.
MAX_YIQ_DELTA = 35215.0

DIFF_COLOR = (255, 0, 0)


def _blend(c: int, a: int) -> float:
    return 255 + (c - 255) * (a / 255.0)


def color_delta(p1: tuple[int, int, int, int], p2: tuple[int, int, int, int]) -> float:
    """Squared perceptual distance of two RGBA pixels, alpha blended on white."""
    r1, g1, b1 = (_blend(c, p1[3]) for c in p1[:3])
    r2, g2, b2 = (_blend(c, p2[3]) for c in p2[:3])

    y = (r1 - r2) * 0.29889531 + (g1 - g2) * 0.58662247 + (b1 - b2) * 0.11448223
    i = (r1 - r2) * 0.59597799 - (g1 - g2) * 0.27417610 - (b1 - b2) * 0.32180189
    q = (r1 - r2) * 0.21147017 - (g1 - g2) * 0.52261711 + (b1 - b2) * 0.31114694
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


def _open(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        return img.convert("RGBA")


def compare_images(baseline_png: bytes, candidate_png: bytes, tolerance: ComparisonTolerance) -> DiffResult:
    """Count pixels whose colour distance exceeds the tolerance threshold."""
    baseline = _open(baseline_png)
    candidate = _open(candidate_png)

    result = DiffResult(
        max_diff_pixels=tolerance.max_diff_pixels,
        threshold=tolerance.threshold,
        baseline_size=baseline.size,
        candidate_size=candidate.size,
        total_pixels=baseline.size[0] * baseline.size[1],
    )

    if baseline.size != candidate.size:
        result.size_mismatch = True
        return result

    # Every band, not just alpha: screenshots are opaque.
    if all(high == 0 for _, high in ImageChops.difference(baseline, candidate).getextrema()):
        return result

    max_delta = MAX_YIQ_DELTA * tolerance.threshold * tolerance.threshold
    diff_mask: list[bool] = []
    diff_count = 0
    for bp, cp in zip(baseline.getdata(), candidate.getdata()):
        differs = bp != cp and color_delta(bp, cp) > max_delta
        diff_mask.append(differs)
        if differs:
            diff_count += 1

    result.diff_pixels = diff_count
    if not result.passed:
        result.diff_image = _render_diff(baseline, diff_mask)
    logger.debug("Pixel diff: %d of %d pixels", diff_count, result.total_pixels)
    return result


def _render_diff(baseline: Image.Image, diff_mask: list[bool]) -> Image.Image:
    # Faded grayscale baseline with differing pixels painted red.
    faded = Image.blend(baseline.convert("L").convert("RGB"), Image.new("RGB", baseline.size, "white"), 0.7)
    pixels = [DIFF_COLOR if d else p for p, d in zip(faded.getdata(), diff_mask)]
    out = Image.new("RGB", baseline.size)
    out.putdata(pixels)
    return out


def write_failure_artifacts(
    result: DiffResult, out_dir: Path, stem: str, baseline_png: bytes, candidate_png: bytes
) -> list[Path]:
    """Write expected/actual/diff images for a failed comparison."""
    out_dir.mkdir(parents=True, exist_ok=True)
    expected = out_dir / f"{stem}-expected.png"
    actual = out_dir / f"{stem}-actual.png"
    expected.write_bytes(baseline_png)
    actual.write_bytes(candidate_png)
    written = [expected, actual]
    if result.diff_image is not None:
        diff = out_dir / f"{stem}-diff.png"
        result.diff_image.save(diff)
        written.append(diff)
    return written
