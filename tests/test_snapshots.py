"""Tests for the baseline store and pixel comparison."""

from pathlib import Path

import pytest
from PIL import Image

from pdfqa.errors import MissingBaselineError
from pdfqa.models.config import ComparisonTolerance
from pdfqa.models.results import ArtifactId, ArtifactKind
from pdfqa.snapshots.compare import color_delta, compare_images, write_failure_artifacts
from pdfqa.snapshots.store import BaselineStore


class TestArtifactId:

    def test_names(self):
        assert ArtifactId.full("sample-2page").display_name == "sample-2page-full.png"
        assert ArtifactId.page("sample-2page", 2).stem == "sample-2page-page-2"
        assert ArtifactId.content("sample-2page").kind is ArtifactKind.CONTENT

    def test_page_numbers_start_at_one(self):
        with pytest.raises(ValueError):
            ArtifactId.page("x", 0)


class TestBaselineStore:

    def test_deterministic_path(self, baseline_store: BaselineStore, harness_config):
        path = baseline_store.path_for(ArtifactId.full("sample-2page"))
        assert path == (
            Path(harness_config.snapshot_root)
            / "test_pdf_visual_regression.py-snapshots"
            / "sample-2page-full-chromium-linux.png"
        )

    def test_platform_qualifier(self, tmp_path: Path):
        store = BaselineStore(tmp_path, "tests/e2e/test_pdf_visual_regression.py", platform="win32")
        path = store.path_for(ArtifactId.full("sample-2page"))
        assert path.name == "sample-2page-full-chromium-win32.png"
        assert path.parent.name == "test_pdf_visual_regression.py-snapshots"

    def test_require_missing_baseline(self, baseline_store: BaselineStore):
        artifact = ArtifactId.page("sample-2page", 1)
        with pytest.raises(MissingBaselineError) as exc_info:
            baseline_store.require(artifact)

        err = exc_info.value
        assert err.path == baseline_store.path_for(artifact)
        assert str(err.path) in str(err)
        assert "pdfqa baselines create" in str(err)

    def test_write_overwrites(self, baseline_store: BaselineStore):
        artifact = ArtifactId.content("sample-2page")
        baseline_store.write(artifact, b"first")
        path = baseline_store.write(artifact, b"second")

        assert path.read_bytes() == b"second"
        assert baseline_store.exists(artifact)
        assert baseline_store.read(artifact) == b"second"


class TestColorDelta:

    def test_identical(self):
        assert color_delta((10, 20, 30, 255), (10, 20, 30, 255)) == 0

    def test_black_white_is_pure_luma(self):
        assert color_delta((0, 0, 0, 255), (255, 255, 255, 255)) == pytest.approx(0.5053 * 255 ** 2, rel=1e-3)

    def test_transparent_blends_to_white(self):
        assert color_delta((0, 0, 0, 0), (255, 255, 255, 255)) == pytest.approx(0)


class TestCompareImages:

    def test_identical_images_pass(self, png_factory, tolerance):
        png = png_factory(30, 20)
        result = compare_images(png, png, tolerance)
        assert result.passed
        assert result.diff_pixels == 0
        assert result.total_pixels == 600
        assert result.diff_image is None

    def test_opaque_colour_change_detected(self, png_factory):
        baseline = png_factory(100, 100, color="white")
        candidate = png_factory(100, 100, color="black")
        result = compare_images(baseline, candidate, ComparisonTolerance(threshold=0.3, max_diff_pixels=1000))
        assert result.diff_pixels == 10000
        assert not result.passed

    def test_small_difference_within_max_pixels(self, png_factory):
        baseline = png_factory(30, 20)
        candidate = png_factory(30, 20, dots=[(1, 1), (2, 2), (3, 3)])
        result = compare_images(baseline, candidate, ComparisonTolerance(threshold=0.3, max_diff_pixels=3))
        assert result.diff_pixels == 3
        assert result.passed

    def test_too_many_pixels_fails(self, png_factory):
        baseline = png_factory(30, 20)
        candidate = png_factory(30, 20, dots=[(x, 0) for x in range(12)])
        result = compare_images(baseline, candidate, ComparisonTolerance(threshold=0.3, max_diff_pixels=10))
        assert result.diff_pixels == 12
        assert not result.passed
        assert "12 pixels differ" in result.message
        assert result.diff_image is not None
        assert result.diff_image.getpixel((0, 0)) == (255, 0, 0)

    def test_threshold_ignores_faint_changes(self, png_factory):
        baseline = png_factory(10, 10, color=(200, 200, 200))
        candidate = png_factory(10, 10, color=(200, 200, 200), dots=[(5, 5)], dot_color=(205, 205, 205))
        loose = compare_images(baseline, candidate, ComparisonTolerance(threshold=0.3, max_diff_pixels=0))
        strict = compare_images(baseline, candidate, ComparisonTolerance(threshold=0.0, max_diff_pixels=0))
        assert loose.diff_pixels == 0
        assert strict.diff_pixels == 1

    def test_size_mismatch_fails(self, png_factory, tolerance):
        result = compare_images(png_factory(30, 20), png_factory(30, 21), tolerance)
        assert result.size_mismatch
        assert not result.passed
        assert "30x20" in result.message and "30x21" in result.message


class TestWriteFailureArtifacts:

    def test_writes_expected_actual_diff(self, tmp_path: Path, png_factory):
        baseline = png_factory(10, 10)
        candidate = png_factory(10, 10, color="black")
        result = compare_images(baseline, candidate, ComparisonTolerance(max_diff_pixels=0))

        written = write_failure_artifacts(result, tmp_path / "out", "sample-full", baseline, candidate)

        assert [p.name for p in written] == [
            "sample-full-expected.png", "sample-full-actual.png", "sample-full-diff.png",
        ]
        assert written[0].read_bytes() == baseline
        with Image.open(written[2]) as diff:
            assert diff.size == (10, 10)

    def test_size_mismatch_has_no_diff_image(self, tmp_path: Path, png_factory, tolerance):
        baseline, candidate = png_factory(10, 10), png_factory(12, 10)
        result = compare_images(baseline, candidate, tolerance)
        written = write_failure_artifacts(result, tmp_path, "x", baseline, candidate)
        assert len(written) == 2
