"""Tests for fixture discovery and selection."""

from pathlib import Path

import pytest

from pdfqa.errors import MissingFixtureError
from pdfqa.fixtures import (
    PdfFixture,
    discover_pdfs,
    fixture_name,
    resolve_named_fixture,
    select_fixture,
)


class TestFixtureName:

    def test_strips_extension(self):
        assert fixture_name("sample-2page.pdf") == "sample-2page"

    def test_replaces_whitespace_runs(self):
        assert fixture_name("Credit limit-134333596.pdf") == "Credit-limit-134333596"
        assert fixture_name("a  b\tc.pdf") == "a-b-c"


class TestDiscoverPdfs:

    def test_missing_directory(self, tmp_path: Path):
        assert discover_pdfs(tmp_path / "nope") == []

    def test_only_pdf_files_sorted(self, tmp_path: Path):
        for name in ["b.pdf", "a.pdf", "notes.txt", "c.PDF"]:
            (tmp_path / name).write_bytes(b"%PDF-1.4")
        (tmp_path / "dir.pdf").mkdir()

        found = discover_pdfs(tmp_path)
        assert [p.name for p in found] == ["a.pdf", "b.pdf"]


class TestSelectFixture:

    def test_first_pdf_when_no_override(self, tmp_path: Path):
        (tmp_path / "b.pdf").write_bytes(b"%PDF")
        (tmp_path / "a.pdf").write_bytes(b"%PDF")

        fixture = select_fixture(tmp_path)
        assert fixture.filename == "a.pdf"
        assert fixture.name == "a"

    def test_override_wins(self, tmp_path: Path):
        (tmp_path / "a.pdf").write_bytes(b"%PDF")
        (tmp_path / "my report.pdf").write_bytes(b"%PDF")

        fixture = select_fixture(tmp_path, "my report.pdf")
        assert fixture.path == tmp_path / "my report.pdf"
        assert fixture.name == "my-report"

    def test_no_pdfs_is_hard_failure(self, tmp_path: Path):
        with pytest.raises(MissingFixtureError, match="No PDF files found"):
            select_fixture(tmp_path)

    def test_override_is_not_checked_until_required(self, tmp_path: Path):
        fixture = select_fixture(tmp_path, "absent.pdf")
        with pytest.raises(MissingFixtureError, match="PDF file not found at"):
            fixture.require()


class TestPdfFixture:

    def test_read_bytes(self, two_page_pdf: Path):
        fixture = PdfFixture.from_path(two_page_pdf)
        assert fixture.read_bytes().startswith(b"%PDF")

    def test_resolve_named_fixture(self, tmp_path: Path):
        fixture = resolve_named_fixture(tmp_path, "Credit limit-134333596.pdf")
        assert fixture.path == tmp_path / "Credit limit-134333596.pdf"
        assert fixture.name == "Credit-limit-134333596"
