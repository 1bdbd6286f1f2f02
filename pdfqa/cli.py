"""CLI entry point for the PDF QA harness."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from playwright.async_api import async_playwright
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pdfqa.browser import launch_browser, new_render_context
from pdfqa.errors import PdfQAError
from pdfqa.extraction.validator import extract_pdf, log_summary, validate
from pdfqa.fixtures import discover_pdfs, resolve_named_fixture, select_fixture
from pdfqa.models.config import HarnessConfig
from pdfqa.models.results import ArtifactResult
from pdfqa.runner import VisualRegressionRunner
from pdfqa.snapshots.store import BaselineStore

console = Console()

DEFAULT_TEST_FILE = "test_pdf_visual_regression.py"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_config(path: Optional[str]) -> HarnessConfig:
    if path:
        return HarnessConfig.load(path)
    default = Path("pdfqa-config.json")
    if default.exists():
        return HarnessConfig.load(default)
    return HarnessConfig()


def build_store(cfg: HarnessConfig, test_file: str) -> BaselineStore:
    return BaselineStore(
        snapshot_root=Path(cfg.snapshot_root),
        test_file=test_file,
        browser_name=cfg.browser_name,
        platform=cfg.platform,
        update_command=cfg.update_command,
    )


def _results_table(results: list[ArtifactResult]) -> Table:
    table = Table(title="Visual Regression Results")
    table.add_column("Artifact", style="bold")
    table.add_column("Status")
    table.add_column("Details")
    for r in results:
        status = "[green]PASS[/green]" if r.passed else "[red]FAIL[/red]"
        table.add_row(r.artifact.display_name, status, r.message)
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", "-c", default=None, help="Config file path (default: pdfqa-config.json if present)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Optional[str]) -> None:
    """PDF visual regression and content extraction harness"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


def _config(ctx: click.Context) -> HarnessConfig:
    try:
        return load_config(ctx.obj.get("config_path"))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Run 'pdfqa init' to create a default config.")
        sys.exit(1)


@cli.command()
@click.option("--output", "-o", default="pdfqa-config.json", help="Where to write the config")
def init(output: str) -> None:
    """Create a default configuration file."""
    config_path = Path(output)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return
    HarnessConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


@cli.command()
@click.pass_context
def fixtures(ctx: click.Context) -> None:
    """List fixture PDFs and show which one would be tested."""
    cfg = _config(ctx)
    available = discover_pdfs(cfg.downloads_path)
    if not available:
        console.print(f"[yellow]No PDF files found in {cfg.downloads_path}[/yellow]")
        return
    selected = select_fixture(cfg.downloads_path, cfg.test_pdf)
    for p in available:
        marker = "[green]*[/green]" if p.name == selected.filename else " "
        console.print(f" {marker} {p.name}")


@cli.group()
def baselines() -> None:
    """Manage baseline screenshots."""
    pass


@baselines.command("create")
@click.option("--pdf", default=None, help="Fixture file name (overrides TEST_PDF)")
@click.option("--test-file", default=DEFAULT_TEST_FILE, help="Name that keys the snapshot directory")
@click.pass_context
def baselines_create(ctx: click.Context, pdf: Optional[str], test_file: str) -> None:
    """Render the fixture and overwrite all of its baselines."""
    cfg = _config(ctx)
    try:
        fixture = select_fixture(cfg.downloads_path, pdf or cfg.test_pdf)
        runner = VisualRegressionRunner(cfg, fixture, build_store(cfg, test_file))
        written = asyncio.run(_create(cfg, runner))
    except PdfQAError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    for path in written:
        console.print(f"  [blue]{path}[/blue]")


async def _create(cfg: HarnessConfig, runner: VisualRegressionRunner) -> list[Path]:
    async with async_playwright() as p:
        browser = await launch_browser(p, cfg.browser_name)
        try:
            context = await new_render_context(browser, cfg.viewport)
            page = await context.new_page()
            return await runner.create_baselines(page)
        finally:
            await browser.close()


@cli.command()
@click.option("--pdf", default=None, help="Fixture file name (overrides TEST_PDF)")
@click.option("--test-file", default=DEFAULT_TEST_FILE, help="Name that keys the snapshot directory")
@click.pass_context
def compare(ctx: click.Context, pdf: Optional[str], test_file: str) -> None:
    """Compare fresh screenshots against stored baselines."""
    cfg = _config(ctx)
    try:
        fixture = select_fixture(cfg.downloads_path, pdf or cfg.test_pdf)
        runner = VisualRegressionRunner(cfg, fixture, build_store(cfg, test_file))
        results = asyncio.run(_compare(cfg, runner))
    except PdfQAError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(_results_table(results))
    failed = [r for r in results if not r.passed]
    for r in failed:
        for image in r.failure_images:
            console.print(f"  [blue]{image}[/blue]")
    if failed:
        console.print(f"[red]{len(failed)} of {len(results)} artifacts differ from baseline[/red]")
        sys.exit(1)
    console.print("[bold green]Visual regression passed[/bold green]")


async def _compare(cfg: HarnessConfig, runner: VisualRegressionRunner) -> list[ArtifactResult]:
    async with async_playwright() as p:
        browser = await launch_browser(p, cfg.browser_name)
        try:
            context = await new_render_context(browser, cfg.viewport)
            return await runner.run_comparisons(context)
        finally:
            await browser.close()


@cli.command()
@click.option("--pdf", default=None, help="Fixture file name (overrides TEST_PDF)")
@click.option("--show-text", is_flag=True, help="Log the full extracted text")
@click.pass_context
def extract(ctx: click.Context, pdf: Optional[str], show_text: bool) -> None:
    """Extract text from a fixture and check basic structure."""
    cfg = _config(ctx)
    fixture = resolve_named_fixture(cfg.downloads_path, pdf or cfg.test_pdf or cfg.extraction_default_pdf)
    try:
        report = validate(extract_pdf(fixture.path))
    except PdfQAError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    log_summary(report, show_text=show_text)
    console.print("[green]Content extraction completed[/green]")


if __name__ == "__main__":
    cli()
