"""
bug-replay - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--store, --api-url, etc.)
    2. Environment variables (BUG_REPLAY__STORAGE__BACKEND, etc.)
    3. Config file (config.yaml)

Usage:
    bug-replay replay BUG-42
    bug-replay replay BUG-42 --visible --pacing relative
    bug-replay steps BUG-42
    bug-replay list --status active
"""

import asyncio
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bug_replay import __version__
from bug_replay.browsers.playwright_browser import PlaywrightBrowser
from bug_replay.config import load_config
from bug_replay.config.settings import Settings
from bug_replay.engine.orchestrator import OutcomeKind, ReplayOrchestrator
from bug_replay.engine.steps import describe_steps
from bug_replay.exceptions import BugReplayError
from bug_replay.interfaces.browser import BrowserType
from bug_replay.recorder import PageTraceRecorder
from bug_replay.reporting import ConsolePresenter, PageScreenshotProvider, RichProgressSink
from bug_replay.storage import ReportStore, create_store
from bug_replay.utils.logging import setup_logging

# Create the CLI app
app = typer.Typer(
    name="bug-replay",
    help="Replay recorded bug reports against the live page",
    add_completion=False,
)

console = Console()


def _load_settings(
    config: Optional[str] = None,
    store: Optional[str] = None,
    api_url: Optional[str] = None,
    data_dir: Optional[str] = None,
    verbose: bool = False,
    **replay_overrides: Any,
) -> Settings:
    """Load settings and apply the CLI options that were given."""
    overrides: Dict[str, Any] = {}
    storage: Dict[str, Any] = {}
    if store:
        storage["backend"] = store
    if api_url:
        storage["api_url"] = api_url
    if data_dir:
        storage["data_dir"] = data_dir
    if storage:
        overrides["storage"] = storage
    
    replay = {k: v for k, v in replay_overrides.items() if v is not None}
    if replay:
        overrides["replay"] = replay
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}
    
    settings = load_config(config_path=config, **overrides)
    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        json_format=settings.logging.json_format,
        file_format=settings.logging.format,
    )
    return settings


async def _load_report(store: ReportStore, report_id: str):
    report = await store.get(report_id)
    if report is None:
        console.print(f"[red]Error: Bug report {report_id} not found.[/red]")
        raise typer.Exit(1)
    return report


@app.command()
def replay(
    report_id: str = typer.Argument(..., help="Bug report to replay"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Start URL (default: the report's URL)"),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    store: Optional[str] = typer.Option(None, "--store", "-s", help="Report store: http or file"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Report storage service URL"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Directory holding bug_reports.json"),
    pacing: Optional[str] = typer.Option(None, "--pacing", help="Step pacing: fixed or relative"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", help="Resolution attempts per step"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Replay a bug report's original recording and save the result as a new iteration.
    
    Examples:
        bug-replay replay BUG-42 --visible
        bug-replay replay BUG-42 --store file --data-dir ~/.pointa
    """
    if pacing is not None and pacing not in ("fixed", "relative"):
        console.print(f"[red]Error: Unknown pacing '{pacing}'. Use fixed or relative.[/red]")
        raise typer.Exit(2)
    
    settings = _load_settings(
        config=config,
        store=store,
        api_url=api_url,
        data_dir=data_dir,
        verbose=verbose,
        pacing=pacing,
        max_attempts=max_attempts,
    )
    if visible:
        settings = settings.merge_with({"browser": {"headless": False}})
    
    try:
        success = asyncio.run(_run_replay(settings, report_id, url))
    except BugReplayError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    
    if not success:
        raise typer.Exit(1)


async def _run_replay(settings: Settings, report_id: str, url: Optional[str]) -> bool:
    report_store = create_store(settings.storage)
    try:
        report = await _load_report(report_store, report_id)
        
        original = report.original_recording
        if original is None or not original.replayable_interactions():
            console.print(f"[yellow]Nothing to replay: {report_id} has no recorded clicks or inputs.[/yellow]")
            return False
        
        start_url = url or report.start_url
        if not start_url:
            console.print(f"[red]Error: {report_id} has no URL. Pass one with --url.[/red]")
            return False
        
        steps = len(original.replayable_interactions())
        console.print(Panel.fit(
            f"[bold blue]🐞 Bug Replay[/bold blue]\n"
            f"[dim]Report:[/dim] {report.title}\n"
            f"[dim]URL:[/dim] {start_url}\n"
            f"[dim]Steps:[/dim] {steps}\n"
            f"[dim]Iteration:[/dim] {report.next_iteration}",
            border_style="blue",
        ))
        
        browser = PlaywrightBrowser()
        launch_options: Dict[str, Any] = {}
        if settings.browser.channel:
            launch_options["channel"] = settings.browser.channel
        await browser.launch(
            headless=settings.browser.headless,
            browser_type=BrowserType(settings.browser.browser_type),
            **launch_options,
        )
        try:
            page = await browser.new_page(viewport={
                "width": settings.browser.viewport_width,
                "height": settings.browser.viewport_height,
            })
            await page.goto(start_url, wait_until="domcontentloaded", timeout=settings.browser.timeout_ms)
            
            orchestrator = ReplayOrchestrator.from_settings(
                settings,
                page,
                PageTraceRecorder(page),
                report_store,
                progress=RichProgressSink(console),
                presenter=ConsolePresenter(console),
                screenshots=PageScreenshotProvider(page),
            )
            outcome = await orchestrator.replay(report)
            
            if outcome.kind == OutcomeKind.FAILED and not settings.browser.headless:
                if typer.confirm(f"Record iteration {report.next_iteration} manually?", default=False):
                    await _record_manually(orchestrator, report)
                    return True
            
            return outcome.success and outcome.persisted
        finally:
            await browser.close()
    finally:
        await report_store.close()


async def _record_manually(orchestrator: ReplayOrchestrator, report) -> None:
    async def wait_for_enter() -> None:
        await asyncio.to_thread(input, "Reproduce the bug in the browser, then press Enter to stop recording... ")
    
    recording = await orchestrator.record_manually(report, until=wait_for_enter)
    console.print(f"\n[green]✓ Saved manual recording as iteration {recording.iteration}[/green]")


@app.command()
def steps(
    report_id: str = typer.Argument(..., help="Bug report to describe"),
    store: Optional[str] = typer.Option(None, "--store", "-s", help="Report store: http or file"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Report storage service URL"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Directory holding bug_reports.json"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Print the steps of a bug report's original recording."""
    settings = _load_settings(config=config, store=store, api_url=api_url, data_dir=data_dir)
    
    async def _steps() -> None:
        report_store = create_store(settings.storage)
        try:
            report = await _load_report(report_store, report_id)
        finally:
            await report_store.close()
        
        original = report.original_recording
        descriptions = describe_steps(original) if original else []
        if not descriptions:
            console.print(f"[yellow]{report_id} has no recorded interactions.[/yellow]")
            return
        
        console.print(f"\n[bold]Steps for {report_id}:[/bold]")
        for i, description in enumerate(descriptions, 1):
            console.print(f"  {i}. {description}")
    
    try:
        asyncio.run(_steps())
    except BugReplayError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("list")
def list_reports(
    status: Optional[str] = typer.Option(None, "--status", help="Only reports with this status"),
    store: Optional[str] = typer.Option(None, "--store", "-s", help="Report store: http or file"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Report storage service URL"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Directory holding bug_reports.json"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """List bug reports with their iteration counts."""
    settings = _load_settings(config=config, store=store, api_url=api_url, data_dir=data_dir)
    
    async def _list():
        report_store = create_store(settings.storage)
        try:
            return await report_store.list(status=status)
        finally:
            await report_store.close()
    
    try:
        reports = asyncio.run(_list())
    except BugReplayError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    
    if not reports:
        console.print("[dim]No bug reports found.[/dim]")
        return
    
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Iterations", justify="right")
    table.add_column("Steps", justify="right")
    table.add_column("Title")
    
    for report in reports:
        original = report.original_recording
        table.add_row(
            report.id,
            report.status,
            str(len(report.recordings)),
            str(len(original.replayable_interactions())) if original else "0",
            report.title,
        )
    
    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"bug-replay v{__version__}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
