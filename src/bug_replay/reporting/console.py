"""
Console presentation - Rich progress bar and outcome panels.
"""

from typing import Optional, TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TaskID

from bug_replay.interfaces.collaborators import FallbackPlan, IOutcomePresenter, IProgressSink

if TYPE_CHECKING:
    from bug_replay.exceptions.replay import TransportFault


class RichProgressSink(IProgressSink):
    """
    Shows replay progress as a rich progress bar.
    
    The bar is created on on_start and removed on on_finish.
    """
    
    def __init__(self, console: Optional[Console] = None, description: str = "Replaying..."):
        self._console = console or Console()
        self._description = description
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
    
    def on_start(self, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self._console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=total)
    
    def on_progress(self, completed: int, total: int) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(
            self._task,
            completed=completed,
            total=total,
            description=f"Replaying step {completed}/{total}",
        )
    
    def on_finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None


class ConsolePresenter(IOutcomePresenter):
    """
    Prints replay outcomes as rich panels.
    """
    
    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
    
    def show_success(self, report_id: str, reference: str) -> None:
        self._console.print(Panel.fit(
            f"[bold green]✓ Replay complete[/bold green]\n\n{reference}",
            title=f"Bug {report_id}",
            border_style="green",
        ))
    
    def show_failure(self, report_id: str, plan: FallbackPlan) -> None:
        lines = [f"[bold red]✗ Replay failed:[/bold red] {plan.reason}", ""]
        if plan.steps:
            lines.append("[bold]Reproduce these steps manually:[/bold]")
            lines.extend(f"  {i}. {step}" for i, step in enumerate(plan.steps, start=1))
            lines.append("")
        lines.append(f"[dim]Record Manually (Iteration {plan.next_iteration})[/dim]")
        self._console.print(Panel.fit(
            "\n".join(lines),
            title=f"Bug {report_id}",
            border_style="red",
        ))
    
    def show_persistence_error(self, report_id: str, error: "TransportFault") -> None:
        self._console.print(Panel.fit(
            f"[bold yellow]⚠ Replay succeeded but the new iteration was not saved[/bold yellow]\n\n{error.message}",
            title=f"Bug {report_id}",
            border_style="yellow",
        ))
