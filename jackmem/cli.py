"""
Jackmem CLI - inspect and reset a session memory directory.

Read-only commands load the snapshot files directly and never write them.
"""

from datetime import datetime

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from jackmem.config import load_config
from jackmem.engine import SessionMemory
from jackmem.exceptions import ConfigError, PersistenceError
from jackmem.models import truncate
from jackmem.persistence import SnapshotStore
from jackmem.state import TaskStatus

console = Console()

app = typer.Typer(
    name="jackmem",
    help="Inspect the session and task memory of the coding assistant",
    add_completion=False,
    no_args_is_help=True,
)

DATA_DIR_OPTION = typer.Option(None, "--data-dir", "-d", help="Memory root (default: JACKMEM_DATA_DIR or ~/.jack)")

STATUS_STYLES = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.BLOCKED: "red",
    TaskStatus.COMPLETED: "green",
    TaskStatus.CANCELLED: "dim",
}


def _snapshots(data_dir: str | None) -> SnapshotStore:
    try:
        return SnapshotStore.from_config(load_config(data_dir))
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def status(data_dir: str = DATA_DIR_OPTION) -> None:
    """Show the stored session."""
    snapshots = _snapshots(data_dir)
    try:
        session = snapshots.read_session()
    except PersistenceError as e:
        console.print(f"[bold red]Unreadable session snapshot:[/bold red] {e}")
        raise typer.Exit(1)

    if session is None:
        console.print(f"[yellow]No session snapshot at {snapshots.session_path}[/yellow]")
        return

    age_minutes = round((datetime.now() - session.last_activity).total_seconds() / 60)
    lines = [
        f"[bold]Session:[/bold] {session.session_id}",
        f"[bold]Started:[/bold] {session.start_time:%Y-%m-%d %H:%M}",
        f"[bold]Last activity:[/bold] {age_minutes}m ago",
        f"[bold]Turns:[/bold] {len(session.conversation_history)}   "
        f"[bold]Tool calls:[/bold] {len(session.tool_call_chain)}   "
        f"[bold]Actions:[/bold] {len(session.recent_actions)}",
        f"[bold]Active files:[/bold] {len(session.active_files)}",
    ]
    if session.user_intent:
        lines.append(f"[bold]Intent:[/bold] {session.user_intent}")
    if session.context_summary:
        lines.append("")
        lines.append(session.context_summary)

    console.print(Panel("\n".join(lines), title="Session Memory", border_style="blue"))


@app.command()
def tasks(
    data_dir: str = DATA_DIR_OPTION,
    show_all: bool = typer.Option(False, "--all", "-a", help="Include finished tasks"),
) -> None:
    """List tasks."""
    snapshots = _snapshots(data_dir)
    try:
        context = snapshots.read_context()
    except PersistenceError as e:
        console.print(f"[bold red]Unreadable context snapshot:[/bold red] {e}")
        raise typer.Exit(1)

    if context is None:
        console.print(f"[yellow]No context snapshot at {snapshots.context_path}[/yellow]")
        return

    rows = list(context.current_tasks)
    if show_all:
        rows = list(context.completed_tasks) + rows
    if not rows:
        console.print("[dim]No tasks.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Description")

    for task in rows:
        style = STATUS_STYLES.get(task.status, "")
        table.add_row(
            task.id,
            task.type,
            task.priority.value,
            f"[{style}]{task.status.value}[/{style}]" if style else task.status.value,
            f"{task.progress}%",
            truncate(task.description, 60),
        )
    console.print(table)


@app.command()
def prompt(
    data_dir: str = DATA_DIR_OPTION,
    base: str = typer.Option("", "--base", "-b", help="Base system prompt to extend"),
) -> None:
    """Print the system prompt with the memory context appended."""
    try:
        config = load_config(data_dir)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    memory = SessionMemory(config, log_restore=False)
    try:
        for problem in memory.restore_report.problems:
            console.print(f"[yellow]Warning:[/yellow] {problem.describe()}")
        console.print(memory.get_enhanced_system_prompt(base), markup=False, highlight=False)
    finally:
        memory.close()


@app.command()
def reset(
    data_dir: str = DATA_DIR_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete the stored session and workspace context."""
    snapshots = _snapshots(data_dir)
    if not yes and not typer.confirm("Delete session memory and all tasks?"):
        raise typer.Abort()

    removed = snapshots.clear()
    if removed:
        for path in removed:
            console.print(f"[green]Removed[/green] {path}")
    else:
        console.print("[dim]Nothing to remove.[/dim]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
