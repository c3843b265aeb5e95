"""Command-line interface for habitlens."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from habitlens.analytics import PeakTimeAnalyzer, TagPerformanceAnalyzer, block_averages, find_peak_block
from habitlens.config import Config, get_config, load_config, set_config
from habitlens.insights import CliTextGenerator, InsightOrchestrator, InsightRun
from habitlens.models import UserInsights, WorkSession
from habitlens.storage import HabitStore, PersistenceError, StoreError

console = Console()
error_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    """Route habitlens log records to stderr through rich."""
    package_logger = logging.getLogger("habitlens")
    package_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=error_console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


def _open_store(config: Config) -> HabitStore:
    try:
        return HabitStore(db_path=config.storage.resolved_db_path())
    except StoreError as e:
        error_console.print(f"[red]Error initializing store:[/red] {e}")
        sys.exit(1)


def _print_insights(user_id: str, insights: UserInsights) -> None:
    top = ", ".join(insights.top_performing_tags) or "—"
    weak = ", ".join(insights.improvement_area_tags) or "—"
    console.print(Panel(
        f"[bold]Strongest tags:[/bold] {top}\n"
        f"[bold]Needs work:[/bold] {weak}\n"
        f"[bold]Peak time:[/bold] {insights.peak_productivity_time}\n\n"
        f"{insights.habit_analysis}",
        title=f"Insights for {user_id}",
        border_style="green",
    ))


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.toml (default: ~/.habitlens/config.toml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(config_path: Path | None, verbose: bool) -> None:
    """habitlens - coaching insights from rated work sessions."""
    if config_path is not None:
        set_config(load_config(config_path))
    config = get_config()
    _configure_logging("DEBUG" if verbose else config.logging.level)


@cli.group()
def users() -> None:
    """Manage user profiles."""
    pass


@users.command("add")
@click.argument("name")
@click.option("--id", "user_id", type=str, help="Explicit user id (default: generated)")
def users_add(name: str, user_id: str | None) -> None:
    """Create a user profile."""
    store = _open_store(get_config())
    try:
        user = store.create_user(name, user_id=user_id)
    except PersistenceError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        store.close()

    console.print(f"[green]Created user[/green] {user.name} [dim]({user.id})[/dim]")


@users.command("list")
def users_list() -> None:
    """List user profiles."""
    store = _open_store(get_config())
    try:
        all_users = store.list_users()
        if not all_users:
            console.print("[yellow]No users found.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Sessions", justify="right")
        table.add_column("Peak Time", style="dim")

        for user in all_users:
            peak = user.insights.peak_productivity_time if user.insights else "—"
            table.add_row(user.id, user.name, str(store.count_sessions(user.id)), peak)

        console.print(table)
    finally:
        store.close()


@cli.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--create-users", is_flag=True, help="Create profiles for unknown user ids")
def import_sessions(file: Path, create_users: bool) -> None:
    """Import work sessions from a JSONL file (one session per line).

    Examples:
        habitlens import sessions.jsonl
        habitlens import sessions.jsonl --create-users
    """
    store = _open_store(get_config())
    imported = 0
    failed = 0
    try:
        with file.open(encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    session = WorkSession.model_validate_json(line)
                except ValidationError as e:
                    error_console.print(f"[yellow]Line {line_no}: invalid session[/yellow] {e}")
                    failed += 1
                    continue

                if create_users and store.get_user(session.user_id) is None:
                    store.create_user(session.user_id, user_id=session.user_id)

                try:
                    store.save_session(session)
                except PersistenceError as e:
                    error_console.print(f"[yellow]Line {line_no}:[/yellow] {e}")
                    failed += 1
                    continue
                imported += 1
    except UnicodeDecodeError as e:
        error_console.print(f"[red]Error:[/red] Not valid UTF-8: {file} ({e.reason})")
        sys.exit(1)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        store.close()

    console.print(f"[bold green]Imported {imported} session(s)[/bold green]")
    if failed:
        console.print(f"[yellow]Skipped {failed} line(s)[/yellow]")


@cli.command()
@click.argument("user_id", required=False)
@click.option("--all", "run_all", is_flag=True, help="Analyze every user")
@click.option("--backend", "-b", type=click.Choice(["claude", "codex", "gemini"]), help="LLM CLI to use")
@click.option("--timeout", type=click.IntRange(min=1), help="Seconds to wait for the LLM")
def analyze(user_id: str | None, run_all: bool, backend: str | None, timeout: int | None) -> None:
    """Generate and store coaching insights.

    Examples:
        habitlens analyze USER_ID
        habitlens analyze --all --backend claude
    """
    if bool(user_id) == run_all:
        error_console.print("[red]Error:[/red] Pass a USER_ID or --all")
        sys.exit(1)

    config = get_config()
    store = _open_store(config)
    try:
        generate = CliTextGenerator(
            backend_name=backend or config.llm.backend or None,
            timeout=timeout or config.llm.timeout,
        )
        orchestrator = InsightOrchestrator(
            store,
            generate,
            tag_analyzer=TagPerformanceAnalyzer(
                store,
                min_samples=config.analysis.min_tag_samples,
                max_tags=config.analysis.max_tags,
            ),
        )

        if run_all:
            try:
                user_ids = [u.id for u in store.list_users()]
            except StoreError as e:
                error_console.print(f"[red]Error:[/red] {e}")
                sys.exit(1)
            if not user_ids:
                console.print("[yellow]No users found.[/yellow]")
                return
        else:
            user_ids = [user_id]

        with console.status("[bold]Generating insights...[/bold]"):
            results = orchestrator.run_for_users(user_ids)
    finally:
        store.close()

    _report_runs(results, show_details=not run_all)
    if any(not r.ok for r in results.values()):
        sys.exit(1)


def _report_runs(results: dict[str, InsightRun], show_details: bool) -> None:
    for uid, run in results.items():
        if run.ok:
            console.print(f"  [green]✓[/green] {uid}")
            if show_details and run.insights is not None:
                _print_insights(uid, run.insights)
        else:
            stage = run.stage.value if run.stage else "unknown stage"
            console.print(f"  [red]✗[/red] {uid} [dim]({stage})[/dim] {run.error}")

    succeeded = sum(1 for r in results.values() if r.ok)
    console.print(f"\n[bold]{succeeded}/{len(results)} run(s) succeeded[/bold]")


@cli.command()
@click.argument("user_id")
def tags(user_id: str) -> None:
    """Show a user's tag ranking."""
    config = get_config()
    store = _open_store(config)
    try:
        analyzer = TagPerformanceAnalyzer(store, min_samples=config.analysis.min_tag_samples)
        ranked = analyzer.ranked_tags(user_id)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        store.close()

    if not ranked:
        console.print(
            f"[yellow]No tag has {config.analysis.min_tag_samples}+ rated sessions yet.[/yellow]"
        )
        return

    table = Table(show_header=True, header_style="bold", title="Tag Performance")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Tag", style="cyan")
    table.add_column("Avg Rating", justify="right")
    table.add_column("Sessions", justify="right")
    for i, stat in enumerate(ranked, start=1):
        table.add_row(str(i), stat.tag, f"{stat.average_rating:.2f}", str(stat.sample_count))
    console.print(table)


@cli.command()
@click.argument("user_id")
def peak(user_id: str) -> None:
    """Show average ratings by time of day."""
    store = _open_store(get_config())
    try:
        blocks = PeakTimeAnalyzer(store).block_stats(user_id)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        store.close()

    averages = block_averages(blocks)
    table = Table(show_header=True, header_style="bold", title="Time of Day")
    table.add_column("Block", style="cyan")
    table.add_column("Avg Rating", justify="right")
    table.add_column("Sessions", justify="right")
    for block, stat in blocks.items():
        avg = averages[block.value]
        table.add_row(block.value, f"{avg:.2f}" if avg is not None else "—", str(stat.count))
    console.print(table)
    console.print(f"[bold]Peak:[/bold] {find_peak_block(blocks)}")


@cli.command()
@click.argument("user_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(user_id: str, as_json: bool) -> None:
    """Show the stored insights of a user."""
    store = _open_store(get_config())
    try:
        user = store.get_user(user_id)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        store.close()

    if user is None:
        error_console.print(f"[red]Error:[/red] Unknown user: {user_id}")
        sys.exit(1)

    if user.insights is None:
        console.print(f"[yellow]No insights yet for {user_id}. Run 'habitlens analyze {user_id}'.[/yellow]")
        return

    if as_json:
        click.echo(json.dumps(user.insights.model_dump(), indent=2))
    else:
        _print_insights(user_id, user.insights)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
