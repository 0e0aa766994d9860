"""
WordNet Review: terminal front-end for the review engine.

A Rich terminal interface that drives the review session controller
over the local SQLite stores.

Commands:
- wordnet add       - Add a word (due immediately)
- wordnet review    - Start an interactive review session
- wordnet due       - List due schedule entries
- wordnet weak      - List the weakest words
- wordnet stats     - Show learning statistics
- wordnet reset     - Make every word due now
- wordnet rebuild   - Recreate the schedule from scratch
"""
from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .config import Settings, get_settings
from .errors import ReviewEngineError
from .models import LearnableItem, ReviewState
from .repository import ReviewRepository
from .retention import RetentionModel
from .scheduler import SM2Scheduler, quality_description
from .seed import seed_repository
from .session import ReviewSessionController
from .stores import Database, SqlItemStore, SqlScheduleStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="wordnet",
    help="WordNet Review: spaced repetition for vocabulary",
    no_args_is_help=True,
)
console = Console()

GRADE_CHOICES = ["0", "3", "4", "5"]


# =============================================================================
# Styling
# =============================================================================

def strength_color(strength: float) -> str:
    """Color for a display strength value."""
    if strength >= 0.8:
        return "green"
    if strength >= 0.4:
        return "yellow"
    return "red"


def style_strength(strength: float) -> str:
    color = strength_color(strength)
    return f"[{color}]{strength:.2f}[/{color}]"


# =============================================================================
# Wiring
# =============================================================================

def open_repository(settings: Settings | None = None) -> ReviewRepository:
    """Open the SQLite stores and reconcile the schedule."""
    settings = settings or get_settings()
    db = Database(settings.get_database_url(), echo=settings.database_echo)
    db.init_schema()

    repository = ReviewRepository(
        items=SqlItemStore(db),
        schedules=SqlScheduleStore(db),
        scheduler=SM2Scheduler(settings.get_sm2_config()),
        retention=RetentionModel(settings.get_retention_config()),
        max_word_length=settings.max_word_length,
    )
    result = repository.reconcile_schedule()
    if result.created:
        console.print(
            f"[yellow]Repaired {result.created} word(s) with no schedule entry; "
            f"they are due now.[/yellow]"
        )
    return repository


@contextmanager
def handle_errors():
    """Turn engine errors into a red message and exit code 1."""
    try:
        yield
    except ReviewEngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


# =============================================================================
# Display Helpers
# =============================================================================

def display_item_front(item: LearnableItem, index: int, remaining: int) -> None:
    """Display the prompt side of an item."""
    header = f"Word {index}  |  {remaining} due  |  strength {style_strength(item.display_strength)}"
    console.print(Panel(
        f"[bold]{item.id}[/bold]",
        title=header,
        title_align="left",
        border_style="cyan",
        padding=(1, 2),
    ))


def display_item_back(item: LearnableItem, retention: RetentionModel) -> None:
    """Display the answer side of an item."""
    content = item.meaning or "[dim](no meaning recorded)[/dim]"
    if item.morphemes:
        content += "\n\n[dim]Morphemes:[/dim] " + " + ".join(item.morphemes)

    estimate = retention.estimate_next_review_time(item)
    content += f"\n[dim]Forgetting-curve estimate: {estimate:%Y-%m-%d}[/dim]"

    console.print(Panel(content, border_style="magenta", padding=(1, 2)))


def _grade_recall() -> Optional[int]:
    """Ask for a quality grade; None means quit."""
    console.print("\n[dim]Rate your recall:[/dim]")
    for grade in reversed(GRADE_CHOICES):
        console.print(f"  {grade} = {quality_description(int(grade))}")

    answer = Prompt.ask("Grade (q to stop)", choices=GRADE_CHOICES + ["q"])
    if answer == "q":
        return None
    return int(answer)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def add(
    word: str = typer.Argument(..., help="Word to learn"),
    meaning: Optional[str] = typer.Option(None, "--meaning", "-m", help="Meaning shown on reveal"),
    morpheme: Optional[List[str]] = typer.Option(
        None,
        "--morpheme", "-p",
        help="Morpheme (repeat for each part)",
    ),
) -> None:
    """Add a word and schedule it for immediate review."""
    with handle_errors():
        repository = open_repository()
        item = repository.add_item(word, meaning=meaning, morphemes=morpheme)
    console.print(f"[green]Added[/green] {item.id} ({' + '.join(item.morphemes)})")


@app.command()
def archive(word: str = typer.Argument(..., help="Word to archive")) -> None:
    """Archive a word. It keeps its history but leaves the review queue."""
    with handle_errors():
        open_repository().archive_item(word.strip().lower())
    console.print(f"[green]Archived[/green] {word}")


@app.command()
def remove(
    word: str = typer.Argument(..., help="Word to delete"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Permanently delete a word and its schedule."""
    if not confirm and not Confirm.ask(f"Delete '{word}' permanently?", default=False):
        raise typer.Exit(0)

    with handle_errors():
        open_repository().remove_item(word.strip().lower())
    console.print(f"[green]Removed[/green] {word}")


@app.command()
def review() -> None:
    """
    Start an interactive review session.

    Presents due words one at a time, earliest due first, until nothing is
    due or you stop.
    """
    settings = get_settings()
    with handle_errors():
        repository = open_repository(settings)
        controller = ReviewSessionController(repository, due_batch=settings.due_query_batch)
        state = controller.start_session()

    if state == ReviewState.COMPLETED:
        console.print("\n[green]Nothing due for review![/green]")
        console.print("All caught up. Check back later.")
        raise typer.Exit(0)

    index = 0
    try:
        while controller.state == ReviewState.RECALLING:
            item = controller.current_item
            index += 1
            console.print()
            display_item_front(item, index, controller.due_count())

            Prompt.ask("\n[dim]Press Enter to reveal[/dim]", default="", show_default=False)
            controller.reveal_answer()
            display_item_back(item, repository.retention)

            grade = _grade_recall()
            if grade is None:
                break

            with handle_errors():
                result = controller.submit_grade(grade)

            color = "green" if result.quality >= 3 else "red"
            console.print(
                f"[{color}]{quality_description(result.quality)}[/{color}]  "
                f"next review in {result.entry.interval_days}d "
                f"(EF {result.entry.easiness_factor:.2f})"
            )

    except KeyboardInterrupt:
        console.print("\n\n[yellow]Session interrupted.[/yellow]")

    _display_session_summary(controller)


def _display_session_summary(controller: ReviewSessionController) -> None:
    """Display end-of-session summary."""
    status = "Session Complete!" if controller.state == ReviewState.COMPLETED else "Session Paused"
    console.print("\n")
    console.print(Panel(
        f"[bold]{status}[/bold]\n\n"
        f"Words graded: {controller.graded_count}\n"
        f"Still due: {controller.due_count()}",
        title="Summary",
        border_style="green",
    ))


@app.command()
def due(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of entries to show"),
) -> None:
    """List schedule entries that are due now."""
    with handle_errors():
        repository = open_repository()
        entries = repository.query_due(repository.clock(), limit)
        total = repository.count_due()

    console.print(f"\n[bold]{total} due[/bold]\n")
    if not entries:
        return

    table = Table()
    table.add_column("Word")
    table.add_column("Due")
    table.add_column("Interval")
    table.add_column("EF")
    table.add_column("Streak")

    for entry in entries:
        table.add_row(
            entry.item_id,
            f"{entry.due_at:%Y-%m-%d %H:%M}",
            f"{entry.interval_days}d",
            f"{entry.easiness_factor:.2f}",
            str(entry.repetition_streak),
        )

    console.print(table)


@app.command()
def weak(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of words to show"),
) -> None:
    """List the words with the lowest display strength."""
    settings = get_settings()
    with handle_errors():
        items = open_repository(settings).select_weakest(limit or settings.weak_item_limit)

    _print_item_table("Weakest Words", items)


@app.command()
def search(root: str = typer.Argument(..., help="Morpheme to look for")) -> None:
    """Find words that contain a morpheme."""
    with handle_errors():
        items = open_repository().search_by_morpheme(root)

    if not items:
        console.print(f"[yellow]No words contain '{root}'[/yellow]")
        return
    _print_item_table(f"Words with '{root}'", items)


def _print_item_table(title: str, items: list[LearnableItem]) -> None:
    console.print(f"\n[bold]{title}[/bold]\n")

    table = Table()
    table.add_column("Word")
    table.add_column("Strength")
    table.add_column("Reviews")
    table.add_column("Morphemes", style="dim")

    for item in items:
        table.add_row(
            item.id,
            style_strength(item.display_strength),
            str(item.review_count),
            " + ".join(item.morphemes),
        )

    console.print(table)


@app.command()
def roots(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of roots to show"),
) -> None:
    """Show word count and average strength per morpheme."""
    with handle_errors():
        root_stats = open_repository().root_statistics()

    if limit:
        root_stats = root_stats[:limit]
    if not root_stats:
        console.print("[yellow]No morphemes recorded yet[/yellow]")
        return

    console.print("\n[bold]Morpheme Roots[/bold]\n")

    table = Table()
    table.add_column("Root")
    table.add_column("Words", justify="right")
    table.add_column("Avg strength")

    for stat in root_stats:
        table.add_row(stat.root, str(stat.word_count), style_strength(stat.avg_strength))

    console.print(table)


@app.command()
def stats() -> None:
    """Show learning statistics and progress."""
    with handle_errors():
        db_stats = open_repository().stats()

    console.print("\n[bold cyan]Learning Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Words in rotation", str(db_stats["total_items"]))
    table.add_row("Words mastered", str(db_stats["mastered_items"]))
    table.add_row("Words due now", str(db_stats["items_due"]))
    table.add_row("Average strength", f"{db_stats['avg_strength']:.2f}")
    table.add_row("Total reviews", str(db_stats["total_reviews"]))

    console.print(table)


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Make every word due now. Review progress is kept."""
    if not confirm and not Confirm.ask("Make all words due now?", default=False):
        raise typer.Exit(0)

    settings = get_settings()
    with handle_errors():
        controller = ReviewSessionController(open_repository(settings), settings.due_query_batch)
        count = controller.reset()
    console.print(f"[green]{count} words are due now.[/green]")


@app.command()
def rebuild(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Recreate the schedule for all active words. Discards SM-2 progress."""
    if not confirm and not Confirm.ask(
        "Rebuild the schedule? All SM-2 progress will be lost!", default=False
    ):
        raise typer.Exit(0)

    with handle_errors():
        count = open_repository().rebuild_schedule()
    console.print(f"[green]Schedule rebuilt for {count} words.[/green]")


@app.command()
def check() -> None:
    """Report active words that have no schedule entry."""
    settings = get_settings()
    with handle_errors():
        db = Database(settings.get_database_url())
        db.init_schema()
        repository = ReviewRepository(SqlItemStore(db), SqlScheduleStore(db))
        missing = repository.find_missing_entries()

    if missing:
        console.print(f"[red]{len(missing)} words have no schedule entry:[/red] {', '.join(missing)}")
        console.print("Run [bold]wordnet rebuild[/bold] or any other command to reconcile.")
        raise typer.Exit(1)
    console.print("[green]Schedule is consistent.[/green]")


@app.command()
def seed(
    path: Optional[Path] = typer.Argument(None, help="JSON word list"),
) -> None:
    """Load a default word list. Words already present are skipped."""
    settings = get_settings()
    source = path or (Path(settings.seed_file) if settings.seed_file else None)
    if source is None:
        console.print("[red]No seed file given and WORDNET_SEED_FILE is not set.[/red]")
        raise typer.Exit(1)

    with handle_errors():
        count = seed_repository(open_repository(settings), source)
    console.print(f"[green]Seeded {count} words from {source}[/green]")


# =============================================================================
# Entry Point
# =============================================================================

def configure_logging(settings: Settings) -> None:
    """Send loguru output to stderr and, if configured, a rotating file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB", retention=5)


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
