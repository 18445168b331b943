"""Rich display helpers for CLI output."""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dicecore.dice.checks import calculate_ability_modifier
from dicecore.dice.types import (
    AbilityScoreResult,
    AnalysisResult,
    HistoryEntry,
    RollOutcome,
    SelfTestResult,
    StatisticsSnapshot,
    ValidationResult,
)


# Shared console instance
console = Console()


def _format_modifier(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def display_error(message: str) -> None:
    """Display error message.

    Args:
        message: Error message.
    """
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def display_success(message: str) -> None:
    """Display success message.

    Args:
        message: Success message.
    """
    console.print(f"[bold green]{escape(message)}[/bold green]")


def display_info(message: str) -> None:
    """Display info message.

    Args:
        message: Info message.
    """
    console.print(f"[dim]{escape(message)}[/dim]")


def display_outcome(outcome: RollOutcome) -> None:
    """Display a roll outcome with its per-term breakdown.

    Args:
        outcome: The outcome to display.
    """
    if outcome.error is not None:
        display_error(f"{outcome.expression}: {outcome.error.message}")
        return

    header = f"[bold]{escape(outcome.expression)}[/bold]"
    if outcome.normalized and outcome.normalized != outcome.expression:
        header += f" [dim]({escape(outcome.normalized)})[/dim]"
    if outcome.attempts > 1:
        header += f" [dim]after {outcome.attempts} attempts[/dim]"

    flags = ""
    if outcome.natural_twenty:
        flags += " [bold green]NAT 20[/bold green]"
    if outcome.natural_one:
        flags += " [bold red]NAT 1[/bold red]"

    console.print(f"{header} → [bold cyan]{outcome.total}[/bold cyan]{flags}")
    for line in outcome.breakdown:
        console.print(f"  [dim]{escape(line)}[/dim]")


def display_ability_scores(result: AbilityScoreResult) -> None:
    """Display an ability score array with modifiers and a summary."""
    if result.error is not None:
        display_error(result.error.message)
        return

    table = Table(title=f"Ability Scores ({escape(result.method)})", box=box.ROUNDED)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Score", justify="center", style="cyan")
    table.add_column("Modifier", justify="center", style="yellow")

    for index, score in enumerate(result.scores, start=1):
        table.add_row(str(index), str(score), _format_modifier(calculate_ability_modifier(score)))

    console.print(table)
    stats = result.statistics
    console.print(
        f"Total: [cyan]{stats.total}[/cyan]  "
        f"Range: {stats.minimum}-{stats.maximum}  "
        f"Modifiers: [yellow]{_format_modifier(stats.total_modifier)}[/yellow]  "
        f"Above 10: {stats.above_ten}  Below 10: {stats.below_ten}"
    )


def display_statistics(snapshot: StatisticsSnapshot) -> None:
    """Display per-expression and global roll statistics."""
    table = Table(title="Roll Statistics")
    table.add_column("Expression", style="white")
    table.add_column("Rolls", justify="right")
    table.add_column("Average", justify="right", style="cyan")
    table.add_column("Most Common", justify="right", style="yellow")

    for expression, stats in snapshot.expressions.items():
        most_common = max(stats.histogram.items(), key=lambda item: item[1])[0]
        table.add_row(escape(expression), str(stats.count), f"{stats.average:.2f}", str(most_common))

    console.print(table)

    if snapshot.dice:
        dice_table = Table(title="Faces by Die Size", box=box.SIMPLE)
        dice_table.add_column("Die", style="white")
        dice_table.add_column("Faces", justify="right")
        dice_table.add_column("Average", justify="right", style="cyan")
        dice_table.add_column("Expected", justify="right", style="dim")
        for sides, stats in snapshot.dice.items():
            dice_table.add_row(
                f"d{sides}", str(stats.count), f"{stats.average:.2f}", f"{stats.theoretical_average:.2f}"
            )
        console.print(dice_table)

    overall = snapshot.overall
    console.print(
        f"Total rolls: {overall.total_rolls}  "
        f"Avg duration: {overall.average_duration_ms:.3f}ms  "
        f"Max duration: {overall.max_duration_ms:.3f}ms  "
        f"Nat 20s: {overall.natural_twenties}  Nat 1s: {overall.natural_ones}"
    )


def display_history(entries: list[HistoryEntry]) -> None:
    """Display recent roll history."""
    if not entries:
        display_info("No rolls yet.")
        return

    table = Table(title="Roll History")
    table.add_column("Expression", style="white")
    table.add_column("Total", justify="right", style="cyan")
    table.add_column("Duration", justify="right", style="dim")
    for entry in entries:
        table.add_row(escape(entry.expression), str(entry.total), f"{entry.duration_ms:.3f}ms")
    console.print(table)


def display_self_test(results: list[SelfTestResult]) -> None:
    """Display self-test results, one row per case."""
    table = Table(title="Self Test")
    table.add_column("Expression", style="white")
    table.add_column("Expected", justify="center")
    table.add_column("Observed", justify="center")
    table.add_column("Result", justify="center")

    for r in results:
        expected = "error" if r.expected_min == r.expected_max == 0 else f"{r.expected_min}-{r.expected_max}"
        observed = (
            f"{r.observed_min}-{r.observed_max}" if r.observed_min is not None else r.message
        )
        status = "[green]PASS[/green]" if r.passed else "[red]FAIL[/red]"
        table.add_row(escape(r.expression), expected, escape(observed), status)

    console.print(table)


def display_analysis(result: AnalysisResult) -> None:
    """Display sample statistics for an analyzed expression."""
    if result.error is not None:
        display_error(f"{result.expression}: {result.error.message}")
        return

    table = Table(title=f"{escape(result.expression)} x{result.iterations}", box=box.SIMPLE)
    table.add_column("Mean", justify="right", style="cyan")
    table.add_column("Median", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_row(f"{result.mean:.2f}", f"{result.median:g}", str(result.minimum), str(result.maximum))
    console.print(table)


def display_validation(result: ValidationResult) -> None:
    """Display whether an expression is valid notation."""
    if result.error is not None:
        display_error(f"{result.expression}: {result.error.message}")
        return
    display_success(
        f"'{result.expression}' is valid: {result.normalized} "
        f"({result.term_count} term{'s' if result.term_count != 1 else ''})"
    )
