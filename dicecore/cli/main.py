"""Main CLI application for the dice engine."""

import logging

import typer

from dicecore.cli.display import (
    display_ability_scores,
    display_analysis,
    display_error,
    display_history,
    display_info,
    display_outcome,
    display_self_test,
    display_statistics,
    display_success,
    display_validation,
)
from dicecore.config import Settings
from dicecore.dice.checks import DEFAULT_METHOD, available_methods
from dicecore.dice.engine import DiceEngine

# Create main app
app = typer.Typer(
    name="dicecore",
    help="Roll tabletop dice expressions like 3d6+2, 4d6dl1 and 2d20kh1",
    add_completion=False,
)

# Options shared by every command, set in the callback
_state: dict = {"seed": None}


def _get_engine() -> DiceEngine:
    """Build an engine, seeded when --seed was given."""
    seed = _state["seed"]
    if seed is None:
        return DiceEngine()
    return DiceEngine(settings=Settings(rng="pseudo", rng_seed=seed))


@app.command()
def roll(
    expression: str = typer.Argument(..., help="Dice expression, e.g. 4d6dl1 or 1d20+5"),
    times: int = typer.Option(1, "--times", "-n", min=1, help="Number of rolls"),
    advantage: bool = typer.Option(False, "--advantage", "-a", help="Roll the d20 with advantage"),
    disadvantage: bool = typer.Option(
        False, "--disadvantage", "-d", help="Roll the d20 with disadvantage"
    ),
    crit: int = typer.Option(None, "--crit", "-c", help="Critical multiplier for dice counts"),
    reroll: int = typer.Option(None, "--reroll", "-r", help="Reroll everything while any die shows this"),
) -> None:
    """Roll a dice expression."""
    chosen = [
        flag
        for flag, enabled in (
            ("--advantage", advantage),
            ("--disadvantage", disadvantage),
            ("--crit", crit is not None),
            ("--reroll", reroll is not None),
        )
        if enabled
    ]
    if len(chosen) > 1:
        display_error(f"Options {' and '.join(chosen)} cannot be combined; choose one")
        raise typer.Exit(1)

    engine = _get_engine()
    failed = False
    for _ in range(times):
        if advantage:
            outcome = engine.roll_with_advantage(expression)
        elif disadvantage:
            outcome = engine.roll_with_disadvantage(expression)
        elif crit is not None:
            outcome = engine.roll_critical(expression, crit)
        elif reroll is not None:
            outcome = engine.roll_with_reroll(expression, reroll)
        else:
            outcome = engine.roll(expression)
        display_outcome(outcome)
        failed = failed or outcome.error is not None

    if failed:
        raise typer.Exit(1)


@app.command()
def batch(
    expressions: list[str] = typer.Argument(..., help="Expressions to roll"),
) -> None:
    """Roll several expressions at once; failures don't stop the batch."""
    engine = _get_engine()
    outcomes = engine.roll_batch(expressions)
    for outcome in outcomes:
        display_outcome(outcome)
    display_history(engine.get_history(len(outcomes)))

    if any(outcome.error is not None for outcome in outcomes):
        raise typer.Exit(1)


@app.command()
def abilities(
    method: str = typer.Option(
        DEFAULT_METHOD,
        "--method",
        "-m",
        help=f"Generation method: {', '.join(available_methods())}",
    ),
) -> None:
    """Generate an ability score array."""
    result = _get_engine().roll_ability_scores(method)
    display_ability_scores(result)
    if result.error is not None:
        raise typer.Exit(1)


@app.command()
def analyze(
    expression: str = typer.Argument(..., help="Expression to analyze"),
    iterations: int = typer.Option(1000, "--iterations", "-i", min=1, help="Number of rolls"),
) -> None:
    """Roll an expression many times and summarize the results."""
    result = _get_engine().analyze(expression, iterations)
    display_analysis(result)
    if result.error is not None:
        raise typer.Exit(1)


@app.command()
def stats(
    expression: str = typer.Argument(..., help="Expression to roll"),
    times: int = typer.Option(100, "--times", "-n", min=1, help="Number of rolls"),
) -> None:
    """Roll an expression repeatedly and show the recorded statistics."""
    engine = _get_engine()
    for _ in range(times):
        outcome = engine.roll(expression)
        if outcome.error is not None:
            display_outcome(outcome)
            raise typer.Exit(1)
    display_statistics(engine.get_statistics())


@app.command()
def validate(
    expression: str = typer.Argument(..., help="Expression to check"),
) -> None:
    """Check an expression without rolling it."""
    result = _get_engine().validate_expression(expression)
    display_validation(result)
    if not result.valid:
        raise typer.Exit(1)


@app.command()
def selftest() -> None:
    """Run the built-in smoke test battery."""
    engine = _get_engine()
    results = engine.self_test()
    display_self_test(results)

    failed = [r for r in results if not r.passed]
    if failed:
        display_error(f"{len(failed)} of {len(results)} cases failed")
        raise typer.Exit(1)
    display_success(f"All {len(results)} cases passed")
    display_info(f"Random source: {engine.get_status().random_source}")


@app.callback()
def main(
    seed: int = typer.Option(None, "--seed", help="Use a seeded pseudo-random source"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every roll"),
) -> None:
    """Dice engine - parse, roll and analyze tabletop dice notation."""
    _state["seed"] = seed
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    app()
