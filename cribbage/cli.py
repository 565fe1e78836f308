"""cribbage/cli.py - Typer-based CLI for the cribbage rules engine."""

import dataclasses
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

# Main app
app = typer.Typer(
    name="cribbage",
    help="Cribbage rules engine: scoring, simulation and strategy evaluation",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()


def _load(config: Path, verbose: bool = False):
    from .config import load_config
    from .log_setup import setup_logging

    cfg = load_config(str(config))
    setup_logging(cfg, verbose=verbose)
    return cfg


@app.command("score", help="Score a 4-card hand (or crib) with its cut card")
def score(
    hand: List[str] = typer.Argument(
        ..., help="Four cards, e.g. [bold]5S 5H 5C JD[/bold]"
    ),
    cut: str = typer.Option(..., "--cut", "-c", help="The cut card, e.g. 5D"),
    crib: bool = typer.Option(False, "--crib", help="Count as the crib (5-card flush only)"),
):
    """Print the per-category breakdown for a counted hand."""
    from .card import cards_to_str, parse_card, parse_cards
    from .scoring import score_hand_breakdown

    try:
        cards = parse_cards(hand)
        bonus = parse_card(cut)
        breakdown = score_hand_breakdown(cards, bonus, is_crib=crib)
    except ValueError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(1)

    title = f"{'Crib' if crib else 'Hand'}: {cards_to_str(cards)}  Cut: {bonus}"
    table = Table(title=title)
    table.add_column("Category", style="cyan")
    table.add_column("Points", style="green", justify="right")
    for category, points in dataclasses.asdict(breakdown).items():
        table.add_row(category.capitalize(), str(points))
    table.add_row("[bold]Total[/bold]", f"[bold]{breakdown.total}[/bold]")
    console.print(table)


@app.command("peg", help="Score a sequence of plays during the count")
def peg(
    cards: List[str] = typer.Argument(..., help="Cards in play order, e.g. 7H 8S 8D"),
):
    """Show the running total and points for each card as it is played."""
    from .card import parse_cards
    from .constants import PEGGING_LIMIT, Points
    from .scoring import pile_total, score_pegging_breakdown

    try:
        played = parse_cards(cards)
    except ValueError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Pegging")
    table.add_column("Card", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Points", style="green", justify="right")
    table.add_column("Detail")

    pile = []
    for card in played:
        if pile_total(pile) + card.value > PEGGING_LIMIT:
            console.print(
                f"[red]{card} would take the count past {PEGGING_LIMIT}; stopping.[/red]"
            )
            raise typer.Exit(1)
        pile.append(card)
        breakdown = score_pegging_breakdown(pile)
        details = [
            f"{name.replace('_', ' ')} {pts}"
            for name, pts in dataclasses.asdict(breakdown).items()
            if pts
        ]
        points = breakdown.total
        if pile_total(pile) == PEGGING_LIMIT:
            points += Points.LAST_CARD
            details.append(f"last card {Points.LAST_CARD}")
        table.add_row(str(card), str(pile_total(pile)), str(points), ", ".join(details))
    console.print(table)


@app.command("simulate", help="Play computer-vs-computer games through the session registry")
def simulate(
    config: Path = typer.Option(
        "config.yaml", "--config", "-c", help="Path to configuration YAML file"
    ),
    games: int = typer.Option(1, "--games", "-n", help="Number of games to play"),
    difficulty_a: Optional[str] = typer.Option(
        None, "--a", help="Difficulty for seat A (defaults to opponent.difficulty)"
    ),
    difficulty_b: Optional[str] = typer.Option(
        None, "--b", help="Difficulty for seat B (defaults to opponent.difficulty)"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for dealing"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug console logging"),
):
    """Runs whole games with no delays and prints the final scores."""
    from .hooks import RecordingSessionHooks
    from .scheduler import InlineTimer
    from .session import SessionRegistry

    cfg = _load(config, verbose)
    # No thinking pauses and no turn timeouts: every move is played inline
    cfg.scheduler = dataclasses.replace(
        cfg.scheduler,
        turn_timeout_seconds=0.0,
        opponent_think_min_seconds=0.0,
        opponent_think_max_seconds=0.0,
        round_end_delay_seconds=0.0,
    )
    hooks = RecordingSessionHooks()
    registry = SessionRegistry(cfg, hooks=hooks, timer_factory=InlineTimer)

    table = Table(title=f"Simulated games ({games})")
    table.add_column("#", justify="right")
    table.add_column("Winner", style="green")
    table.add_column("Score A", justify="right")
    table.add_column("Score B", justify="right")
    table.add_column("Rounds", justify="right")

    for game_num in range(games):
        levels = {
            "A": difficulty_a or cfg.opponent.difficulty,
            "B": difficulty_b or cfg.opponent.difficulty,
        }
        try:
            session_id = registry.create_match(
                ["A", "B"],
                computer_ids=["A", "B"],
                difficulty=levels,
                seed=None if seed is None else seed + game_num,
            )
        except ValueError as e:
            console.print(f"[red]ERROR:[/red] {e}")
            raise typer.Exit(1)
        snap = registry.snapshot(session_id)
        table.add_row(
            str(game_num + 1),
            snap.winner_id or "-",
            str(snap.player("A").score),
            str(snap.player("B").score),
            str(snap.round_number),
        )
        registry.end_session(session_id)

    console.print(table)
    console.print(f"Sessions ended: {len(hooks.ended)}")


@app.command("evaluate", help="Evaluate one strategy against another")
def evaluate(
    config: Path = typer.Option(
        "config.yaml", "--config", "-c", help="Path to configuration YAML file"
    ),
    strategy_a: Optional[str] = typer.Option(
        None, "--a", help="Strategy for seat A (beginner | intermediate | expert)"
    ),
    strategy_b: Optional[str] = typer.Option(
        None, "--b", help="Strategy for seat B (beginner | intermediate | expert)"
    ),
    games: Optional[int] = typer.Option(
        None, "--games", "-n", help="Number of games (overrides config)"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed (overrides config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug console logging"),
):
    """Play head-to-head games and print win rates."""
    from .evaluate_strategies import run_evaluation

    cfg = _load(config, verbose)
    try:
        result = run_evaluation(cfg, strategy_a, strategy_b, games, seed)
    except ValueError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"{result.strategy_a} (A) vs {result.strategy_b} (B)")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Games", str(result.games))
    table.add_row("A wins", str(result.wins_a))
    table.add_row("B wins", str(result.wins_b))
    table.add_row("Incomplete", str(result.incomplete))
    table.add_row("A win rate", f"{result.win_rate_a:.1%}")
    table.add_row("Mean margin (A - B)", f"{result.mean_margin:.2f}")
    table.add_row("Std margin", f"{result.std_margin:.2f}")
    table.add_row("Rejected moves", str(result.rejected_actions))
    table.add_row("Time (s)", f"{result.elapsed_seconds:.2f}")
    console.print(table)


if __name__ == "__main__":
    app()
