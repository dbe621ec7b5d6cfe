"""CLI entry point for PuzzleTutor."""

from pathlib import Path

import click

from puzzletutor.config.settings import Settings, configure_logging

OUTCOME_LETTERS = {"c": "correct", "i": "incorrect", "x": "incomplete"}


def _open_progress(settings: Settings):
    from puzzletutor.state.progress import ProgressStore
    from puzzletutor.state.storage import SqliteStorage

    storage = SqliteStorage(settings.storage_path)
    return ProgressStore(
        storage,
        storage_key=settings.storage.progress_key,
        legacy_key=settings.storage.legacy_progress_key,
    ), storage


@click.group()
@click.option("--log-level", default=None, help="Log level for stderr output")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """PuzzleTutor — rating-adaptive chess puzzle training."""
    ctx.ensure_object(dict)
    settings = Settings.load()
    configure_logging(log_level or settings.get_log_level())
    ctx.obj["settings"] = settings


@main.command()
@click.argument("player_rating", type=float)
@click.argument("puzzle_rating", type=float)
def expected(player_rating: float, puzzle_rating: float) -> None:
    """Chance that PLAYER_RATING solves a puzzle rated PUZZLE_RATING."""
    from puzzletutor.engine.rating import expected_score

    click.echo(f"{expected_score(player_rating, puzzle_rating):.3f}")


@main.command()
@click.option("--rating", "player_rating", type=float, default=None, help="Player rating")
@click.option(
    "--recent", default="",
    help="Recent outcomes, oldest first: c=correct, i=incorrect, x=incomplete",
)
@click.pass_context
def band(ctx: click.Context, player_rating: float | None, recent: str) -> None:
    """Show the puzzle-rating band for the next puzzle."""
    from puzzletutor.engine.adaptive import Outcome, select_window
    from puzzletutor.engine.ranges import rating_band_for_window

    settings: Settings = ctx.obj["settings"]
    try:
        outcomes = [Outcome(OUTCOME_LETTERS[ch]) for ch in recent.lower()]
    except KeyError as e:
        raise click.BadParameter(f"unknown outcome letter {e}", param_hint="--recent")

    if player_rating is None:
        player_rating = float(settings.rating.default_rating)

    normal, eased = settings.adaptive.windows()
    window = select_window(
        outcomes, normal=normal, eased=eased, threshold=settings.adaptive.failure_threshold,
    )
    lower, upper = rating_band_for_window(player_rating, window.min_prob, window.max_prob)
    click.echo(f"{window.name}: {lower}-{upper}")


@main.command()
@click.argument("path")
@click.pass_context
def progress(ctx: click.Context, path: str) -> None:
    """Show solved puzzles of the PGN collection at PATH."""
    store, _ = _open_progress(ctx.obj["settings"])
    indexes = store.get_solved_indexes(path)
    click.echo(f"{path}: {store.get_solved_count(path)} solved")
    if indexes:
        click.echo("  " + ", ".join(str(i) for i in indexes))


@main.command()
@click.argument("path")
@click.argument("index", type=int)
@click.pass_context
def solve(ctx: click.Context, path: str, index: int) -> None:
    """Mark puzzle INDEX of the collection at PATH as solved."""
    store, _ = _open_progress(ctx.obj["settings"])
    store.record_solved(path, index)
    click.echo(f"{path}: {store.get_solved_count(path)} solved")


@main.command(name="next")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rating", "player_rating", type=float, default=None, help="Override the stored rating")
@click.option(
    "--range", "rating_range", type=(int, int), default=None, metavar="LOW HIGH",
    help="Draw from a fixed rating range instead of the adaptive band",
)
@click.pass_context
def next_puzzle(
    ctx: click.Context, source: Path, player_rating: float | None,
    rating_range: tuple[int, int] | None,
) -> None:
    """Draw the next puzzle from a PGN file or SQLite puzzle database."""
    from puzzletutor.engine.session import PuzzleSession
    from puzzletutor.puzzles.pgn import PgnCollection
    from puzzletutor.puzzles.repository import PuzzleDatabase
    from puzzletutor.state.rating import RatingStore

    settings: Settings = ctx.obj["settings"]
    store, storage = _open_progress(settings)
    if source.suffix in (".db3", ".db", ".sqlite"):
        repository = PuzzleDatabase(source)
    else:
        repository = PgnCollection(source)

    ratings = RatingStore(
        storage, key=settings.storage.rating_key, default=settings.rating.default_rating,
    )
    if rating_range is not None and rating_range[0] > rating_range[1]:
        raise click.BadParameter("LOW must not exceed HIGH", param_hint="--range")
    session = PuzzleSession(
        repository, store, rating_store=ratings, settings=settings,
        progressive=False if rating_range is not None else None,
        rating_range=rating_range,
    )
    if player_rating is not None:
        session.player_rating = player_rating

    try:
        entry = session.next_puzzle()
    except LookupError as e:
        raise click.ClickException(str(e))

    puzzle = entry.puzzle
    click.echo(f"Rating {puzzle.rating} (you: {round(session.player_rating)})")
    click.echo(f"FEN: {puzzle.fen}")
    if puzzle.source is not None:
        click.echo(f"Index: {puzzle.source.index}")
