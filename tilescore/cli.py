"""tilescore CLI entry point."""

import logging
import sys
from collections import Counter

import click

from tilescore import __version__
from tilescore.errors import ScoreCompileError
from tilescore.level_loader import LevelData, compile_level_file
from tilescore.note_indicator import build_note_indicators
from tilescore.playback import PlaybackScanner, is_playable_pitch
from tilescore.row_layout import layout_rows
from tilescore.score_models import RowKind


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(level_file: str) -> LevelData:
    """Compile a level file, exiting with status 1 on failure."""
    try:
        return compile_level_file(level_file)
    except ScoreCompileError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read level file — {exc}", err=True)
        sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="tilescore")
@click.option("--verbose", "-v", is_flag=True, help="Log every compiler stage.")
def main(verbose: bool) -> None:
    """tilescore — compile tile-game level scores into rows and note timelines."""
    _configure_logging(verbose)


# ── compile subcommand ─────────────────────────────────────────────────────────

@main.command(name="compile")
@click.argument("level_file", type=click.Path(exists=True, dir_okay=False, readable=True))
def compile_command(level_file: str) -> None:
    """
    Compile LEVEL_FILE and print a summary of rows, sections and timeline.

    \b
    Examples:
      tilescore compile level.json
      tilescore -v compile level.json
    """
    level = _load(level_file)

    click.echo(f"tilescore v{__version__}")
    click.echo(f"  Level    : {level_file}")
    click.echo(f"  Base BPM : {level.base_bpm:g}")
    click.echo()

    click.echo(f"[1/3] Rows: {len(level.rows)}")
    kinds = Counter(row.kind for row in level.rows)
    for kind in (RowKind.SINGLE, RowKind.DOUBLE, RowKind.EMPTY):
        click.echo(f"        {kind.value:<7} {kinds.get(kind, 0)}")
    for section in level.sections:
        click.echo(
            f"        music {section.id:<3} tps={section.tps:6.3f}  "
            f"rows {section.start_row_index}–{section.end_row_index}"
        )

    if level.timeline is None:
        click.echo("[2/3] Timeline: unavailable", err=True)
        click.echo(f"  WARNING: {level.timeline_error}", err=True)
        click.echo("[3/3] Indicators: 0")
        return

    timeline = level.timeline
    click.echo(
        f"[2/3] Timeline: {len(timeline.tracks)} track(s), {timeline.note_count} note(s), "
        f"{len(timeline.tempos)} tempo change(s), {timeline.duration:.2f} s"
    )

    indicators = build_note_indicators(timeline, layout_rows(level.rows), level.sections)
    click.echo(f"[3/3] Indicators: {len(indicators)}")


# ── timeline subcommand ────────────────────────────────────────────────────────

@main.command()
@click.argument("level_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--track", "track_filter", type=int, default=None, metavar="N", help="Only list notes of track N.")
def timeline(level_file: str, track_filter: int | None) -> None:
    """
    List every note of LEVEL_FILE's timeline.

    \b
    Examples:
      tilescore timeline level.json
      tilescore timeline level.json --track 0
    """
    level = _load(level_file)
    if level.timeline is None:
        click.echo(f"  ERROR: Timeline unavailable — {level.timeline_error}", err=True)
        sys.exit(1)

    for tempo in level.timeline.tempos:
        click.echo(f"tempo  tick={tempo.ticks:<8} {tempo.time:8.3f}s  bpm={tempo.bpm:g}")

    for index, track in enumerate(level.timeline.tracks):
        if track_filter is not None and index != track_filter:
            continue
        for note in track.notes:
            name = note.name or str(note.pitch)
            click.echo(
                f"track {index:<2} {name:<5} tick={note.start_ticks:<8} "
                f"{note.time:8.3f}s  +{note.duration:.3f}s"
            )


# ── play subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("level_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--fps", type=click.FloatRange(min=1.0), default=60.0, show_default=True, help="Simulated frame rate.")
def play(level_file: str, fps: float) -> None:
    """
    Replay LEVEL_FILE on a simulated frame clock and print each triggered note.

    \b
    Examples:
      tilescore play level.json
      tilescore play level.json --fps 30
    """
    level = _load(level_file)
    if level.timeline is None:
        click.echo(f"  ERROR: Timeline unavailable — {level.timeline_error}", err=True)
        sys.exit(1)

    scanner = PlaybackScanner(level.timeline)
    frame_count = int(level.timeline.duration * fps) + 1
    triggered = 0
    skipped = 0

    for frame in range(frame_count + 1):
        clock = frame / fps
        for entry in scanner.scan(clock):
            if not is_playable_pitch(entry.note.pitch):
                skipped += 1
                continue
            triggered += 1
            click.echo(
                f"frame {frame:<6} {clock:8.3f}s  track {entry.track_index:<2} "
                f"{entry.note.name:<5} id={entry.note_id}"
            )

    click.echo(f"Triggered {triggered} note(s), skipped {skipped} unplayable.")
