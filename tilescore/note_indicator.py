"""Note-indicator placement: project timeline notes onto the tile grid."""

import logging
import math

import numpy as np

from tilescore.decode_tables import HIGHEST_PITCH, LOWEST_PITCH
from tilescore.row_layout import DEFAULT_SCREEN, PlacedRow, ScreenConfig
from tilescore.score_models import Indicator, MusicSection, Note, RowKind, Timeline

logger = logging.getLogger(__name__)


def make_note_id(time: float, track_index: int, pitch: int) -> int:
    """
    Deterministic id of a timeline note.

    Layout: ``round(time in ms) × 10⁶ + track × 10³ + pitch``, so ids sort by
    time and the millisecond time can be recovered with note_id_time().
    """
    return math.floor(time * 1000 + 0.5) * 1_000_000 + track_index * 1000 + pitch


def note_id_time(note_id: int) -> float:
    """Time in seconds (millisecond precision) encoded in a note id."""
    return (note_id // 1_000_000) / 1000


def section_tps(level_row_index: int, sections: list[MusicSection] | tuple[MusicSection, ...], default: float) -> float:
    """Scroll speed of the section owning a row; ``default`` if none or not a positive speed."""
    for section in sections:
        if section.start_row_index <= level_row_index < section.end_row_index:
            if not math.isfinite(section.tps) or section.tps <= 0:
                logger.debug("music %s has tps %s, using %s", section.id, section.tps, default)
                return default
            return section.tps
    return default


def build_row_windows(
    rows: list[PlacedRow],
    sections: list[MusicSection] | tuple[MusicSection, ...],
    screen: ScreenConfig = DEFAULT_SCREEN,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Scroll-time window ``[start, end)`` of every row after the START row.

    A row lasts ``height_multiplier / tps`` seconds, with tps taken from the
    music section owning the row.

    Returns:
        (starts, ends) arrays aligned with ``rows[1:]``.
    """
    durations = np.array(
        [
            row.height_multiplier / section_tps(row.row_index - 1, sections, screen.default_tps)
            for row in rows[1:]
        ],
        dtype=float,
    )
    ends = np.cumsum(durations)
    starts = np.zeros_like(ends)
    starts[1:] = ends[:-1]
    return starts, ends


def build_note_indicators(
    timeline: Timeline | None,
    rows: list[PlacedRow],
    sections: list[MusicSection] | tuple[MusicSection, ...],
    screen: ScreenConfig = DEFAULT_SCREEN,
) -> list[Indicator]:
    """
    Place one indicator per audible note on the row playing at its time.

    The note's position inside its row's time window maps to a height: the
    window start sits one base row height above the row bottom and the
    window end one full row height above that. Notes outside 21-108, before
    the first or after the last row, or on rows without tiles are dropped.
    """
    if timeline is None or not timeline.tracks or len(rows) <= 1:
        return []

    notes: list[tuple[Note, int]] = []
    for track_index, track in enumerate(timeline.tracks):
        for note in track.notes:
            notes.append((note, make_note_id(note.time, track_index, note.pitch)))
    notes.sort(key=lambda item: item[0].time)

    starts, ends = build_row_windows(rows, sections, screen)
    indicator_x = (screen.width - screen.indicator_size) / 2
    indicators: list[Indicator] = []

    for note, note_id in notes:
        if not LOWEST_PITCH <= note.pitch <= HIGHEST_PITCH:
            continue

        window = int(np.searchsorted(ends, note.time, side="right"))
        if window >= len(ends) or note.time < starts[window]:
            continue

        row = rows[window + 1]
        if row.kind is RowKind.START or row.tile_count == 0:
            continue

        start, end = float(starts[window]), float(ends[window])
        fraction = (note.time - start) / (end - start)
        base_edge = row.bottom - screen.base_row_height
        indicators.append(
            Indicator(
                note_id=note_id,
                row_index=row.row_index,
                x=indicator_x,
                y=base_edge - fraction * row.height + screen.indicator_y_offset,
                width=screen.indicator_size,
                height=screen.indicator_size,
                time=note.time,
            )
        )

    logger.debug("built %d indicators from %d notes", len(indicators), len(notes))
    return indicators


def consume_indicator_by_note_id(indicators: list[Indicator], note_id: int) -> bool:
    """Consume the first unconsumed indicator with this id; False if none."""
    for indicator in indicators:
        if indicator.note_id == note_id and not indicator.consumed:
            return indicator.consume()
    return False


def get_active_indicators(indicators: list[Indicator]) -> list[Indicator]:
    return [indicator for indicator in indicators if not indicator.consumed]
