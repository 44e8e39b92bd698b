"""Level loader: validate level JSON and run both compiler pipelines."""

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tilescore.errors import ScoreCompileError, StructuralError
from tilescore.score_models import MusicEntry, MusicSection, RowTypeResult, Timeline
from tilescore.timeline import convert_raw_to_timeline
from tilescore.track_blending import process_music

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelInput:
    base_bpm: float
    musics: tuple[MusicEntry, ...]


@dataclass(frozen=True)
class LevelData:
    """
    Everything compiled from one level file.

    Attributes:
        rows:           Row sequence of all sections, sections sorted by id.
        sections:       Row range and TPS of each section, same order as rows.
        base_bpm:       Fallback tempo of the level.
        timeline:       Note timeline, or None if the rich-notation pipeline
                        failed (rows stay playable without audio).
        timeline_error: Why the timeline is missing, if it is.
    """

    rows: tuple[RowTypeResult, ...]
    sections: tuple[MusicSection, ...]
    base_bpm: float
    timeline: Timeline | None
    timeline_error: str | None = None


# ── Validation ──────────────────────────────────────────────────────────────

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any, field: str) -> float:
    """Accept a finite JSON number or a numeric string."""
    number = math.nan
    if _is_number(value):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            pass
    if not math.isfinite(number):
        raise StructuralError(f'Invalid music entry: "{field}" must be a number')
    return number


def _validate_music(raw: Any, index: int) -> MusicEntry:
    if not isinstance(raw, Mapping):
        raise StructuralError(f"Invalid music entry {index}: expected an object")

    music_id = raw.get("id")
    if not _is_number(music_id) or not math.isfinite(music_id):
        raise StructuralError('Invalid music entry: "id" must be a number')
    if float(music_id).is_integer():
        music_id = int(music_id)

    base_beats = raw.get("baseBeats")
    if _as_number(base_beats, "baseBeats") <= 0:
        raise StructuralError('Invalid music entry: "baseBeats" must be positive')

    scores = raw.get("scores")
    if not isinstance(scores, list) or not all(isinstance(score, str) for score in scores):
        raise StructuralError('Invalid music entry: "scores" must be an array of strings')

    bpm = raw.get("bpm")
    return MusicEntry(
        id=music_id,
        base_beats=base_beats,
        scores=tuple(scores),
        bpm=None if bpm is None else _as_number(bpm, "bpm"),
    )


def validate_level_input(data: Any) -> LevelInput:
    """
    Check the shape of a decoded level document.

    Raises:
        StructuralError: On any missing or mistyped field.
    """
    if not isinstance(data, Mapping):
        raise StructuralError("Invalid JSON structure: expected an object")
    if not _is_number(data.get("baseBpm")):
        raise StructuralError('Invalid JSON structure: "baseBpm" must be a number and is required')
    musics = data.get("musics")
    if not isinstance(musics, list):
        raise StructuralError('Invalid JSON structure: "musics" array is required')

    return LevelInput(
        base_bpm=float(data["baseBpm"]),
        musics=tuple(_validate_music(raw, index) for index, raw in enumerate(musics)),
    )


# ── Compilation ─────────────────────────────────────────────────────────────

def calculate_tps(entry: MusicEntry, base_bpm: float) -> float:
    """Tiles per second of a section: bpm / baseBeats / 60."""
    bpm = entry.bpm if entry.bpm is not None else base_bpm
    return bpm / float(entry.base_beats) / 60


def build_rows(level: LevelInput) -> tuple[tuple[RowTypeResult, ...], tuple[MusicSection, ...]]:
    """Row-layout pipeline: rows of every section in ascending id order."""
    rows: list[RowTypeResult] = []
    sections: list[MusicSection] = []

    for entry in sorted(level.musics, key=lambda music: music.id):
        section_rows = process_music(float(entry.base_beats), list(entry.scores))
        start = len(rows)
        rows.extend(section_rows)
        sections.append(
            MusicSection(
                id=entry.id,
                tps=calculate_tps(entry, level.base_bpm),
                start_row_index=start,
                end_row_index=len(rows),
                row_count=len(section_rows),
            )
        )

    return tuple(rows), tuple(sections)


def _decode(source: str | Mapping[str, Any]) -> Any:
    if not isinstance(source, str):
        return source
    try:
        return json.loads(source)
    except json.JSONDecodeError as exc:
        raise StructuralError(f"Invalid JSON: {exc}") from exc


def compile_level(source: str | Mapping[str, Any]) -> LevelData:
    """
    Compile a level from JSON text or an already decoded document.

    Row layout and timeline are independent derivations of the same scores.
    A structural error aborts the whole compile; a timeline failure only
    leaves ``timeline`` as None.

    Raises:
        StructuralError: If the document is malformed.
    """
    level = validate_level_input(_decode(source))
    rows, sections = build_rows(level)

    timeline: Timeline | None = None
    timeline_error: str | None = None
    try:
        timeline = convert_raw_to_timeline(list(level.musics), level.base_bpm)
    except ScoreCompileError as exc:
        timeline_error = str(exc)
        logger.warning("timeline unavailable, rows only: %s", exc)

    if timeline is not None:
        logger.info(
            "compiled level: %d rows, %d sections, %d notes, %d tempo changes, %.2fs",
            len(rows), len(sections), timeline.note_count, len(timeline.tempos), timeline.duration,
        )
    else:
        logger.info("compiled level: %d rows, %d sections, no timeline", len(rows), len(sections))

    return LevelData(
        rows=rows,
        sections=sections,
        base_bpm=level.base_bpm,
        timeline=timeline,
        timeline_error=timeline_error,
    )


def compile_level_file(path: str | Path) -> LevelData:
    """Read a UTF-8 level file and compile it."""
    return compile_level(Path(path).read_text(encoding="utf-8"))


class LevelLoader:
    """
    Owns the currently loaded level.

    A new level replaces the current one only once it has compiled
    completely; on failure the previous level stays loaded and the error
    propagates to the caller.
    """

    def __init__(self) -> None:
        self._current: LevelData | None = None

    @property
    def current(self) -> LevelData | None:
        return self._current

    def load(self, source: str | Mapping[str, Any]) -> LevelData:
        level = compile_level(source)
        self._current = level
        return level

    def load_file(self, path: str | Path) -> LevelData:
        level = compile_level_file(path)
        self._current = level
        return level
