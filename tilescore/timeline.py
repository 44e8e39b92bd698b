"""Timeline assembly: compiled parts -> tempo map and notes in seconds."""

import logging
import math
from typing import Final

from tilescore.alignment import align_part_tracks, align_tracks_across_parts
from tilescore.decode_tables import get_base_beats_multiplier
from tilescore.errors import ScoreCompileError
from tilescore.notation_compiler import parse_track
from tilescore.score_models import (
    Message,
    MessageKind,
    MusicEntry,
    Note,
    Part,
    TempoBreakpoint,
    Timeline,
    TimelineTrack,
)

logger = logging.getLogger(__name__)

PPQ: Final = 960
DEFAULT_BPM: Final = 120
# Effective (notation) BPM is 30 times the real BPM.
BPM_SCALE: Final = 30
MIDI_CHANNELS: Final = 16


def effective_bpm(entry: MusicEntry, base_bpm: float, multiplier: int) -> float:
    """Section tempo in notation units: (own bpm or baseBpm) × multiplier."""
    music_bpm = entry.bpm if entry.bpm is not None else base_bpm
    calculated = music_bpm * multiplier
    if math.isnan(calculated) or calculated <= 0:
        logger.warning("invalid BPM %s for music %s, using %d", calculated, entry.id, DEFAULT_BPM)
        return DEFAULT_BPM * multiplier
    return calculated


def parse_part(entry: MusicEntry, base_bpm: float) -> Part:
    """
    Compile and align every score of one music section.

    Raises:
        ScoreCompileError: Any compile or alignment failure, prefixed with the
            1-based track number.
    """
    multiplier = get_base_beats_multiplier(entry.base_beats)
    bpm = effective_bpm(entry, base_bpm, multiplier)
    logger.debug(
        "music %s: baseBeats=%s multiplier=%d effective bpm=%.2f",
        entry.id, entry.base_beats, multiplier, bpm,
    )

    tracks = []
    for index, score in enumerate(entry.scores):
        try:
            tracks.append(parse_track(score, bpm, multiplier))
        except ScoreCompileError as exc:
            raise exc.with_context(f"Track {index + 1}") from exc

    return Part(bpm=bpm, base_beats=multiplier, tracks=align_part_tracks(tuple(tracks)))


def parse_song(musics: list[MusicEntry], base_bpm: float) -> list[Part]:
    """Compile every music section, in authored order."""
    parts: list[Part] = []
    for index, entry in enumerate(musics):
        try:
            part = parse_part(entry, base_bpm)
        except ScoreCompileError as exc:
            raise exc.with_context(f"Part {index + 1}") from exc
        logger.debug("part %d: %d tracks, %d ticks", index, len(part.tracks), part.duration_ticks)
        parts.append(part)
    return parts


def ticks_to_seconds(ticks: int, tempos: tuple[TempoBreakpoint, ...], ppq: int = PPQ) -> float:
    """
    Convert an absolute tick to seconds under a sorted tempo map.

    Every tempo segment that starts before ``ticks`` contributes
    ``(segment_ticks / ppq) × (60 / bpm)``; the rest is timed at the last
    tempo reached.
    """
    seconds = 0.0
    current_ticks = 0
    bpm = tempos[0].bpm if tempos else DEFAULT_BPM

    for tempo in tempos:
        if tempo.ticks >= ticks:
            break
        seconds += (tempo.ticks - current_ticks) / ppq * (60 / bpm)
        current_ticks = tempo.ticks
        bpm = tempo.bpm

    seconds += (ticks - current_ticks) / ppq * (60 / bpm)
    return seconds


def collect_notes(messages: tuple[Message, ...], start_ticks: int) -> list[tuple[int, int, int]]:
    """
    Pair NOTE_ON/NOTE_OFF messages into ``(pitch, start_ticks, duration_ticks)``.

    A NOTE_OFF closes the most recent NOTE_ON of its pitch.
    """
    notes: list[tuple[int, int, int]] = []
    active: dict[int, int] = {}
    cursor = start_ticks

    for msg in messages:
        if msg.kind is MessageKind.NOTE_ON:
            active[msg.value] = cursor
        elif msg.kind is MessageKind.NOTE_OFF:
            started = active.pop(msg.value, None)
            if started is not None:
                notes.append((msg.value, started, cursor - started))
        elif msg.kind is MessageKind.DELAY:
            cursor += msg.value

    return notes


def assemble_timeline(parts: list[Part], ppq: int = PPQ) -> Timeline:
    """
    Lay parts end to end and convert every tick to seconds.

    Parts with fewer tracks than the widest part are padded with silent
    tracks first, so output track ``i`` always collects track ``i`` of every
    part. Each part opens a tempo breakpoint at its first tick.
    """
    parts = align_tracks_across_parts(parts)

    breakpoints: list[TempoBreakpoint] = []
    raw_tracks: list[list[tuple[int, int, int]]] = []
    cursor = 0

    for part in parts:
        breakpoints.append(TempoBreakpoint(ticks=cursor, bpm=part.bpm / BPM_SCALE))
        for index, track in enumerate(part.tracks):
            if index == len(raw_tracks):
                raw_tracks.append([])
            raw_tracks[index].extend(collect_notes(track.messages, cursor))
        cursor += part.duration_ticks

    breakpoints.sort(key=lambda tempo: tempo.ticks)
    provisional = tuple(breakpoints)
    tempos = tuple(
        TempoBreakpoint(ticks=tempo.ticks, bpm=tempo.bpm, time=ticks_to_seconds(tempo.ticks, provisional, ppq))
        for tempo in provisional
    )

    tracks: list[TimelineTrack] = []
    for index, raw_notes in enumerate(raw_tracks):
        notes = []
        for pitch, start, duration in raw_notes:
            time = ticks_to_seconds(start, tempos, ppq)
            notes.append(
                Note(
                    pitch=pitch,
                    start_ticks=start,
                    duration_ticks=duration,
                    time=time,
                    duration=ticks_to_seconds(start + duration, tempos, ppq) - time,
                )
            )
        tracks.append(TimelineTrack(channel=index % MIDI_CHANNELS, notes=tuple(notes)))

    logger.debug("timeline: %d ticks, %d tracks, %d tempo changes", cursor, len(tracks), len(tempos))
    return Timeline(ppq=ppq, tempos=tempos, tracks=tuple(tracks))


def convert_raw_to_timeline(musics: list[MusicEntry], base_bpm: float) -> Timeline:
    """Full rich-notation pipeline: parse, align and assemble."""
    return assemble_timeline(parse_song(musics, base_bpm))
