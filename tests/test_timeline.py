"""Unit tests for timeline assembly and tick-to-seconds conversion."""

import pytest

from tilescore.errors import NotationSyntaxError
from tilescore.score_models import Message, MusicEntry, Part, TempoBreakpoint, Track
from tilescore.timeline import (
    assemble_timeline,
    collect_notes,
    convert_raw_to_timeline,
    effective_bpm,
    parse_song,
    ticks_to_seconds,
)

ON, OFF, DELAY = Message.note_on, Message.note_off, Message.delay


def _part(bpm: float, *tracks: tuple[Message, ...]) -> Part:
    return Part(bpm=bpm, base_beats=1, tracks=tuple(Track(1, messages) for messages in tracks))


# ── ticks_to_seconds ────────────────────────────────────────────────────────

def test_one_beat_at_120_bpm_is_half_a_second() -> None:
    assert ticks_to_seconds(960, (TempoBreakpoint(0, 120),)) == pytest.approx(0.5)


def test_without_tempo_map_defaults_to_120() -> None:
    assert ticks_to_seconds(960, ()) == pytest.approx(0.5)


def test_tempo_change_applies_from_its_tick() -> None:
    tempos = (TempoBreakpoint(0, 120), TempoBreakpoint(960, 60))
    assert ticks_to_seconds(960, tempos) == pytest.approx(0.5)
    assert ticks_to_seconds(1920, tempos) == pytest.approx(1.5)


# ── collect_notes / effective_bpm ───────────────────────────────────────────

def test_collect_notes_pairs_on_and_off() -> None:
    messages = (ON(48), ON(52), DELAY(10), OFF(48), DELAY(5), OFF(52), OFF(60))
    assert collect_notes(messages, 100) == [(48, 100, 10), (52, 100, 15)]


def test_effective_bpm_uses_music_bpm_then_base_bpm() -> None:
    assert effective_bpm(MusicEntry(0, "1", (), bpm=90), 120, 15) == 1350
    assert effective_bpm(MusicEntry(0, "1", ()), 120, 15) == 1800


def test_effective_bpm_falls_back_on_invalid_tempo() -> None:
    assert effective_bpm(MusicEntry(0, "1", (), bpm=0), 120, 15) == 1800
    assert effective_bpm(MusicEntry(0, "1", (), bpm=float("nan")), 120, 15) == 1800


# ── assemble_timeline ───────────────────────────────────────────────────────

def test_parts_are_laid_end_to_end_with_their_tempos() -> None:
    timeline = assemble_timeline([
        _part(3600, (ON(48), DELAY(960), OFF(48))),
        _part(1800, (ON(50), DELAY(960), OFF(50))),
    ])

    assert [(t.ticks, t.bpm, t.time) for t in timeline.tempos] == [(0, 120, 0.0), (960, 60, pytest.approx(0.5))]
    first, second = timeline.tracks[0].notes
    assert (first.pitch, first.time, first.duration) == (48, 0.0, pytest.approx(0.5))
    assert second.start_ticks == 960
    assert second.time == pytest.approx(0.5)
    assert second.duration == pytest.approx(1.0)
    assert timeline.duration == pytest.approx(1.5)


def test_track_count_is_widest_part() -> None:
    timeline = assemble_timeline([
        _part(3600, (ON(48), DELAY(960), OFF(48)), (ON(60), DELAY(960), OFF(60))),
        _part(3600, (ON(50), DELAY(960), OFF(50))),
    ])
    assert [track.channel for track in timeline.tracks] == [0, 1]
    assert [n.pitch for n in timeline.tracks[1].notes] == [60]
    assert timeline.note_count == 3


def test_note_velocities() -> None:
    note = assemble_timeline([_part(3600, (ON(48), DELAY(960), OFF(48)))]).tracks[0].notes[0]
    assert note.velocity == pytest.approx(100 / 127)
    assert note.note_off_velocity == pytest.approx(64 / 127)


# ── convert_raw_to_timeline ─────────────────────────────────────────────────

def test_single_note_level() -> None:
    timeline = convert_raw_to_timeline([MusicEntry(0, "1", ("(c)[N]",))], 120)
    assert timeline.ppq == 960
    assert timeline.tempos[0].bpm == 60
    (note,) = timeline.tracks[0].notes
    assert (note.pitch, note.start_ticks, note.duration_ticks, note.time) == (48, 0, 60, 0.0)
    assert note.duration == pytest.approx(0.0625)


def test_conversion_is_deterministic() -> None:
    musics = [MusicEntry(0, 1, ("(c.e)[K],(g@c1)[J]", "(C-1)[I]"))]
    assert convert_raw_to_timeline(musics, 120) == convert_raw_to_timeline(musics, 120)


def test_errors_carry_part_and_track_numbers() -> None:
    musics = [MusicEntry(0, "1", ("(c)[N]",)), MusicEntry(1, "1", ("(c)[N]", "(c)[N"))]
    with pytest.raises(NotationSyntaxError, match=r"^Part 2: Track 2: Incomplete"):
        parse_song(musics, 120)


def test_unknown_base_beats_fails_the_timeline() -> None:
    with pytest.raises(NotationSyntaxError, match="baseBeats"):
        convert_raw_to_timeline([MusicEntry(0, 2, ("(c)[N]",))], 120)
