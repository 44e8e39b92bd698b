"""Tests for the playback scanner."""

import pytest

from tilescore.playback import PlaybackScanner, is_playable_pitch
from tilescore.score_models import Note, TempoBreakpoint, Timeline, TimelineTrack


def _note(pitch: int, time: float) -> Note:
    return Note(pitch=pitch, start_ticks=int(time * 1920), duration_ticks=480, time=time, duration=0.25)


def _timeline() -> Timeline:
    return Timeline(
        ppq=960,
        tempos=(TempoBreakpoint(0, 120),),
        tracks=(
            TimelineTrack(0, (_note(60, 0.0), _note(62, 0.5), _note(64, 2.0))),
            TimelineTrack(1, (_note(48, 0.5),)),
        ),
    )


def test_playable_range() -> None:
    assert is_playable_pitch(21)
    assert is_playable_pitch(108)
    assert not is_playable_pitch(20)
    assert not is_playable_pitch(109)


def test_each_note_is_reported_once() -> None:
    scanner = PlaybackScanner(_timeline())

    assert [t.note.pitch for t in scanner.scan(0.0)] == [60]
    assert scanner.scan(0.0) == []
    assert sorted((t.track_index, t.note.pitch) for t in scanner.scan(0.6)) == [(0, 62), (1, 48)]
    assert scanner.scan(0.7) == []


def test_notes_older_than_lookback_are_skipped() -> None:
    scanner = PlaybackScanner(_timeline())
    assert [t.note.pitch for t in scanner.scan(2.5)] == [64]


def test_late_start_reports_nothing_in_the_past() -> None:
    assert PlaybackScanner(_timeline()).scan(5.0) == []


def test_consumed_ids_are_pruned_after_retention() -> None:
    scanner = PlaybackScanner(_timeline())
    scanner.scan(0.6)
    assert scanner.consumed_count == 3
    scanner.scan(20.0)
    assert scanner.consumed_count == 0


def test_reset_allows_replay() -> None:
    scanner = PlaybackScanner(_timeline())
    scanner.scan(0.0)
    scanner.reset()
    assert len(scanner.scan(0.0)) == 1


def test_retention_shorter_than_lookback() -> None:
    with pytest.raises(ValueError):
        PlaybackScanner(_timeline(), lookback=2.0, retention=1.0)
