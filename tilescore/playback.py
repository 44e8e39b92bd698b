"""Playback scanning: which timeline notes are due at a given clock time."""

import logging
from dataclasses import dataclass

from tilescore.decode_tables import HIGHEST_PITCH, LOWEST_PITCH
from tilescore.note_indicator import make_note_id
from tilescore.score_models import Note, Timeline

logger = logging.getLogger(__name__)


def is_playable_pitch(pitch: int) -> bool:
    """True for pitches that have a piano sample (21-108)."""
    return LOWEST_PITCH <= pitch <= HIGHEST_PITCH


@dataclass(frozen=True)
class TriggeredNote:
    note_id: int
    track_index: int
    note: Note


class PlaybackScanner:
    """
    Per-frame scanner over a compiled timeline.

    ``scan(t)`` reports each note whose time lies in ``(t - lookback, t]``
    exactly once: reported ids go into a consumed set, which is pruned of
    ids older than ``t - retention`` so it stays small over a long level.
    Scanning again at the same or a later time never re-reports a note.
    """

    DEFAULT_LOOKBACK = 1.0
    DEFAULT_RETENTION = 10.0

    def __init__(
        self,
        timeline: Timeline,
        lookback: float = DEFAULT_LOOKBACK,
        retention: float = DEFAULT_RETENTION,
    ) -> None:
        if retention < lookback:
            raise ValueError("retention must be at least as long as lookback")
        self.timeline = timeline
        self.lookback = lookback
        self.retention = retention
        self._consumed: dict[int, float] = {}
        self._entries = sorted(
            (
                TriggeredNote(make_note_id(note.time, track_index, note.pitch), track_index, note)
                for track_index, track in enumerate(timeline.tracks)
                for note in track.notes
            ),
            key=lambda entry: entry.note.time,
        )

    @property
    def consumed_count(self) -> int:
        return len(self._consumed)

    def scan(self, current_time: float) -> list[TriggeredNote]:
        """Return the notes due at ``current_time`` that were not reported yet."""
        due: list[TriggeredNote] = []
        earliest = current_time - self.lookback

        for entry in self._entries:
            time = entry.note.time
            if time > current_time:
                break
            if time <= earliest or entry.note_id in self._consumed:
                continue
            self._consumed[entry.note_id] = time
            due.append(entry)

        self._prune(current_time - self.retention)
        return due

    def _prune(self, horizon: float) -> None:
        stale = [note_id for note_id, time in self._consumed.items() if time < horizon]
        for note_id in stale:
            del self._consumed[note_id]
        if stale:
            logger.debug("pruned %d consumed notes older than %.3fs", len(stale), horizon)

    def reset(self) -> None:
        self._consumed.clear()
