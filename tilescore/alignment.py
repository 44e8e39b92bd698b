"""Track/part alignment: make every track of a part last exactly as long."""

import logging
from dataclasses import replace
from typing import Final

from tilescore.errors import AlignmentError, TickOverflowError
from tilescore.score_models import Message, MessageKind, Part, Track

logger = logging.getLogger(__name__)

MAX_TRACK_DIFF: Final = 0xFFFFFFF


def _delay_runs(messages: tuple[Message, ...] | list[Message]) -> list[int]:
    return [msg.value for msg in messages if msg.is_delay and msg.value != 0]


def calculate_track_length_diff(reference: tuple[Message, ...], other: tuple[Message, ...]) -> int:
    """
    Signed tick difference ``len(reference) - len(other)``.

    Both tracks' DELAY runs are walked side by side, consuming the shorter
    current run from both, until one side is exhausted; what is left on
    the other side is the difference.

    Raises:
        TickOverflowError: If the difference exceeds MAX_TRACK_DIFF.
    """
    runs_a = _delay_runs(reference)
    runs_b = _delay_runs(other)
    a = b = 0
    left_a = runs_a[0] if runs_a else 0
    left_b = runs_b[0] if runs_b else 0

    while a < len(runs_a) and b < len(runs_b):
        taken = min(left_a, left_b)
        left_a -= taken
        left_b -= taken
        if left_a == 0:
            a += 1
            left_a = runs_a[a] if a < len(runs_a) else 0
        if left_b == 0:
            b += 1
            left_b = runs_b[b] if b < len(runs_b) else 0

    diff = left_a + sum(runs_a[a + 1:]) if a < len(runs_a) else -(left_b + sum(runs_b[b + 1:]))
    if abs(diff) > MAX_TRACK_DIFF:
        raise TickOverflowError(f"Length overflow: tracks differ by {diff} ticks")
    return diff


def shrink_track(messages: tuple[Message, ...], amount: int) -> tuple[Message, ...]:
    """
    Remove ``amount`` ticks from the end of a track.

    DELAY values are consumed from the last message backwards. Afterwards any
    NOTE_ON/NOTE_OFF pair left without a positive DELAY between them is
    silenced into IGNORE messages.

    Raises:
        AlignmentError: If the track holds fewer than ``amount`` ticks.
    """
    result = list(messages)
    remaining = amount

    for i in range(len(result) - 1, -1, -1):
        if remaining <= 0:
            break
        if not result[i].is_delay:
            continue
        value = result[i].value
        if remaining >= value:
            remaining -= value
            result[i] = Message.delay(0)
        else:
            result[i] = Message.delay(value - remaining)
            remaining = 0

    if remaining != 0:
        raise AlignmentError(f"Unable to shrink track by {amount} ticks ({remaining} left over)")

    open_notes: list[int] = []
    for i, msg in enumerate(result):
        if msg.is_delay and msg.value > 0:
            open_notes.clear()
        elif msg.kind is MessageKind.NOTE_ON:
            open_notes.append(i)
        elif msg.kind is MessageKind.NOTE_OFF:
            for on_index in open_notes:
                on_msg = result[on_index]
                if on_msg.kind is MessageKind.NOTE_ON and on_msg.value == msg.value:
                    result[i] = Message.ignore()
                    result[on_index] = Message.ignore()
                    break

    return tuple(result)


def align_part_tracks(tracks: tuple[Track, ...]) -> tuple[Track, ...]:
    """
    Trim or pad every track to the length of track 0.

    Raises:
        AlignmentError:    If there are no tracks, or a track cannot be shrunk.
        TickOverflowError: If two tracks differ by more than MAX_TRACK_DIFF.
    """
    if not tracks:
        raise AlignmentError("No tracks")

    reference = tracks[0]
    aligned = [reference]
    for index, track in enumerate(tracks[1:], start=1):
        diff = calculate_track_length_diff(reference.messages, track.messages)
        if diff < 0:
            logger.debug("track %d longer than reference by %d ticks, shrinking", index, -diff)
            track = replace(track, messages=shrink_track(track.messages, -diff))
        elif diff > 0:
            logger.debug("track %d shorter than reference by %d ticks, padding", index, diff)
            track = replace(track, messages=track.messages + (Message.delay(diff),))
        aligned.append(track)
    return tuple(aligned)


def silent_copy(track: Track) -> Track:
    """Clone a track with every note message turned into IGNORE."""
    messages = tuple(
        Message.ignore(msg.value) if msg.kind in (MessageKind.NOTE_ON, MessageKind.NOTE_OFF) else msg
        for msg in track.messages
    )
    return Track(base_beats=track.base_beats, messages=messages)


def align_tracks_across_parts(parts: list[Part]) -> list[Part]:
    """Pad parts with silent copies of their last track up to the widest part."""
    max_tracks = max((len(part.tracks) for part in parts), default=0)
    aligned: list[Part] = []
    for part in parts:
        missing = max_tracks - len(part.tracks)
        if missing > 0 and part.tracks:
            padding = (silent_copy(part.tracks[-1]),) * missing
            part = replace(part, tracks=part.tracks + padding)
        aligned.append(part)
    return aligned
