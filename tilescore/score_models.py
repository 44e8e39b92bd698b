"""Data models shared by the compiler stages and their consumers."""

from dataclasses import dataclass
from enum import Enum, IntEnum

from tilescore.decode_tables import MIDI_TO_NOTE


class RowKind(str, Enum):
    """Shape of a tile row."""

    SINGLE = "single"
    DOUBLE = "double"
    EMPTY = "empty"
    START = "start"


class MessageKind(IntEnum):
    NOTE_ON = 0
    NOTE_OFF = 1
    DELAY = 2
    IGNORE = 3


@dataclass(frozen=True)
class Message:
    """
    One step of a compiled track.

    ``value`` is the pitch for NOTE_ON/NOTE_OFF, the tick count for DELAY and
    the silenced pitch (or 0) for IGNORE.
    """

    kind: MessageKind
    value: int = 0

    @classmethod
    def note_on(cls, pitch: int) -> "Message":
        return cls(MessageKind.NOTE_ON, pitch)

    @classmethod
    def note_off(cls, pitch: int) -> "Message":
        return cls(MessageKind.NOTE_OFF, pitch)

    @classmethod
    def delay(cls, ticks: int) -> "Message":
        return cls(MessageKind.DELAY, ticks)

    @classmethod
    def ignore(cls, value: int = 0) -> "Message":
        return cls(MessageKind.IGNORE, value)

    @property
    def is_delay(self) -> bool:
        return self.kind is MessageKind.DELAY


def total_ticks(messages: tuple[Message, ...] | list[Message]) -> int:
    """Sum of all DELAY values in a message sequence."""
    return sum(msg.value for msg in messages if msg.is_delay)


@dataclass(frozen=True)
class Track:
    """Compiled message stream of one score string."""

    base_beats: int
    messages: tuple[Message, ...]

    @property
    def total_ticks(self) -> int:
        return total_ticks(self.messages)


@dataclass(frozen=True)
class Part:
    """
    All tracks of one music section.

    Attributes:
        bpm:        Effective tempo (real BPM × baseBeats multiplier).
        base_beats: baseBeats multiplier applied to letter codes.
        tracks:     Tracks in authored order; track 0 is the length reference.
    """

    bpm: float
    base_beats: int
    tracks: tuple[Track, ...]

    @property
    def duration_ticks(self) -> int:
        """Longest track of the part, in ticks."""
        return max((track.total_ticks for track in self.tracks), default=0)


@dataclass(frozen=True)
class TempoBreakpoint:
    ticks: int
    bpm: float
    time: float = 0.0


@dataclass(frozen=True)
class Note:
    """A finalized note of the timeline, in ticks and seconds."""

    pitch: int
    start_ticks: int
    duration_ticks: int
    time: float
    duration: float
    velocity: float = 100 / 127
    note_off_velocity: float = 64 / 127

    @property
    def name(self) -> str | None:
        """Notation name of the pitch, e.g. '#c1', or None outside 21-108."""
        return MIDI_TO_NOTE.get(self.pitch)


@dataclass(frozen=True)
class TimelineTrack:
    channel: int
    notes: tuple[Note, ...]


@dataclass(frozen=True)
class Timeline:
    """Tempo-stamped note timeline driving audio playback and indicators."""

    ppq: int
    tempos: tuple[TempoBreakpoint, ...]
    tracks: tuple[TimelineTrack, ...]

    @property
    def note_count(self) -> int:
        return sum(len(track.notes) for track in self.tracks)

    @property
    def duration(self) -> float:
        """End time of the last sounding note, in seconds."""
        return max(
            (note.time + note.duration for track in self.tracks for note in track.notes),
            default=0.0,
        )


@dataclass(frozen=True)
class MusicEntry:
    """
    One validated ``musics[]`` entry of a level file.

    ``base_beats`` keeps its authored form: the row layout reads it as a
    number, the notation compiler as a key of BASEBEATS_MAP.
    """

    id: int | float
    base_beats: str | int | float
    scores: tuple[str, ...]
    bpm: float | None = None


@dataclass(frozen=True)
class RowTypeResult:
    """One generated tile row: its shape and height in base-row units."""

    kind: RowKind
    height_multiplier: float


@dataclass(frozen=True)
class MusicSection:
    """
    Row range and scroll speed of one music section.

    ``end_row_index`` is exclusive and equals the next section's
    ``start_row_index``.
    """

    id: int | float
    tps: float
    start_row_index: int
    end_row_index: int
    row_count: int


@dataclass
class Indicator:
    """
    A note marker placed on the scrolling grid.

    Everything except ``consumed`` is fixed at placement time; ``consumed``
    only ever flips from False to True.
    """

    note_id: int
    row_index: int
    x: float
    y: float
    width: float
    height: float
    time: float
    consumed: bool = False

    def consume(self) -> bool:
        """Mark the indicator consumed. Returns False if it already was."""
        if self.consumed:
            return False
        self.consumed = True
        return True
