"""
Rich notation compiler: score string -> ordered message stream.

Grammar, informally::

    score  := unit ((',' | ';') unit)*
    unit   := '(' note (op note)* ')' '[' length ']'
            | note '[' length ']'
            | rest
    op     := '.' | '~' | '$' | '@' | '%' | '!' | '^' | '&'

The scanner is a table-driven state machine: every character (or token)
is classified, and ``TRANSITIONS[(mode, class)]`` yields the next mode and
the action to run. A missing entry is a syntax error.
"""

import logging
from enum import Enum, IntEnum, auto
from typing import Final

from tilescore.decode_tables import MUTE_PITCH, get_length, get_note_number, get_rest
from tilescore.errors import NotationSyntaxError
from tilescore.score_models import Message, Track
from tilescore.timing import OPERATOR_GLYPHS, ChordEntry, distribute_notes

logger = logging.getLogger(__name__)


class Mode(IntEnum):
    IDLE = 0
    EXPECT_NOTE = 1      # after '(' or an operator
    IN_CHORD = 2         # after a note inside '( )'
    CHORD_CLOSED = 3     # expecting '['
    EXPECT_LENGTH = 4    # after '['
    UNIT_CLOSED = 5      # after ']' or a bare rest
    LENGTH_READ = 6      # expecting ']'


class CharClass(Enum):
    DOT = auto()
    OPERATOR = auto()
    OPEN_PAREN = auto()
    CLOSE_PAREN = auto()
    OPEN_BRACKET = auto()
    CLOSE_BRACKET = auto()
    SEPARATOR = auto()
    WHITESPACE = auto()
    DECORATION = auto()
    NOTE = auto()
    LENGTH = auto()
    REST = auto()


class Action(Enum):
    NONE = auto()
    PUSH_OPERATOR = auto()
    PUSH_NOTE = auto()
    STORE_LENGTH = auto()
    FLUSH_CHORD = auto()
    EMIT_REST = auto()


_SINGLE_CHAR_CLASSES: Final[dict[str, CharClass]] = {
    ".": CharClass.DOT,
    "(": CharClass.OPEN_PAREN,
    ")": CharClass.CLOSE_PAREN,
    "[": CharClass.OPEN_BRACKET,
    "]": CharClass.CLOSE_BRACKET,
    ",": CharClass.SEPARATOR,
    ";": CharClass.SEPARATOR,
    **{glyph: CharClass.OPERATOR for glyph in OPERATOR_GLYPHS},
}

# Ignored between units: leftovers of the row-layout notation ("5<...>", "{...}").
_DECORATION_CHARS: Final = frozenset("0123456789<>{}")

# Characters that end a note/length/rest token.
_TOKEN_DELIMITERS: Final = frozenset(".()[],;<>") | frozenset(OPERATOR_GLYPHS)

TRANSITIONS: Final[dict[tuple[Mode, CharClass], tuple[Mode, Action]]] = {
    (Mode.IDLE, CharClass.OPEN_PAREN): (Mode.EXPECT_NOTE, Action.NONE),
    (Mode.IDLE, CharClass.SEPARATOR): (Mode.IDLE, Action.NONE),
    (Mode.IDLE, CharClass.DECORATION): (Mode.IDLE, Action.NONE),
    (Mode.IDLE, CharClass.NOTE): (Mode.CHORD_CLOSED, Action.PUSH_NOTE),
    (Mode.IDLE, CharClass.REST): (Mode.UNIT_CLOSED, Action.EMIT_REST),
    (Mode.EXPECT_NOTE, CharClass.NOTE): (Mode.IN_CHORD, Action.PUSH_NOTE),
    (Mode.EXPECT_NOTE, CharClass.REST): (Mode.IN_CHORD, Action.NONE),
    (Mode.IN_CHORD, CharClass.DOT): (Mode.EXPECT_NOTE, Action.NONE),
    (Mode.IN_CHORD, CharClass.OPERATOR): (Mode.EXPECT_NOTE, Action.PUSH_OPERATOR),
    (Mode.IN_CHORD, CharClass.CLOSE_PAREN): (Mode.CHORD_CLOSED, Action.NONE),
    (Mode.CHORD_CLOSED, CharClass.OPEN_BRACKET): (Mode.EXPECT_LENGTH, Action.NONE),
    (Mode.EXPECT_LENGTH, CharClass.LENGTH): (Mode.LENGTH_READ, Action.STORE_LENGTH),
    (Mode.LENGTH_READ, CharClass.CLOSE_BRACKET): (Mode.UNIT_CLOSED, Action.FLUSH_CHORD),
    (Mode.UNIT_CLOSED, CharClass.SEPARATOR): (Mode.IDLE, Action.NONE),
    (Mode.UNIT_CLOSED, CharClass.DECORATION): (Mode.UNIT_CLOSED, Action.NONE),
}

_FINAL_MODES: Final = frozenset({Mode.IDLE, Mode.UNIT_CLOSED})


def step(mode: Mode, char_class: CharClass, token: str, position: int) -> tuple[Mode, Action]:
    """
    Look up one transition.

    Raises:
        NotationSyntaxError: If ``char_class`` is not allowed in ``mode``.
    """
    try:
        return TRANSITIONS[(mode, char_class)]
    except KeyError:
        raise NotationSyntaxError(
            f"Unexpected '{token}' at position {position}", position=position, token=token
        ) from None


def _read_token(score: str, start: int) -> str:
    end = start
    while end < len(score) and score[end] not in _TOKEN_DELIMITERS and not score[end].isspace():
        end += 1
    return score[start:end]


def _classify_token(token: str, base_beats: int, position: int) -> tuple[CharClass, int]:
    """Resolve a token to NOTE (pitch), LENGTH (ticks) or REST (ticks)."""
    pitch = get_note_number(token)
    if pitch:
        return CharClass.NOTE, pitch
    length = get_length(token, base_beats)
    if length:
        return CharClass.LENGTH, length
    rest = get_rest(token, base_beats)
    if rest:
        return CharClass.REST, rest
    raise NotationSyntaxError(f"Couldn't parse '{token}' at position {position}", position=position, token=token)


class NotationCompiler:
    """
    Compiles one score string of a music section.

    Args:
        bpm:        Effective part tempo; drives the ornament step.
        base_beats: baseBeats multiplier for length and rest letters.
    """

    def __init__(self, bpm: float, base_beats: int) -> None:
        self.bpm = bpm
        self.base_beats = base_beats

    def compile(self, score: str) -> Track:
        """
        Compile a score string into a Track.

        Raises:
            NotationSyntaxError: Unexpected character or token, bad operator
                mix, or incomplete structure at the end of the score.
            TickOverflowError:   A letter code exceeds the tick cap.
        """
        messages: list[Message] = []
        pending: list[ChordEntry] = []
        length = 0
        mode = Mode.IDLE
        i = 0

        while i < len(score):
            char = score[i]
            position = i

            if char.isspace():
                i += 1
                continue

            char_class = _SINGLE_CHAR_CLASSES.get(char)
            value = 0
            token = char
            if char_class is None:
                if char in _DECORATION_CHARS and (mode, CharClass.DECORATION) in TRANSITIONS:
                    i += 1
                    continue
                token = _read_token(score, i)
                if not token:
                    raise NotationSyntaxError(f"Unexpected '{char}' at position {i}", position=i, token=char)
                char_class, value = _classify_token(token, self.base_beats, i)
                i += len(token)
            else:
                i += 1

            mode, action = step(mode, char_class, token, position)

            if action is Action.PUSH_OPERATOR:
                pending.append(OPERATOR_GLYPHS[char])
            elif action is Action.PUSH_NOTE:
                if value != MUTE_PITCH:
                    pending.append(value)
            elif action is Action.STORE_LENGTH:
                length = value
            elif action is Action.FLUSH_CHORD:
                messages.extend(distribute_notes(pending, length, self.bpm))
                pending = []
                length = 0
            elif action is Action.EMIT_REST:
                messages.append(Message.delay(value))

        if mode not in _FINAL_MODES:
            raise NotationSyntaxError("Incomplete score string", position=len(score))

        return Track(base_beats=self.base_beats, messages=tuple(messages))


def parse_track(score: str, bpm: float, base_beats: int) -> Track:
    """Compile one score string; see NotationCompiler.compile."""
    track = NotationCompiler(bpm, base_beats).compile(score)
    logger.debug("parsed track: %d chars -> %d messages", len(score), len(track.messages))
    return track
