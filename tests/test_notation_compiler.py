"""Unit tests for the rich notation compiler."""

import re

import pytest

from tilescore.errors import NotationSyntaxError, TickOverflowError
from tilescore.notation_compiler import Action, CharClass, Mode, parse_track, step
from tilescore.score_models import Message, MessageKind

ON, OFF, DELAY = Message.note_on, Message.note_off, Message.delay


def test_single_note_unit() -> None:
    track = parse_track("(c)[N]", 1800, 15)
    assert track.messages == (ON(48), DELAY(60), OFF(48))
    assert track.base_beats == 15


def test_chord_with_dots() -> None:
    track = parse_track("(c.e.g)[K]", 1800, 1)
    assert track.messages == (ON(48), ON(52), ON(55), DELAY(32), OFF(48), OFF(52), OFF(55))


def test_divider_inside_chord() -> None:
    track = parse_track("(c~e)[N]", 1800, 1)
    assert track.messages == (ON(48), DELAY(2), OFF(48), ON(52), DELAY(2), OFF(52))


def test_alternate_divider_glyph() -> None:
    assert parse_track("(c$e)[N]", 1800, 1) == parse_track("(c~e)[N]", 1800, 1)


def test_rest_between_units() -> None:
    track = parse_track("(c)[N],W;(d)[N]", 1800, 1)
    assert track.messages == (ON(48), DELAY(4), OFF(48), DELAY(4), ON(50), DELAY(4), OFF(50))


def test_bare_note_without_parentheses() -> None:
    assert parse_track("c[N]", 1800, 1).messages == (ON(48), DELAY(4), OFF(48))


def test_mute_keeps_time_but_sounds_nothing() -> None:
    assert parse_track("(mute)[N]", 1800, 1).messages == (DELAY(4),)
    assert parse_track("(c.empty)[N]", 1800, 1).messages == (ON(48), DELAY(4), OFF(48))


def test_layout_decorations_are_ignored() -> None:
    track = parse_track("5<(c)[N]>,{(d)[N]}", 1800, 1)
    assert track.messages == (ON(48), DELAY(4), OFF(48), ON(50), DELAY(4), OFF(50))


def test_whitespace_between_tokens() -> None:
    spaced = parse_track(" (c . e) [N] , (d)[N] ", 1800, 1)
    assert spaced == parse_track("(c.e)[N],(d)[N]", 1800, 1)


def test_octave_and_sharp_names() -> None:
    track = parse_track("(#c1.A-3.c5)[P]", 1800, 1)
    pitches = [msg.value for msg in track.messages if msg.kind is MessageKind.NOTE_ON]
    assert pitches == [61, 21, 108]


def test_arpeggio_track_keeps_its_length() -> None:
    assert parse_track("(c@e@g)[H]", 1800, 1).total_ticks == 256


def test_empty_score() -> None:
    assert parse_track("", 1800, 1).messages == ()


def test_unexpected_character_reports_position() -> None:
    with pytest.raises(NotationSyntaxError) as excinfo:
        parse_track(")", 1800, 1)
    assert excinfo.value.position == 0
    assert excinfo.value.token == ")"
    assert "Unexpected ')'" in str(excinfo.value)


@pytest.mark.parametrize(
    ("score", "message"),
    [
        ("(c)[N", "Incomplete"),
        ("(c", "Incomplete"),
        ("(x)[N]", "Couldn't parse 'x'"),
        ("(c)(d)", "Unexpected '('"),
        ("(c)[Q]", "Unexpected 'Q'"),
        ("(c)[N]]", "Unexpected ']'"),
        ("(c@e~g)[N]", "operators"),
    ],
)
def test_syntax_errors(score: str, message: str) -> None:
    with pytest.raises(NotationSyntaxError, match=re.escape(message)):
        parse_track(score, 1800, 1)


def test_length_overflow() -> None:
    with pytest.raises(TickOverflowError):
        parse_track("(c)[" + "H" * 100 + "]", 1800, 960)


def test_transition_lookup() -> None:
    assert step(Mode.IDLE, CharClass.OPEN_PAREN, "(", 0) == (Mode.EXPECT_NOTE, Action.NONE)
    assert step(Mode.LENGTH_READ, CharClass.CLOSE_BRACKET, "]", 5) == (Mode.UNIT_CLOSED, Action.FLUSH_CHORD)
    with pytest.raises(NotationSyntaxError):
        step(Mode.IN_CHORD, CharClass.OPEN_BRACKET, "[", 2)
