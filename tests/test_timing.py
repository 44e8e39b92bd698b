"""Unit tests for the exact divider and the chord distribution strategies."""

import pytest

from tilescore.errors import NotationSyntaxError
from tilescore.score_models import Message, total_ticks
from tilescore.timing import (
    ArpeggioDistribution,
    ChordDistribution,
    ExactDivider,
    Operator,
    OrnamentDistribution,
    distribute_notes,
    select_strategy,
)

DIV = Operator.DIVIDER
ARP1 = Operator.ARPEGGIO_1
ARP2 = Operator.ARPEGGIO_2
ARP3 = Operator.ARPEGGIO_3
ORN = Operator.ORNAMENT


def _delays(messages: list[Message]) -> list[int]:
    return [msg.value for msg in messages if msg.is_delay]


# ── ExactDivider ────────────────────────────────────────────────────────────

def test_divider_hands_out_remainder_on_later_shares() -> None:
    divider = ExactDivider()
    assert [divider.divide(10, 3) for _ in range(3)] == [3, 3, 4]


@pytest.mark.parametrize(("total", "parts"), [(100, 7), (61, 2), (1, 4), (960, 9)])
def test_divider_shares_sum_to_total(total: int, parts: int) -> None:
    divider = ExactDivider()
    assert sum(divider.divide(total, parts) for _ in range(parts)) == total


def test_divider_rejects_zero_divisor() -> None:
    with pytest.raises(ZeroDivisionError):
        ExactDivider().divide(10, 0)


# ── Strategy selection ──────────────────────────────────────────────────────

def test_strategy_selection() -> None:
    assert isinstance(select_strategy([48, 52], 1800), ChordDistribution)
    assert isinstance(select_strategy([48, DIV, 52], 1800), ChordDistribution)
    assert isinstance(select_strategy([48, ARP1, 52], 1800), ArpeggioDistribution)
    assert isinstance(select_strategy([48, ORN, 52], 1800), OrnamentDistribution)


def test_mixed_operators_are_rejected() -> None:
    with pytest.raises(NotationSyntaxError, match="operators"):
        select_strategy([48, DIV, 52, ARP1, 55], 1800)


def test_second_ornament_is_rejected() -> None:
    with pytest.raises(NotationSyntaxError):
        distribute_notes([48, ORN, 52, ORN, 55], 100, 1800)


# ── Distributions ───────────────────────────────────────────────────────────

def test_plain_chord() -> None:
    assert distribute_notes([48, 52], 60, 1800) == [
        Message.note_on(48),
        Message.note_on(52),
        Message.delay(60),
        Message.note_off(48),
        Message.note_off(52),
    ]


def test_divider_splits_into_sequential_chords() -> None:
    assert distribute_notes([48, DIV, 52], 61, 1800) == [
        Message.note_on(48),
        Message.delay(30),
        Message.note_off(48),
        Message.note_on(52),
        Message.delay(31),
        Message.note_off(52),
    ]


def test_single_arpeggio_marker_waits_a_tenth() -> None:
    assert distribute_notes([48, ARP1, 52], 100, 1800) == [
        Message.note_on(48),
        Message.delay(10),
        Message.note_on(52),
        Message.delay(90),
        Message.note_off(48),
        Message.note_off(52),
    ]


def test_repeated_arpeggio_slices_shrink_with_remaining_length() -> None:
    messages = distribute_notes([48, ARP1, 52, ARP1, 55], 100, 1800)
    assert _delays(messages) == [10, 9, 81]
    assert messages[-3:] == [Message.note_off(48), Message.note_off(52), Message.note_off(55)]


@pytest.mark.parametrize(("marker", "first_slice"), [(ARP2, 30), (ARP3, 15)])
def test_wider_arpeggios(marker: Operator, first_slice: int) -> None:
    assert _delays(distribute_notes([48, marker, 52], 100, 1800)) == [first_slice, 100 - first_slice]


def test_ornament_alternates_at_fixed_step() -> None:
    assert distribute_notes([48, ORN, 52], 200, 1800) == [
        Message.note_on(48),
        Message.delay(80),
        Message.note_off(48),
        Message.note_on(52),
        Message.delay(80),
        Message.note_off(52),
        Message.note_on(48),
        Message.delay(40),
        Message.note_off(48),
    ]


@pytest.mark.parametrize("entries", [[48, ORN], [10, ORN, 48], [48, ORN, 10], [ORN, 48, 52]])
def test_malformed_ornaments(entries: list) -> None:
    with pytest.raises(NotationSyntaxError, match="ornament"):
        distribute_notes(entries, 100, 1800)


@pytest.mark.parametrize(
    "entries",
    [[48], [48, 52, 55], [48, DIV, 52, DIV, 55], [48, ARP1, 52, ARP1, 55, ARP1, 59],
     [48, ARP2, 52, ARP2, 55], [48, ARP3, 52], [48, ORN, 52]],
)
def test_delays_always_sum_to_length(entries: list) -> None:
    for length in (1, 7, 60, 257, 960):
        assert total_ticks(distribute_notes(entries, length, 1800)) == length
