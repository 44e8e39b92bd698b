"""Timing distribution: spread a chord's length over its notes and operators."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Final, Union

from tilescore.decode_tables import PITCH_SENTINEL_FLOOR
from tilescore.errors import NotationSyntaxError
from tilescore.score_models import Message


class Operator(Enum):
    """Chord operators that can appear between notes inside ( )."""

    DIVIDER = "~"
    ARPEGGIO_1 = "@"
    ARPEGGIO_2 = "%"
    ARPEGGIO_3 = "!"
    ORNAMENT = "^"


#: Operator glyphs, including the alternate spellings "$" and "&".
OPERATOR_GLYPHS: Final[dict[str, Operator]] = {
    "~": Operator.DIVIDER,
    "$": Operator.DIVIDER,
    "@": Operator.ARPEGGIO_1,
    "%": Operator.ARPEGGIO_2,
    "!": Operator.ARPEGGIO_3,
    "^": Operator.ORNAMENT,
    "&": Operator.ORNAMENT,
}

#: A pending chord entry: a pitch or an operator marker.
ChordEntry = Union[int, Operator]

ORNAMENT_STEP_SCALE = 32
ORNAMENT_STEP_DIVISOR = 720


class ExactDivider:
    """
    Integer divider that carries the division remainder across calls.

    Every call floors ``total / divisor`` and adds the lost remainder to a
    running balance; once the balance reaches the divisor, that call returns
    one extra tick. Splitting a total into equal shares therefore always
    allocates exactly the total, with the extra ticks landing on later shares:

        >>> divider = ExactDivider()
        >>> [divider.divide(10, 3) for _ in range(3)]
        [3, 3, 4]

    One instance belongs to one chord or ornament; never share it.
    """

    def __init__(self) -> None:
        self.remainder: float = 0

    def divide(self, total: float, divisor: int) -> int:
        if divisor == 0:
            raise ZeroDivisionError("ExactDivider.divide by zero")
        quotient = int(total // divisor)
        self.remainder += total - quotient * divisor
        if self.remainder >= divisor:
            self.remainder -= divisor
            return quotient + 1
        return quotient


# ── Strategies ──────────────────────────────────────────────────────────────

class DistributionStrategy(ABC):
    """Turns pending chord entries plus a length into timed messages."""

    @abstractmethod
    def distribute(self, entries: list[ChordEntry], length: int, divider: ExactDivider) -> list[Message]:
        """
        Args:
            entries: Pitches and operator markers in authored order.
            length:  Total ticks available to the chord.
            divider: Fresh remainder-carrying divider for this chord.

        Returns:
            Messages whose DELAY values sum to exactly ``length``.
        """


class ChordDistribution(DistributionStrategy):
    """
    Plain chord, optionally cut by dividers into equal sequential chords.

    ``(c.e~g)`` with length 60 plays c+e for 30 ticks then g for 30 ticks.
    """

    def __init__(self, divisor: int) -> None:
        self.divisor = divisor

    def distribute(self, entries: list[ChordEntry], length: int, divider: ExactDivider) -> list[Message]:
        messages: list[Message] = []
        group: list[int] = []

        def _flush() -> None:
            messages.extend(Message.note_on(pitch) for pitch in group)
            messages.append(Message.delay(divider.divide(length, self.divisor)))
            messages.extend(Message.note_off(pitch) for pitch in group)
            group.clear()

        for entry in entries:
            if entry is Operator.DIVIDER:
                _flush()
            elif isinstance(entry, int):
                group.append(entry)
        _flush()
        return messages


class ArpeggioDistribution(DistributionStrategy):
    """
    Staggered chord: each marker waits a slice before the next note enters.

    The slice is ``scale × remaining / divisor`` of the length still left at
    that marker. After the last marker the whole chord is held for the
    remaining length, then released together.
    """

    def __init__(self, marker: Operator, scale: int, divisor: int) -> None:
        self.marker = marker
        self.scale = scale
        self.divisor = divisor

    def distribute(self, entries: list[ChordEntry], length: int, divider: ExactDivider) -> list[Message]:
        messages: list[Message] = []
        held: list[int] = []
        remaining = length

        for entry in entries:
            if entry is self.marker:
                delay = divider.divide(self.scale * remaining, self.divisor)
                if delay > remaining:
                    raise NotationSyntaxError(f"Arpeggio '{self.marker.value}' slice exceeds chord length")
                remaining -= delay
                messages.append(Message.delay(delay))
            elif isinstance(entry, int):
                messages.append(Message.note_on(entry))
                held.append(entry)

        messages.append(Message.delay(remaining))
        messages.extend(Message.note_off(pitch) for pitch in held)
        return messages


class OrnamentDistribution(DistributionStrategy):
    """
    Trill between two pitches: ``(a^b)`` alternates a and b at a fixed step
    of ``bpm × 32 / 720`` ticks until the length is used up.
    """

    def __init__(self, bpm: float) -> None:
        self.bpm = bpm

    def distribute(self, entries: list[ChordEntry], length: int, divider: ExactDivider) -> list[Message]:
        if (
            len(entries) != 3
            or entries[1] is not Operator.ORNAMENT
            or not isinstance(entries[0], int)
            or not isinstance(entries[2], int)
            or entries[0] < PITCH_SENTINEL_FLOOR
            or entries[2] < PITCH_SENTINEL_FLOOR
        ):
            raise NotationSyntaxError("Problem with ornament: expected exactly '<note>^<note>'")
        if self.bpm <= 0:
            raise NotationSyntaxError(f"Ornament needs a positive tempo, got {self.bpm}")

        pitches = (entries[0], entries[2])
        messages: list[Message] = []
        remaining = length
        flip = 0

        while True:
            pitch = pitches[flip]
            messages.append(Message.note_on(pitch))
            step = divider.divide(self.bpm * ORNAMENT_STEP_SCALE, ORNAMENT_STEP_DIVISOR)
            if step >= remaining:
                messages.append(Message.delay(remaining))
                messages.append(Message.note_off(pitch))
                return messages
            remaining -= step
            messages.append(Message.delay(step))
            messages.append(Message.note_off(pitch))
            flip = 1 - flip


def select_strategy(entries: list[ChordEntry], bpm: float) -> DistributionStrategy:
    """
    Validate the operator mix of a chord and pick its strategy.

    Raises:
        NotationSyntaxError: If more than one operator kind is present, or
            more than one ornament marker.
    """
    counts = {op: 0 for op in Operator}
    for entry in entries:
        if isinstance(entry, Operator):
            counts[entry] += 1

    present = [op for op, count in counts.items() if count > 0]
    if len(present) > 1 or counts[Operator.ORNAMENT] > 1:
        glyphs = ", ".join(op.value for op in present)
        raise NotationSyntaxError(f"Problem with operators: cannot combine {glyphs}")

    if counts[Operator.ARPEGGIO_1]:
        n = counts[Operator.ARPEGGIO_1]
        return ArpeggioDistribution(Operator.ARPEGGIO_1, 1, 10 if n == 1 else 10 * (n - 1))
    if counts[Operator.ARPEGGIO_2]:
        return ArpeggioDistribution(Operator.ARPEGGIO_2, 3, 10 * counts[Operator.ARPEGGIO_2])
    if counts[Operator.ARPEGGIO_3]:
        return ArpeggioDistribution(Operator.ARPEGGIO_3, 3, 20 * counts[Operator.ARPEGGIO_3])
    if counts[Operator.ORNAMENT]:
        return OrnamentDistribution(bpm)
    return ChordDistribution(counts[Operator.DIVIDER] + 1)


def distribute_notes(entries: list[ChordEntry], length: int, bpm: float) -> list[Message]:
    """Expand one chord into messages using a fresh ExactDivider."""
    strategy = select_strategy(entries, bpm)
    return strategy.distribute(entries, length, ExactDivider())
