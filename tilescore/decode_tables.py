"""Decode tables: notation letters to ticks, note names to pitch numbers."""

from typing import Final

from tilescore.errors import NotationSyntaxError, TickOverflowError

# ── Letter codes ────────────────────────────────────────────────────────────

#: Note-length letters, halving from a whole unit of 256 down to 1.
DURATION_LETTERS: Final[dict[str, int]] = {
    "H": 256,
    "I": 128,
    "J": 64,
    "K": 32,
    "L": 16,
    "M": 8,
    "N": 4,
    "O": 2,
    "P": 1,
}

#: Rest letters, same geometric halving as DURATION_LETTERS.
REST_LETTERS: Final[dict[str, int]] = {
    "Q": 256,
    "R": 128,
    "S": 64,
    "T": 32,
    "U": 16,
    "V": 8,
    "W": 4,
    "X": 2,
    "Y": 1,
}

MAX_LETTER_TICKS: Final = 0xFFFFFF

# ── Pitch table ─────────────────────────────────────────────────────────────

LOWEST_PITCH: Final = 21   # A-3
HIGHEST_PITCH: Final = 108  # c5

#: Pseudo-pitch for "mute"/"empty": occupies a chord slot but sounds nothing.
MUTE_PITCH: Final = 1

#: Pitch values below this floor are sentinels, never real notes.
PITCH_SENTINEL_FLOOR: Final = 20

_PITCH_CLASSES: Final[list[str]] = ["c", "#c", "d", "#d", "e", "f", "#f", "g", "#g", "a", "#a", "b"]


def _octave_names(octave: int) -> dict[str, int]:
    """
    Name every pitch of one notation octave.

    Octave 0 is written bare (c = 48), positive octaves carry a numeric suffix
    (c1 = 60 ... c5 = 108) and negative octaves are written in upper case with
    a "-n" suffix (C-1 = 36 ... A-3 = 21).
    """
    base = 48 + 12 * octave
    names: dict[str, int] = {}
    for offset, pitch_class in enumerate(_PITCH_CLASSES):
        midi = base + offset
        if not LOWEST_PITCH <= midi <= HIGHEST_PITCH:
            continue
        if octave < 0:
            name = f"{pitch_class.upper()}{octave}"
        elif octave == 0:
            name = pitch_class
        else:
            name = f"{pitch_class}{octave}"
        names[name] = midi
    return names


def _build_note_table() -> dict[str, int]:
    table: dict[str, int] = {}
    for octave in range(5, -4, -1):
        table.update(_octave_names(octave))
    table["mute"] = MUTE_PITCH
    table["empty"] = MUTE_PITCH
    return table


NOTE_TO_MIDI: Final[dict[str, int]] = _build_note_table()

#: Reverse mapping for audible pitches only (used for sample lookup and reports).
MIDI_TO_NOTE: Final[dict[int, str]] = {
    midi: name for name, midi in NOTE_TO_MIDI.items() if LOWEST_PITCH <= midi <= HIGHEST_PITCH
}

# ── baseBeats multipliers ───────────────────────────────────────────────────

BASEBEATS_MAP: Final[dict[str, int]] = {
    "15": 1,
    "7.5": 2,
    "5": 3,
    "3.75": 4,
    "3": 5,
    "2.5": 6,
    "1.875": 8,
    "1.5": 10,
    "1.25": 12,
    "1": 15,
    "0.9375": 16,
    "0.75": 20,
    "0.625": 24,
    "0.5": 30,
    "0.46875": 32,
    "0.375": 40,
    "0.3125": 48,
    "0.25": 60,
    "0.234375": 64,
    "0.1875": 80,
    "0.15625": 96,
    "0.125": 120,
    "0.1171875": 128,
    "0.09375": 160,
    "0.078125": 192,
    "0.0625": 240,
    "0.05859375": 256,
    "0.046875": 320,
    "0.0390625": 384,
    "0.03125": 480,
    "0.029296875": 512,
    "0.0234375": 640,
    "0.01953125": 768,
    "0.015625": 960,
}


def base_beats_key(value: str | int | float) -> str:
    """
    Normalise a baseBeats value to its key in BASEBEATS_MAP.

    Numbers use their shortest decimal form, so 1, 1.0 and "1" all map to "1".
    """
    if isinstance(value, str):
        return value.strip()
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def get_base_beats_multiplier(value: str | int | float) -> int:
    """
    Look up the tick multiplier for a baseBeats value.

    Raises:
        NotationSyntaxError: If the value is not one of the enumerated keys.
    """
    key = base_beats_key(value)
    try:
        return BASEBEATS_MAP[key]
    except KeyError:
        raise NotationSyntaxError(f"Unknown baseBeats value: {value}") from None


def get_note_number(name: str) -> int:
    """Return the pitch for a note name, 0 if the name is not a note."""
    return NOTE_TO_MIDI.get(name, 0)


def _letter_ticks(token: str, letters: dict[str, int], base_beats: int) -> int:
    ticks = 0
    for char in token:
        value = letters.get(char)
        if value is None:
            return 0
        ticks += value * base_beats
        if ticks > MAX_LETTER_TICKS:
            raise TickOverflowError(f"Length overflow in '{token}'")
    return ticks


def get_length(token: str, base_beats: int) -> int:
    """
    Ticks of a length code (letters H-P) scaled by base_beats.

    Returns 0 if any character is not a length letter.

    Raises:
        TickOverflowError: If the sum exceeds MAX_LETTER_TICKS.
    """
    return _letter_ticks(token, DURATION_LETTERS, base_beats)


def get_rest(token: str, base_beats: int) -> int:
    """Ticks of a rest code (letters Q-Y); same contract as get_length."""
    return _letter_ticks(token, REST_LETTERS, base_beats)
