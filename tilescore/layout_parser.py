"""Row-layout notation parser: score string -> tile-shaped components."""

import re
from dataclasses import dataclass

from tilescore.decode_tables import DURATION_LETTERS, REST_LETTERS
from tilescore.score_models import RowKind

# A chord group: one type digit followed by a bracketed body, e.g. "5<(c).(e)[L]>".
_GROUP_PATTERN = re.compile(r"([0-9])<(.+)>")

#: Type digit of a chord group that produces a two-tile row.
DOUBLE_GROUP_DIGIT = 5


@dataclass(frozen=True)
class Component:
    """One comma/semicolon separated unit of a score, as seen by the row layout."""

    duration: int
    kind: RowKind


def extract_duration_letters(text: str) -> int:
    """Sum the duration letters (H-P) in text, ignoring every other character."""
    return sum(DURATION_LETTERS.get(char, 0) for char in text)


def extract_rest_letters(text: str) -> int:
    """Sum the rest letters (Q-Y) in text, ignoring every other character."""
    return sum(REST_LETTERS.get(char, 0) for char in text)


def is_only_rest_letters(text: str) -> bool:
    """True if text is non-empty and made of rest letters only."""
    return bool(text) and all(char in REST_LETTERS for char in text)


def split_score(score: str) -> list[str]:
    """
    Split a score on ',' and ';' into trimmed component strings.

    A digit immediately followed by '<' starts a chord group that is captured
    whole up to its matching '>' (nested brackets are depth-tracked), so
    separators inside the group do not split it.
    """
    components: list[str] = []
    current = ""
    i = 0

    while i < len(score):
        char = score[i]

        if char == "<" and current and current[-1] in "0123456789":
            digit = current[-1]
            if current[:-1].strip():
                components.append(current[:-1].strip())
            current = ""

            depth = 0
            group = digit
            while i < len(score):
                if score[i] == "<":
                    depth += 1
                elif score[i] == ">":
                    depth -= 1
                group += score[i]
                i += 1
                if depth == 0:
                    break
            components.append(group)
            if i < len(score) and score[i] == ",":
                i += 1
        elif char in ",;":
            if current.strip():
                components.append(current.strip())
            current = ""
            i += 1
        else:
            current += char
            i += 1

    if current.strip():
        components.append(current.strip())

    return components


def parse_component(component: str) -> Component:
    """
    Classify one component string.

    - ``d<content>``: chord group; DOUBLE if d is 5, else SINGLE. Duration is
      the sum of duration letters inside content.
    - rest letters only: EMPTY, duration is the sum of rest letters.
    - anything else: SINGLE, duration is the sum of duration letters.
    """
    trimmed = component.strip()

    match = _GROUP_PATTERN.fullmatch(trimmed)
    if match:
        kind = RowKind.DOUBLE if int(match.group(1)) == DOUBLE_GROUP_DIGIT else RowKind.SINGLE
        return Component(duration=extract_duration_letters(match.group(2)), kind=kind)

    if is_only_rest_letters(trimmed):
        return Component(duration=extract_rest_letters(trimmed), kind=RowKind.EMPTY)

    return Component(duration=extract_duration_letters(trimmed), kind=RowKind.SINGLE)


def parse_score(score: str) -> list[Component]:
    """Split and classify a whole score string. An empty score yields []."""
    return [parse_component(part) for part in split_score(score)]
