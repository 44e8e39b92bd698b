"""Error taxonomy raised by the score compiler."""

import copy


class ScoreCompileError(Exception):
    """Base class for every failure raised while compiling a level."""

    def with_context(self, prefix: str) -> "ScoreCompileError":
        """Return a copy of this error whose message is prefixed, e.g. 'Part 2: ...'."""
        clone = copy.copy(self)
        clone.args = (f"{prefix}: {self}",)
        return clone


class StructuralError(ScoreCompileError):
    """The level JSON is malformed: a field is missing or has the wrong type."""


class NotationSyntaxError(ScoreCompileError):
    """
    A score string cannot be parsed.

    Attributes:
        position: Character offset in the score where parsing failed, if known.
        token:    The offending character or token, if known.
    """

    def __init__(self, message: str, position: int | None = None, token: str | None = None) -> None:
        super().__init__(message)
        self.position = position
        self.token = token


class TickOverflowError(ScoreCompileError, OverflowError):
    """Accumulated ticks exceed the fixed cap."""


class AlignmentError(ScoreCompileError):
    """A track cannot be reconciled with the reference track of its part."""
