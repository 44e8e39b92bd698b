"""Track blending: promote primary rests that sit under secondary-track notes."""

from dataclasses import dataclass

from tilescore.layout_parser import Component, parse_score
from tilescore.score_models import RowKind, RowTypeResult

#: Layout ticks per base-height row at baseBeats 1.
UNIT_TICKS = 32


@dataclass(frozen=True)
class TimelineEntry:
    """Half-open tick window [start, end) of one component."""

    start: int
    end: int
    index: int
    is_rest: bool


def build_timeline(components: list[Component]) -> list[TimelineEntry]:
    """Lay components end to end on a running tick sum."""
    timeline: list[TimelineEntry] = []
    current = 0
    for index, comp in enumerate(components):
        timeline.append(
            TimelineEntry(
                start=current,
                end=current + comp.duration,
                index=index,
                is_rest=comp.kind is RowKind.EMPTY,
            )
        )
        current += comp.duration
    return timeline


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    return start1 < end2 and start2 < end1


def blend_tracks(primary_timeline: list[TimelineEntry], secondary_scores: list[str]) -> set[int]:
    """
    Return the indices of primary rests overlapped by any secondary note.

    Each secondary score is parsed on its own; only its non-rest windows count.
    """
    blended: set[int] = set()
    primary_rests = [entry for entry in primary_timeline if entry.is_rest]

    for score in secondary_scores:
        for sec in build_timeline(parse_score(score)):
            if sec.is_rest:
                continue
            for prim in primary_rests:
                if ranges_overlap(prim.start, prim.end, sec.start, sec.end):
                    blended.add(prim.index)

    return blended


def generate_results(
    components: list[Component],
    blended_indices: set[int],
    unit_divisor: float,
) -> list[RowTypeResult]:
    """Turn classified components into rows, applying blending."""

    def _tile_height(duration: int) -> float:
        return 1 if duration <= unit_divisor else duration / unit_divisor

    results: list[RowTypeResult] = []
    for index, comp in enumerate(components):
        if comp.kind is RowKind.EMPTY and index in blended_indices:
            results.append(RowTypeResult(RowKind.SINGLE, _tile_height(comp.duration)))
        elif comp.kind is RowKind.DOUBLE:
            results.append(RowTypeResult(RowKind.DOUBLE, 1))
        elif comp.kind is RowKind.EMPTY:
            results.append(RowTypeResult(RowKind.EMPTY, comp.duration / unit_divisor))
        else:
            results.append(RowTypeResult(RowKind.SINGLE, _tile_height(comp.duration)))
    return results


def process_music(base_beats: float, scores: list[str]) -> list[RowTypeResult]:
    """
    Build the row sequence of one music section.

    The first score decides the row shapes; the remaining scores only blend
    into its rests.

    Args:
        base_beats: Raw numeric baseBeats of the section (may be fractional).
        scores:     Score strings of the section, primary first.
    """
    if not scores:
        return []

    unit_divisor = UNIT_TICKS * base_beats
    primary = parse_score(scores[0])
    blended = blend_tracks(build_timeline(primary), scores[1:])
    return generate_results(primary, blended, unit_divisor)
