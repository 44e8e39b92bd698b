"""Pixel geometry of a compiled row sequence."""

from dataclasses import dataclass

from tilescore.score_models import RowKind, RowTypeResult


@dataclass(frozen=True)
class ScreenConfig:
    """Play-area dimensions and scroll defaults, in pixels and tiles/second."""

    width: float = 405
    height: float = 720
    column_count: int = 4
    base_row_height: float = 180
    default_tps: float = 3.0
    indicator_size: float = 16
    indicator_y_offset: float = -8


DEFAULT_SCREEN = ScreenConfig()

#: Number of tiles a row of each kind carries.
TILES_PER_KIND: dict[RowKind, int] = {
    RowKind.START: 1,
    RowKind.SINGLE: 1,
    RowKind.DOUBLE: 2,
    RowKind.EMPTY: 0,
}


@dataclass(frozen=True)
class PlacedRow:
    """
    A row positioned on the scrolling grid.

    ``y_position`` is the top edge; rows grow upward, so later rows have
    smaller y. Row 0 is always the START row.
    """

    row_index: int
    kind: RowKind
    height_multiplier: float
    y_position: float
    height: float
    tile_count: int

    @property
    def bottom(self) -> float:
        return self.y_position + self.height


def layout_rows(rows: list[RowTypeResult] | tuple[RowTypeResult, ...], screen: ScreenConfig = DEFAULT_SCREEN) -> list[PlacedRow]:
    """
    Stack the START row and every compiled row upward from the screen bottom.

    Column (slot) assignment is left to the row generator; only vertical
    geometry and tile counts are fixed here.
    """
    start_y = screen.height - screen.base_row_height * 2
    placed = [
        PlacedRow(
            row_index=0,
            kind=RowKind.START,
            height_multiplier=1,
            y_position=start_y,
            height=screen.base_row_height,
            tile_count=TILES_PER_KIND[RowKind.START],
        )
    ]

    current_y = start_y
    for index, row in enumerate(rows, start=1):
        height = row.height_multiplier * screen.base_row_height
        current_y -= height
        placed.append(
            PlacedRow(
                row_index=index,
                kind=row.kind,
                height_multiplier=row.height_multiplier,
                y_position=current_y,
                height=height,
                tile_count=TILES_PER_KIND[row.kind],
            )
        )
    return placed
