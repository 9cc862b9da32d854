"""Core domain models used by game logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from navalhub.core.errors import CoordinateError

MIN_COLUMN_LABEL = "A"
MAX_COLUMN_LABEL = "Z"


class Direction(StrEnum):
    """Direction a ship extends in from its origin cell."""

    NORTH = "N"
    EAST = "E"
    SOUTH = "S"
    WEST = "W"

    @property
    def step(self) -> tuple[int, int]:
        """Return the (row, col) delta between consecutive ship cells."""
        return _DIRECTION_STEPS[self]


_DIRECTION_STEPS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (-1, 0),
    Direction.EAST: (0, 1),
    Direction.SOUTH: (1, 0),
    Direction.WEST: (0, -1),
}


class ShotResult(StrEnum):
    """Result of a single accepted guess."""

    MISS = "MISS"
    HIT = "HIT"
    SUNK = "SUNK"


@dataclass(frozen=True, slots=True, order=True)
class Coord:
    """Zero-based board coordinate."""

    row: int
    col: int

    @property
    def token(self) -> str:
        """Wire form: column letter then 1-based row, e.g. ``A1``."""
        if not 0 <= self.col < 26 or self.row < 0:
            raise CoordinateError(f"coordinate ({self.row}, {self.col}) has no wire form")
        return f"{chr(ord(MIN_COLUMN_LABEL) + self.col)}{self.row + 1}"

    def offset(self, direction: Direction, distance: int = 1) -> Coord:
        """Return the coordinate `distance` cells away in `direction`."""
        d_row, d_col = direction.step
        return Coord(self.row + d_row * distance, self.col + d_col * distance)

    def __str__(self) -> str:
        return self.token


def parse_coord(token: str) -> Coord:
    """Parse a wire coordinate token such as ``C12``.

    The column is one upper-case letter and the row a positive decimal
    integer. Board bounds are not checked here.
    """
    text = token.strip()
    if len(text) < 2:
        raise CoordinateError(f"coordinate {token!r} is too short")
    column, row_text = text[0], text[1:]
    if not MIN_COLUMN_LABEL <= column <= MAX_COLUMN_LABEL:
        raise CoordinateError(f"coordinate {token!r} has an invalid column")
    if not row_text.isascii() or not row_text.isdigit():
        raise CoordinateError(f"coordinate {token!r} has a non-numeric row")
    row = int(row_text)
    if row < 1:
        raise CoordinateError(f"coordinate {token!r} has a non-positive row")
    return Coord(row=row - 1, col=ord(column) - ord(MIN_COLUMN_LABEL))


@dataclass(frozen=True, slots=True)
class ShipPlacement:
    """Origin cell and facing of one ship, as sent in a MAP message."""

    origin: Coord
    direction: Direction


def cells_for_placement(placement: ShipPlacement, length: int) -> list[Coord]:
    """Compute occupied cells for a ship of `length` placed at `placement`."""
    return [placement.origin.offset(placement.direction, i) for i in range(length)]


@dataclass(slots=True)
class Ship:
    """One placed ship and its remaining-hits counter."""

    ship_id: int
    cells: list[Coord]
    direction: Direction
    remaining: int = field(init=False)

    def __post_init__(self) -> None:
        self.remaining = len(self.cells)

    @property
    def length(self) -> int:
        return len(self.cells)

    @property
    def sunk(self) -> bool:
        return self.remaining == 0

    def occupies(self, coord: Coord) -> bool:
        return coord in self.cells

    def register_hit(self) -> bool:
        """Consume one remaining hit; return True only on the sinking hit."""
        if self.remaining == 0:
            return False
        self.remaining -= 1
        return self.remaining == 0
