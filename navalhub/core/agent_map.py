"""Per-agent board state: own fleet grid and opponent guess grid."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from navalhub.core.errors import PlacementError
from navalhub.core.models import Coord, Ship, ShipPlacement, ShotResult, cells_for_placement
from navalhub.core.rules import Rules

# Cell codes; positive values on the own grid are ship identities.
BLANK = 0
HIT = -1
MISS = -2

BLANK_MARKER = "."
HIT_MARKER = "*"
MISS_MARKER = "/"


@dataclass(slots=True)
class AgentMap:
    """Numpy-backed grids for one agent.

    ``own`` holds ship identities plus the opponent's hits and misses against
    them. ``opponent`` holds the outcome of this agent's own guesses.
    """

    rules: Rules
    own: np.ndarray = field(init=False)
    opponent: np.ndarray = field(init=False)
    ships: list[Ship] = field(default_factory=list)

    def __post_init__(self) -> None:
        shape = (self.rules.height, self.rules.width)
        self.own = np.full(shape, BLANK, dtype=np.int8)
        self.opponent = np.full(shape, BLANK, dtype=np.int8)

    @property
    def complete(self) -> bool:
        """Return whether every ship the rules call for has been placed."""
        return len(self.ships) == self.rules.number_of_ships

    def place_ship(self, placement: ShipPlacement) -> Ship:
        """Place the next ship of the fleet at `placement`."""
        if self.complete:
            raise PlacementError("fleet is already complete")
        ship_id = len(self.ships) + 1
        cells = cells_for_placement(placement, self.rules.ship_length(ship_id))
        for cell in cells:
            if not self.rules.in_bounds(cell):
                raise PlacementError(f"ship {ship_id} leaves the board at {_describe(cell)}")
            if self.own[cell.row, cell.col] != BLANK:
                raise PlacementError(f"ship {ship_id} overlaps another ship at {cell.token}")
        for cell in cells:
            self.own[cell.row, cell.col] = ship_id
        ship = Ship(ship_id=ship_id, cells=cells, direction=placement.direction)
        self.ships.append(ship)
        return ship

    def place_fleet(self, placements: list[ShipPlacement] | tuple[ShipPlacement, ...]) -> None:
        """Place a whole fleet; placements past the fleet size are ignored."""
        if len(placements) < self.rules.number_of_ships:
            raise PlacementError(
                f"expected {self.rules.number_of_ships} ships, got {len(placements)}"
            )
        for placement in placements[: self.rules.number_of_ships]:
            self.place_ship(placement)

    def placements(self) -> list[ShipPlacement]:
        return [ShipPlacement(ship.cells[0], ship.direction) for ship in self.ships]

    def ship_at(self, coord: Coord) -> Ship | None:
        for ship in self.ships:
            if ship.occupies(coord):
                return ship
        return None

    def receive_guess(self, coord: Coord) -> ShotResult:
        """Resolve an opponent guess against this fleet and mark the own grid."""
        ship = self.ship_at(coord)
        if ship is None or ship.sunk:
            self.own[coord.row, coord.col] = MISS
            return ShotResult.MISS
        self.own[coord.row, coord.col] = HIT
        if ship.register_hit():
            return ShotResult.SUNK
        return ShotResult.HIT

    def record_guess(self, coord: Coord, result: ShotResult) -> None:
        """Mark the outcome of this agent's own guess on the opponent grid."""
        self.opponent[coord.row, coord.col] = MISS if result is ShotResult.MISS else HIT

    def record_opponent_guess(self, coord: Coord, result: ShotResult) -> None:
        """Mark an opponent guess reported by a broadcast, without ship bookkeeping."""
        self.own[coord.row, coord.col] = MISS if result is ShotResult.MISS else HIT

    def was_guessed(self, coord: Coord) -> bool:
        return int(self.opponent[coord.row, coord.col]) != BLANK

    def all_ships_sunk(self) -> bool:
        """Return whether every placed ship has been sunk."""
        return bool(self.ships) and all(ship.sunk for ship in self.ships)

    def own_rows(self) -> list[str]:
        return _render(self.own)

    def opponent_rows(self) -> list[str]:
        return _render(self.opponent)


def _render(grid: np.ndarray) -> list[str]:
    return ["".join(_marker(int(value)) for value in row) for row in grid]


def _marker(value: int) -> str:
    if value == BLANK:
        return BLANK_MARKER
    if value == HIT:
        return HIT_MARKER
    if value == MISS:
        return MISS_MARKER
    return f"{value:X}"


def _describe(coord: Coord) -> str:
    try:
        return coord.token
    except ValueError:
        return f"({coord.row}, {coord.col})"
