from __future__ import annotations

import pytest

from navalhub.core.errors import CoordinateError
from navalhub.core.models import (
    Coord,
    Direction,
    Ship,
    ShipPlacement,
    cells_for_placement,
    parse_coord,
)


def test_parse_coord_maps_letter_to_column_and_number_to_row() -> None:
    assert parse_coord("A1") == Coord(0, 0)
    assert parse_coord("C12") == Coord(11, 2)
    assert parse_coord("Z26") == Coord(25, 25)
    assert parse_coord(" B2 ") == Coord(1, 1)


@pytest.mark.parametrize("token", ["", "A", "1A", "a1", "A0", "A-1", "AA1", "A1.5", "A١"])
def test_parse_coord_rejects_malformed_tokens(token: str) -> None:
    with pytest.raises(CoordinateError):
        parse_coord(token)


def test_parse_coord_accepts_rows_beyond_any_board() -> None:
    # Bounds belong to the rules, not the token grammar.
    assert parse_coord("Z99") == Coord(98, 25)


def test_coord_token_and_str() -> None:
    assert Coord(0, 0).token == "A1"
    assert str(Coord(9, 3)) == "D10"
    with pytest.raises(CoordinateError):
        _ = Coord(0, 26).token


def test_direction_steps_and_offset() -> None:
    origin = Coord(2, 2)
    assert origin.offset(Direction.NORTH) == Coord(1, 2)
    assert origin.offset(Direction.EAST, 2) == Coord(2, 4)
    assert origin.offset(Direction.SOUTH) == Coord(3, 2)
    assert origin.offset(Direction.WEST, 3) == Coord(2, -1)


def test_cells_for_placement_extends_from_origin() -> None:
    placement = ShipPlacement(origin=Coord(0, 0), direction=Direction.EAST)
    assert cells_for_placement(placement, 3) == [Coord(0, 0), Coord(0, 1), Coord(0, 2)]


def test_ship_register_hit_reports_sinking_exactly_once() -> None:
    ship = Ship(ship_id=1, cells=[Coord(0, 0), Coord(0, 1)], direction=Direction.EAST)
    assert ship.remaining == 2
    assert ship.register_hit() is False
    assert ship.register_hit() is True
    assert ship.sunk
    assert ship.register_hit() is False
    assert ship.remaining == 0
