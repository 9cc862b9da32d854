"""Game rules model and rules-file loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from navalhub.core.errors import RulesError
from navalhub.core.models import Coord
from navalhub.core.sources import read_significant_lines

MIN_BOARD_SIZE = 1
MAX_BOARD_SIZE = 26
MIN_SHIPS = 1
MAX_SHIPS = 15
MIN_SHIP_LENGTH = 1


@dataclass(frozen=True, slots=True)
class Rules:
    """Immutable board dimensions and fleet description.

    Ship identities are 1-based: ship ``n`` has length ``ship_lengths[n - 1]``.
    """

    width: int
    height: int
    ship_lengths: tuple[int, ...]

    def __post_init__(self) -> None:
        if not MIN_BOARD_SIZE <= self.width <= MAX_BOARD_SIZE:
            raise RulesError(f"width {self.width} outside {MIN_BOARD_SIZE}..{MAX_BOARD_SIZE}")
        if not MIN_BOARD_SIZE <= self.height <= MAX_BOARD_SIZE:
            raise RulesError(f"height {self.height} outside {MIN_BOARD_SIZE}..{MAX_BOARD_SIZE}")
        if not MIN_SHIPS <= len(self.ship_lengths) <= MAX_SHIPS:
            raise RulesError(f"ship count {len(self.ship_lengths)} outside {MIN_SHIPS}..{MAX_SHIPS}")
        for length in self.ship_lengths:
            if length < MIN_SHIP_LENGTH:
                raise RulesError(f"ship length {length} is below {MIN_SHIP_LENGTH}")

    @property
    def number_of_ships(self) -> int:
        return len(self.ship_lengths)

    def ship_length(self, ship_id: int) -> int:
        """Return the length of 1-based ship `ship_id`."""
        return self.ship_lengths[ship_id - 1]

    def in_bounds(self, coord: Coord) -> bool:
        """Return whether the coordinate is in board bounds."""
        return 0 <= coord.row < self.height and 0 <= coord.col < self.width


def parse_int_token(token: str, what: str) -> int:
    """Parse a strict decimal integer token, raising RulesError otherwise."""
    text = token.strip()
    digits = text[1:] if text[:1] in {"+", "-"} else text
    if not digits or not digits.isascii() or not digits.isdigit():
        raise RulesError(f"{what} {token!r} is not an integer")
    return int(text)


def parse_rules_lines(lines: list[str]) -> Rules:
    """Build rules from already-filtered significant lines."""
    if not lines:
        raise RulesError("rules source is empty")
    dimensions = lines[0].split()
    if len(dimensions) != 2:
        raise RulesError(f"dimension line {lines[0]!r} must hold width and height")
    width = parse_int_token(dimensions[0], "width")
    height = parse_int_token(dimensions[1], "height")
    if len(lines) < 2:
        raise RulesError("rules source has no ship count")
    ship_count = parse_int_token(lines[1], "ship count")
    if not MIN_SHIPS <= ship_count <= MAX_SHIPS:
        raise RulesError(f"ship count {ship_count} outside {MIN_SHIPS}..{MAX_SHIPS}")
    length_lines = lines[2:]
    if len(length_lines) != ship_count:
        raise RulesError(f"expected {ship_count} ship lengths, found {len(length_lines)}")
    lengths = tuple(parse_int_token(line, "ship length") for line in length_lines)
    return Rules(width=width, height=height, ship_lengths=lengths)


def load_rules(path: str | Path) -> Rules:
    """Load and validate a rules file."""
    return parse_rules_lines(read_significant_lines(path, RulesError))
