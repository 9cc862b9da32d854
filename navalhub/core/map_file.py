"""Agent ship-placement file parsing."""

from __future__ import annotations

from pathlib import Path

from navalhub.core.agent_map import AgentMap
from navalhub.core.errors import CoordinateError, MapFileError, PlacementError
from navalhub.core.models import Direction, ShipPlacement, parse_coord
from navalhub.core.rules import Rules
from navalhub.core.sources import read_significant_lines


def parse_map_lines(lines: list[str], rules: Rules) -> list[ShipPlacement]:
    """Parse ``COORD DIR`` lines into placements.

    Lines past the fleet size are ignored; a short fleet is an error.
    """
    placements: list[ShipPlacement] = []
    for line in lines:
        tokens = line.split()
        if len(tokens) != 2:
            raise MapFileError(f"map line {line!r} must be COORD DIR")
        try:
            origin = parse_coord(tokens[0])
        except CoordinateError as exc:
            raise MapFileError(str(exc)) from exc
        try:
            direction = Direction(tokens[1])
        except ValueError as exc:
            raise MapFileError(f"map line {line!r} has unknown direction {tokens[1]!r}") from exc
        if len(placements) < rules.number_of_ships:
            placements.append(ShipPlacement(origin=origin, direction=direction))
    if len(placements) != rules.number_of_ships:
        raise MapFileError(f"map places {len(placements)} of {rules.number_of_ships} ships")
    return placements


def read_map_lines(path: str | Path) -> list[str]:
    """Read the significant lines of a map file without interpreting them."""
    return read_significant_lines(path, MapFileError)


def build_agent_map(lines: list[str], rules: Rules) -> AgentMap:
    """Place the fleet described by map-file lines on a fresh agent map."""
    placements = parse_map_lines(lines, rules)
    agent_map = AgentMap(rules)
    try:
        agent_map.place_fleet(placements)
    except PlacementError as exc:
        raise MapFileError(str(exc)) from exc
    return agent_map


def load_agent_map(path: str | Path, rules: Rules) -> AgentMap:
    """Load a map file and place its fleet on a fresh agent map."""
    return build_agent_map(read_map_lines(path), rules)
