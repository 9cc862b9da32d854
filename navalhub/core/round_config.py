"""Round configuration source: which agents play which map in each round."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from navalhub.core.errors import RoundConfigError
from navalhub.core.sources import read_significant_lines

CONFIG_FIELD_COUNT = 4


@dataclass(frozen=True, slots=True)
class AgentEntry:
    """Executable and map file for one seat of a round."""

    executable: str
    map_file: str


@dataclass(frozen=True, slots=True)
class RoundEntry:
    """One configured round."""

    round_number: int
    player1: AgentEntry
    player2: AgentEntry


def parse_round_config_lines(lines: list[str]) -> list[RoundEntry]:
    """Build round entries from already-filtered significant lines."""
    entries: list[RoundEntry] = []
    for line in lines:
        fields = [field.strip() for field in line.split(",")]
        if len(fields) != CONFIG_FIELD_COUNT:
            raise RoundConfigError(
                f"round line {line!r} must have {CONFIG_FIELD_COUNT} comma-separated fields"
            )
        if any(not field for field in fields):
            raise RoundConfigError(f"round line {line!r} has an empty field")
        entries.append(
            RoundEntry(
                round_number=len(entries),
                player1=AgentEntry(executable=fields[0], map_file=fields[1]),
                player2=AgentEntry(executable=fields[2], map_file=fields[3]),
            )
        )
    if not entries:
        raise RoundConfigError("round configuration lists no rounds")
    return entries


def load_round_config(path: str | Path) -> list[RoundEntry]:
    """Load the round configuration file."""
    return parse_round_config_lines(read_significant_lines(path, RoundConfigError))
