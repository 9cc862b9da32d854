"""Line-oriented hub/agent wire protocol.

Every message is one ASCII line. ``decode`` turns a line into exactly one of
the message dataclasses below; ``encode`` renders a message back to a
newline-terminated line. Hub to agent: RULES, YT, OK, HIT/MISS/SUNK, DONE,
EARLY. Agent to hub: MAP, GUESS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from navalhub.core.errors import CoordinateError, MalformedMessage, RulesError
from navalhub.core.models import Coord, Direction, ShipPlacement, ShotResult, parse_coord
from navalhub.core.rules import Rules, parse_int_token

VALID_AGENT_IDS = (1, 2)


@dataclass(frozen=True, slots=True)
class RulesMessage:
    rules: Rules


@dataclass(frozen=True, slots=True)
class MapMessage:
    placements: tuple[ShipPlacement, ...]


@dataclass(frozen=True, slots=True)
class YourTurnMessage:
    pass


@dataclass(frozen=True, slots=True)
class GuessMessage:
    """Agent guess; ``coord`` is None when ``token`` is not a coordinate."""

    token: str
    coord: Coord | None


@dataclass(frozen=True, slots=True)
class OkMessage:
    pass


@dataclass(frozen=True, slots=True)
class ShotMessage:
    """HIT, MISS, or SUNK broadcast for a guess made by ``agent_id``."""

    outcome: ShotResult
    agent_id: int
    coord: Coord


@dataclass(frozen=True, slots=True)
class DoneMessage:
    winner_id: int


@dataclass(frozen=True, slots=True)
class EarlyMessage:
    pass


Message: TypeAlias = (
    RulesMessage
    | MapMessage
    | YourTurnMessage
    | GuessMessage
    | OkMessage
    | ShotMessage
    | DoneMessage
    | EarlyMessage
)


def encode(message: Message) -> str:
    """Render a message as a newline-terminated wire line."""
    return f"{_encode_body(message)}\n"


def _encode_body(message: Message) -> str:
    if isinstance(message, RulesMessage):
        rules = message.rules
        fields = [rules.width, rules.height, rules.number_of_ships, *rules.ship_lengths]
        return "RULES " + ",".join(str(value) for value in fields)
    if isinstance(message, MapMessage):
        ships = ":".join(
            f"{placement.origin.token},{placement.direction.value}"
            for placement in message.placements
        )
        return f"MAP {ships}"
    if isinstance(message, YourTurnMessage):
        return "YT"
    if isinstance(message, GuessMessage):
        return f"GUESS {message.coord.token if message.coord is not None else message.token}"
    if isinstance(message, OkMessage):
        return "OK"
    if isinstance(message, ShotMessage):
        return f"{message.outcome.value} {message.agent_id},{message.coord.token}"
    if isinstance(message, DoneMessage):
        return f"DONE {message.winner_id}"
    if isinstance(message, EarlyMessage):
        return "EARLY"
    raise TypeError(f"cannot encode {type(message).__name__}")


def decode(line: str) -> Message:
    """Decode one wire line into a message, raising MalformedMessage on failure."""
    text = line.strip()
    if not text:
        raise MalformedMessage(line, "empty line")
    parts = text.split(None, 1)
    keyword = parts[0]
    payload = parts[1].strip() if len(parts) > 1 else ""
    decoder = _DECODERS.get(keyword)
    if decoder is None:
        raise MalformedMessage(line, f"unknown message type {keyword!r}")
    return decoder(line, payload)


def _decode_rules(line: str, payload: str) -> RulesMessage:
    fields = _split_fields(line, payload, ",")
    if len(fields) < 4:
        raise MalformedMessage(line, "RULES needs width, height, ship count and lengths")
    try:
        width, height, ship_count, *lengths = (
            parse_int_token(field, "RULES field") for field in fields
        )
        if ship_count != len(lengths):
            raise MalformedMessage(
                line, f"RULES announces {ship_count} ships but lists {len(lengths)} lengths"
            )
        return RulesMessage(Rules(width=width, height=height, ship_lengths=tuple(lengths)))
    except RulesError as exc:
        raise MalformedMessage(line, str(exc)) from exc


def _decode_map(line: str, payload: str) -> MapMessage:
    placements: list[ShipPlacement] = []
    for entry in _split_fields(line, payload, ":"):
        parts = [part.strip() for part in entry.split(",")]
        if len(parts) != 2:
            raise MalformedMessage(line, f"ship entry {entry!r} must be COORD,DIR")
        coord = _coord_field(line, parts[0])
        try:
            direction = Direction(parts[1])
        except ValueError as exc:
            raise MalformedMessage(line, f"unknown direction {parts[1]!r}") from exc
        placements.append(ShipPlacement(origin=coord, direction=direction))
    return MapMessage(tuple(placements))


def _decode_guess(line: str, payload: str) -> GuessMessage:
    tokens = payload.split()
    if len(tokens) != 1:
        raise MalformedMessage(line, "GUESS takes exactly one coordinate")
    try:
        coord: Coord | None = parse_coord(tokens[0])
    except CoordinateError:
        coord = None
    return GuessMessage(token=tokens[0], coord=coord)


def _decode_shot(outcome: ShotResult):
    def _decode(line: str, payload: str) -> ShotMessage:
        fields = _split_fields(line, payload, ",")
        if len(fields) != 2:
            raise MalformedMessage(line, f"{outcome.value} needs an agent id and a coordinate")
        return ShotMessage(
            outcome=outcome,
            agent_id=_agent_id_field(line, fields[0]),
            coord=_coord_field(line, fields[1]),
        )

    return _decode


def _decode_done(line: str, payload: str) -> DoneMessage:
    return DoneMessage(winner_id=_agent_id_field(line, payload))


def _bare(message: Message):
    def _decode(line: str, payload: str) -> Message:
        if payload:
            raise MalformedMessage(line, "unexpected payload")
        return message

    return _decode


def _split_fields(line: str, payload: str, separator: str) -> list[str]:
    if not payload:
        raise MalformedMessage(line, "missing payload")
    fields = [field.strip() for field in payload.split(separator)]
    if any(not field for field in fields):
        raise MalformedMessage(line, "empty field")
    return fields


def _coord_field(line: str, token: str) -> Coord:
    try:
        return parse_coord(token)
    except CoordinateError as exc:
        raise MalformedMessage(line, str(exc)) from exc


def _agent_id_field(line: str, token: str) -> int:
    text = token.strip()
    if not text.isascii() or not text.isdigit() or int(text) not in VALID_AGENT_IDS:
        raise MalformedMessage(line, f"invalid agent id {token!r}")
    return int(text)


_DECODERS = {
    "RULES": _decode_rules,
    "MAP": _decode_map,
    "YT": _bare(YourTurnMessage()),
    "GUESS": _decode_guess,
    "OK": _bare(OkMessage()),
    "HIT": _decode_shot(ShotResult.HIT),
    "MISS": _decode_shot(ShotResult.MISS),
    "SUNK": _decode_shot(ShotResult.SUNK),
    "DONE": _decode_done,
    "EARLY": _bare(EarlyMessage()),
}
