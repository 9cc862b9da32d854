"""Agent-side protocol loop: RULES in, MAP out, then guesses until the game ends."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TextIO

from navalhub.agent.strategy import GuessStrategy
from navalhub.core.agent_map import AgentMap
from navalhub.core.errors import AgentStreamClosed, MalformedMessage, UnexpectedMessage
from navalhub.core.models import Coord, ShotResult
from navalhub.core.protocol import (
    DoneMessage,
    EarlyMessage,
    GuessMessage,
    MapMessage,
    Message,
    OkMessage,
    RulesMessage,
    ShotMessage,
    YourTurnMessage,
    decode,
    encode,
)
from navalhub.core.rules import Rules

_LOG = logging.getLogger("navalhub.agent.runtime")

_SHOT_LABELS = {
    ShotResult.HIT: "HIT",
    ShotResult.MISS: "MISS",
    ShotResult.SUNK: "SHIP SUNK",
}


@dataclass(frozen=True, slots=True)
class GameResult:
    """How an agent's game ended."""

    winner_id: int | None
    early: bool
    guesses: int


def render_boards(agent_map: AgentMap) -> str:
    """Render own and opponent grids with column letters and row numbers."""
    header = "   " + "".join(chr(ord("A") + col) for col in range(agent_map.rules.width))
    own = [f"{row + 1:2d} {text}" for row, text in enumerate(agent_map.own_rows())]
    opponent = [f"{row + 1:2d} {text}" for row, text in enumerate(agent_map.opponent_rows())]
    return "\n".join([header, *own, "===", header, *opponent]) + "\n"


class AgentSession:
    """One agent's side of a round over a pair of text streams.

    Diagnostics (shot commentary and board renderings) go to ``diagnostics``,
    which is the process stderr when run from the CLI.
    """

    def __init__(
        self,
        agent_id: int,
        *,
        reader: TextIO,
        writer: TextIO,
        diagnostics: TextIO | None = None,
    ) -> None:
        self.agent_id = agent_id
        self._reader = reader
        self._writer = writer
        self._diagnostics = diagnostics
        self.agent_map: AgentMap | None = None
        self.guesses: list[Coord] = []

    def read_rules(self) -> Rules:
        """Block for the hub's RULES line."""
        message = self._receive()
        if not isinstance(message, RulesMessage):
            raise UnexpectedMessage(f"expected RULES, got {type(message).__name__}")
        return message.rules

    def send_map(self, agent_map: AgentMap) -> None:
        self.agent_map = agent_map
        self._send(MapMessage(tuple(agent_map.placements())))
        self._emit(render_boards(agent_map))

    def play(self, strategy: GuessStrategy) -> GameResult:
        """Serve hub messages until DONE or EARLY."""
        if self.agent_map is None:
            raise RuntimeError("send_map must be called before play")
        while True:
            message = self._receive()
            if isinstance(message, YourTurnMessage):
                self._on_your_turn(strategy)
            elif isinstance(message, OkMessage):
                continue
            elif isinstance(message, ShotMessage):
                self._on_shot(message, strategy)
            elif isinstance(message, DoneMessage):
                return self._on_done(message)
            elif isinstance(message, EarlyMessage):
                return self._on_early()
            else:
                raise UnexpectedMessage(
                    f"agent {self.agent_id} cannot handle {type(message).__name__} mid-game"
                )

    def _on_your_turn(self, strategy: GuessStrategy) -> None:
        coord = strategy.choose_shot()
        self.guesses.append(coord)
        self._send(GuessMessage(token=coord.token, coord=coord))

    def _on_shot(self, message: ShotMessage, strategy: GuessStrategy) -> None:
        agent_map = self.agent_map
        if agent_map is None:
            raise RuntimeError("send_map must be called before play")
        if not agent_map.rules.in_bounds(message.coord):
            raise MalformedMessage(encode(message).strip(), "coordinate off the board")
        if message.agent_id == self.agent_id:
            agent_map.record_guess(message.coord, message.outcome)
            strategy.notify_result(message.coord, message.outcome)
        else:
            agent_map.record_opponent_guess(message.coord, message.outcome)
        label = _SHOT_LABELS[message.outcome]
        self._emit(f"{label} player {message.agent_id} guessed {message.coord.token}\n")
        # Player 2's shot closes a full turn pair.
        if message.agent_id == 2:
            self._emit(render_boards(agent_map))

    def _on_done(self, message: DoneMessage) -> GameResult:
        self._emit(f"GAME OVER - player {message.winner_id} wins\n")
        _LOG.info("game_over agent=%d winner=%d", self.agent_id, message.winner_id)
        return GameResult(winner_id=message.winner_id, early=False, guesses=len(self.guesses))

    def _on_early(self) -> GameResult:
        _LOG.info("game_ended_early agent=%d", self.agent_id)
        return GameResult(winner_id=None, early=True, guesses=len(self.guesses))

    def _receive(self) -> Message:
        line = self._reader.readline()
        if not line:
            raise AgentStreamClosed("hub closed the input stream")
        return decode(line)

    def _send(self, message: Message) -> None:
        try:
            self._writer.write(encode(message))
            self._writer.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            raise AgentStreamClosed(f"hub stopped reading: {exc}") from exc

    def _emit(self, text: str) -> None:
        if self._diagnostics is not None:
            self._diagnostics.write(text)
            self._diagnostics.flush()
