"""One match between two agents, driven one protocol step at a time."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from navalhub.core.agent_map import AgentMap
from navalhub.core.errors import (
    AgentProcessError,
    NavalHubError,
    PlacementError,
    ProtocolError,
    SpawnError,
    UnexpectedMessage,
)
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
from navalhub.core.round_config import AgentEntry, RoundEntry
from navalhub.core.rules import Rules
from navalhub.hub.process import AgentChannel, AgentProcess, agent_seed

_LOG = logging.getLogger("navalhub.hub.round")

Commentary = Callable[[str], None]
Spawner = Callable[..., AgentChannel]

# Failures that disqualify one round without touching the rest of the tournament.
ROUND_FAILURES: tuple[type[NavalHubError], ...] = (
    ProtocolError,
    AgentProcessError,
    PlacementError,
)

_SHOT_LABELS = {
    ShotResult.HIT: "HIT",
    ShotResult.MISS: "MISS",
    ShotResult.SUNK: "SHIP SUNK",
}


class RoundState(Enum):
    """Round lifecycle states."""

    CREATED = auto()
    SPAWNED = auto()
    HANDSHAKE = auto()
    TURN = auto()
    DONE = auto()
    INVALID = auto()


_ACTIVE_STATES = frozenset({RoundState.SPAWNED, RoundState.HANDSHAKE, RoundState.TURN})


@dataclass(slots=True)
class RoundAgent:
    """Hub-side view of one seat in a round."""

    agent_id: int
    entry: AgentEntry
    channel: AgentChannel | None = None
    agent_map: AgentMap | None = None
    guesses: list[Coord] = field(default_factory=list)
    _guessed: set[Coord] = field(default_factory=set)

    def send(self, message: Message) -> None:
        if self.channel is None:
            raise SpawnError(f"player {self.agent_id} has no running process")
        self.channel.send_line(encode(message))

    def receive(self) -> Message:
        if self.channel is None:
            raise SpawnError(f"player {self.agent_id} has no running process")
        return decode(self.channel.read_line())

    def placed_map(self) -> AgentMap:
        if self.agent_map is None:
            raise RuntimeError(f"player {self.agent_id} has not completed the handshake")
        return self.agent_map

    def has_guessed(self, coord: Coord) -> bool:
        return coord in self._guessed

    def remember_guess(self, coord: Coord) -> None:
        self.guesses.append(coord)
        self._guessed.add(coord)


class Round:
    """State machine for a single match.

    ``step`` performs one unit of work: one agent's RULES/MAP handshake, or
    one complete turn. A failure during a step makes the round INVALID, which
    is terminal: both agents are sent EARLY where possible and killed.
    """

    def __init__(
        self,
        round_number: int,
        rules: Rules,
        player1: RoundAgent,
        player2: RoundAgent,
        *,
        commentary: Commentary | None = None,
        reap_timeout_seconds: float = 1.0,
    ) -> None:
        self.round_number = round_number
        self.rules = rules
        self.player1 = player1
        self.player2 = player2
        self.state = RoundState.CREATED
        self.active_id = 1
        self.winner_id: int | None = None
        self.failure_reason: str | None = None
        self.reached_play = False
        self._commentary = commentary
        self._reap_timeout_seconds = reap_timeout_seconds

    @classmethod
    def from_entry(
        cls,
        entry: RoundEntry,
        rules: Rules,
        *,
        commentary: Commentary | None = None,
        reap_timeout_seconds: float = 1.0,
    ) -> Round:
        return cls(
            entry.round_number,
            rules,
            RoundAgent(agent_id=1, entry=entry.player1),
            RoundAgent(agent_id=2, entry=entry.player2),
            commentary=commentary,
            reap_timeout_seconds=reap_timeout_seconds,
        )

    @property
    def agents(self) -> tuple[RoundAgent, RoundAgent]:
        return self.player1, self.player2

    @property
    def is_active(self) -> bool:
        """Return whether the scheduler still has work to do for this round."""
        return self.state in _ACTIVE_STATES

    @property
    def valid(self) -> bool:
        return self.state is not RoundState.INVALID

    @property
    def completed(self) -> bool:
        return self.state is RoundState.DONE

    def spawn(self, spawner: Spawner = AgentProcess.spawn, *, stderr_passthrough: bool = False) -> bool:
        """Start both agents; a spawn failure invalidates the round."""
        if self.state is not RoundState.CREATED:
            raise RuntimeError(f"round {self.round_number} was already spawned")
        for agent in self.agents:
            args = [
                str(agent.agent_id),
                agent.entry.map_file,
                str(agent_seed(self.round_number, agent.agent_id)),
            ]
            try:
                agent.channel = spawner(
                    agent.entry.executable,
                    args,
                    label=f"round{self.round_number}/player{agent.agent_id}",
                    stderr_passthrough=stderr_passthrough,
                )
            except SpawnError as exc:
                self.invalidate(str(exc))
                return False
        self.state = RoundState.SPAWNED
        return True

    def step(self) -> bool:
        """Advance the round by one unit of work; return False if it was inert."""
        if not self.is_active:
            return False
        try:
            if self.state is RoundState.SPAWNED:
                self._handshake(self.player1)
                self.state = RoundState.HANDSHAKE
            elif self.state is RoundState.HANDSHAKE:
                self._handshake(self.player2)
                self.state = RoundState.TURN
                self.reached_play = True
            else:
                self._play_turn()
        except ROUND_FAILURES as exc:
            self.invalidate(str(exc))
        return True

    def invalidate(self, reason: str) -> None:
        """Disqualify the round: EARLY where possible, then kill both agents."""
        if self.state in {RoundState.INVALID, RoundState.DONE}:
            return
        self.state = RoundState.INVALID
        self.failure_reason = reason
        _LOG.warning("round_invalidated round=%d reason=%s", self.round_number, reason)
        self._comment(f"ROUND {self.round_number} invalid: {reason}")
        self.send_early()
        self.kill_agents()

    def send_early(self) -> None:
        """Best-effort EARLY to every agent whose stream still accepts writes."""
        for agent in self.agents:
            if agent.channel is None or not agent.channel.is_alive():
                continue
            try:
                agent.send(EarlyMessage())
            except AgentProcessError:
                _LOG.debug(
                    "early_not_delivered round=%d player=%d", self.round_number, agent.agent_id
                )

    def kill_agents(self) -> None:
        for agent in self.agents:
            if agent.channel is not None:
                agent.channel.kill()

    def release(self) -> None:
        """Close both agents, letting them exit on their own first."""
        for agent in self.agents:
            if agent.channel is not None:
                agent.channel.close(self._reap_timeout_seconds)

    def live_channels(self) -> list[AgentChannel]:
        return [
            agent.channel
            for agent in self.agents
            if agent.channel is not None and agent.channel.is_alive()
        ]

    def _handshake(self, agent: RoundAgent) -> None:
        agent.agent_map = AgentMap(self.rules)
        agent.send(RulesMessage(self.rules))
        message = agent.receive()
        if not isinstance(message, MapMessage):
            raise UnexpectedMessage(
                f"player {agent.agent_id} sent {type(message).__name__} instead of MAP"
            )
        agent.agent_map.place_fleet(message.placements)
        _LOG.debug(
            "map_accepted round=%d player=%d ships=%d ignored=%d",
            self.round_number,
            agent.agent_id,
            len(agent.agent_map.ships),
            len(message.placements) - len(agent.agent_map.ships),
        )

    def _play_turn(self) -> None:
        agent = self._agent(self.active_id)
        opponent = self._agent(3 - self.active_id)
        own_map = agent.placed_map()
        opponent_map = opponent.placed_map()
        coord = self._await_guess(agent)
        agent.send(OkMessage())
        agent.remember_guess(coord)
        result = opponent_map.receive_guess(coord)
        own_map.record_guess(coord, result)
        self._broadcast(ShotMessage(outcome=result, agent_id=agent.agent_id, coord=coord))
        self._comment(f"{_SHOT_LABELS[result]} player {agent.agent_id} guessed {coord.token}")
        if opponent_map.all_ships_sunk():
            self._finish(agent)
        else:
            self.active_id = opponent.agent_id

    def _await_guess(self, agent: RoundAgent) -> Coord:
        """Prompt until the agent names a new in-bounds cell."""
        while True:
            agent.send(YourTurnMessage())
            message = agent.receive()
            if not isinstance(message, GuessMessage):
                raise UnexpectedMessage(
                    f"player {agent.agent_id} sent {type(message).__name__} instead of GUESS"
                )
            coord = message.coord
            if coord is None:
                reason = "malformed"
            else:
                reason = self._guess_rejection(agent, coord)
                if reason is None:
                    return coord
            _LOG.debug(
                "guess_rejected round=%d player=%d token=%s reason=%s",
                self.round_number,
                agent.agent_id,
                message.token,
                reason,
            )

    def _guess_rejection(self, agent: RoundAgent, coord: Coord) -> str | None:
        if not self.rules.in_bounds(coord):
            return "out_of_bounds"
        if agent.has_guessed(coord):
            return "repeated"
        return None

    def _finish(self, winner: RoundAgent) -> None:
        self.state = RoundState.DONE
        self.winner_id = winner.agent_id
        for agent in self.agents:
            with contextlib.suppress(AgentProcessError):
                agent.send(DoneMessage(winner_id=winner.agent_id))
        _LOG.info("round_done round=%d winner=%d", self.round_number, winner.agent_id)
        self._comment(f"GAME OVER - player {winner.agent_id} wins")
        self.release()

    def _broadcast(self, message: Message) -> None:
        for agent in self.agents:
            agent.send(message)

    def _agent(self, agent_id: int) -> RoundAgent:
        return self.player1 if agent_id == 1 else self.player2

    def _comment(self, line: str) -> None:
        if self._commentary is not None:
            self._commentary(line)


def build_rounds(
    entries: Sequence[RoundEntry],
    rules: Rules,
    *,
    commentary: Commentary | None = None,
    reap_timeout_seconds: float = 1.0,
) -> list[Round]:
    """Create one round per configuration entry, in configuration order."""
    return [
        Round.from_entry(
            entry, rules, commentary=commentary, reap_timeout_seconds=reap_timeout_seconds
        )
        for entry in entries
    ]
