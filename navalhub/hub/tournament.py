"""Tournament: the rules plus every configured round and its agents."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from navalhub.core.errors import AgentStartError
from navalhub.core.round_config import RoundEntry
from navalhub.core.rules import Rules
from navalhub.hub.process import AgentProcess
from navalhub.hub.round import Commentary, Round, Spawner, build_rounds
from navalhub.hub.scheduler import TournamentOutcome, TournamentScheduler
from navalhub.infra.config import HubSettings

_LOG = logging.getLogger("navalhub.hub.tournament")


class Tournament:
    """Owns the rules and all rounds; releases every agent on close."""

    def __init__(
        self,
        rules: Rules,
        entries: Sequence[RoundEntry],
        *,
        settings: HubSettings | None = None,
        commentary: Commentary | None = None,
        spawner: Spawner = AgentProcess.spawn,
    ) -> None:
        self.rules = rules
        self.settings = settings or HubSettings()
        self._spawner = spawner
        self.rounds: list[Round] = build_rounds(
            entries,
            rules,
            commentary=commentary,
            reap_timeout_seconds=self.settings.reap_timeout_seconds,
        )
        self.scheduler = TournamentScheduler(self.rounds)
        self._closed = False

    def start(self) -> None:
        """Spawn both agents of every round; fail only if no round could start."""
        started = 0
        for round_ in self.rounds:
            if round_.spawn(
                self._spawner, stderr_passthrough=self.settings.agent_stderr_passthrough
            ):
                started += 1
        _LOG.info("tournament_started rounds=%d started=%d", len(self.rounds), started)
        if started == 0:
            raise AgentStartError("no round could start its agents")

    def run(self) -> TournamentOutcome:
        return self.scheduler.run()

    def close(self) -> None:
        """Kill and reap every agent still running. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for round_ in self.rounds:
            round_.kill_agents()

    def __enter__(self) -> Tournament:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
