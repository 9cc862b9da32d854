"""Round-robin scheduling of every live round in a tournament."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from navalhub.hub.round import Round

_LOG = logging.getLogger("navalhub.hub.scheduler")


@dataclass(frozen=True, slots=True)
class TournamentOutcome:
    """Final disposition of every round after scheduling stops."""

    completed: tuple[int, ...] = ()
    invalid: tuple[int, ...] = ()
    reached_play: tuple[int, ...] = ()
    winners: dict[int, int] = field(default_factory=dict)
    passes: int = 0

    @property
    def any_completed(self) -> bool:
        return bool(self.completed)


class TournamentScheduler:
    """Cooperative scheduler: one step per active round per pass, in round order."""

    def __init__(self, rounds: Sequence[Round]) -> None:
        self._rounds = list(rounds)
        self._passes = 0

    @property
    def rounds(self) -> list[Round]:
        return list(self._rounds)

    @property
    def passes(self) -> int:
        return self._passes

    def has_active_rounds(self) -> bool:
        return any(round_.is_active for round_ in self._rounds)

    def run_pass(self) -> int:
        """Give every active round exactly one step; return how many were advanced."""
        advanced = 0
        for round_ in self._rounds:
            if not round_.is_active:
                continue
            if round_.step():
                advanced += 1
        self._passes += 1
        return advanced

    def run(self) -> TournamentOutcome:
        """Run passes until no round has work left."""
        while self.has_active_rounds():
            self.run_pass()
        outcome = self.outcome()
        _LOG.info(
            "tournament_finished passes=%d completed=%d invalid=%d",
            outcome.passes,
            len(outcome.completed),
            len(outcome.invalid),
        )
        return outcome

    def outcome(self) -> TournamentOutcome:
        return TournamentOutcome(
            completed=tuple(r.round_number for r in self._rounds if r.completed),
            invalid=tuple(r.round_number for r in self._rounds if not r.valid),
            reached_play=tuple(r.round_number for r in self._rounds if r.reached_play),
            winners={
                r.round_number: r.winner_id for r in self._rounds if r.winner_id is not None
            },
            passes=self._passes,
        )
