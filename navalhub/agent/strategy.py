"""Guess strategy interface and the built-in strategies."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable

from navalhub.core.models import Coord, Direction, ShotResult
from navalhub.core.rules import Rules

DEFAULT_STRATEGY = "sweep"


class GuessStrategy(ABC):
    """Interface for agent guess selection."""

    @abstractmethod
    def choose_shot(self) -> Coord:
        """Return the next coordinate to guess."""

    @abstractmethod
    def notify_result(self, coord: Coord, result: ShotResult) -> None:
        """Update strategy state with the outcome of one of our guesses."""


class SweepStrategy(GuessStrategy):
    """Serpentine sweep: A1 rightwards, then the next row leftwards, and so on."""

    def __init__(self, rules: Rules) -> None:
        self._order: deque[Coord] = deque(serpentine_order(rules))

    def choose_shot(self) -> Coord:
        if not self._order:
            raise LookupError("every cell has already been guessed")
        return self._order.popleft()

    def notify_result(self, coord: Coord, result: ShotResult) -> None:
        return None


def serpentine_order(rules: Rules) -> list[Coord]:
    cells: list[Coord] = []
    for row in range(rules.height):
        cols = range(rules.width) if row % 2 == 0 else range(rules.width - 1, -1, -1)
        cells.extend(Coord(row, col) for col in cols)
    return cells


class RandomHuntStrategy(GuessStrategy):
    """Seeded random search that switches to probing neighbours after a hit."""

    def __init__(self, rules: Rules, rng: random.Random) -> None:
        self._rules = rules
        self._rng = rng
        self._remaining: set[Coord] = {
            Coord(row, col) for row in range(rules.height) for col in range(rules.width)
        }
        self._target_queue: deque[Coord] = deque()

    def choose_shot(self) -> Coord:
        while self._target_queue:
            coord = self._target_queue.popleft()
            if coord in self._remaining:
                self._remaining.discard(coord)
                return coord
        if not self._remaining:
            raise LookupError("every cell has already been guessed")
        coord = self._rng.choice(sorted(self._remaining))
        self._remaining.discard(coord)
        return coord

    def notify_result(self, coord: Coord, result: ShotResult) -> None:
        self._remaining.discard(coord)
        if result is ShotResult.HIT:
            self._enqueue_neighbours(coord)
        elif result is ShotResult.SUNK:
            self._target_queue.clear()

    def _enqueue_neighbours(self, coord: Coord) -> None:
        for direction in (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST):
            cell = coord.offset(direction)
            if self._rules.in_bounds(cell) and cell in self._remaining:
                self._target_queue.append(cell)


StrategyFactory = Callable[[Rules, int], GuessStrategy]

_STRATEGIES: dict[str, StrategyFactory] = {
    "sweep": lambda rules, seed: SweepStrategy(rules),
    "random": lambda rules, seed: RandomHuntStrategy(rules, random.Random(seed)),
}


def available_strategies() -> tuple[str, ...]:
    return tuple(sorted(_STRATEGIES))


def create_strategy(name: str, rules: Rules, seed: int) -> GuessStrategy:
    """Build the named strategy; unknown names raise ValueError."""
    factory = _STRATEGIES.get(name.strip().lower())
    if factory is None:
        raise ValueError(
            f"unknown strategy {name!r}; expected one of {', '.join(available_strategies())}"
        )
    return factory(rules, seed)
