"""Agent entry point: `navalhub-agent id map seed`."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from enum import IntEnum
from typing import TextIO

from navalhub.agent.runtime import AgentSession, GameResult
from navalhub.agent.strategy import DEFAULT_STRATEGY, GuessStrategy, create_strategy
from navalhub.core.errors import AgentProcessError, MapFileError, ProtocolError
from navalhub.core.map_file import build_agent_map, read_map_lines
from navalhub.core.protocol import VALID_AGENT_IDS
from navalhub.core.rules import Rules
from navalhub.infra.config import load_agent_strategy_name, load_hub_settings
from navalhub.infra.logging import setup_logging, shutdown_logging

_LOG = logging.getLogger("navalhub.agent.main")

MINIMUM_SEED = 1


class AgentExitStatus(IntEnum):
    GAME_OVER = 0
    INCORRECT_ARG_NUMBER = 1
    INVALID_PLAYER_ID = 2
    INVALID_MAP = 3
    INVALID_SEED = 4
    COMMUNICATIONS_ERROR = 5

    @property
    def message(self) -> str | None:
        return _MESSAGES.get(self)


_MESSAGES: dict[AgentExitStatus, str] = {
    AgentExitStatus.INCORRECT_ARG_NUMBER: "Usage: agent id map seed",
    AgentExitStatus.INVALID_PLAYER_ID: "Invalid player id",
    AgentExitStatus.INVALID_MAP: "Invalid map file",
    AgentExitStatus.INVALID_SEED: "Invalid seed",
    AgentExitStatus.COMMUNICATIONS_ERROR: "Communications error",
}


def parse_agent_id(token: str) -> int | None:
    text = token.strip()
    if not text.isascii() or not text.isdigit() or int(text) not in VALID_AGENT_IDS:
        return None
    return int(text)


def parse_seed(token: str) -> int | None:
    """Return the seed, or None unless it is a decimal integer of at least 1."""
    text = token.strip()
    if not text.isascii() or not text.isdigit():
        return None
    seed = int(text)
    return seed if seed >= MINIMUM_SEED else None


def _select_strategy(rules: Rules, seed: int) -> GuessStrategy:
    name = load_agent_strategy_name(DEFAULT_STRATEGY)
    try:
        return create_strategy(name, rules, seed)
    except ValueError as exc:
        _LOG.warning("strategy_fallback requested=%s reason=%s", name, exc)
        return create_strategy(DEFAULT_STRATEGY, rules, seed)


def run_agent(
    argv: Sequence[str],
    *,
    reader: TextIO,
    writer: TextIO,
    diagnostics: TextIO | None = None,
) -> AgentExitStatus:
    """Validate arguments, then play one game over the given streams."""
    if len(argv) != 3:
        return AgentExitStatus.INCORRECT_ARG_NUMBER
    agent_id = parse_agent_id(argv[0])
    if agent_id is None:
        return AgentExitStatus.INVALID_PLAYER_ID
    try:
        map_lines = read_map_lines(argv[1])
    except MapFileError as exc:
        _LOG.error("map_unreadable path=%s reason=%s", argv[1], exc)
        return AgentExitStatus.INVALID_MAP
    seed = parse_seed(argv[2])
    if seed is None:
        return AgentExitStatus.INVALID_SEED

    session = AgentSession(agent_id, reader=reader, writer=writer, diagnostics=diagnostics)
    try:
        rules = session.read_rules()
    except (ProtocolError, AgentProcessError) as exc:
        _LOG.error("rules_not_received agent=%d reason=%s", agent_id, exc)
        return AgentExitStatus.COMMUNICATIONS_ERROR
    try:
        agent_map = build_agent_map(map_lines, rules)
    except MapFileError as exc:
        _LOG.error("map_invalid path=%s reason=%s", argv[1], exc)
        return AgentExitStatus.INVALID_MAP

    try:
        session.send_map(agent_map)
        result: GameResult = session.play(_select_strategy(rules, seed))
    except (ProtocolError, AgentProcessError) as exc:
        _LOG.error("game_aborted agent=%d reason=%s", agent_id, exc)
        return AgentExitStatus.COMMUNICATIONS_ERROR
    _LOG.info(
        "agent_finished agent=%d winner=%s early=%s guesses=%d",
        agent_id,
        result.winner_id,
        result.early,
        result.guesses,
    )
    return AgentExitStatus.GAME_OVER


def main(argv: Sequence[str] | None = None) -> int:
    """Run the agent CLI and return its process exit status."""
    settings = load_hub_settings()
    setup_logging(settings, run_name="navalhub_agent")
    try:
        status = run_agent(
            sys.argv[1:] if argv is None else argv,
            reader=sys.stdin,
            writer=sys.stdout,
            diagnostics=sys.stderr,
        )
    finally:
        shutdown_logging()
    if status.message:
        print(status.message, file=sys.stderr, flush=True)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())
