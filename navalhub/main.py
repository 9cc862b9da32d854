"""Hub entry point: `navalhub rules config`."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from navalhub.core.errors import (
    AgentStartError,
    HubInterrupted,
    HubUsageError,
    RoundConfigError,
    RulesError,
)
from navalhub.core.round_config import load_round_config
from navalhub.core.rules import load_rules
from navalhub.hub.exit_status import HubExitStatus
from navalhub.hub.scheduler import TournamentOutcome
from navalhub.hub.supervisor import SignalSupervisor
from navalhub.hub.tournament import Tournament
from navalhub.infra.config import HubSettings, load_default_env_files, load_hub_settings
from navalhub.infra.logging import setup_logging, shutdown_logging

logger = logging.getLogger(__name__)


class _HubArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise HubUsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _HubArgumentParser(
        prog="navalhub",
        description="Referee a tournament of naval battle rounds between agent programs.",
        add_help=False,
    )
    parser.add_argument("rules", help="Rules file: dimensions, ship count, ship lengths")
    parser.add_argument("config", help="Round file: agent1,map1,agent2,map2 per line")
    return parser


def outcome_status(outcome: TournamentOutcome) -> HubExitStatus:
    """Map the tournament outcome to the hub's exit status."""
    if outcome.any_completed:
        return HubExitStatus.NORMAL
    if not outcome.reached_play:
        return HubExitStatus.AGENT_ERROR
    return HubExitStatus.COMMUNICATIONS_ERROR


def run_hub(
    argv: Sequence[str],
    *,
    settings: HubSettings,
    stdout: TextIO | None = None,
) -> HubExitStatus:
    """Run a whole tournament and return the exit status."""
    out = stdout if stdout is not None else sys.stdout
    try:
        args = build_parser().parse_args(list(argv))
    except HubUsageError:
        return HubExitStatus.INCORRECT_ARG_NUMBER
    try:
        rules = load_rules(args.rules)
    except RulesError as exc:
        logger.error("rules_invalid path=%s reason=%s", args.rules, exc)
        return HubExitStatus.INVALID_RULES
    try:
        entries = load_round_config(args.config)
    except RoundConfigError as exc:
        logger.error("config_invalid path=%s reason=%s", args.config, exc)
        return HubExitStatus.INVALID_CONFIG

    def _comment(line: str) -> None:
        print(line, file=out, flush=True)

    tournament = Tournament(
        rules,
        entries,
        settings=settings,
        commentary=_comment if settings.commentary_enabled else None,
    )
    supervisor = SignalSupervisor(
        tournament.rounds,
        reap_timeout_seconds=settings.reap_timeout_seconds,
        early_grace_seconds=settings.early_grace_seconds,
    )
    with supervisor, tournament:
        try:
            tournament.start()
            outcome = tournament.run()
        except AgentStartError as exc:
            logger.error("agents_not_started reason=%s", exc)
            return HubExitStatus.AGENT_ERROR
        except HubInterrupted as exc:
            logger.warning("hub_interrupted reason=%s", exc)
            return HubExitStatus.SIGHUP_RECEIVED
    return outcome_status(outcome)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the hub CLI and return its process exit status."""
    load_default_env_files()
    settings = load_hub_settings()
    setup_logging(settings)
    try:
        status = run_hub(sys.argv[1:] if argv is None else argv, settings=settings)
    finally:
        shutdown_logging()
    if status.message:
        print(status.message, file=sys.stderr, flush=True)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())
