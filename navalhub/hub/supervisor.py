"""Hang-up handling: tear down every agent process and stop the hub."""

from __future__ import annotations

import contextlib
import logging
import signal
from collections.abc import Sequence
from types import FrameType
from typing import Any

import psutil

from navalhub.core.errors import HubInterrupted
from navalhub.hub.round import Round

_LOG = logging.getLogger("navalhub.hub.supervisor")


class SignalSupervisor:
    """Holds the live round table for the interrupt path only.

    On SIGHUP every reachable agent is sent EARLY, every agent process is
    killed and reaped, and ``HubInterrupted`` is raised into whatever the hub
    was doing. SIGPIPE is ignored so a write to a dead agent surfaces as
    ``BrokenPipeError`` on that round instead of terminating the hub.
    """

    def __init__(
        self,
        rounds: Sequence[Round],
        *,
        reap_timeout_seconds: float = 1.0,
        early_grace_seconds: float = 0.25,
    ) -> None:
        self._rounds = rounds
        self._reap_timeout_seconds = reap_timeout_seconds
        self._early_grace_seconds = early_grace_seconds
        self._previous: dict[int, Any] = {}
        self._stopped = False

    @property
    def installed(self) -> bool:
        return bool(self._previous)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def install(self) -> None:
        if self.installed:
            return
        self._previous[signal.SIGPIPE] = signal.signal(signal.SIGPIPE, signal.SIG_IGN)
        self._previous[signal.SIGHUP] = signal.signal(signal.SIGHUP, self._handle_hangup)

    def uninstall(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def __enter__(self) -> SignalSupervisor:
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.uninstall()

    def emergency_stop(self) -> int:
        """EARLY to reachable agents, then kill and reap them all; return the agent count.

        Agents get ``early_grace_seconds`` to act on EARLY and exit on their
        own before the survivors are killed.
        """
        if self._stopped:
            return 0
        self._stopped = True
        victims = self._live_processes()
        for round_ in self._rounds:
            round_.send_early()
        if victims and self._early_grace_seconds > 0:
            gone, _ = psutil.wait_procs(victims, timeout=self._early_grace_seconds)
            _LOG.debug("hangup_early_exits count=%d", len(gone))
        for round_ in self._rounds:
            round_.kill_agents()
        _, alive = psutil.wait_procs(victims, timeout=self._reap_timeout_seconds)
        for proc in alive:
            _LOG.error("agent_survived_hangup pid=%d", proc.pid)
        _LOG.warning("hangup_teardown agents=%d", len(victims))
        return len(victims)

    def _live_processes(self) -> list[psutil.Process]:
        processes: list[psutil.Process] = []
        for round_ in self._rounds:
            for channel in round_.live_channels():
                if channel.pid is None:
                    continue
                with contextlib.suppress(psutil.NoSuchProcess):
                    processes.append(psutil.Process(channel.pid))
        return processes

    def _handle_hangup(self, signum: int, frame: FrameType | None) -> None:
        self.emergency_stop()
        raise HubInterrupted(f"signal {signum} received")
