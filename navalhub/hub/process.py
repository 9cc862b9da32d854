"""Agent child processes and their line-oriented pipes."""

from __future__ import annotations

import contextlib
import logging
import subprocess
from collections.abc import Sequence
from typing import IO, Protocol

import psutil

from navalhub.core.errors import AgentStreamClosed, MalformedMessage, SpawnError

_LOG = logging.getLogger("navalhub.hub.process")


class AgentChannel(Protocol):
    """Minimal surface the round state machine needs from an agent."""

    @property
    def pid(self) -> int | None: ...

    def send_line(self, line: str) -> None: ...

    def read_line(self) -> str: ...

    def is_alive(self) -> bool: ...

    def kill(self) -> None: ...

    def close(self, grace_seconds: float = 0.0) -> None: ...


def agent_seed(round_number: int, agent_id: int) -> int:
    """Seed handed to an agent: distinct per round and seat, never below 1."""
    return 2 * round_number + agent_id


class AgentProcess:
    """One spawned agent with a hub-to-agent and an agent-to-hub pipe.

    ``subprocess.Popen`` confirms the exec before returning: the child reports
    an exec failure over a close-on-exec error pipe, and a clean close of that
    pipe means the agent program is running. ``close_fds`` keeps every other
    hub descriptor, including other agents' pipes, out of the child.
    """

    def __init__(self, popen: subprocess.Popen[bytes], label: str) -> None:
        self._proc = popen
        self.label = label
        self._stdin: IO[bytes] | None = popen.stdin
        self._stdout: IO[bytes] | None = popen.stdout

    @classmethod
    def spawn(
        cls,
        executable: str,
        args: Sequence[str],
        *,
        label: str | None = None,
        stderr_passthrough: bool = False,
    ) -> AgentProcess:
        """Start `executable` with `args`, raising SpawnError if it cannot exec."""
        argv = [executable, *args]
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=None if stderr_passthrough else subprocess.DEVNULL,
                close_fds=True,
            )
        except (OSError, ValueError) as exc:
            raise SpawnError(f"cannot start {executable!r}: {exc}") from exc
        process = cls(popen, label or executable)
        _LOG.debug("agent_spawned label=%s pid=%d argv=%s", process.label, popen.pid, argv)
        return process

    @property
    def pid(self) -> int | None:
        return self._proc.pid

    @property
    def returncode(self) -> int | None:
        return self._proc.poll()

    def is_alive(self) -> bool:
        return self._proc.poll() is None

    def send_line(self, line: str) -> None:
        """Write one line to the agent and flush it."""
        if self._stdin is None:
            raise AgentStreamClosed(f"{self.label}: input stream already closed")
        data = line if line.endswith("\n") else f"{line}\n"
        try:
            self._stdin.write(data.encode("ascii"))
            self._stdin.flush()
        except (BrokenPipeError, ValueError, OSError, RuntimeError) as exc:
            raise AgentStreamClosed(f"{self.label}: cannot write to agent: {exc}") from exc

    def read_line(self) -> str:
        """Block until the agent writes a full line; EOF raises AgentStreamClosed."""
        if self._stdout is None:
            raise AgentStreamClosed(f"{self.label}: output stream already closed")
        try:
            raw = self._stdout.readline()
        except (ValueError, OSError, RuntimeError) as exc:
            raise AgentStreamClosed(f"{self.label}: cannot read from agent: {exc}") from exc
        if not raw:
            raise AgentStreamClosed(f"{self.label}: end of stream")
        try:
            return raw.decode("ascii").rstrip("\r\n")
        except UnicodeDecodeError as exc:
            raise MalformedMessage(repr(raw), "non-ASCII bytes") from exc

    def kill(self) -> None:
        """SIGKILL the agent and any processes it started, then reap it."""
        if self.is_alive():
            victims = _process_tree(self._proc.pid)
            for victim in victims:
                with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
                    victim.kill()
            with contextlib.suppress(OSError):
                self._proc.kill()
            _, survivors = psutil.wait_procs(victims[1:], timeout=1.0)
            for survivor in survivors:
                _LOG.warning("agent_descendant_survived label=%s pid=%d", self.label, survivor.pid)
        self._proc.wait()
        self._close_streams()

    def close(self, grace_seconds: float = 0.0) -> None:
        """Close the pipes, give the agent `grace_seconds` to exit, then kill it."""
        self._close_streams()
        if self.is_alive() and grace_seconds > 0:
            with contextlib.suppress(subprocess.TimeoutExpired):
                self._proc.wait(timeout=grace_seconds)
        self.kill()

    def _close_streams(self) -> None:
        for stream in (self._stdin, self._stdout):
            if stream is not None:
                with contextlib.suppress(OSError, ValueError, RuntimeError):
                    stream.close()
        self._stdin = None
        self._stdout = None


def _process_tree(pid: int) -> list[psutil.Process]:
    """Return the process followed by its live descendants."""
    try:
        parent = psutil.Process(pid)
        return [parent, *parent.children(recursive=True)]
    except psutil.NoSuchProcess:
        return []
