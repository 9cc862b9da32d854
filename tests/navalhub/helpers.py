from __future__ import annotations

from collections.abc import Sequence

from navalhub.core.errors import AgentStreamClosed, SpawnError


class FakeChannel:
    """Scripted agent: replays canned output lines and records what it was sent."""

    def __init__(self, responses: Sequence[str] = (), *, pid: int | None = None) -> None:
        self._responses = list(responses)
        self.sent: list[str] = []
        self.pid = pid
        self.alive = True
        self.killed = False
        self.closed = False
        self.writable = True

    def send_line(self, line: str) -> None:
        if not self.writable or not self.alive:
            raise AgentStreamClosed("fake agent stopped reading")
        self.sent.append(line.rstrip("\n"))

    def read_line(self) -> str:
        if not self._responses:
            raise AgentStreamClosed("fake agent end of stream")
        return self._responses.pop(0)

    def is_alive(self) -> bool:
        return self.alive

    def kill(self) -> None:
        self.alive = False
        self.killed = True

    def close(self, grace_seconds: float = 0.0) -> None:
        self.closed = True
        self.alive = False


class FakeSpawner:
    """Spawner stand-in keyed by executable name; unknown names fail to start."""

    def __init__(self, scripts: dict[str, Sequence[str]] | None = None) -> None:
        self._scripts = dict(scripts or {})
        self.calls: list[tuple[str, list[str], str | None]] = []
        self.channels: list[FakeChannel] = []

    def __call__(
        self,
        executable: str,
        args: Sequence[str],
        *,
        label: str | None = None,
        stderr_passthrough: bool = False,
    ) -> FakeChannel:
        self.calls.append((executable, list(args), label))
        if executable not in self._scripts:
            raise SpawnError(f"cannot start {executable!r}: not found")
        channel = FakeChannel(self._scripts[executable])
        self.channels.append(channel)
        return channel
