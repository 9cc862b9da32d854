"""Domain exception hierarchy shared by the hub and agent runtimes."""

from __future__ import annotations


class NavalHubError(Exception):
    """Base class for every error raised by navalhub."""


class RulesError(NavalHubError):
    """Rules source is missing or does not describe a valid game."""


class RoundConfigError(NavalHubError):
    """Round configuration source is missing or malformed."""


class MapFileError(NavalHubError):
    """Agent ship-placement file is missing or malformed."""


class CoordinateError(NavalHubError, ValueError):
    """Coordinate token is not a column letter followed by a row number."""


class PlacementError(NavalHubError):
    """Ship placement leaves the board or overlaps another ship."""


class ProtocolError(NavalHubError):
    """Base class for wire protocol violations."""


class MalformedMessage(ProtocolError):
    """A line could not be decoded into a protocol message."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"malformed message {line!r}: {reason}")
        self.line = line
        self.reason = reason


class UnexpectedMessage(ProtocolError):
    """A well-formed message arrived where the protocol does not allow it."""


class AgentProcessError(NavalHubError):
    """Base class for agent child-process failures."""


class SpawnError(AgentProcessError):
    """Agent executable could not be started."""


class AgentStreamClosed(AgentProcessError):
    """Agent closed its end of a pipe (EOF or broken pipe)."""


class AgentStartError(NavalHubError):
    """No round in the tournament could start its agents."""


class HubInterrupted(NavalHubError):
    """Hub received a hang-up and tore down every agent."""


class HubUsageError(NavalHubError):
    """Hub was invoked with the wrong command-line arguments."""
