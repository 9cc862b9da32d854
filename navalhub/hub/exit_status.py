"""Hub process exit statuses and their diagnostic lines."""

from __future__ import annotations

from enum import IntEnum


class HubExitStatus(IntEnum):
    NORMAL = 0
    INCORRECT_ARG_NUMBER = 1
    INVALID_RULES = 2
    INVALID_CONFIG = 3
    AGENT_ERROR = 4
    COMMUNICATIONS_ERROR = 5
    SIGHUP_RECEIVED = 6

    @property
    def message(self) -> str | None:
        return _MESSAGES.get(self)


_MESSAGES: dict[HubExitStatus, str] = {
    HubExitStatus.INCORRECT_ARG_NUMBER: "Usage: navalhub rules config",
    HubExitStatus.INVALID_RULES: "Error reading rules",
    HubExitStatus.INVALID_CONFIG: "Error reading config",
    HubExitStatus.AGENT_ERROR: "Error starting agents",
    HubExitStatus.COMMUNICATIONS_ERROR: "Communications error",
    HubExitStatus.SIGHUP_RECEIVED: "Caught SIGHUP",
}
