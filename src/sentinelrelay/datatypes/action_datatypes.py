"""
Moderation actions an operator can issue, and the live command envelope.

Each action is a frozen dataclass; ``ModerationAction`` is the closed union
the orchestrator matches on.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Union

from sentinelrelay.datatypes.player_datatypes import PlayerID

DEFAULT_BAN_REASON = "No reason provided"
DEFAULT_KICK_REASON = "Kicked by moderator"
DEFAULT_SHUTDOWN_REASON = "Server shutdown by moderator"


class ActionType(Enum):
    """Enumeration of supported relay actions."""

    BAN = "ban"
    UNBAN = "unban"
    KICK = "kick"
    ANNOUNCE = "announce"
    WHITELIST = "whitelist"
    UNWHITELIST = "unwhitelist"
    SHUTDOWN = "shutdown"
    CHECK_STATUS = "checkban"
    LOOKUP = "lookup"

    def __str__(self) -> str:
        return self.value

    @property
    def is_privileged(self) -> bool:
        """Read-only actions (status check, lookup) need no moderator privilege."""
        return self not in (ActionType.CHECK_STATUS, ActionType.LOOKUP)


@dataclass(frozen=True, slots=True)
class BanAction:
    """Restrict a player from joining; ``duration_minutes`` of 0, None or below means permanent."""

    player_id: PlayerID
    reason: str = DEFAULT_BAN_REASON
    duration_minutes: int | None = None
    action_type: ClassVar[ActionType] = ActionType.BAN

    @property
    def is_permanent(self) -> bool:
        return not self.duration_minutes or self.duration_minutes <= 0

    @property
    def duration_seconds(self) -> int:
        """Requested lifetime in seconds, 0 for a permanent ban."""
        return 0 if self.is_permanent else int(self.duration_minutes) * 60


@dataclass(frozen=True, slots=True)
class UnbanAction:
    player_id: PlayerID
    action_type: ClassVar[ActionType] = ActionType.UNBAN


@dataclass(frozen=True, slots=True)
class KickAction:
    player_id: PlayerID
    reason: str = DEFAULT_KICK_REASON
    action_type: ClassVar[ActionType] = ActionType.KICK


@dataclass(frozen=True, slots=True)
class AnnounceAction:
    message: str
    action_type: ClassVar[ActionType] = ActionType.ANNOUNCE


@dataclass(frozen=True, slots=True)
class WhitelistAction:
    """Skip anticheat checks for a player for the current server session."""

    player_id: PlayerID
    action_type: ClassVar[ActionType] = ActionType.WHITELIST


@dataclass(frozen=True, slots=True)
class UnwhitelistAction:
    player_id: PlayerID
    action_type: ClassVar[ActionType] = ActionType.UNWHITELIST


@dataclass(frozen=True, slots=True)
class ShutdownAction:
    reason: str = DEFAULT_SHUTDOWN_REASON
    action_type: ClassVar[ActionType] = ActionType.SHUTDOWN


@dataclass(frozen=True, slots=True)
class CheckStatusAction:
    player_id: PlayerID
    action_type: ClassVar[ActionType] = ActionType.CHECK_STATUS


@dataclass(frozen=True, slots=True)
class LookupAction:
    player_id: PlayerID
    action_type: ClassVar[ActionType] = ActionType.LOOKUP


ModerationAction = Union[
    BanAction,
    UnbanAction,
    KickAction,
    AnnounceAction,
    WhitelistAction,
    UnwhitelistAction,
    ShutdownAction,
    CheckStatusAction,
    LookupAction,
]


@dataclass(frozen=True, slots=True)
class CommandEnvelope:
    """Transient message published to live game servers.

    Field names on the wire follow the in-game subscriber (``userId`` rather
    than ``user_id``); absent fields are left out of the payload.

    Attributes:
        moderator: Tag of the operator who issued the command.
        command: Command name for the targeted-commands topic, None for announcements.
        user_id: Target player, if the command has one.
        reason: Free-text reason forwarded to the server.
        duration: Ban length in seconds, or -1 for a permanent ban.
        message: Announcement text.
    """

    moderator: str
    command: str | None = None
    user_id: int | None = None
    reason: str | None = None
    duration: int | None = None
    message: str | None = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "command": self.command,
            "userId": self.user_id,
            "reason": self.reason,
            "duration": self.duration,
            "message": self.message,
            "moderator": self.moderator,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def to_message(self) -> str:
        """Serialize the envelope the way MessagingService subscribers decode it."""
        return json.dumps(self.to_payload())
