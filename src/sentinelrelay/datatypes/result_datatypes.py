"""
Outcomes produced by the relay.

``ActionResult`` is what the orchestrator hands back to the front end: enough
structured data to render a reply without repeating any moderation logic.
``PublishOutcome`` is the explicit, discardable result of a live notification.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sentinelrelay.datatypes.action_datatypes import ActionType
from sentinelrelay.datatypes.player_datatypes import PlayerProfile
from sentinelrelay.datatypes.restriction_datatypes import DurationSpan, RestrictionRecord


class ActionOutcome(Enum):
    SUCCEEDED = "succeeded"
    DENIED = "denied"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class RestrictionStatus(Enum):
    """Classification of a status query.

    INDETERMINATE means the remote service could not be asked; it must never
    be shown to an operator as CLEAN.
    """

    CLEAN = "clean"
    RESTRICTED = "restricted"
    INDETERMINATE = "indeterminate"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Result of one best-effort publish to a messaging topic."""

    topic: str
    delivered: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Normalized result of one operator command.

    Attributes:
        action: The action that was requested.
        outcome: SUCCEEDED, DENIED or FAILED.
        moderator: Tag of the invoking operator.
        player: Resolved (or placeholder) identity of the target, if any.
        reason: Reason attached to ban, kick or shutdown.
        message: Announcement text.
        duration: Decoded restriction duration for bans and restricted status results.
        record: Restriction record returned by the remote service.
        status: Classification for check-status and lookup.
        error: Upstream or transport message explaining a FAILED outcome.
        notified: Whether the live notification was acknowledged, None when none was sent.
    """

    action: ActionType
    outcome: ActionOutcome
    moderator: str
    player: PlayerProfile | None = None
    reason: str | None = None
    message: str | None = None
    duration: DurationSpan | None = None
    record: RestrictionRecord | None = None
    status: RestrictionStatus | None = None
    error: str | None = None
    notified: bool | None = None

    @classmethod
    def denied(cls, action: ActionType, moderator: str) -> "ActionResult":
        return cls(action=action, outcome=ActionOutcome.DENIED, moderator=moderator)

    @classmethod
    def failed(
        cls,
        action: ActionType,
        moderator: str,
        error: str,
        player: PlayerProfile | None = None,
    ) -> "ActionResult":
        return cls(action=action, outcome=ActionOutcome.FAILED, moderator=moderator, player=player, error=error)

    @property
    def succeeded(self) -> bool:
        return self.outcome is ActionOutcome.SUCCEEDED
