"""
Restriction state as seen by the relay.

``RestrictionRecord`` mirrors the ``gameJoinRestriction`` object of the Open
Cloud user-restrictions resource. ``DurationSpan`` is its decoded duration.
Neither type knows the wire encoding; that belongs to the restriction client.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DurationSpan:
    """Decoded restriction duration.

    Attributes:
        permanent: True when the duration is at or above the permanence sentinel.
        hours: Whole hours of a timed restriction.
        minutes: Remaining whole minutes of a timed restriction.
        known: False when the record carried no duration at all.
    """

    permanent: bool = False
    hours: int = 0
    minutes: int = 0
    known: bool = True

    @classmethod
    def forever(cls) -> "DurationSpan":
        return cls(permanent=True)

    @classmethod
    def unknown(cls) -> "DurationSpan":
        return cls(known=False)

    def __str__(self) -> str:
        if not self.known:
            return "Unknown"
        if self.permanent:
            return "Permanent"
        return f"{self.hours}h {self.minutes}m total"


@dataclass(frozen=True, slots=True)
class RestrictionRecord:
    """A player's join restriction as last read from the remote service.

    Attributes:
        active: Whether the restriction currently applies.
        duration_seconds: Lifetime counted from application, None if absent.
        private_reason: Audit-only reason (timestamp, reason and moderator).
        display_reason: Reason shown to the player.
        exclude_alt_accounts: Whether alternate accounts are spared.
        start_time: When the restriction started, as reported upstream.
    """

    active: bool
    duration_seconds: int | None = None
    private_reason: str = ""
    display_reason: str = ""
    exclude_alt_accounts: bool = False
    start_time: str | None = None
