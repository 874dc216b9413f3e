"""
Authoritative player restrictions through the Open Cloud user-restrictions API.

This is the same ban system the game reaches with ``Players:BanAsync()``:
restrictions persist across server restarts and are enforced on join.

Wire encoding
- Durations travel as ``"<seconds>s"`` strings.
- The API has no value for "forever", so permanent bans are sent as
  ``PERMANENCE_SENTINEL_SECONDS`` (ten years) and any duration at or above it
  decodes as permanent.
- Only this module builds or parses that encoding.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping

from sentinelrelay.cloud.open_cloud_http import OpenCloudHTTP, RemoteRejected
from sentinelrelay.datatypes.player_datatypes import PlayerID
from sentinelrelay.datatypes.restriction_datatypes import DurationSpan, RestrictionRecord
from sentinelrelay.util.logger import get_logger

logger = get_logger("restriction_client")

# 10 years in seconds
PERMANENCE_SENTINEL_SECONDS = 315_360_000

# Alt accounts are always banned along with the main account.
# TODO: expose as a per-universe option once moderators ask for alt-exempt bans.
EXCLUDE_ALT_ACCOUNTS = False


def effective_duration_seconds(duration_seconds: int) -> int:
    """Seconds actually transmitted for a requested lifetime; zero or negative means permanent."""
    return PERMANENCE_SENTINEL_SECONDS if duration_seconds <= 0 else int(duration_seconds)


def encode_duration(duration_seconds: int) -> str:
    return f"{effective_duration_seconds(duration_seconds)}s"


def decode_duration(wire_value: str | None) -> int | None:
    """Parse a wire duration such as ``"1800s"`` or ``"1800.5s"`` into whole seconds.

    Returns None for a missing or unparsable value.
    """
    if not wire_value:
        return None
    try:
        return int(float(str(wire_value).strip().removesuffix("s")))
    except (ValueError, OverflowError):
        logger.warning("[RESTRICTION] Unparsable duration %r", wire_value)
        return None


def describe_duration(duration_seconds: int | None) -> DurationSpan:
    """Decompose a duration into whole hours and remaining minutes for display."""
    if duration_seconds is None:
        return DurationSpan.unknown()
    if duration_seconds >= PERMANENCE_SENTINEL_SECONDS:
        return DurationSpan.forever()
    return DurationSpan(hours=duration_seconds // 3600, minutes=(duration_seconds % 3600) // 60)


def build_private_reason(reason: str, moderator: str, now: datetime) -> str:
    """Audit reason kept server-side: ``[<ISO-8601 UTC>] <reason> | Mod: <moderator>``."""
    timestamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"[{timestamp}] {reason} | Mod: {moderator}"


def build_display_reason(reason: str) -> str:
    return f"Banned: {reason}"


def parse_restriction(payload: Mapping[str, Any]) -> RestrictionRecord | None:
    """Turn a user-restriction resource into a record, None if it holds no join restriction."""
    restriction = payload.get("gameJoinRestriction")
    if not isinstance(restriction, dict):
        return None
    return RestrictionRecord(
        active=restriction.get("active") is True,
        duration_seconds=decode_duration(restriction.get("duration")),
        private_reason=restriction.get("privateReason") or "",
        display_reason=restriction.get("displayReason") or "",
        exclude_alt_accounts=bool(restriction.get("excludeAltAccounts", False)),
        start_time=restriction.get("startTime"),
    )


class RestrictionClient:
    """Applies, clears and queries a player's join restriction.

    Parameters
    ----------
    http:
        Transport carrying the API key, universe and timeout.
    clock:
        Source of the current time for audit reasons; defaults to UTC now.
    """

    def __init__(self, http: OpenCloudHTTP, clock: Callable[[], datetime] | None = None) -> None:
        self.http = http
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def restriction_url(self, player_id: PlayerID) -> str:
        settings = self.http.settings
        return (
            f"{settings.open_cloud_base_url}/cloud/v2/universes/{settings.universe_id}"
            f"/user-restrictions/{player_id}"
        )

    async def apply(
        self,
        player_id: PlayerID,
        reason: str,
        duration_seconds: int,
        moderator: str,
    ) -> RestrictionRecord:
        """Apply (or overwrite) an active join restriction.

        Parameters
        ----------
        player_id:
            Player to restrict.
        reason:
            Human reason; shown to the player and kept in the audit reason.
        duration_seconds:
            Lifetime from now; zero or negative applies the permanence sentinel.
        moderator:
            Operator tag, copied verbatim into the private reason.

        Returns
        -------
        RestrictionRecord
            The record echoed by the service, or the one that was sent if the
            response carried none.

        Raises
        ------
        RemoteRejected
            If the service refused the update.
        RemoteUnavailable
            If the service could not be reached.
        """
        restriction: Dict[str, Any] = {
            "active": True,
            "duration": encode_duration(duration_seconds),
            "privateReason": build_private_reason(reason, moderator, self.clock()),
            "displayReason": build_display_reason(reason),
            "excludeAltAccounts": EXCLUDE_ALT_ACCOUNTS,
        }
        logger.info(
            "[RESTRICTION] Applying restriction to %s for %s (mod: %s)",
            player_id,
            restriction["duration"],
            moderator,
        )
        body = await self.http.send(
            "PATCH",
            self.restriction_url(player_id),
            json_body={"gameJoinRestriction": restriction},
        )
        return parse_restriction(body) or parse_restriction({"gameJoinRestriction": restriction})

    async def clear(self, player_id: PlayerID) -> None:
        """Deactivate the restriction, keeping its history. Safe to repeat."""
        logger.info("[RESTRICTION] Clearing restriction for %s", player_id)
        await self.http.send(
            "PATCH",
            self.restriction_url(player_id),
            json_body={"gameJoinRestriction": {"active": False}},
        )

    async def query(self, player_id: PlayerID) -> RestrictionRecord | None:
        """Read the current restriction.

        Returns
        -------
        RestrictionRecord | None
            The record, or None when the service has no restriction for the
            player (HTTP 404), which is a definitive "not restricted".

        Raises
        ------
        RemoteRejected
            For any other error status.
        RemoteUnavailable
            If the service could not be reached.
        """
        try:
            body = await self.http.send("GET", self.restriction_url(player_id))
        except RemoteRejected as exc:
            if exc.status == 404:
                logger.debug("[RESTRICTION] No restriction on record for %s", player_id)
                return None
            raise
        return parse_restriction(body)
