"""
Read-only identity lookups against the public Roblox users and thumbnails APIs.

Identity is cosmetic: every failure degrades to the ``"Unknown"`` placeholder
profile or a missing avatar and never aborts a moderation action.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict

from sentinelrelay.cloud.open_cloud_http import OpenCloudError, OpenCloudHTTP
from sentinelrelay.datatypes.player_datatypes import PlayerID, PlayerProfile
from sentinelrelay.util.logger import get_logger

logger = get_logger("identity_resolver")

AVATAR_SIZE = "150x150"


def parse_created(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("[IDENTITY] Unparsable creation date %r", value)
        return None


class IdentityResolver:
    """Maps a player ID to a :class:`PlayerProfile`."""

    def __init__(self, http: OpenCloudHTTP) -> None:
        self.http = http

    async def fetch_user(self, player_id: PlayerID) -> Dict[str, Any] | None:
        url = f"{self.http.settings.users_base_url}/v1/users/{player_id}"
        try:
            return await self.http.send("GET", url, authenticated=False)
        except OpenCloudError as exc:
            logger.debug("[IDENTITY] User lookup failed for %s: %s", player_id, exc)
            return None

    async def fetch_avatar(self, player_id: PlayerID) -> str | None:
        url = f"{self.http.settings.thumbnails_base_url}/v1/users/avatar-headshot"
        params = {
            "userIds": str(player_id),
            "size": AVATAR_SIZE,
            "format": "Png",
            "isCircular": "false",
        }
        try:
            body = await self.http.send("GET", url, params=params, authenticated=False)
        except OpenCloudError as exc:
            logger.debug("[IDENTITY] Avatar lookup failed for %s: %s", player_id, exc)
            return None

        entries = body.get("data")
        if isinstance(entries, list) and entries and isinstance(entries[0], dict):
            return entries[0].get("imageUrl") or None
        return None

    async def resolve(self, player_id: PlayerID) -> PlayerProfile:
        """Fetch profile and avatar concurrently; never raises."""
        user, avatar_url = await asyncio.gather(self.fetch_user(player_id), self.fetch_avatar(player_id))

        if not user or not user.get("name"):
            return PlayerProfile.unknown(player_id, avatar_url=avatar_url)

        name = str(user["name"])
        return PlayerProfile(
            player_id=player_id,
            name=name,
            display_name=str(user.get("displayName") or name),
            created=parse_created(user.get("created")),
            description=str(user.get("description") or ""),
            avatar_url=avatar_url,
        )
