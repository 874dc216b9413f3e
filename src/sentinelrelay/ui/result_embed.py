"""
Rendering of orchestrator results as Discord replies.

Successful actions become embeds; denials and failures become plain text
replies starting with ❌ so they are never mistaken for a success.
"""

import datetime
from typing import Any, Dict

import discord

from sentinelrelay.datatypes.action_datatypes import ActionType
from sentinelrelay.datatypes.player_datatypes import PlayerProfile
from sentinelrelay.datatypes.result_datatypes import ActionOutcome, ActionResult, RestrictionStatus
from sentinelrelay.util.logger import get_logger

logger = get_logger("result_embed")

DENIED_MESSAGE = "❌ You don't have permission to use this command."
FOOTER_NATIVE_BAN = "Roblox Native Ban API • SentinelAC v2.1"
BIO_LIMIT = 200
# Discord rejects embeds exceeding these
FIELD_VALUE_LIMIT = 1024
DESCRIPTION_LIMIT = 4096

FAILURE_MESSAGES = {
    ActionType.BAN: "Failed to ban player",
    ActionType.UNBAN: "Failed to unban player",
    ActionType.KICK: "Failed to kick player",
    ActionType.ANNOUNCE: "Failed to send announcement",
    ActionType.WHITELIST: "Failed to whitelist player",
    ActionType.UNWHITELIST: "Failed to remove whitelist",
    ActionType.SHUTDOWN: "Failed to initiate shutdown",
    ActionType.CHECK_STATUS: "Failed to check ban status",
    ActionType.LOOKUP: "Failed to look up user",
}

# (emoji + title, color) per successful action
ACTION_STYLES = {
    ActionType.BAN: ("🔨 Player Banned", discord.Color(0x8B0000)),
    ActionType.UNBAN: ("✅ Player Unbanned", discord.Color(0x00FF00)),
    ActionType.KICK: ("👢 Player Kicked", discord.Color(0xFFA500)),
    ActionType.ANNOUNCE: ("📢 Announcement Sent", discord.Color(0x3498DB)),
    ActionType.WHITELIST: ("🛡️ Player Whitelisted", discord.Color(0x00FF88)),
    ActionType.UNWHITELIST: ("🔓 Whitelist Removed", discord.Color(0xFF6600)),
    ActionType.SHUTDOWN: ("⚠️ Server Shutdown Initiated", discord.Color(0xFF0000)),
}

STATUS_LABELS = {
    RestrictionStatus.CLEAN: "✅ Clean",
    RestrictionStatus.RESTRICTED: "🔨 Banned",
    RestrictionStatus.INDETERMINATE: "❓ Unknown (status check failed)",
}


def player_label(player: PlayerProfile | None) -> str:
    if player is None:
        return "Unknown"
    return f"{player.name} (`{player.player_id}`)"


def format_created(created: datetime.datetime | None) -> str:
    if created is None:
        return "Unknown"
    return f"{created:%B} {created.day}, {created.year}"


def format_start_time(start_time: str | None) -> str | None:
    """Render an upstream ISO-8601 start time as ``Month D, YYYY HH:MM UTC``; unparsable values are shown raw."""
    if not start_time:
        return None
    try:
        started = datetime.datetime.fromisoformat(start_time.replace("Z", "+00:00"))
    except ValueError:
        return start_time
    started = started.astimezone(datetime.timezone.utc)
    return f"{format_created(started)} {started:%H:%M} UTC"


def truncate_bio(description: str) -> str:
    if len(description) > BIO_LIMIT:
        return description[:BIO_LIMIT] + "..."
    return description


def clip(text: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    """Shorten ``text`` to at most ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def render_failure(result: ActionResult) -> str:
    """Text reply for a DENIED or FAILED result."""
    if result.outcome is ActionOutcome.DENIED:
        return DENIED_MESSAGE
    prefix = FAILURE_MESSAGES.get(result.action, "Command failed")
    return f"❌ {prefix}: {result.error or 'unknown error'}"


def new_embed(title: str, color: discord.Color, **kwargs: Any) -> discord.Embed:
    return discord.Embed(
        title=title,
        color=color,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
        **kwargs,
    )


def build_action_embed(result: ActionResult) -> discord.Embed:
    """Embed for a successful ban, unban, kick, announce, whitelist, unwhitelist or shutdown."""
    title, color = ACTION_STYLES[result.action]

    if result.action is ActionType.ANNOUNCE:
        embed = new_embed(title, color, description=clip(result.message or "", DESCRIPTION_LIMIT))
        embed.add_field(name="Sent By", value=result.moderator, inline=True)
        return embed

    embed = new_embed(title, color)
    if result.action is ActionType.SHUTDOWN:
        embed.add_field(name="Reason", value=clip(result.reason or ""), inline=False)
        embed.add_field(name="Initiated By", value=result.moderator, inline=True)
        return embed

    if result.player and result.player.avatar_url and result.action is ActionType.BAN:
        embed.set_thumbnail(url=result.player.avatar_url)

    embed.add_field(name="Player", value=player_label(result.player), inline=True)
    if result.action is ActionType.BAN:
        embed.add_field(name="Duration", value=str(result.duration), inline=True)
    if result.reason is not None:
        embed.add_field(name="Reason", value=clip(result.reason), inline=False)
    embed.add_field(name="Moderator", value=result.moderator, inline=True)

    if result.action is ActionType.BAN:
        alt_ban = "❌ Disabled" if result.record and result.record.exclude_alt_accounts else "✅ Enabled"
        embed.add_field(name="Alt Ban", value=alt_ban, inline=True)
        embed.set_footer(text=FOOTER_NATIVE_BAN)
    elif result.action is ActionType.WHITELIST:
        embed.set_footer(text="Anticheat checks skipped for this player (current session only)")
    return embed


def build_status_embed(result: ActionResult) -> discord.Embed:
    """Embed for a successful check-status query."""
    player = result.player
    if result.status is not RestrictionStatus.RESTRICTED:
        embed = new_embed(
            "✅ Not Banned",
            discord.Color(0x00FF00),
            description=f"**{player.name if player else 'Unknown'}** (`{player.player_id if player else '?'}`) is not banned.",
        )
    else:
        record = result.record
        embed = new_embed("🔨 Player is Banned", discord.Color(0xFF0000))
        embed.add_field(name="Player", value=player_label(player), inline=True)
        embed.add_field(name="Duration", value=str(result.duration), inline=True)
        started = format_start_time(record.start_time if record else None)
        if started:
            embed.add_field(name="Banned Since", value=started, inline=True)
        embed.add_field(name="Display Reason", value=clip((record.display_reason if record else "") or "No reason"), inline=False)
        embed.add_field(name="Private Reason", value=clip((record.private_reason if record else "") or "N/A"), inline=False)
        embed.set_footer(text=FOOTER_NATIVE_BAN)

    if player and player.avatar_url:
        embed.set_thumbnail(url=player.avatar_url)
    return embed


def build_lookup_embed(result: ActionResult) -> discord.Embed:
    """Embed for a lookup; an unresolved player is shown as the Unknown placeholder."""
    player = result.player
    restricted = result.status is RestrictionStatus.RESTRICTED
    color = discord.Color(0xFF0000) if restricted else discord.Color(0x3498DB)

    embed = new_embed(f"🔍 {player.name}", color, url=player.profile_url if player.found else None)
    if player.avatar_url:
        embed.set_thumbnail(url=player.avatar_url)

    embed.add_field(name="Display Name", value=player.display_name or player.name, inline=True)
    embed.add_field(name="User ID", value=f"`{player.player_id}`", inline=True)
    embed.add_field(name="Account Created", value=format_created(player.created), inline=True)
    embed.add_field(name="Ban Status", value=STATUS_LABELS[result.status], inline=True)

    if player.description:
        embed.add_field(name="Bio", value=truncate_bio(player.description), inline=False)
    if restricted and result.record and result.record.display_reason:
        embed.add_field(name="Ban Reason", value=clip(result.record.display_reason), inline=False)
    if not player.found:
        embed.set_footer(text="Profile lookup failed; showing placeholder identity.")
    return embed


def render_result(result: ActionResult) -> Dict[str, Any]:
    """Return keyword arguments for ``send_followup`` rendering ``result``."""
    if not result.succeeded:
        return {"content": render_failure(result)}
    if result.action is ActionType.CHECK_STATUS:
        return {"embed": build_status_embed(result)}
    if result.action is ActionType.LOOKUP:
        return {"embed": build_lookup_embed(result)}
    return {"embed": build_action_embed(result)}
