"""
Relay cog: slash commands that forward moderation actions to the game.

Every command builds a ``ModerationAction``, hands it to the orchestrator
together with the invoking operator, and renders the returned result. The cog
holds no moderation logic of its own.

Permissions
- Privileged commands are answered ephemerally with a denial before the
  reply is deferred; the orchestrator checks again before any remote call.
- ``/checkban`` and ``/lookup`` are open to everyone.
"""

from typing import Callable

import discord
from discord import Option
from discord.ext import commands

from sentinelrelay.datatypes.action_datatypes import (
    DEFAULT_BAN_REASON,
    DEFAULT_KICK_REASON,
    DEFAULT_SHUTDOWN_REASON,
    AnnounceAction,
    BanAction,
    CheckStatusAction,
    KickAction,
    LookupAction,
    ModerationAction,
    ShutdownAction,
    UnbanAction,
    UnwhitelistAction,
    WhitelistAction,
)
from sentinelrelay.datatypes.player_datatypes import PlayerID
from sentinelrelay.moderation.orchestrator import ModerationOrchestrator
from sentinelrelay.moderation.permission_gate import Invoker
from sentinelrelay.ui.result_embed import DENIED_MESSAGE, render_result
from sentinelrelay.util.logger import get_logger

logger = get_logger("relay_cog")

UNEXPECTED_ERROR_MESSAGE = "❌ An unexpected error occurred."


class RelayCommandsCog(commands.Cog):
    """Cog exposing the nine relay commands.

    Parameters
    ----------
    discord_bot_instance:
        Active :class:`discord.Bot` the cog is registered on.
    orchestrator:
        Orchestrator executing every command.
    """

    def __init__(self, discord_bot_instance, orchestrator: ModerationOrchestrator):
        self.discord_bot_instance = discord_bot_instance
        self.orchestrator = orchestrator
        logger.info("Relay commands cog loaded")

    async def run_action(
        self,
        ctx: discord.ApplicationContext,
        build_action: Callable[[], ModerationAction],
    ) -> None:
        """Validate, authorize, execute and render one command."""
        try:
            action = build_action()
        except ValueError as exc:
            await ctx.respond(f"❌ Invalid input: {exc}", ephemeral=True)
            return

        invoker = Invoker.from_member(ctx.author)
        if not self.orchestrator.authorizes(action, invoker):
            await ctx.respond(DENIED_MESSAGE, ephemeral=True)
            return

        await ctx.defer()
        try:
            result = await self.orchestrator.execute(action, invoker)
        except Exception as exc:
            logger.exception("Unexpected error running %s: %s", action.action_type, exc)
            await ctx.send_followup(UNEXPECTED_ERROR_MESSAGE)
            return

        await ctx.send_followup(**render_result(result))

    @commands.slash_command(name="ban", description="Ban a player from the Roblox game")
    async def ban(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to ban", required=True),  # type: ignore
        reason: Option(str, "Reason for the ban", required=False, default=None),  # type: ignore
        duration: Option(int, "Ban duration in minutes (0 = permanent)", required=False, default=0),  # type: ignore
    ) -> None:
        await self.run_action(
            ctx,
            lambda: BanAction(PlayerID(userid), reason=reason or DEFAULT_BAN_REASON, duration_minutes=duration),
        )

    @commands.slash_command(name="unban", description="Unban a player from the Roblox game")
    async def unban(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to unban", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: UnbanAction(PlayerID(userid)))

    @commands.slash_command(name="kick", description="Kick a player from all game servers")
    async def kick(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to kick", required=True),  # type: ignore
        reason: Option(str, "Reason for the kick", required=False, default=None),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: KickAction(PlayerID(userid), reason=reason or DEFAULT_KICK_REASON))

    @commands.slash_command(name="announce", description="Send an announcement to all game servers")
    async def announce(
        self,
        ctx: discord.ApplicationContext,
        message: Option(str, "Announcement message", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: AnnounceAction(message))

    @commands.slash_command(name="whitelist", description="Whitelist a player (skip anticheat checks)")
    async def whitelist(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to whitelist", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: WhitelistAction(PlayerID(userid)))

    @commands.slash_command(name="unwhitelist", description="Remove a player from the whitelist")
    async def unwhitelist(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to unwhitelist", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: UnwhitelistAction(PlayerID(userid)))

    @commands.slash_command(name="checkban", description="Check if a player is banned")
    async def checkban(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to check", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: CheckStatusAction(PlayerID(userid)))

    @commands.slash_command(name="shutdown", description="Shut down all game servers")
    async def shutdown(
        self,
        ctx: discord.ApplicationContext,
        reason: Option(str, "Reason for the shutdown", required=False, default=None),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: ShutdownAction(reason=reason or DEFAULT_SHUTDOWN_REASON))

    @commands.slash_command(name="lookup", description="Look up a Roblox player's profile and ban status")
    async def lookup(
        self,
        ctx: discord.ApplicationContext,
        userid: Option(int, "Roblox User ID to look up", required=True),  # type: ignore
    ) -> None:
        await self.run_action(ctx, lambda: LookupAction(PlayerID(userid)))


def setup(discord_bot_instance, orchestrator: ModerationOrchestrator):
    """Register the relay commands cog on the bot."""
    discord_bot_instance.add_cog(RelayCommandsCog(discord_bot_instance, orchestrator))
