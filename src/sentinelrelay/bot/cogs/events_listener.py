"""Event listener Cog for SentinelRelay.

Handles the bot lifecycle (on_ready) and the last-resort error handler for
application commands.
"""

import discord
from discord.ext import commands

from sentinelrelay.configuration.app_configuration import RelaySettings
from sentinelrelay.util.logger import get_logger

logger = get_logger("events_listener_cog")

PRESENCE_TEXT = "Monitoring for exploits"


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance, settings: RelaySettings):
        self.bot = discord_bot_instance
        self.settings = settings
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Log the connection details and set the bot's presence."""
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info(f"Universe ID: {self.settings.universe_id}")
        logger.info(f"Mod Role: {self.settings.mod_role_id or 'None (all users)'}")

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name=PRESENCE_TEXT),
        )

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Log unhandled command errors and answer the invoker with a generic message."""
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, "name", "<unknown>")
        logger.error(f"Error in command '{command_name}': {error}", exc_info=True)

        error_message = "❌ An unexpected error occurred."
        try:
            await application_context.respond(error_message, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(error_message, ephemeral=True)


def setup(discord_bot_instance, settings: RelaySettings):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, settings))
