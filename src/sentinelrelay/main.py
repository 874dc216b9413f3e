"""
SentinelRelay Discord Bot
=========================

A Discord bot relaying moderation commands (ban, unban, kick, whitelist,
announce, shutdown, lookup) to a live Roblox experience through Roblox Open
Cloud.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. SENTINELRELAY_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("SENTINELRELAY_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from typing import Mapping

import discord
from dotenv import load_dotenv

from sentinelrelay.cloud.identity_resolver import IdentityResolver
from sentinelrelay.cloud.messaging_publisher import NotificationPublisher
from sentinelrelay.cloud.open_cloud_http import OpenCloudHTTP
from sentinelrelay.cloud.restriction_client import RestrictionClient
from sentinelrelay.configuration.app_configuration import (
    CONFIG_PATH,
    AppConfig,
    ConfigurationError,
    RelaySettings,
)
from sentinelrelay.moderation.orchestrator import ModerationOrchestrator
from sentinelrelay.moderation.permission_gate import PermissionGate
from sentinelrelay.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If neither ``DISCORD_BOT_TOKEN`` nor the older ``DISCORD_TOKEN`` is set.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN") or os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_settings(environ: Mapping[str, str]) -> RelaySettings:
    """Read ``config/app_config.yml`` and combine it with the environment credentials.

    Raises
    ------
    ConfigurationError
        If a required credential is missing or malformed.
    """
    return RelaySettings.from_sources(AppConfig(CONFIG_PATH), environ)


def build_orchestrator(settings: RelaySettings, http: OpenCloudHTTP) -> ModerationOrchestrator:
    """Wire the remote clients and permission gate into an orchestrator."""
    return ModerationOrchestrator(
        permission_gate=PermissionGate(settings.mod_role_id),
        restrictions=RestrictionClient(http),
        publisher=NotificationPublisher(http),
        identities=IdentityResolver(http),
    )


def load_cogs(discord_bot_instance: discord.Bot, settings: RelaySettings, orchestrator: ModerationOrchestrator) -> None:
    """Register the relay cogs with the provided Discord bot instance."""
    from sentinelrelay.bot.cogs import events_listener, relay_cmds

    events_listener.setup(discord_bot_instance, settings)
    relay_cmds.setup(discord_bot_instance, orchestrator)

    logger.info("All cogs loaded successfully.")


def create_bot(settings: RelaySettings, orchestrator: ModerationOrchestrator) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs.

    Slash commands only need the guilds intent. Commands are registered to
    ``settings.guild_id`` when one is set, which makes them available
    immediately; otherwise they are registered globally.
    """
    if settings.guild_id is not None:
        logger.info("Registering slash commands to guild %s", settings.guild_id)
        bot = discord.Bot(intents=discord.Intents.default(), debug_guilds=[settings.guild_id])
    else:
        logger.info("Registering slash commands globally; they may take up to an hour to appear.")
        bot = discord.Bot(intents=discord.Intents.default())
    load_cogs(bot, settings, orchestrator)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, http: OpenCloudHTTP | None) -> None:
    """Close the Discord connection and the Open Cloud HTTP session."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord bot: %s", exc)

    if http is not None:
        http.close()

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap settings, clients and the bot, returning an exit code."""
    token = load_environment()

    try:
        settings = build_settings(os.environ)
    except ConfigurationError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1

    http = OpenCloudHTTP(settings)
    orchestrator = build_orchestrator(settings, http)

    try:
        bot = create_bot(settings, orchestrator)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        http.close()
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, http)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting SentinelRelay…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
