from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import fcntl
from typing import Any, Dict, Mapping
import yaml

from sentinelrelay.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_OPEN_CLOUD_BASE_URL = "https://apis.roblox.com"
DEFAULT_USERS_BASE_URL = "https://users.roblox.com"
DEFAULT_THUMBNAILS_BASE_URL = "https://thumbnails.roblox.com"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
DEFAULT_COMMANDS_TOPIC = "SentinelAC_Commands"
DEFAULT_ANNOUNCE_TOPIC = "SentinelAC_Announce"


class ConfigurationError(RuntimeError):
    """Raised when the relay cannot be configured from its environment."""


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed accessors for the Open Cloud endpoints and messaging topics. Every
    accessor falls back to the built-in default when the file or key is missing.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty dict when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping."""
        return self._data

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def open_cloud_base_url(self) -> str:
        value = self._section("open_cloud").get("base_url") or DEFAULT_OPEN_CLOUD_BASE_URL
        return str(value).rstrip("/")

    @property
    def users_base_url(self) -> str:
        value = self._section("open_cloud").get("users_base_url") or DEFAULT_USERS_BASE_URL
        return str(value).rstrip("/")

    @property
    def thumbnails_base_url(self) -> str:
        value = self._section("open_cloud").get("thumbnails_base_url") or DEFAULT_THUMBNAILS_BASE_URL
        return str(value).rstrip("/")

    @property
    def request_timeout_seconds(self) -> float:
        """Return the timeout applied to every outbound HTTP request.

        Non-positive or unparsable values fall back to 10 seconds so no remote
        call can block indefinitely.
        """
        raw = self._section("open_cloud").get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        try:
            timeout = float(raw)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid request timeout %r, using default.", raw)
            return DEFAULT_REQUEST_TIMEOUT_SECONDS
        return timeout if timeout > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def commands_topic(self) -> str:
        return str(self._section("messaging").get("commands_topic") or DEFAULT_COMMANDS_TOPIC)

    @property
    def announce_topic(self) -> str:
        return str(self._section("messaging").get("announce_topic") or DEFAULT_ANNOUNCE_TOPIC)


def optional_snowflake(environ: Mapping[str, str], name: str, kind: str) -> int | None:
    """Read an optional Discord ID from the environment; blank means unset."""
    raw = (environ.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"'{name}' must be a Discord {kind} ID, got {raw!r}.") from exc


@dataclass(frozen=True, slots=True)
class RelaySettings:
    """Immutable settings shared by every remote client of the relay.

    Built once at start-up and handed to the restriction client, the
    notification publisher and the identity resolver.

    Attributes:
        api_key: Open Cloud API key sent as ``x-api-key``.
        universe_id: Roblox universe the restrictions and topics belong to.
        mod_role_id: Discord role allowed to run privileged commands, or None for open mode.
        guild_id: Guild the slash commands are registered to, or None to register them globally.
        open_cloud_base_url: Base URL of the Open Cloud API.
        users_base_url: Base URL of the public users API.
        thumbnails_base_url: Base URL of the public thumbnails API.
        request_timeout_seconds: Timeout for each outbound request.
        commands_topic: Messaging topic for targeted commands.
        announce_topic: Messaging topic for broadcast announcements.
    """

    api_key: str
    universe_id: str
    mod_role_id: int | None = None
    guild_id: int | None = None
    open_cloud_base_url: str = DEFAULT_OPEN_CLOUD_BASE_URL
    users_base_url: str = DEFAULT_USERS_BASE_URL
    thumbnails_base_url: str = DEFAULT_THUMBNAILS_BASE_URL
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    commands_topic: str = DEFAULT_COMMANDS_TOPIC
    announce_topic: str = DEFAULT_ANNOUNCE_TOPIC

    @classmethod
    def from_sources(cls, app_config: AppConfig, environ: Mapping[str, str]) -> "RelaySettings":
        """Combine the YAML configuration with credentials from the environment.

        Raises:
            ConfigurationError: If ``ROBLOX_API_KEY`` or ``ROBLOX_UNIVERSE_ID`` is
                missing, or ``MOD_ROLE_ID`` or ``GUILD_ID`` is not a number.
        """
        api_key = (environ.get("ROBLOX_API_KEY") or "").strip()
        universe_id = (environ.get("ROBLOX_UNIVERSE_ID") or "").strip()
        if not api_key:
            raise ConfigurationError("'ROBLOX_API_KEY' environment variable not set.")
        if not universe_id:
            raise ConfigurationError("'ROBLOX_UNIVERSE_ID' environment variable not set.")

        mod_role_id = optional_snowflake(environ, "MOD_ROLE_ID", "role")
        guild_id = optional_snowflake(environ, "GUILD_ID", "guild")

        return cls(
            api_key=api_key,
            universe_id=universe_id,
            mod_role_id=mod_role_id,
            guild_id=guild_id,
            open_cloud_base_url=app_config.open_cloud_base_url,
            users_base_url=app_config.users_base_url,
            thumbnails_base_url=app_config.thumbnails_base_url,
            request_timeout_seconds=app_config.request_timeout_seconds,
            commands_topic=app_config.commands_topic,
            announce_topic=app_config.announce_topic,
        )
