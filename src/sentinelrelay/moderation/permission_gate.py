"""
Authorization of privileged relay commands.

With no moderator role configured the gate runs in open mode and authorizes
every invoker. Deployments that share their Discord server with players are
expected to set ``MOD_ROLE_ID``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Union

import discord

from sentinelrelay.util.logger import get_logger

logger = get_logger("permission_gate")


class Privilege(Enum):
    MODERATE = "moderate"


@dataclass(frozen=True, slots=True)
class Invoker:
    """The operator issuing a command, reduced to what authorization needs.

    Attributes:
        tag: Opaque moderator identity recorded in audit reasons.
        user_id: Discord user ID of the operator.
        role_ids: IDs of the roles the operator holds in the guild.
        is_administrator: Whether the operator has the guild administrator permission.
    """

    tag: str
    user_id: int = 0
    role_ids: FrozenSet[int] = field(default_factory=frozenset)
    is_administrator: bool = False

    @classmethod
    def from_member(cls, member: Union[discord.Member, discord.User]) -> "Invoker":
        """Build an invoker from the author of an interaction.

        Users outside a guild (direct messages) hold no roles and no
        administrator permission.
        """
        roles = getattr(member, "roles", None) or []
        permissions = getattr(member, "guild_permissions", None)
        return cls(
            tag=str(member),
            user_id=int(getattr(member, "id", 0) or 0),
            role_ids=frozenset(role.id for role in roles),
            is_administrator=bool(getattr(permissions, "administrator", False)),
        )


class PermissionGate:
    """Pure predicate deciding whether an invoker may run a privileged command."""

    def __init__(self, mod_role_id: int | None = None) -> None:
        self.mod_role_id = mod_role_id
        if mod_role_id is None:
            logger.warning("[PERMISSIONS] No moderator role configured; every user may run privileged commands.")

    @property
    def open_mode(self) -> bool:
        return self.mod_role_id is None

    def authorize(self, invoker: Invoker, privilege: Privilege = Privilege.MODERATE) -> bool:
        if self.open_mode:
            return True
        allowed = self.mod_role_id in invoker.role_ids or invoker.is_administrator
        logger.debug("[PERMISSIONS] %s for %s: %s", privilege.value, invoker.tag, allowed)
        return allowed
