"""
Type-safe wrappers for Roblox player identity.

``PlayerID`` validates the numeric identifiers operators type into slash
commands; ``PlayerProfile`` carries the cosmetic identity shown next to every
moderation result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


class PlayerID:
    """
    Type-safe wrapper for Roblox user IDs.

    Roblox IDs are positive 64-bit integers. They are stored as strings for
    JSON parity, mirroring how the Open Cloud API echoes them back in resource
    paths (``users/123``).

    Example:
        >>> pid = PlayerID(1234)
        >>> pid.to_int()
        1234
        >>> str(pid)
        '1234'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "PlayerID"]) -> None:
        """
        Initialize a PlayerID from a string, int, or another PlayerID.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        if isinstance(value, PlayerID):
            self._value = value._value
            return
        if isinstance(value, bool):
            raise ValueError(f"Cannot create PlayerID from bool: {value}")
        if isinstance(value, int):
            number = value
        elif isinstance(value, str):
            number = int(value.strip())
        else:
            raise ValueError(f"Cannot create PlayerID from {type(value).__name__}: {value}")
        if number <= 0:
            raise ValueError(f"PlayerID must be positive, got {number}")
        self._value = str(number)

    def to_int(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"PlayerID({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PlayerID):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


UNKNOWN_PLAYER_NAME = "Unknown"


@dataclass(frozen=True, slots=True)
class PlayerProfile:
    """Display identity of a Roblox player.

    Attributes:
        player_id: The player the profile describes.
        name: Username, or ``"Unknown"`` when the lookup failed.
        display_name: Display name shown in game, falls back to ``name``.
        created: Account creation time, if known.
        description: Profile bio, possibly empty.
        avatar_url: Headshot thumbnail URL, if one could be fetched.
        found: False for the placeholder built after a failed lookup.
    """

    player_id: PlayerID
    name: str
    display_name: str
    created: datetime | None = None
    description: str = ""
    avatar_url: str | None = None
    found: bool = True

    @classmethod
    def unknown(cls, player_id: PlayerID, avatar_url: str | None = None) -> "PlayerProfile":
        """Build the placeholder profile used when identity resolution fails."""
        return cls(
            player_id=player_id,
            name=UNKNOWN_PLAYER_NAME,
            display_name=UNKNOWN_PLAYER_NAME,
            avatar_url=avatar_url,
            found=False,
        )

    @property
    def profile_url(self) -> str:
        return f"https://www.roblox.com/users/{self.player_id}/profile"
