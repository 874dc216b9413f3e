"""
Moderation action orchestrator.

Sequences every operator command across the relay's collaborators and turns
it into an :class:`ActionResult` the front end can render as-is.

Per invocation
1. Privileged actions are checked by the permission gate; a denial ends the
   command before any remote call.
2. The target's identity is resolved for display; failures yield the
   ``"Unknown"`` placeholder.
3. Ban and unban write the authoritative restriction first. If that fails the
   command fails and no live notification is sent, so an unpersisted ban is
   never announced to servers.
4. Every action with a live-session effect is published to running servers.
   The publish outcome is informational only and never changes the result.

Status queries (check-status, lookup) skip steps 3-4 and classify the
restriction as CLEAN, RESTRICTED or INDETERMINATE. Nothing is cached between
invocations; the restriction service is the single source of truth.
"""

from __future__ import annotations

from typing import assert_never

from sentinelrelay.cloud.identity_resolver import IdentityResolver
from sentinelrelay.cloud.messaging_publisher import NotificationPublisher
from sentinelrelay.cloud.open_cloud_http import OpenCloudError
from sentinelrelay.cloud.restriction_client import (
    RestrictionClient,
    describe_duration,
    effective_duration_seconds,
)
from sentinelrelay.datatypes.action_datatypes import (
    ActionType,
    AnnounceAction,
    BanAction,
    CheckStatusAction,
    CommandEnvelope,
    KickAction,
    LookupAction,
    ModerationAction,
    ShutdownAction,
    UnbanAction,
    UnwhitelistAction,
    WhitelistAction,
)
from sentinelrelay.datatypes.player_datatypes import PlayerID
from sentinelrelay.datatypes.restriction_datatypes import RestrictionRecord
from sentinelrelay.datatypes.result_datatypes import (
    ActionOutcome,
    ActionResult,
    RestrictionStatus,
)
from sentinelrelay.moderation.permission_gate import Invoker, PermissionGate, Privilege
from sentinelrelay.util.logger import get_logger

logger = get_logger("orchestrator")

# Ban envelopes tell live servers "forever" with -1; the restriction API gets the sentinel instead.
LIVE_PERMANENT_DURATION = -1


class ModerationOrchestrator:
    """Runs one operator command end to end.

    Parameters
    ----------
    permission_gate:
        Authorizes privileged actions.
    restrictions:
        Authoritative restriction client.
    publisher:
        Best-effort live notification publisher.
    identities:
        Cosmetic identity resolver.
    """

    def __init__(
        self,
        permission_gate: PermissionGate,
        restrictions: RestrictionClient,
        publisher: NotificationPublisher,
        identities: IdentityResolver,
    ) -> None:
        self.permission_gate = permission_gate
        self.restrictions = restrictions
        self.publisher = publisher
        self.identities = identities

    def authorizes(self, action: ModerationAction, invoker: Invoker) -> bool:
        """Return whether ``invoker`` may run ``action``; read-only actions always pass."""
        if not action.action_type.is_privileged:
            return True
        return self.permission_gate.authorize(invoker, Privilege.MODERATE)

    async def execute(self, action: ModerationAction, invoker: Invoker) -> ActionResult:
        """Run ``action`` on behalf of ``invoker`` and return its normalized result."""
        moderator = invoker.tag
        if not self.authorizes(action, invoker):
            logger.info("[ORCHESTRATOR] Denied %s for %s", action.action_type, moderator)
            return ActionResult.denied(action.action_type, moderator)

        logger.info("[ORCHESTRATOR] %s requested by %s", action.action_type, moderator)

        match action:
            case BanAction():
                return await self.ban(action, moderator)
            case UnbanAction():
                return await self.unban(action, moderator)
            case KickAction():
                return await self.kick(action, moderator)
            case AnnounceAction():
                return await self.announce(action, moderator)
            case WhitelistAction() | UnwhitelistAction():
                return await self.toggle_whitelist(action, moderator)
            case ShutdownAction():
                return await self.shutdown(action, moderator)
            case CheckStatusAction():
                return await self.check_status(action, moderator)
            case LookupAction():
                return await self.lookup(action, moderator)
            case _:
                assert_never(action)

    # --------------------------
    # Live notification
    # --------------------------
    async def notify(self, topic: str, envelope: CommandEnvelope) -> bool:
        """Publish to live servers and deliberately discard any failure.

        Returns whether the publish was acknowledged, for display only.
        """
        outcome = await self.publisher.publish(topic, envelope)
        if not outcome.delivered:
            logger.info("[ORCHESTRATOR] Live notification skipped (%s); continuing.", outcome.error)
        return outcome.delivered

    # --------------------------
    # Authoritative actions
    # --------------------------
    async def ban(self, action: BanAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)

        try:
            record = await self.restrictions.apply(
                action.player_id, action.reason, action.duration_seconds, moderator
            )
        except OpenCloudError as exc:
            logger.error("[ORCHESTRATOR] Ban of %s failed: %s", action.player_id, exc)
            return ActionResult.failed(ActionType.BAN, moderator, str(exc), player=player)

        live_duration = LIVE_PERMANENT_DURATION if action.is_permanent else action.duration_seconds
        notified = await self.notify(
            self.publisher.commands_topic,
            CommandEnvelope(
                command=ActionType.BAN.value,
                user_id=action.player_id.to_int(),
                reason=action.reason,
                duration=live_duration,
                moderator=moderator,
            ),
        )

        applied_seconds = record.duration_seconds
        if applied_seconds is None:
            applied_seconds = effective_duration_seconds(action.duration_seconds)

        return ActionResult(
            action=ActionType.BAN,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            reason=action.reason,
            duration=describe_duration(applied_seconds),
            record=record,
            notified=notified,
        )

    async def unban(self, action: UnbanAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)

        try:
            await self.restrictions.clear(action.player_id)
        except OpenCloudError as exc:
            logger.error("[ORCHESTRATOR] Unban of %s failed: %s", action.player_id, exc)
            return ActionResult.failed(ActionType.UNBAN, moderator, str(exc), player=player)

        notified = await self.notify(
            self.publisher.commands_topic,
            CommandEnvelope(command=ActionType.UNBAN.value, user_id=action.player_id.to_int(), moderator=moderator),
        )
        return ActionResult(
            action=ActionType.UNBAN,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            notified=notified,
        )

    # --------------------------
    # Live-only actions
    # --------------------------
    async def kick(self, action: KickAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)
        notified = await self.notify(
            self.publisher.commands_topic,
            CommandEnvelope(
                command=ActionType.KICK.value,
                user_id=action.player_id.to_int(),
                reason=action.reason,
                moderator=moderator,
            ),
        )
        return ActionResult(
            action=ActionType.KICK,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            reason=action.reason,
            notified=notified,
        )

    async def announce(self, action: AnnounceAction, moderator: str) -> ActionResult:
        notified = await self.notify(
            self.publisher.announce_topic,
            CommandEnvelope(message=action.message, moderator=moderator),
        )
        return ActionResult(
            action=ActionType.ANNOUNCE,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            message=action.message,
            notified=notified,
        )

    async def toggle_whitelist(self, action: WhitelistAction | UnwhitelistAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)
        notified = await self.notify(
            self.publisher.commands_topic,
            CommandEnvelope(
                command=action.action_type.value,
                user_id=action.player_id.to_int(),
                moderator=moderator,
            ),
        )
        return ActionResult(
            action=action.action_type,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            notified=notified,
        )

    async def shutdown(self, action: ShutdownAction, moderator: str) -> ActionResult:
        notified = await self.notify(
            self.publisher.commands_topic,
            CommandEnvelope(command=ActionType.SHUTDOWN.value, reason=action.reason, moderator=moderator),
        )
        return ActionResult(
            action=ActionType.SHUTDOWN,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            reason=action.reason,
            notified=notified,
        )

    # --------------------------
    # Status queries
    # --------------------------
    async def classify(self, player_id: PlayerID) -> tuple[RestrictionStatus, RestrictionRecord | None, str | None]:
        """Query and classify a player's restriction.

        Returns
        -------
        tuple
            ``(status, record, error)``. A missing or inactive record is CLEAN;
            an unreachable or erroring service is INDETERMINATE, never CLEAN.
        """
        try:
            record = await self.restrictions.query(player_id)
        except OpenCloudError as exc:
            logger.warning("[ORCHESTRATOR] Could not determine restriction of %s: %s", player_id, exc)
            return RestrictionStatus.INDETERMINATE, None, str(exc)

        if record is None or not record.active:
            return RestrictionStatus.CLEAN, record, None
        return RestrictionStatus.RESTRICTED, record, None

    async def check_status(self, action: CheckStatusAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)
        status, record, error = await self.classify(action.player_id)

        if status is RestrictionStatus.INDETERMINATE:
            return ActionResult(
                action=ActionType.CHECK_STATUS,
                outcome=ActionOutcome.FAILED,
                moderator=moderator,
                player=player,
                status=status,
                error=error,
            )

        return ActionResult(
            action=ActionType.CHECK_STATUS,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            status=status,
            record=record,
            duration=describe_duration(record.duration_seconds) if status is RestrictionStatus.RESTRICTED else None,
        )

    async def lookup(self, action: LookupAction, moderator: str) -> ActionResult:
        player = await self.identities.resolve(action.player_id)
        status, record, error = await self.classify(action.player_id)

        return ActionResult(
            action=ActionType.LOOKUP,
            outcome=ActionOutcome.SUCCEEDED,
            moderator=moderator,
            player=player,
            status=status,
            record=record,
            duration=describe_duration(record.duration_seconds) if status is RestrictionStatus.RESTRICTED else None,
            error=error,
        )
