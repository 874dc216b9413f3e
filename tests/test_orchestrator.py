from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import requests

from sentinelrelay.cloud.identity_resolver import IdentityResolver
from sentinelrelay.cloud.messaging_publisher import NotificationPublisher
from sentinelrelay.cloud.open_cloud_http import RemoteRejected
from sentinelrelay.cloud.restriction_client import PERMANENCE_SENTINEL_SECONDS, RestrictionClient
from sentinelrelay.datatypes.action_datatypes import (
    ActionType,
    AnnounceAction,
    BanAction,
    CheckStatusAction,
    KickAction,
    LookupAction,
    ShutdownAction,
    UnbanAction,
    UnwhitelistAction,
    WhitelistAction,
)
from sentinelrelay.datatypes.player_datatypes import PlayerID, PlayerProfile
from sentinelrelay.datatypes.result_datatypes import ActionOutcome, PublishOutcome, RestrictionStatus
from sentinelrelay.moderation.orchestrator import ModerationOrchestrator
from sentinelrelay.moderation.permission_gate import Invoker, PermissionGate

MOD = Invoker(tag="mod#1", user_id=1)
MOD_ROLE = 555


def restriction_body(backend, player_id):
    return backend.calls_to(f"/user-restrictions/{player_id}")[0].json["gameJoinRestriction"]


@pytest.mark.asyncio
async def test_permanent_ban_sends_sentinel_and_reports_permanent(make_orchestrator, backend):
    backend.add_user(77, "exploiter")
    clock = lambda: datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
    orchestrator = make_orchestrator(clock=clock)

    result = await orchestrator.execute(BanAction(PlayerID(77), reason="cheating", duration_minutes=0), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert str(result.duration) == "Permanent"
    assert result.player.name == "exploiter"
    sent = restriction_body(backend, 77)
    assert sent["duration"] == f"{PERMANENCE_SENTINEL_SECONDS}s"
    assert sent["privateReason"] == "[2026-10-19T08:00:00.000Z] cheating | Mod: mod#1"
    assert backend.published == [
        ("SentinelAC_Commands", {"command": "ban", "userId": 77, "reason": "cheating", "duration": -1, "moderator": "mod#1"})
    ]
    assert result.notified is True


@pytest.mark.asyncio
async def test_negative_duration_is_permanent(make_orchestrator, backend):
    result = await make_orchestrator().execute(BanAction(PlayerID(8), duration_minutes=-15), MOD)

    assert str(result.duration) == "Permanent"
    assert restriction_body(backend, 8)["duration"] == f"{PERMANENCE_SENTINEL_SECONDS}s"


@pytest.mark.asyncio
async def test_timed_ban_then_check_status_reports_restricted(make_orchestrator, backend):
    orchestrator = make_orchestrator()

    ban = await orchestrator.execute(BanAction(PlayerID(12), reason="griefing", duration_minutes=30), MOD)
    status = await orchestrator.execute(CheckStatusAction(PlayerID(12)), MOD)

    assert restriction_body(backend, 12)["duration"] == "1800s"
    assert backend.published[0][1]["duration"] == 1800
    assert str(ban.duration) == "0h 30m total"
    assert status.outcome is ActionOutcome.SUCCEEDED
    assert status.status is RestrictionStatus.RESTRICTED
    assert str(status.duration) == "0h 30m total"
    assert status.record.display_reason == "Banned: griefing"


@pytest.mark.asyncio
async def test_rejected_ban_fails_and_skips_notification(make_orchestrator, backend, make_response):
    backend.restriction_failure = make_response(403, {"code": "PERMISSION_DENIED", "message": "Insufficient scope"})

    result = await make_orchestrator().execute(BanAction(PlayerID(12)), MOD)

    assert result.outcome is ActionOutcome.FAILED
    assert result.error == "Insufficient scope"
    assert backend.calls_to("/messaging-service/") == []


@pytest.mark.asyncio
async def test_unreachable_restriction_service_fails_ban(make_orchestrator, backend):
    backend.restriction_failure = requests.Timeout("timed out")

    result = await make_orchestrator().execute(BanAction(PlayerID(12)), MOD)

    assert result.outcome is ActionOutcome.FAILED
    assert backend.calls_to("/messaging-service/") == []


@pytest.mark.asyncio
async def test_failed_apply_never_publishes():
    restrictions = MagicMock(spec=RestrictionClient)
    restrictions.apply = AsyncMock(side_effect=RemoteRejected(500, "boom"))
    publisher = MagicMock(spec=NotificationPublisher)
    publisher.publish = AsyncMock()
    identities = MagicMock(spec=IdentityResolver)
    identities.resolve = AsyncMock(return_value=PlayerProfile.unknown(PlayerID(3)))
    orchestrator = ModerationOrchestrator(PermissionGate(None), restrictions, publisher, identities)

    result = await orchestrator.execute(BanAction(PlayerID(3)), MOD)

    assert result.outcome is ActionOutcome.FAILED
    assert restrictions.apply.await_count == 1
    assert publisher.publish.await_count == 0


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_ban(make_orchestrator, backend):
    backend.messaging_failure = requests.ConnectionError("no servers")

    result = await make_orchestrator().execute(BanAction(PlayerID(12), duration_minutes=5), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert result.notified is False
    assert backend.restrictions["12"]["active"] is True


@pytest.mark.asyncio
async def test_kick_succeeds_even_without_live_servers(make_orchestrator, backend, make_response):
    backend.messaging_failure = make_response(503, {"message": "No subscribers"})

    result = await make_orchestrator().execute(KickAction(PlayerID(12), reason="afk"), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert result.notified is False
    assert len(backend.calls_to("/messaging-service/")) == 1
    assert backend.calls_to("/user-restrictions/") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action",
    [
        BanAction(PlayerID(1)),
        UnbanAction(PlayerID(1)),
        KickAction(PlayerID(1)),
        AnnounceAction("hello"),
        WhitelistAction(PlayerID(1)),
        UnwhitelistAction(PlayerID(1)),
        ShutdownAction(),
    ],
)
async def test_privileged_actions_denied_without_role(make_orchestrator, backend, action):
    invoker = Invoker(tag="player#9", role_ids=frozenset({1}))

    result = await make_orchestrator(mod_role_id=MOD_ROLE).execute(action, invoker)

    assert result.outcome is ActionOutcome.DENIED
    assert backend.calls == []


@pytest.mark.asyncio
async def test_administrator_may_ban_without_role(make_orchestrator):
    invoker = Invoker(tag="owner#1", is_administrator=True)

    result = await make_orchestrator(mod_role_id=MOD_ROLE).execute(BanAction(PlayerID(1)), invoker)

    assert result.outcome is ActionOutcome.SUCCEEDED


@pytest.mark.asyncio
async def test_read_only_actions_bypass_gate(make_orchestrator):
    orchestrator = make_orchestrator(mod_role_id=MOD_ROLE)
    invoker = Invoker(tag="player#9")

    status = await orchestrator.execute(CheckStatusAction(PlayerID(1)), invoker)
    lookup = await orchestrator.execute(LookupAction(PlayerID(1)), invoker)

    assert status.outcome is ActionOutcome.SUCCEEDED
    assert lookup.outcome is ActionOutcome.SUCCEEDED


@pytest.mark.asyncio
async def test_check_status_not_found_is_clean(make_orchestrator):
    result = await make_orchestrator().execute(CheckStatusAction(PlayerID(31337)), MOD)

    assert result.status is RestrictionStatus.CLEAN
    assert result.outcome is ActionOutcome.SUCCEEDED


@pytest.mark.asyncio
async def test_check_status_network_error_is_indeterminate(make_orchestrator, backend):
    backend.restriction_failure = requests.ConnectionError("offline")

    result = await make_orchestrator().execute(CheckStatusAction(PlayerID(31337)), MOD)

    assert result.status is RestrictionStatus.INDETERMINATE
    assert result.outcome is ActionOutcome.FAILED
    assert result.error


@pytest.mark.asyncio
async def test_check_status_server_error_is_indeterminate(make_orchestrator, backend, make_response):
    backend.restriction_failure = make_response(500, {"message": "Internal error"})

    result = await make_orchestrator().execute(CheckStatusAction(PlayerID(31337)), MOD)

    assert result.status is RestrictionStatus.INDETERMINATE
    assert result.error == "Internal error"


@pytest.mark.asyncio
async def test_unban_clears_restriction(make_orchestrator, backend):
    orchestrator = make_orchestrator()
    await orchestrator.execute(BanAction(PlayerID(12)), MOD)

    result = await orchestrator.execute(UnbanAction(PlayerID(12)), MOD)
    status = await orchestrator.execute(CheckStatusAction(PlayerID(12)), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert backend.published[-1] == ("SentinelAC_Commands", {"command": "unban", "userId": 12, "moderator": "mod#1"})
    assert status.status is RestrictionStatus.CLEAN


@pytest.mark.asyncio
async def test_unban_of_unrestricted_player_is_idempotent(make_orchestrator):
    orchestrator = make_orchestrator()

    first = await orchestrator.execute(UnbanAction(PlayerID(40)), MOD)
    second = await orchestrator.execute(UnbanAction(PlayerID(40)), MOD)
    status = await orchestrator.execute(CheckStatusAction(PlayerID(40)), MOD)

    assert first.outcome is ActionOutcome.SUCCEEDED
    assert second.outcome is ActionOutcome.SUCCEEDED
    assert status.status is RestrictionStatus.CLEAN


@pytest.mark.asyncio
async def test_lookup_of_nonexistent_player_uses_placeholder(make_orchestrator):
    result = await make_orchestrator().execute(LookupAction(PlayerID(999999999)), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert result.player.name == "Unknown"
    assert result.player.found is False
    assert result.status is RestrictionStatus.CLEAN


@pytest.mark.asyncio
async def test_lookup_with_failed_status_query_is_indeterminate(make_orchestrator, backend):
    backend.add_user(156, "builderman")
    backend.restriction_failure = requests.Timeout("slow")

    result = await make_orchestrator().execute(LookupAction(PlayerID(156)), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert result.player.name == "builderman"
    assert result.status is RestrictionStatus.INDETERMINATE


@pytest.mark.asyncio
async def test_announce_uses_announcement_topic(make_orchestrator, backend):
    result = await make_orchestrator().execute(AnnounceAction("Server restart in 5 minutes"), MOD)

    assert result.action is ActionType.ANNOUNCE
    assert backend.published == [
        ("SentinelAC_Announce", {"message": "Server restart in 5 minutes", "moderator": "mod#1"})
    ]


@pytest.mark.asyncio
async def test_shutdown_and_whitelist_envelopes(make_orchestrator, backend):
    orchestrator = make_orchestrator()

    await orchestrator.execute(ShutdownAction(), MOD)
    await orchestrator.execute(WhitelistAction(PlayerID(5)), MOD)
    await orchestrator.execute(UnwhitelistAction(PlayerID(5)), MOD)

    assert [payload for _, payload in backend.published] == [
        {"command": "shutdown", "reason": "Server shutdown by moderator", "moderator": "mod#1"},
        {"command": "whitelist", "userId": 5, "moderator": "mod#1"},
        {"command": "unwhitelist", "userId": 5, "moderator": "mod#1"},
    ]
    assert backend.calls_to("/user-restrictions/") == []


@pytest.mark.asyncio
async def test_publish_outcome_is_ignored_by_result():
    restrictions = MagicMock(spec=RestrictionClient)
    publisher = MagicMock(spec=NotificationPublisher)
    publisher.commands_topic = "SentinelAC_Commands"
    publisher.publish = AsyncMock(return_value=PublishOutcome(topic="SentinelAC_Commands", delivered=False, error="x"))
    identities = MagicMock(spec=IdentityResolver)
    identities.resolve = AsyncMock(return_value=PlayerProfile.unknown(PlayerID(3)))
    orchestrator = ModerationOrchestrator(PermissionGate(None), restrictions, publisher, identities)

    result = await orchestrator.execute(WhitelistAction(PlayerID(3)), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert publisher.publish.await_count == 1


@pytest.mark.asyncio
async def test_check_status_with_overflowing_duration_reports_unknown_length(make_orchestrator, backend):
    backend.restrictions["12"] = {"active": True, "duration": "1e400s", "displayReason": "Banned: x"}

    result = await make_orchestrator().execute(CheckStatusAction(PlayerID(12)), MOD)

    assert result.outcome is ActionOutcome.SUCCEEDED
    assert result.status is RestrictionStatus.RESTRICTED
    assert str(result.duration) == "Unknown"
