"""
Pytest configuration and fixtures for SentinelRelay tests.

HTTP is faked at the ``requests.Session`` seam: ``FakeRobloxBackend`` answers
the Open Cloud, users and thumbnails routes from memory, so the real clients
and their wire encoding are exercised end to end.
"""

import json
import sys
from pathlib import Path
from types import SimpleNamespace
from urllib.parse import urlsplit

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from sentinelrelay.cloud.identity_resolver import IdentityResolver
from sentinelrelay.cloud.messaging_publisher import NotificationPublisher
from sentinelrelay.cloud.open_cloud_http import OpenCloudHTTP
from sentinelrelay.cloud.restriction_client import RestrictionClient
from sentinelrelay.configuration.app_configuration import RelaySettings
from sentinelrelay.moderation.orchestrator import ModerationOrchestrator
from sentinelrelay.moderation.permission_gate import PermissionGate


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, body=None, text=None, reason="OK"):
        self.status_code = status_code
        self._body = body
        if body is not None:
            self.text = json.dumps(body)
        else:
            self.text = text or ""
        self.content = self.text.encode("utf-8")
        self.reason = reason

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeMember:
    """Discord member double exposing what ``Invoker.from_member`` reads."""

    def __init__(self, tag="mod#1", member_id=1, role_ids=(), administrator=False):
        self.tag = tag
        self.id = member_id
        self.roles = [SimpleNamespace(id=role_id) for role_id in role_ids]
        self.guild_permissions = SimpleNamespace(administrator=administrator)

    def __str__(self):
        return self.tag


class FakeRobloxBackend:
    """In-memory Roblox APIs, usable in place of a ``requests.Session``.

    Failure injection: set ``restriction_failure`` or ``messaging_failure`` to
    an exception (raised) or a :class:`FakeResponse` (returned).
    """

    def __init__(self):
        self.restrictions = {}
        self.users = {}
        self.published = []
        self.calls = []
        self.restriction_failure = None
        self.messaging_failure = None

    def add_user(self, user_id, name, display_name=None, description="", created="2015-03-04T10:00:00.123Z"):
        self.users[str(user_id)] = {
            "id": user_id,
            "name": name,
            "displayName": display_name or name,
            "description": description,
            "created": created,
        }

    def calls_to(self, fragment):
        return [call for call in self.calls if fragment in call.url]

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append(
            SimpleNamespace(method=method, url=url, json=json, params=params, headers=headers or {}, timeout=timeout)
        )
        path = urlsplit(url).path
        if "/user-restrictions/" in path:
            return self._restrictions(method, path, json)
        if "/messaging-service/" in path:
            return self._messaging(path, json)
        if path == "/v1/users/avatar-headshot":
            return self._avatar(params or {})
        if path.startswith("/v1/users/"):
            return self._user(path)
        return FakeResponse(404, {"message": "Unknown route"})

    def close(self):
        pass

    @staticmethod
    def _inject(failure):
        if isinstance(failure, BaseException):
            raise failure
        return failure

    def _restrictions(self, method, path, body):
        if self.restriction_failure is not None:
            return self._inject(self.restriction_failure)

        user_id = path.rsplit("/", 1)[-1]
        if method == "PATCH":
            current = dict(self.restrictions.get(user_id, {}))
            current.update(body["gameJoinRestriction"])
            self.restrictions[user_id] = current
            return FakeResponse(200, {"path": path.lstrip("/"), "user": f"users/{user_id}", "gameJoinRestriction": current})
        if user_id not in self.restrictions:
            return FakeResponse(404, {"code": "NOT_FOUND", "message": "User restriction not found."}, reason="Not Found")
        return FakeResponse(200, {"user": f"users/{user_id}", "gameJoinRestriction": self.restrictions[user_id]})

    def _messaging(self, path, body):
        if self.messaging_failure is not None:
            return self._inject(self.messaging_failure)
        topic = path.rsplit("/", 1)[-1]
        self.published.append((topic, json.loads(body["message"])))
        return FakeResponse(200, text="")

    def _user(self, path):
        user_id = path.rsplit("/", 1)[-1]
        if user_id not in self.users:
            return FakeResponse(404, {"errors": [{"code": 3, "message": "The user id is invalid."}]}, reason="Not Found")
        return FakeResponse(200, self.users[user_id])

    def _avatar(self, params):
        user_id = str(params.get("userIds"))
        if user_id not in self.users:
            return FakeResponse(200, {"data": []})
        return FakeResponse(
            200,
            {"data": [{"targetId": int(user_id), "state": "Completed", "imageUrl": f"https://tr.rbxcdn.com/{user_id}.png"}]},
        )


@pytest.fixture()
def settings() -> RelaySettings:
    return RelaySettings(api_key="test-key", universe_id="4242", request_timeout_seconds=5.0)


@pytest.fixture()
def backend() -> FakeRobloxBackend:
    return FakeRobloxBackend()


@pytest.fixture()
def http(settings, backend) -> OpenCloudHTTP:
    return OpenCloudHTTP(settings, session=backend)


@pytest.fixture()
def make_orchestrator(http):
    """Build an orchestrator over the fake backend, optionally with a moderator role."""

    def factory(mod_role_id=None, clock=None) -> ModerationOrchestrator:
        return ModerationOrchestrator(
            permission_gate=PermissionGate(mod_role_id),
            restrictions=RestrictionClient(http, clock=clock),
            publisher=NotificationPublisher(http),
            identities=IdentityResolver(http),
        )

    return factory


@pytest.fixture()
def make_response():
    return FakeResponse


@pytest.fixture()
def make_member():
    return FakeMember
