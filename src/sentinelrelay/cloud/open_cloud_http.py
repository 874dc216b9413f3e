"""
Blocking HTTP transport shared by the Open Cloud clients.

Requests are sent with ``requests`` and a bounded timeout. The async entry
point runs them in a worker thread via ``asyncio.to_thread`` so a slow
upstream never blocks the Discord event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping

import requests

from sentinelrelay.configuration.app_configuration import RelaySettings
from sentinelrelay.util.logger import get_logger

logger = get_logger("open_cloud_http")


class OpenCloudError(Exception):
    """Base class for failed calls to a remote Roblox service."""


class RemoteRejected(OpenCloudError):
    """The remote service answered with a non-2xx status.

    Attributes:
        status: HTTP status code returned upstream.
        message: Upstream error message, verbatim when the body carried one.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class RemoteUnavailable(OpenCloudError):
    """The remote service could not be reached (timeout, DNS, connection reset)."""


def extract_error_message(response: requests.Response) -> str:
    """Pull the most informative error message out of an error response.

    Open Cloud v2 answers ``{"code": ..., "message": ...}``; the legacy APIs
    answer ``{"errors": [{"message": ...}]}``. Anything else falls back to the
    raw body or the HTTP reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            message = errors[0].get("message")
            if message:
                return str(message)

    text = (getattr(response, "text", "") or "").strip()
    if text:
        return text
    return getattr(response, "reason", None) or f"HTTP {response.status_code}"


class OpenCloudHTTP:
    """Thin wrapper around a ``requests.Session`` configured for Open Cloud.

    Parameters
    ----------
    settings:
        Relay settings holding the API key and request timeout.
    session:
        Optional pre-built session; tests pass a mock here.
    """

    def __init__(self, settings: RelaySettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def build_headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authenticated:
            headers["x-api-key"] = self.settings.api_key
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Send one request and return the decoded JSON body ({} when empty).

        This function blocks the calling thread; use :meth:`send` from async code.

        Raises
        ------
        RemoteRejected
            If the response status is outside 2xx.
        RemoteUnavailable
            If the request timed out or the connection failed.
        """
        try:
            response = self.session.request(
                method,
                url,
                json=json_body,
                params=params,
                headers=self.build_headers(authenticated),
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.Timeout as exc:
            raise RemoteUnavailable(f"Request to {url} timed out after {self.settings.request_timeout_seconds}s") from exc
        except requests.RequestException as exc:
            raise RemoteUnavailable(f"Request to {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            message = extract_error_message(response)
            logger.debug("[HTTP] %s %s -> %s: %s", method, url, response.status_code, message)
            raise RemoteRejected(response.status_code, message)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.debug("[HTTP] %s %s returned a non-JSON body", method, url)
            return {}
        return body if isinstance(body, dict) else {"data": body}

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Async wrapper around :meth:`request` running it in a worker thread."""
        return await asyncio.to_thread(
            self.request,
            method,
            url,
            json_body=json_body,
            params=params,
            authenticated=authenticated,
        )

    def close(self) -> None:
        self.session.close()
