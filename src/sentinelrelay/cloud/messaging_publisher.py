"""
Best-effort live notifications through the Open Cloud messaging service.

Running game servers subscribe to the commands and announcement topics and
act immediately (kick the socket, show the announcement, stop accepting
players). Nobody may be subscribed, so a publish is never retried and never
raises; the caller gets a ``PublishOutcome`` it is free to ignore.
"""

from __future__ import annotations

from sentinelrelay.cloud.open_cloud_http import OpenCloudError, OpenCloudHTTP
from sentinelrelay.datatypes.action_datatypes import CommandEnvelope
from sentinelrelay.datatypes.result_datatypes import PublishOutcome
from sentinelrelay.util.logger import get_logger

logger = get_logger("messaging_publisher")


class NotificationPublisher:
    """Publishes command envelopes to MessagingService topics."""

    def __init__(self, http: OpenCloudHTTP) -> None:
        self.http = http

    @property
    def commands_topic(self) -> str:
        return self.http.settings.commands_topic

    @property
    def announce_topic(self) -> str:
        return self.http.settings.announce_topic

    def topic_url(self, topic: str) -> str:
        settings = self.http.settings
        return f"{settings.open_cloud_base_url}/messaging-service/v1/universes/{settings.universe_id}/topics/{topic}"

    async def publish(self, topic: str, envelope: CommandEnvelope) -> PublishOutcome:
        """Publish one envelope, reporting failure instead of raising it."""
        try:
            await self.http.send(
                "POST",
                self.topic_url(topic),
                json_body={"message": envelope.to_message()},
            )
        except OpenCloudError as exc:
            logger.warning("[PUBLISH] Could not notify live servers on %s: %s", topic, exc)
            return PublishOutcome(topic=topic, delivered=False, error=str(exc))

        logger.debug("[PUBLISH] Sent %s to %s", envelope.command or "announcement", topic)
        return PublishOutcome(topic=topic, delivered=True)
