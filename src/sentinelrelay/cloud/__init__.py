"""
Remote Roblox services used by SentinelRelay.

- **open_cloud_http.py**: Shared ``requests`` transport with bounded timeouts
  and the ``OpenCloudError`` hierarchy (``RemoteRejected``, ``RemoteUnavailable``).
- **restriction_client.py**: Authoritative join restrictions and the wire
  encoding of durations, including the ten-year permanence sentinel.
- **messaging_publisher.py**: Best-effort MessagingService notifications to
  running game servers.
- **identity_resolver.py**: Cosmetic username/avatar lookups.
"""
