"""
Data types shared across SentinelRelay.

- **player_datatypes.py**: ``PlayerID`` wrapper and ``PlayerProfile`` display identity.
- **restriction_datatypes.py**: ``RestrictionRecord`` and the decoded ``DurationSpan``.
- **action_datatypes.py**: ``ActionType``, the closed ``ModerationAction`` union
  and the ``CommandEnvelope`` published to live servers.
- **result_datatypes.py**: ``ActionResult``, ``RestrictionStatus`` and ``PublishOutcome``.
"""
