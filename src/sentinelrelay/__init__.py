"""
SentinelRelay - Discord moderation relay for a Roblox experience

Lets authorized Discord operators ban, unban, kick, whitelist, announce to and
shut down a live Roblox game, and look up players and their ban status.

Core Components:

- **Restriction Client**: Authoritative bans through the Open Cloud
  user-restrictions API, encoding permanent bans as a ten-year duration
- **Notification Publisher**: Best-effort MessagingService commands so
  running servers react immediately
- **Orchestrator**: Sequences identity lookup, authoritative writes and live
  notifications per command and produces a renderable result
- **Permission Gate**: Optional moderator-role restriction on privileged commands

Usage:
    from sentinelrelay.main import main
    main()
"""
