"""
Discord front end for SentinelRelay.

- **cogs/relay_cmds.py**: The nine slash commands forwarding to the orchestrator.
- **cogs/events_listener.py**: Startup presence and command error handling.
"""
