"""
Utility helpers for SentinelRelay.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, a per-session rotating log file, and suppression of
  chatty library loggers (Discord internals, aiohttp, urllib3).
"""
