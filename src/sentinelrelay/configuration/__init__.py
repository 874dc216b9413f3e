"""
Configuration management for SentinelRelay.

- **app_configuration.py**: YAML configuration loader for the non-secret
  settings (Open Cloud endpoints, request timeout, messaging topics) and the
  immutable ``RelaySettings`` built once at start-up from that file plus the
  credentials found in the environment.
"""
