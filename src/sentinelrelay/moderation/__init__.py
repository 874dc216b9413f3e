"""
Moderation coordination for SentinelRelay.

- **permission_gate.py**: ``Invoker`` and the ``PermissionGate`` predicate
  deciding who may run privileged commands (open mode when no role is set).
- **orchestrator.py**: ``ModerationOrchestrator`` sequencing identity
  resolution, authoritative restriction writes and best-effort live
  notifications into a single ``ActionResult``.
"""
