"""
Discord presentation for SentinelRelay.

- **result_embed.py**: Turns orchestrator ``ActionResult`` values into embeds
  (successes) or ❌-prefixed text replies (denials and failures).
"""
