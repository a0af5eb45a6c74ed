"""
Intake Kernel - client lifecycle state-transition engine.

A transactional onboarding pipeline kernel with:
- A fixed, data-driven client status transition table
- Atomic status + audit + task effects
- Append-only event log
- Detached (best-effort) notification and commission effects
- A cooldown-guarded platform verification retry workflow
"""

__version__ = "0.1.0"
