"""
Background jobs for Campaign Pulse.

- rollover_digest: Slack notification when the reference-timezone day changes
"""

from pulse.jobs.rollover_digest import format_rollover_message, send_rollover_digest


__all__ = [
    'format_rollover_message',
    'send_rollover_digest',
]
