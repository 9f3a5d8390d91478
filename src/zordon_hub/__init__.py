"""
Zordon Hub
==========

Command Center helpdesk: ticket lifecycle with SLA tracking, engineer
workload bookkeeping, realtime ticket discussions and deadline reminders.
"""

__version__ = "1.0.0"
