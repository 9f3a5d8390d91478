"""
Ticket Domain Layer
===================

Ticket entity and its status rules.
"""

from zordon_hub.tickets.domain.entities import DeadlineNotificationResult, Ticket

__all__ = ["DeadlineNotificationResult", "Ticket"]
