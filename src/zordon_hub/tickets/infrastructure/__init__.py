"""
Ticket Infrastructure Layer
===========================

SQLAlchemy model and repository for tickets.
"""

from zordon_hub.tickets.infrastructure.repositories import SQLAlchemyTicketRepository

__all__ = ["SQLAlchemyTicketRepository"]
