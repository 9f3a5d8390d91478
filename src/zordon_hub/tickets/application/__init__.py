"""
Ticket Application Layer
========================

Lifecycle service, DTOs and the ticket repository interface.
"""

from zordon_hub.tickets.application.dto import (
    AssignRequest,
    DeadlineSweepRequest,
    StatusUpdateRequest,
    TicketCreateRequest,
)
from zordon_hub.tickets.application.services import (
    DeadlineSweepReport,
    ITicketRepository,
    TicketLifecycleService,
    parse_priority,
    parse_status,
)

__all__ = [
    "AssignRequest",
    "DeadlineSweepRequest",
    "StatusUpdateRequest",
    "TicketCreateRequest",
    "DeadlineSweepReport",
    "ITicketRepository",
    "TicketLifecycleService",
    "parse_priority",
    "parse_status",
]
