"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the ticket lifecycle.

Fixed paths (``/my-tickets``, ``/assigned``, ``/notify-deadlines``) are
declared before ``/{ticket_id}`` so they are not captured as ids.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from zordon_hub.shared.api.dependencies import get_current_identity, get_ticket_service
from zordon_hub.shared.api.responses import ok
from zordon_hub.tickets.application import (
    AssignRequest,
    DeadlineSweepRequest,
    StatusUpdateRequest,
    TicketCreateRequest,
    TicketLifecycleService,
)
from zordon_hub.users.domain import Identity

router = APIRouter(prefix="/tickets", tags=["Tickets"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "title": "Morpher not charging",
    "description": "The blue power coin shows no glow after docking.",
    "category": "Hardware",
    "priority": "HIGH",
    "tags": ["morpher", "power"]
}


# ========== Route Handlers ==========

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="File a ticket",
    description="""
    Create a ticket as the calling RANGER or ADMIN.

    The due date is fixed at creation from the priority:
    CRITICAL 4h, HIGH 8h, MEDIUM 24h (default), LOW 72h.
    """,
    openapi_extra={"requestBody": {"content": {"application/json": {"example": TICKET_CREATE_EXAMPLE}}}}
)
async def create_ticket(
    payload: TicketCreateRequest,
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(
        identity,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        tags=payload.tags,
    )
    return ok((await service.present([ticket]))[0], "Ticket created")


@router.get("", summary="List all tickets (admin)")
async def list_tickets(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    priority: Optional[str] = Query(default=None),
    assignee_id: Optional[str] = Query(default=None),
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    tickets = await service.list_all(
        identity, status=status_filter, priority=priority, assignee_id=assignee_id
    )
    return ok(await service.present(tickets))


@router.get("/my-tickets", summary="Tickets reported by the caller")
async def my_tickets(
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    return ok(await service.present(await service.list_reported(identity)))


@router.get("/assigned", summary="Tickets assigned to the caller")
async def assigned_tickets(
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    return ok(await service.present(await service.list_assigned(identity)))


@router.post(
    "/notify-deadlines",
    summary="Send deadline reminders (admin)",
    description="""
    E-mail the assignee of every active ticket due within the window
    (default from configuration) that has not been reminded yet.

    Each ticket gets its own result; failed ones are retried by the next run.
    """
)
async def notify_deadlines(
    payload: Optional[DeadlineSweepRequest] = Body(default=None),
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    report = await service.notify_deadlines(identity, payload.hours if payload else None)
    return ok(report.to_dict(), f"Sent {report.notified} reminder(s), {report.failed} failed")


@router.get("/{ticket_id}", summary="Get one ticket")
async def get_ticket(
    ticket_id: str,
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    ticket = await service.get_ticket(identity, ticket_id)
    return ok((await service.present([ticket]))[0])


@router.patch("/{ticket_id}/status", summary="Change ticket status")
async def update_status(
    ticket_id: str,
    payload: StatusUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    ticket = await service.set_status(identity, ticket_id, payload.status)
    return ok((await service.present([ticket]))[0], "Status updated")


@router.patch("/{ticket_id}/assign", summary="Assign to an engineer (admin)")
async def assign_ticket(
    ticket_id: str,
    payload: AssignRequest,
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    ticket = await service.assign(identity, ticket_id, payload.assignee_id)
    return ok((await service.present([ticket]))[0], "Ticket assigned")


@router.delete("/{ticket_id}", summary="Delete a ticket")
async def delete_ticket(
    ticket_id: str,
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    await service.delete_ticket(identity, ticket_id)
    return ok({"id": ticket_id}, "Ticket deleted")
