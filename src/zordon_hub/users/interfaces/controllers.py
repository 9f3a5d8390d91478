"""
User Controllers (API Routes)
=============================

Registration, profile and the admin views over users and engineer workload.

Controllers are thin - they delegate to application services.
"""

from fastapi import APIRouter, Depends, status

from zordon_hub.shared.api.dependencies import (
    get_current_identity,
    get_ticket_service,
    get_user_service,
    get_workload_ledger,
)
from zordon_hub.shared.api.responses import ok
from zordon_hub.tickets.application import TicketLifecycleService
from zordon_hub.users.application import (
    RoleChangeRequest,
    UserRegisterRequest,
    UserService,
    WorkloadOverrideRequest,
)
from zordon_hub.users.domain import Identity
from zordon_hub.workload.application import WorkloadLedger

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a new user")
async def register_user(
    payload: UserRegisterRequest,
    service: UserService = Depends(get_user_service)
):
    user = await service.register(
        name=payload.name,
        email=payload.email,
        department=payload.department,
        skills=payload.skills,
    )
    return ok(user.to_dict(), "User registered")


@router.get("", summary="List all users (admin)")
async def list_users(
    identity: Identity = Depends(get_current_identity),
    service: UserService = Depends(get_user_service)
):
    users = await service.list_users(identity)
    return ok([u.to_dict() for u in users])


@router.get("/me", summary="Current user's profile")
async def get_me(
    identity: Identity = Depends(get_current_identity),
    service: UserService = Depends(get_user_service)
):
    user = await service.get_user(identity.id)
    return ok(user.to_dict())


@router.get(
    "/engineers",
    summary="Engineers with live workload (admin)",
    description="Workload is counted from active tickets; the cached score is returned alongside."
)
async def list_engineers(
    identity: Identity = Depends(get_current_identity),
    ledger: WorkloadLedger = Depends(get_workload_ledger)
):
    return ok(await ledger.engineers_overview(identity))


@router.get("/dashboard-stats", summary="Ticket and user totals (admin)")
async def dashboard_stats(
    identity: Identity = Depends(get_current_identity),
    service: TicketLifecycleService = Depends(get_ticket_service)
):
    return ok(await service.dashboard_stats(identity))


@router.post(
    "/sync-workload",
    summary="Recompute engineer workload from tickets (admin)",
    description="Overwrites every drifted cached workload score and reports the corrections."
)
async def sync_workload(
    identity: Identity = Depends(get_current_identity),
    ledger: WorkloadLedger = Depends(get_workload_ledger)
):
    report = await ledger.sync_as(identity)
    return ok(report.to_dict(), f"Synced {report.updated_engineers} engineer(s)")


@router.patch("/{user_id}/workload", summary="Override workload or presence (admin)")
async def override_workload(
    user_id: str,
    payload: WorkloadOverrideRequest,
    identity: Identity = Depends(get_current_identity),
    ledger: WorkloadLedger = Depends(get_workload_ledger)
):
    user = await ledger.override(
        identity, user_id,
        workload_score=payload.workload_score,
        is_online=payload.is_online,
    )
    return ok(user.to_dict(), "Engineer updated")


@router.patch("/{user_id}/role", summary="Change a user's role (admin)")
async def change_role(
    user_id: str,
    payload: RoleChangeRequest,
    identity: Identity = Depends(get_current_identity),
    service: UserService = Depends(get_user_service)
):
    user = await service.change_role(identity, user_id, payload.role)
    return ok(user.to_dict(), "Role updated")
