"""
Workload Ledger
===============

Engineer workload is a denormalised counter on the user row, kept in step
two ways:

- incremental: ``adjust(user_id, ±1)`` at assignment, resolution, reopen and
  delete time, applied as an atomic UPDATE in the store;
- authoritative: ``sync()`` recounts active tickets per engineer and
  overwrites the cache, reporting every value that had drifted.

``sync()`` is idempotent and safe to run at any time.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from zordon_hub.access import ensure_can_manage_users
from zordon_hub.config import Role
from zordon_hub.core import ResourceNotFoundException
from zordon_hub.shared.infrastructure.logging import get_logger, log_latency
from zordon_hub.users.application import IUserRepository
from zordon_hub.users.domain import Identity, User

if TYPE_CHECKING:
    from zordon_hub.tickets.application.services import ITicketRepository

logger = get_logger(__name__)


@dataclass
class WorkloadCorrection:
    engineer_id: str
    name: str
    old_workload: int
    new_workload: int

    def to_dict(self) -> dict:
        return {
            "engineer_id": self.engineer_id,
            "name": self.name,
            "old_workload": self.old_workload,
            "new_workload": self.new_workload,
        }


@dataclass
class WorkloadSyncReport:
    engineers_checked: int
    corrections: List[WorkloadCorrection] = field(default_factory=list)

    @property
    def updated_engineers(self) -> int:
        return len(self.corrections)

    def to_dict(self) -> dict:
        return {
            "engineers_checked": self.engineers_checked,
            "updated_engineers": self.updated_engineers,
            "updates": [c.to_dict() for c in self.corrections],
        }


class WorkloadLedger:
    """Incremental and authoritative bookkeeping of engineer workload."""

    def __init__(
        self,
        user_repository: IUserRepository,
        ticket_repository: "ITicketRepository"
    ):
        self._user_repo = user_repository
        self._ticket_repo = ticket_repository

    async def adjust(self, user_id: Optional[str], delta: int) -> bool:
        """
        Best-effort atomic adjustment.

        A failure is logged and reported as False; it never undoes the ticket
        change that triggered it. ``sync()`` repairs any resulting drift.
        """
        if not user_id or delta == 0:
            return False

        try:
            await self._user_repo.increment_workload(user_id, delta)
        except Exception as e:
            logger.error(
                "Workload adjustment failed",
                extra={"user_id": user_id, "delta": delta, "error": str(e)}
            )
            return False

        logger.debug("Workload adjusted", extra={"user_id": user_id, "delta": delta})
        return True

    async def sync(self) -> WorkloadSyncReport:
        """
        Recompute every engineer's workload from tickets and overwrite drifted values.

        Users outside the ENGINEER role carry no workload; a leftover score
        from a former engineer is reset to zero and reported like any drift.
        """
        with log_latency(logger, "workload_sync"):
            users = await self._user_repo.list()
            actual = await self._ticket_repo.count_active_by_assignee()

            report = WorkloadSyncReport(engineers_checked=sum(1 for u in users if u.is_engineer))
            for user in users:
                new_value = actual.get(user.id, 0) if user.is_engineer else 0
                if user.workload_score == new_value:
                    continue
                report.corrections.append(WorkloadCorrection(
                    engineer_id=user.id,
                    name=user.name,
                    old_workload=user.workload_score,
                    new_workload=new_value,
                ))
                await self._user_repo.update_fields(user.id, workload_score=new_value)

        if report.corrections:
            logger.warning(
                "Workload drift corrected",
                extra={"updated_engineers": report.updated_engineers}
            )
        return report

    async def sync_as(self, identity: Optional[Identity]) -> WorkloadSyncReport:
        ensure_can_manage_users(identity)
        return await self.sync()

    async def engineers_overview(self, identity: Optional[Identity]) -> List[dict]:
        """
        Engineers with their live workload, least loaded first.

        The live count comes from tickets, not from the cached score.
        """
        ensure_can_manage_users(identity)

        engineers = await self._user_repo.list(role=Role.ENGINEER)
        actual: Dict[str, int] = await self._ticket_repo.count_active_by_assignee()

        overview = []
        for engineer in engineers:
            row = engineer.to_dict()
            row["cached_workload_score"] = engineer.workload_score
            row["workload_score"] = actual.get(engineer.id, 0)
            overview.append(row)

        overview.sort(key=lambda row: (row["workload_score"], row["name"]))
        return overview

    async def override(
        self,
        identity: Optional[Identity],
        user_id: str,
        workload_score: Optional[int] = None,
        is_online: Optional[bool] = None
    ) -> User:
        """Admin override of cached workload and/or presence."""
        ensure_can_manage_users(identity)

        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)

        fields = {}
        if workload_score is not None:
            fields["workload_score"] = max(0, workload_score)
        if is_online is not None:
            fields["is_online"] = is_online

        if fields:
            user = await self._user_repo.update_fields(user_id, **fields)
            logger.info(
                "Engineer updated by admin",
                extra={"user_id": user_id, "fields": sorted(fields), "changed_by": identity.id}
            )
        return user
