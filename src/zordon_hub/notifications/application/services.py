"""
Notification Dispatcher
=======================

Turns lifecycle events into outbound e-mail.

Assignment mail is best-effort: failures are logged and swallowed so the
assignment itself stands. Deadline reminders raise, letting the sweep record
a per-ticket result.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from zordon_hub.core import ExternalServiceException
from zordon_hub.shared.infrastructure.logging import get_logger
from zordon_hub.sla.domain import SLACalculator

if TYPE_CHECKING:
    from zordon_hub.tickets.domain import Ticket
    from zordon_hub.users.domain import User

logger = get_logger(__name__)


class IMailer(ABC):
    """Outbound mail boundary."""

    @abstractmethod
    async def send_mail(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None
    ) -> Dict[str, Any]:
        """Send one message; returns ``{"message_id": ...}``.

        Raises:
            ExternalServiceException: delivery failed
        """


class NotificationDispatcher:
    """Builds and sends lifecycle e-mails."""

    def __init__(self, mailer: IMailer):
        self._mailer = mailer

    async def ticket_assigned(
        self,
        ticket: "Ticket",
        assignee: "User",
        reporter: Optional["User"]
    ) -> int:
        """Mail the new assignee and the reporter. Returns how many were sent."""
        due = ticket.due_date.isoformat() if ticket.due_date else "n/a"
        messages = [(
            assignee.email,
            f"[Zordon Hub] Ticket assigned: {ticket.title}",
            (
                f"Hello {assignee.name},\n\n"
                f"You have been assigned ticket \"{ticket.title}\" "
                f"(priority {ticket.priority.value}).\n"
                f"Due: {due}\n"
            ),
        )]
        if reporter is not None:
            messages.append((
                reporter.email,
                f"[Zordon Hub] Your ticket is being handled: {ticket.title}",
                (
                    f"Hello {reporter.name},\n\n"
                    f"Your ticket \"{ticket.title}\" has been assigned to {assignee.name}.\n"
                ),
            ))

        sent = 0
        for to, subject, text in messages:
            try:
                await self._mailer.send_mail(to=to, subject=subject, text=text)
                sent += 1
            except ExternalServiceException as e:
                logger.warning(
                    "Assignment notification failed",
                    extra={"ticket_id": ticket.id, "to": to, "error": e.message}
                )
        return sent

    async def deadline_reminder(self, ticket: "Ticket", assignee: "User") -> Dict[str, Any]:
        """Reminder for a ticket nearing its due date; raises on failure."""
        subject = f"[Zordon Hub] Deadline approaching: {ticket.title}"
        text = (
            f"Hello {assignee.name},\n\n"
            f"Ticket \"{ticket.title}\" (priority {ticket.priority.value}, "
            f"status {ticket.status.value}) is due at "
            f"{ticket.due_date.isoformat() if ticket.due_date else 'n/a'}.\n"
            f"{SLACalculator.format_remaining(ticket.due_date)}.\n"
        )
        html = (
            f"<p>Hello {assignee.name},</p>"
            f"<p>Ticket <strong>{ticket.title}</strong> is due soon: "
            f"{SLACalculator.format_remaining(ticket.due_date)}.</p>"
        )
        return await self._mailer.send_mail(to=assignee.email, subject=subject, text=text, html=html)
