"""
Notifications Application Layer
===============================

Mailer boundary and the dispatcher composing lifecycle e-mails.
"""

from zordon_hub.notifications.application.services import IMailer, NotificationDispatcher

__all__ = ["IMailer", "NotificationDispatcher"]
