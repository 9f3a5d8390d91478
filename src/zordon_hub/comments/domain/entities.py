"""
Comment Domain Entities
=======================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Comment:
    """
    A message on a ticket's thread.

    Comments outlive their ticket: deleting a ticket leaves its thread in the
    store.
    """

    id: str
    ticket_id: str
    author_id: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def edited(self) -> bool:
        return self.updated_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "author_id": self.author_id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "edited": self.edited,
        }
