"""
Ticket Application DTOs
=======================

Request models for the tickets API. Enum-valued fields are accepted as plain
strings and validated by the service, so an unknown status or priority
surfaces as the same ``invalid_input`` error everywhere.
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class TicketCreateRequest(BaseModel):
    """Create a ticket."""
    title: str = Field(..., description="Short summary")
    description: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None, description="Free-form category")
    priority: Optional[str] = Field(default=None, description="LOW, MEDIUM, HIGH or CRITICAL")
    tags: List[str] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="One of the six ticket statuses")


class AssignRequest(BaseModel):
    assignee_id: str = Field(
        ...,
        validation_alias=AliasChoices("assignee_id", "assigneeId"),
        description="Engineer user id"
    )


class DeadlineSweepRequest(BaseModel):
    hours: Optional[float] = Field(
        default=None,
        gt=0,
        description="Look-ahead window in hours (defaults to configuration)"
    )
