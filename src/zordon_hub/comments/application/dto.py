"""
Comment Application DTOs
========================
"""

from typing import Optional

from pydantic import BaseModel, Field


class CommentRequest(BaseModel):
    """Body for posting or editing a comment; length is checked after trimming."""
    content: Optional[str] = Field(default=None, description="Message text, 1-2000 characters")
