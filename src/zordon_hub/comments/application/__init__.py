"""
Comment Application Layer
=========================

Comment service, DTOs and the comment repository interface.
"""

from zordon_hub.comments.application.dto import CommentRequest
from zordon_hub.comments.application.services import CommentService, ICommentRepository

__all__ = ["CommentRequest", "CommentService", "ICommentRepository"]
