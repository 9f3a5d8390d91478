"""
Comment Infrastructure Layer
============================
"""

from zordon_hub.comments.infrastructure.repositories import SQLAlchemyCommentRepository

__all__ = ["SQLAlchemyCommentRepository"]
