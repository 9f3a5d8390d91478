"""
Comment Domain Layer
====================
"""

from zordon_hub.comments.domain.entities import Comment

__all__ = ["Comment"]
