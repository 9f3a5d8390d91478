"""
User Infrastructure Layer
=========================

SQLAlchemy model and repository for users.
"""

from zordon_hub.users.infrastructure.repositories import SQLAlchemyUserRepository

__all__ = ["SQLAlchemyUserRepository"]
