"""
User Domain Layer
=================

Pure Python user entity and caller identity.
"""

from zordon_hub.users.domain.entities import Identity, User

__all__ = ["Identity", "User"]
