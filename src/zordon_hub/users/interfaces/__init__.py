"""
User Interfaces Layer
=====================
"""

from zordon_hub.users.interfaces.controllers import router

__all__ = ["router"]
