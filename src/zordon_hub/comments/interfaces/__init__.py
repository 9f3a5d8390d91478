"""
Comment Interfaces Layer
========================
"""

from zordon_hub.comments.interfaces.controllers import router

__all__ = ["router"]
