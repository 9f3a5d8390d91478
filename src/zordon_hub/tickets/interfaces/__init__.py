"""
Ticket Interfaces Layer
=======================
"""

from zordon_hub.tickets.interfaces.controllers import router

__all__ = ["router"]
