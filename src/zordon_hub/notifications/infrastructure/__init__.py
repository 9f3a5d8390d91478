"""
Notifications Infrastructure Layer
==================================

HTTP mail relay client.
"""

from zordon_hub.notifications.infrastructure.external import CircuitBreaker, HTTPMailClient

__all__ = ["CircuitBreaker", "HTTPMailClient"]
