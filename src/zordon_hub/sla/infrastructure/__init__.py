"""
SLA Infrastructure Layer
=========================

YAML policy loading with watchdog hot reload.
"""

from zordon_hub.sla.infrastructure.external import SLAConfigManager

__all__ = ["SLAConfigManager"]
