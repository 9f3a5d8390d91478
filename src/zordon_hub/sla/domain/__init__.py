"""
SLA Domain Layer
================

Value objects and pure calculations for resolution deadlines.

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from zordon_hub.sla.domain.value_objects import (
    DEFAULT_POLICY,
    SLACalculator,
    SLAPolicy,
)

__all__ = [
    "DEFAULT_POLICY",
    "SLACalculator",
    "SLAPolicy",
]
