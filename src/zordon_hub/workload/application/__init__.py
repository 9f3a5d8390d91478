"""
Workload Application Layer
==========================

Incremental adjustments, authoritative recompute and admin overrides.
"""

from zordon_hub.workload.application.services import (
    WorkloadCorrection,
    WorkloadLedger,
    WorkloadSyncReport,
)

__all__ = ["WorkloadCorrection", "WorkloadLedger", "WorkloadSyncReport"]
