"""Reconciliation engine: role comparison and plan execution."""

from rbacsync.engine.comparator import compare_roles, roles_equivalent, validate_local_roles
from rbacsync.engine.executor import PlanExecutor
from rbacsync.engine.progress import NullSyncProgress, SyncProgress

__all__ = [
    "NullSyncProgress",
    "PlanExecutor",
    "SyncProgress",
    "compare_roles",
    "roles_equivalent",
    "validate_local_roles",
]
