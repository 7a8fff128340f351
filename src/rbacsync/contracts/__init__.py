"""Public contracts for rbacsync."""

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import DEFAULT_API_ENDPOINT, RbacSyncConfig, RetryPolicy
from rbacsync.contracts.exceptions import (
    AuthenticationError,
    ConfigError,
    DuplicateMemberError,
    NetworkError,
    NotFoundError,
    OperationCancelledError,
    PartialSyncError,
    ProviderError,
    RbacSyncError,
    RemoteAPIError,
    RetryExhaustedError,
    RoleLoadError,
    RoleValidationError,
    SyncError,
)
from rbacsync.contracts.plan import ChangePlan, ExecutionResult, MemberDeletions, MemberOperationFailure
from rbacsync.contracts.provider import RoleStore
from rbacsync.contracts.role import Invitation, Resources, Role, RoleUpdate, TeamMember, multiset_equal

__all__ = [
    "DEFAULT_API_ENDPOINT",
    "AuthenticationError",
    "CancelToken",
    "ChangePlan",
    "ConfigError",
    "DuplicateMemberError",
    "ExecutionResult",
    "Invitation",
    "MemberDeletions",
    "MemberOperationFailure",
    "NetworkError",
    "NotFoundError",
    "OperationCancelledError",
    "PartialSyncError",
    "ProviderError",
    "RbacSyncConfig",
    "RbacSyncError",
    "RemoteAPIError",
    "Resources",
    "RetryExhaustedError",
    "RetryPolicy",
    "Role",
    "RoleLoadError",
    "RoleStore",
    "RoleUpdate",
    "RoleValidationError",
    "SyncError",
    "TeamMember",
    "multiset_equal",
]
