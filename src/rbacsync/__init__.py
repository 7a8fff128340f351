"""Public API surface for rbacsync."""

__version__ = "0.1.0"

from rbacsync.config import load_config, require_token, write_config_template
from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import RbacSyncConfig, RetryPolicy
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
from rbacsync.contracts.role import Invitation, Resources, Role, RoleUpdate, TeamMember
from rbacsync.engine import PlanExecutor, SyncProgress, compare_roles
from rbacsync.providers import RetryingRoleStore, RetryingTransport, RetryState, create_store
from rbacsync.roles import LoadResult, RoleLoader, SkippedFile
from rbacsync.sdk import PullResult, RbacSync, SyncPreview

__all__ = [
    "AuthenticationError",
    "CancelToken",
    "ChangePlan",
    "ConfigError",
    "DuplicateMemberError",
    "ExecutionResult",
    "Invitation",
    "LoadResult",
    "MemberDeletions",
    "MemberOperationFailure",
    "NetworkError",
    "NotFoundError",
    "OperationCancelledError",
    "PartialSyncError",
    "PlanExecutor",
    "ProviderError",
    "PullResult",
    "RbacSync",
    "RbacSyncConfig",
    "RbacSyncError",
    "RemoteAPIError",
    "Resources",
    "RetryExhaustedError",
    "RetryPolicy",
    "RetryState",
    "RetryingRoleStore",
    "RetryingTransport",
    "Role",
    "RoleLoadError",
    "RoleLoader",
    "RoleStore",
    "RoleUpdate",
    "RoleValidationError",
    "SkippedFile",
    "SyncError",
    "SyncPreview",
    "SyncProgress",
    "TeamMember",
    "__version__",
    "compare_roles",
    "create_store",
    "load_config",
    "require_token",
    "write_config_template",
]
