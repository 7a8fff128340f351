"""Exception hierarchy for rbacsync.

All rbacsync exceptions inherit from :class:`RbacSyncError`, making it easy
to catch any library error with a single ``except`` clause while still allowing
callers to handle specific failure modes.
"""

from __future__ import annotations

from collections.abc import Sequence


class RbacSyncError(Exception):
    """Base exception for all rbacsync errors."""


class ConfigError(RbacSyncError):
    """Configuration loading or validation failure."""

    def __init__(self, message: str, *, guidance: str | None = None) -> None:
        super().__init__(message)
        self.guidance = guidance


class RoleLoadError(RbacSyncError):
    """Role files cannot be discovered or read."""


class RoleValidationError(RbacSyncError):
    """Local role definitions are inconsistent and cannot be planned."""


class DuplicateMemberError(RoleValidationError):
    """A member identity is declared by more than one local role."""

    def __init__(self, member: str, role_names: Sequence[str]) -> None:
        self.member = member
        self.role_names = tuple(role_names)
        joined = " and ".join(self.role_names)
        super().__init__(f"member {member} appears in multiple roles: {joined}")


class ProviderError(RbacSyncError):
    """Base remote-store operation failure."""


class NetworkError(ProviderError):
    """Connection-level failure (refused, reset, timeout, DNS)."""


class RemoteAPIError(ProviderError):
    """The remote store answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"API request failed with status {status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def retryable(self) -> bool:
        return 500 <= self.status_code < 600


class AuthenticationError(RemoteAPIError):
    """The API token was rejected (401/403)."""


class NotFoundError(RemoteAPIError):
    """The requested role, member, or invite does not exist."""


class RetryExhaustedError(ProviderError):
    """Every allowed attempt of an operation failed with a retryable error."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelledError(RbacSyncError):
    """The cancellation token fired before the operation could finish."""


class SyncError(RbacSyncError):
    """Plan execution stopped before every operation was applied."""


class PartialSyncError(SyncError):
    """Plan execution failed after some operations had already been applied.

    Attributes:
        created: Roles created before the failure.
        updated: Roles updated before the failure.
        deleted: Roles deleted before the failure.
        invited: Members invited before the failure.
        cause: The error that stopped the run.
    """

    def __init__(
        self,
        message: str,
        *,
        created: int = 0,
        updated: int = 0,
        deleted: int = 0,
        invited: int = 0,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.created = created
        self.updated = updated
        self.deleted = deleted
        self.invited = invited
        self.cause = cause

    @property
    def completed(self) -> int:
        return self.created + self.updated + self.deleted
