"""Role store implementations and factory."""

from rbacsync.providers._retrying_transport import RetryingTransport, RetryState, is_retryable
from rbacsync.providers.factory import create_store
from rbacsync.providers.replicated.store import HttpRoleStore
from rbacsync.providers.retrying import RetryingRoleStore

__all__ = [
    "HttpRoleStore",
    "RetryState",
    "RetryingRoleStore",
    "RetryingTransport",
    "create_store",
    "is_retryable",
]
