"""Factory for creating role store instances.

Keeps the SDK and CLI decoupled from the concrete HTTP store and from how
retries are layered on top of it.
"""

from __future__ import annotations

import httpx

from rbacsync.contracts.config import RbacSyncConfig
from rbacsync.contracts.provider import RoleStore
from rbacsync.providers._retrying_transport import RetryingTransport
from rbacsync.providers.replicated.store import HttpRoleStore
from rbacsync.providers.retrying import RetryingRoleStore


def create_store(
    config: RbacSyncConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RoleStore:
    """Create the role store described by *config*.

    The returned store is an async context manager whose every call goes
    through a :class:`RetryingTransport` built from ``config.retry``:

        async with create_store(config) as store:
            roles = await store.get_roles(cancel=token)

    Args:
        config: Resolved configuration carrying the endpoint, token and retry policy.
        transport: Optional httpx transport override, used by tests.
    """
    inner = HttpRoleStore(token=config.api_token, endpoint=config.api_endpoint, transport=transport)
    return RetryingRoleStore(inner, RetryingTransport(config.retry))
