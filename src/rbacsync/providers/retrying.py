"""Role store decorator that routes every capability through a retrying transport."""

from __future__ import annotations

from types import TracebackType

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.provider import RoleStore
from rbacsync.contracts.role import Invitation, Role, TeamMember
from rbacsync.providers._retrying_transport import RetryingTransport


class RetryingRoleStore(RoleStore):
    def __init__(self, inner: RoleStore, transport: RetryingTransport | None = None) -> None:
        self._inner = inner
        self._transport = transport or RetryingTransport()

    @property
    def inner(self) -> RoleStore:
        return self._inner

    async def __aenter__(self) -> RetryingRoleStore:
        await self._inner.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._inner.__aexit__(exc_type, exc_val, exc_tb)

    async def get_roles(self, *, cancel: CancelToken) -> list[Role]:
        return await self._transport.call(
            lambda: self._inner.get_roles(cancel=cancel), cancel=cancel, operation="get roles"
        )

    async def get_role(self, name: str, *, cancel: CancelToken) -> Role:
        return await self._transport.call(
            lambda: self._inner.get_role(name, cancel=cancel), cancel=cancel, operation=f"get role {name}"
        )

    async def create_role(self, role: Role, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.create_role(role, cancel=cancel), cancel=cancel, operation=f"create role {role.name}"
        )

    async def update_role(self, role: Role, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.update_role(role, cancel=cancel), cancel=cancel, operation=f"update role {role.name}"
        )

    async def delete_role(self, name: str, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.delete_role(name, cancel=cancel), cancel=cancel, operation=f"delete role {name}"
        )

    async def get_members(self, *, cancel: CancelToken) -> list[TeamMember]:
        return await self._transport.call(
            lambda: self._inner.get_members(cancel=cancel), cancel=cancel, operation="get team members"
        )

    async def invite_member(self, identity: str, role_id: str, *, cancel: CancelToken) -> Invitation:
        return await self._transport.call(
            lambda: self._inner.invite_member(identity, role_id, cancel=cancel),
            cancel=cancel,
            operation=f"invite {identity}",
        )

    async def assign_member_role(self, identity: str, role_id: str, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.assign_member_role(identity, role_id, cancel=cancel),
            cancel=cancel,
            operation=f"assign {identity}",
        )

    async def delete_invite(self, identity: str, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.delete_invite(identity, cancel=cancel),
            cancel=cancel,
            operation=f"delete invite {identity}",
        )

    async def remove_member(self, identity: str, *, cancel: CancelToken) -> None:
        await self._transport.call(
            lambda: self._inner.remove_member(identity, cancel=cancel),
            cancel=cancel,
            operation=f"remove member {identity}",
        )
