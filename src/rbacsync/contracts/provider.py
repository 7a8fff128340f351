"""Remote role store contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.role import Invitation, Role, TeamMember


class RoleStore(ABC):
    """Capabilities the reconciliation engine needs from the remote authority."""

    async def __aenter__(self) -> RoleStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    @abstractmethod
    async def get_roles(self, *, cancel: CancelToken) -> list[Role]: ...

    @abstractmethod
    async def get_role(self, name: str, *, cancel: CancelToken) -> Role: ...

    @abstractmethod
    async def create_role(self, role: Role, *, cancel: CancelToken) -> None: ...

    @abstractmethod
    async def update_role(self, role: Role, *, cancel: CancelToken) -> None: ...

    @abstractmethod
    async def delete_role(self, name: str, *, cancel: CancelToken) -> None: ...

    @abstractmethod
    async def get_members(self, *, cancel: CancelToken) -> list[TeamMember]: ...

    @abstractmethod
    async def invite_member(self, identity: str, role_id: str, *, cancel: CancelToken) -> Invitation: ...

    @abstractmethod
    async def assign_member_role(self, identity: str, role_id: str, *, cancel: CancelToken) -> None: ...

    @abstractmethod
    async def delete_invite(self, identity: str, *, cancel: CancelToken) -> None: ...

    @abstractmethod
    async def remove_member(self, identity: str, *, cancel: CancelToken) -> None: ...
