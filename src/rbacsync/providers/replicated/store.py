"""HTTP role store backed by the vendor policy and team API."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import DEFAULT_API_ENDPOINT
from rbacsync.contracts.exceptions import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    ProviderError,
    RemoteAPIError,
)
from rbacsync.contracts.provider import RoleStore
from rbacsync.contracts.role import Invitation, Role, TeamMember
from rbacsync.providers._retrying_transport import is_retryable
from rbacsync.providers.replicated.models import Policy, PolicyList, policy_payload

_LOG = logging.getLogger(__name__)

_POLICIES_PATH = "/vendor/v3/policies"
_POLICY_PATH = "/vendor/v3/policy"
_MEMBERS_PATH = "/v1/team/members"
_TEAM_PATH = "/vendor/v3/team"


class HttpRoleStore(RoleStore):
    """Role store speaking to the vendor API over ``httpx``.

    Must be entered with ``async with`` before use. Transport failures surface
    as :class:`NetworkError`; non-2xx answers as :class:`RemoteAPIError` and
    its subclasses. Retries are layered on by :class:`RetryingRoleStore`.
    """

    def __init__(
        self,
        *,
        token: str,
        endpoint: str = DEFAULT_API_ENDPOINT,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HttpRoleStore:
        self._client = httpx.AsyncClient(
            base_url=self._endpoint,
            headers={"Authorization": self._token, "Accept": "application/json"},
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )
        _LOG.debug("opened API client for endpoint %s", self._endpoint)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_roles(self, *, cancel: CancelToken) -> list[Role]:
        policies = await self._get_policies(cancel=cancel)

        members_by_policy: dict[str, list[str]] = {}
        try:
            members = await self.get_members(cancel=cancel)
        except ProviderError as exc:
            # Transient failures propagate so the retry layer refetches the whole role list.
            if is_retryable(exc):
                raise
            _LOG.warning("failed to fetch team members (roles will not include member data): %s", exc)
        else:
            for member in members:
                if member.policy_id:
                    members_by_policy.setdefault(member.policy_id, []).append(member.email)

        roles = [policy.to_role(tuple(members_by_policy.get(policy.id, ()))) for policy in policies]
        _LOG.debug("retrieved %d roles", len(roles))
        return roles

    async def get_role(self, name: str, *, cancel: CancelToken) -> Role:
        return (await self._find_policy(name, cancel=cancel)).to_role()

    async def create_role(self, role: Role, *, cancel: CancelToken) -> None:
        await self._request("POST", _POLICY_PATH, cancel=cancel, json=policy_payload(role))

    async def update_role(self, role: Role, *, cancel: CancelToken) -> None:
        if not role.id:
            raise ProviderError(f"role ID is required to update role {role.name!r}")
        await self._request("PUT", f"{_POLICY_PATH}/{quote(role.id, safe='')}", cancel=cancel, json=policy_payload(role))

    async def delete_role(self, name: str, *, cancel: CancelToken) -> None:
        policy = await self._find_policy(name, cancel=cancel)
        if not policy.id:
            raise ProviderError(f"role {name!r} has no identifier")
        await self._request("DELETE", f"{_POLICY_PATH}/{quote(policy.id, safe='')}", cancel=cancel)

    async def get_members(self, *, cancel: CancelToken) -> list[TeamMember]:
        payload = await self._request("GET", _MEMBERS_PATH, cancel=cancel)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ProviderError("unexpected team members response: expected a JSON array")
        try:
            return [TeamMember.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise ProviderError(f"failed to parse team members response: {exc}") from exc

    async def invite_member(self, identity: str, role_id: str, *, cancel: CancelToken) -> Invitation:
        _require("member email", identity)
        _require("role ID", role_id)
        payload = await self._request(
            "POST",
            f"{_TEAM_PATH}/invite",
            cancel=cancel,
            json={"email": identity, "policy_id": role_id},
        )
        data = {"email": identity, "policy_id": role_id}
        if isinstance(payload, dict):
            data.update({key: value for key, value in payload.items() if value is not None})
        try:
            return Invitation.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"failed to parse invite response: {exc}") from exc

    async def assign_member_role(self, identity: str, role_id: str, *, cancel: CancelToken) -> None:
        _require("member email", identity)
        _require("role ID", role_id)
        await self._request(
            "PUT",
            f"{_TEAM_PATH}/member/{quote(identity, safe='@')}/role/{quote(role_id, safe='')}",
            cancel=cancel,
        )

    async def delete_invite(self, identity: str, *, cancel: CancelToken) -> None:
        _require("member email", identity)
        await self._request("DELETE", f"{_TEAM_PATH}/invite/{quote(identity, safe='@')}", cancel=cancel)

    async def remove_member(self, identity: str, *, cancel: CancelToken) -> None:
        _require("member email", identity)
        members = await self.get_members(cancel=cancel)
        member = next((m for m in members if m.email == identity and not m.is_pending_invite), None)
        if member is None or not member.id:
            raise NotFoundError(404, f"team member not found: {identity}")
        await self._request("DELETE", f"{_TEAM_PATH}/member/{quote(member.id, safe='')}", cancel=cancel)

    async def _get_policies(self, *, cancel: CancelToken) -> list[Policy]:
        payload = await self._request("GET", _POLICIES_PATH, cancel=cancel)
        try:
            return PolicyList.model_validate(payload or {}).policies
        except ValidationError as exc:
            raise ProviderError(f"failed to parse policies response: {exc}") from exc

    async def _find_policy(self, name: str, *, cancel: CancelToken) -> Policy:
        for policy in await self._get_policies(cancel=cancel):
            if policy.name == name:
                return policy
        raise NotFoundError(404, f"role not found: {name}")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        cancel: CancelToken,
        json: dict[str, Any] | None = None,
    ) -> Any:
        if self._client is None:
            raise ProviderError("Role store is not initialized. Use 'async with'.")
        cancel.raise_if_cancelled()

        _LOG.debug("%s %s", method, path)
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        _LOG.debug("%s %s -> %d", method, path, response.status_code)
        _raise_for_status(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned invalid JSON: {exc}") from exc


def _require(label: str, value: str) -> None:
    if not value.strip():
        raise ProviderError(f"{label} is required")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or "unknown error"
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return "unknown error"


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    message = _error_message(response)
    if status in (401, 403):
        raise AuthenticationError(status, message)
    if status == 404:
        raise NotFoundError(status, message)
    raise RemoteAPIError(status, message)
