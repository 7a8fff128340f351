"""Role contracts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def multiset_equal(left: Iterable[str] | None, right: Iterable[str] | None) -> bool:
    """Compare two string collections ignoring order, treating ``None`` as empty."""
    return Counter(left or ()) == Counter(right or ())


class Resources(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: tuple[str, ...] = ()
    denied: tuple[str, ...] = ()

    @field_validator("allowed", "denied", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class Role(BaseModel):
    """A named bundle of allow/deny resource patterns plus member identities.

    ``id`` is assigned by the remote store and is carried along as metadata;
    it never takes part in equivalence.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    resources: Resources = Field(default_factory=Resources)
    members: tuple[str, ...] = ()
    id: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("role name is required")
        return stripped

    @field_validator("resources", mode="before")
    @classmethod
    def _default_resources(cls, value: Any) -> Any:
        return Resources() if value is None else value

    @field_validator("members", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def allowed(self) -> tuple[str, ...]:
        return self.resources.allowed

    @property
    def denied(self) -> tuple[str, ...]:
        return self.resources.denied

    def equivalent(self, other: Role) -> bool:
        return (
            self.name == other.name
            and multiset_equal(self.allowed, other.allowed)
            and multiset_equal(self.denied, other.denied)
            and multiset_equal(self.members, other.members)
        )

    def with_id(self, role_id: str | None) -> Role:
        return self.model_copy(update={"id": role_id})


class RoleUpdate(BaseModel):
    """Desired (local) and current (remote) state of a role that needs changing."""

    model_config = ConfigDict(frozen=True)

    name: str
    local: Role
    remote: Role

    @model_validator(mode="after")
    def _names_match(self) -> RoleUpdate:
        if self.local.name != self.name or self.remote.name != self.name:
            raise ValueError(f"role update names disagree: {self.name!r}, {self.local.name!r}, {self.remote.name!r}")
        return self


class TeamMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    email: str
    name: str = ""
    username: str = ""
    policy_id: str = ""
    is_pending_invite: bool = False

    @field_validator("id", "name", "username", "policy_id", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class Invitation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    email: str = ""
    policy_id: str = ""
    status: str = ""
