"""Vendor API payload models.

These models describe the wire format of the vendor policy API and are not
part of the store-agnostic contracts.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from rbacsync.contracts.exceptions import ProviderError
from rbacsync.contracts.role import Resources, Role


class PolicyResources(BaseModel):
    allowed: list[str] = Field(default_factory=list)
    denied: list[str] = Field(default_factory=list)


class PolicyDefinitionV1(BaseModel):
    name: str
    resources: PolicyResources = Field(default_factory=PolicyResources)


class PolicyDefinition(BaseModel):
    """The JSON document stored, serialized, in a policy's ``definition`` field."""

    v1: PolicyDefinitionV1

    @classmethod
    def from_role(cls, role: Role) -> PolicyDefinition:
        return cls(
            v1=PolicyDefinitionV1(
                name=role.name,
                resources=PolicyResources(allowed=list(role.allowed), denied=list(role.denied)),
            )
        )


class Policy(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    definition: str = ""

    def to_role(self, members: tuple[str, ...] = ()) -> Role:
        """Decode the embedded definition. A blank definition yields an empty role."""
        if not self.definition.strip():
            return Role(name=self.name, id=self.id or None, members=members)
        try:
            definition = PolicyDefinition.model_validate(json.loads(self.definition))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ProviderError(f"failed to decode definition of policy {self.name!r}: {exc}") from exc
        resources = definition.v1.resources
        return Role(
            name=self.name,
            id=self.id or None,
            resources=Resources(allowed=tuple(resources.allowed), denied=tuple(resources.denied)),
            members=members,
        )


class PolicyList(BaseModel):
    policies: list[Policy] = Field(default_factory=list)


def policy_payload(role: Role) -> dict[str, Any]:
    """Request body for creating or updating the policy backing *role*."""
    return {
        "name": role.name,
        "description": "",
        "definition": PolicyDefinition.from_role(role).model_dump_json(),
    }
