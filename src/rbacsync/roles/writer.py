"""Role rendering to YAML files for ``pull``."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from rbacsync.contracts.exceptions import RoleLoadError
from rbacsync.contracts.role import Role

_UNSAFE_FILENAME = re.compile(r"[\\/:\0]")


def role_file_name(role: Role) -> str:
    return _UNSAFE_FILENAME.sub("_", role.name) + ".yaml"


def render_role_yaml(role: Role) -> str:
    """Render *role* in the on-disk record format; ``members`` only when non-empty."""
    data: dict[str, Any] = {
        "name": role.name,
        "resources": {
            "allowed": list(role.allowed),
            "denied": list(role.denied),
        },
    }
    if role.members:
        data["members"] = list(role.members)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def write_role_file(role: Role, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_role_yaml(role), encoding="utf-8")
    except OSError as exc:
        raise RoleLoadError(f"failed writing role file: {path}") from exc
