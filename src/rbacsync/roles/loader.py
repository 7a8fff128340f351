"""Role loading from YAML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from rbacsync.contracts.exceptions import RoleLoadError
from rbacsync.contracts.role import Role

_LOG = logging.getLogger(__name__)

ROLE_FILE_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class SkippedFile:
    path: Path
    reason: str


@dataclass(frozen=True)
class LoadResult:
    roles: tuple[Role, ...] = ()
    skipped: tuple[SkippedFile, ...] = field(default_factory=tuple)


class _SkipFile(Exception):
    """Internal signal: the file is not a usable role record."""


class RoleLoader:
    """Load role records from a directory tree of YAML files.

    Unusable files (empty, unparsable, missing a name) are skipped and
    reported rather than aborting the whole load.
    """

    def load_directory(self, root: Path) -> LoadResult:
        if not root.exists():
            raise RoleLoadError(f"directory does not exist: {root}")
        if not root.is_dir():
            raise RoleLoadError(f"not a directory: {root}")

        roles: list[Role] = []
        skipped: list[SkippedFile] = []
        for path in self.find_role_files(root):
            try:
                roles.append(self.load_file(path))
            except _SkipFile as exc:
                relative = path.relative_to(root)
                _LOG.info("skipping %s: %s", relative, exc)
                skipped.append(SkippedFile(path=relative, reason=str(exc)))

        _LOG.debug("loaded %d role(s) from %s, skipped %d file(s)", len(roles), root, len(skipped))
        return LoadResult(roles=tuple(roles), skipped=tuple(skipped))

    @staticmethod
    def find_role_files(root: Path) -> list[Path]:
        try:
            return sorted(
                path for path in root.rglob("*") if path.is_file() and path.suffix.lower() in ROLE_FILE_SUFFIXES
            )
        except OSError as exc:
            raise RoleLoadError(f"failed to walk directory {root}: {exc}") from exc

    def load_file(self, path: Path) -> Role:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RoleLoadError(f"failed reading role file: {path}") from exc
        except UnicodeDecodeError as exc:
            raise _SkipFile("file is not valid UTF-8") from exc

        if not text.strip():
            raise _SkipFile("file is empty")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise _SkipFile("failed to parse YAML") from exc

        return self._to_role(data)

    @staticmethod
    def _to_role(data: Any) -> Role:
        if not isinstance(data, dict):
            raise _SkipFile("role file must contain a mapping")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise _SkipFile("role name is required")
        try:
            return Role.model_validate(
                {
                    "name": name,
                    "resources": data.get("resources"),
                    "members": data.get("members"),
                }
            )
        except ValidationError as exc:
            raise _SkipFile(f"invalid role definition: {exc.errors()[0]['msg']}") from exc
