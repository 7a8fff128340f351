"""Local role file handling."""

from rbacsync.roles.loader import LoadResult, RoleLoader, SkippedFile
from rbacsync.roles.writer import render_role_yaml, role_file_name, write_role_file

__all__ = [
    "LoadResult",
    "RoleLoader",
    "SkippedFile",
    "render_role_yaml",
    "role_file_name",
    "write_role_file",
]
