"""Vendor API role store."""

from rbacsync.providers.replicated.store import HttpRoleStore

__all__ = ["HttpRoleStore"]
