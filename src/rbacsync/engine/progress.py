"""Progress reporting protocol for plan execution.

This is engine-level instrumentation, not a role store contract.
The executor emits phase lifecycle events; consumers (e.g. the CLI's Rich
progress bar) implement ``SyncProgress`` to render feedback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class SyncProgress(ABC):
    """Observer interface for execution progress events."""

    @abstractmethod
    def phase_start(self, phase: str, total: int | None = None) -> None:
        """A phase is starting. *total* is ``None`` for indeterminate phases."""
        ...  # pragma: no cover

    @abstractmethod
    def item_done(self, phase: str) -> None:
        """One operation within *phase* has completed."""
        ...  # pragma: no cover

    @abstractmethod
    def phase_done(self, phase: str) -> None:
        """The *phase* has finished successfully."""
        ...  # pragma: no cover

    @abstractmethod
    def phase_error(self, phase: str, error: BaseException) -> None:
        """The *phase* was interrupted by *error*."""
        ...  # pragma: no cover


class NullSyncProgress(SyncProgress):
    """No-op implementation used when no progress display is requested."""

    def phase_start(self, phase: str, total: int | None = None) -> None:
        pass

    def item_done(self, phase: str) -> None:
        pass

    def phase_done(self, phase: str) -> None:
        pass

    def phase_error(self, phase: str, error: BaseException) -> None:
        pass
