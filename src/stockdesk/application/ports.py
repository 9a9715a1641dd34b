"""Collaborators the application layer consults but does not implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

# Permission codes checked before an operation is attempted.
CREATE_RESERVATIONS = "reservations.create"
CANCEL_RESERVATIONS = "reservations.cancel"
MANAGE_RESERVATIONS = "reservations.manage"


class PermissionGate(ABC):

    @abstractmethod
    def can_perform(self, action: str) -> bool:
        """Return True if the current user may perform *action*."""


class Notifier(ABC):
    """User-facing notices (toasts in a UI, echoed lines in the CLI)."""

    @abstractmethod
    def success(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str) -> None: ...

    @abstractmethod
    def info(self, message: str) -> None: ...
