"""Permission gate backed by the permission codes of the user's role."""

from __future__ import annotations

from typing import Iterable

from stockdesk.application.ports import PermissionGate


class RolePermissionGate(PermissionGate):

    def __init__(self, codes: Iterable[str]) -> None:
        self._codes = frozenset(codes)

    def can_perform(self, action: str) -> bool:
        return action in self._codes
