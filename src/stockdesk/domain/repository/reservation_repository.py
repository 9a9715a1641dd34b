"""Abstract repository for server-side reservations.

The server owns reservation state.  Every method is a single request;
a failure raises ``RemoteError`` and leaves nothing half-applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from stockdesk.domain.model.reservation import Page, ReservationGroup, ReservationItem


class ReservationRepository(ABC):

    @abstractmethod
    async def create_group(self, payload: dict[str, Any]) -> ReservationGroup:
        """Atomically create one reservation per line of *payload*."""

    @abstractmethod
    async def update_item(
        self, reservation_id: str, payload: dict[str, Any]
    ) -> ReservationItem:
        """Apply a diff payload to one reservation."""

    @abstractmethod
    async def update_group(
        self, group_id: str, payload: dict[str, Any]
    ) -> ReservationGroup:
        """Apply a diff payload to a group and, optionally, its members."""

    @abstractmethod
    async def release(self, reservation_id: str, notes: str | None = None) -> ReservationItem:
        """Release one RESERVED reservation."""

    @abstractmethod
    async def list_groups(
        self, params: dict[str, str], mine_only: bool = False
    ) -> Page:
        """Return one page of grouped reservations matching *params*."""
