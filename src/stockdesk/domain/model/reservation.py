"""Reservation items and groups as returned by the server.

A group is the set of items created together from one cart submission.
Items carry their own status; the only transition the client may request
is RESERVED -> RELEASED.  Everything else (fulfilment, administrative
cancellation, group status) is decided server-side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from stockdesk.domain.exceptions import ValidationError
from stockdesk.domain.model.value_objects import EntityRef


class ReservationStatus(Enum):
    RESERVED = "RESERVED"
    FULFILLED = "FULFILLED"
    RELEASED = "RELEASED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self is not ReservationStatus.RESERVED

    @staticmethod
    def parse(raw: str | None) -> ReservationStatus | None:
        """Accept a status code in any case; ``None``/``"all"`` mean no status."""
        if raw is None or raw.strip().lower() in ("", "all"):
            return None
        try:
            return ReservationStatus(raw.strip().upper())
        except ValueError as exc:
            raise ValidationError(f"Unknown reservation status: {raw!r}") from exc


_STATUS_LABELS = {
    ReservationStatus.RESERVED: "Réservé",
    ReservationStatus.FULFILLED: "Rempli",
    ReservationStatus.RELEASED: "Libéré",
    ReservationStatus.CANCELLED: "Annulé",
}


@dataclass(frozen=True)
class UserRef:
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email or self.id


@dataclass(frozen=True)
class ReservationItem:
    """One reserved product line with a server-assigned id.

    ``warehouse`` is optional: items created before per-warehouse tracking
    have none.
    """

    id: str
    product: EntityRef
    quantity: int
    status: ReservationStatus
    created_at: datetime | None = None
    warehouse: EntityRef | None = None
    product_sku: str | None = None
    expires_at: datetime | None = None
    project: EntityRef | None = None
    notes: str | None = None
    user_id: str | None = None
    group_id: str | None = None

    @property
    def project_id(self) -> str | None:
        return self.project.id if self.project else None

    @property
    def is_reserved(self) -> bool:
        return self.status is ReservationStatus.RESERVED

    def ensure_releasable(self) -> None:
        if not self.is_reserved:
            raise ValidationError(
                f"Reservation {self.id} is {self.status.value} "
                f"and can no longer be released"
            )


@dataclass(frozen=True)
class ReservationGroup:
    """Items sharing one ``group_id`` and the same project/expiry/notes."""

    group_id: str
    items: tuple[ReservationItem, ...] = ()
    status: ReservationStatus | None = None
    project: EntityRef | None = None
    expires_at: datetime | None = None
    notes: str | None = None
    total_items: int | None = None
    user: UserRef | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.total_items is None:
            object.__setattr__(self, "total_items", len(self.items))

    @property
    def project_id(self) -> str | None:
        return self.project.id if self.project else None

    @property
    def is_active(self) -> bool:
        """A group stays active while any member is still RESERVED."""
        return any(item.is_reserved for item in self.items)

    @property
    def can_release_all(self) -> bool:
        """Whole-group release is only offered when every member is RESERVED."""
        return bool(self.items) and all(item.is_reserved for item in self.items)

    @property
    def has_multiple_items(self) -> bool:
        return len(self.items) > 1

    @property
    def effective_status(self) -> ReservationStatus | None:
        if self.status is not None:
            return self.status
        if not self.items:
            return None
        if self.is_active:
            return ReservationStatus.RESERVED
        return self.items[0].status

    def item(self, item_id: str) -> ReservationItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass(frozen=True)
class Page:
    """One page of results with the server's pagination meta."""

    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0
    total_pages: int = 1
    has_next: bool = False
    has_prev: bool = False
