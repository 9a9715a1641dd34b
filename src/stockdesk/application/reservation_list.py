"""Application service: reservation list (query side).

Turns a page of grouped reservations into display rows.  Filters and
paging are forwarded to the server; they are applied once more locally so
rows never show a group that a stale page still carried.  Expand/collapse
state is purely presentational and keyed by ``group_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import AbstractSet, Iterable

import structlog

from stockdesk.application.ports import CANCEL_RESERVATIONS, Notifier, PermissionGate
from stockdesk.domain.exceptions import RemoteError, ValidationError
from stockdesk.domain.model.reservation import (
    Page,
    ReservationGroup,
    ReservationItem,
    ReservationStatus,
)
from stockdesk.domain.repository.reservation_repository import ReservationRepository

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class ReservationFilters:
    status: ReservationStatus | None = None
    project_id: str | None = None
    product_id: str | None = None
    user_id: str | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    mine_only: bool = False

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if self.limit < 1:
            raise ValidationError("Page size must be 1 or greater")

    def to_params(self) -> dict[str, str]:
        params = {
            "grouped": "true",
            "page": str(self.page),
            "limit": str(self.limit),
        }
        if self.status is not None:
            params["status"] = self.status.value
        if self.project_id:
            params["projectId"] = self.project_id
        if self.product_id:
            params["productId"] = self.product_id
        if self.user_id:
            params["userId"] = self.user_id
        return params

    def matches(self, group: ReservationGroup) -> bool:
        if self.status is not None and not any(
            item.status is self.status for item in group.items
        ):
            return False
        if self.project_id and self.project_id not in _project_ids(group):
            return False
        if self.product_id and not any(
            item.product.id == self.product_id for item in group.items
        ):
            return False
        if self.user_id and self.user_id not in _user_ids(group):
            return False
        return True


@dataclass(frozen=True)
class ItemRow:
    item_id: str
    product: str
    warehouse: str
    quantity: int
    status: ReservationStatus
    status_label: str
    expires_at: datetime | None
    project: str | None
    notes: str | None
    can_release: bool


@dataclass(frozen=True)
class GroupRow:
    group_id: str
    status: ReservationStatus | None
    status_label: str
    project: str | None
    expires_at: datetime | None
    notes: str | None
    total_items: int
    owner: str | None
    created_at: datetime | None
    has_multiple_items: bool
    is_expanded: bool
    can_release_all: bool
    items: tuple[ItemRow, ...]


def project_rows(
    groups: Iterable[ReservationGroup],
    filters: ReservationFilters | None = None,
    expanded: AbstractSet[str] = frozenset(),
    can_release: bool = True,
) -> list[GroupRow]:
    """Build display rows for *groups*.

    Items are listed when the group is expanded or holds a single item.
    Release flags require *can_release* and a RESERVED status; the group
    flag additionally requires every member to be RESERVED.
    """
    filters = filters or ReservationFilters()
    rows: list[GroupRow] = []
    for group in groups:
        if not filters.matches(group):
            continue
        is_expanded = group.group_id in expanded
        show_items = is_expanded or not group.has_multiple_items
        status = group.effective_status
        rows.append(
            GroupRow(
                group_id=group.group_id,
                status=status,
                status_label=status.label if status else "",
                project=group.project.name if group.project else None,
                expires_at=group.expires_at,
                notes=group.notes,
                total_items=group.total_items or 0,
                owner=group.user.full_name if group.user else None,
                created_at=group.created_at,
                has_multiple_items=group.has_multiple_items,
                is_expanded=is_expanded,
                can_release_all=can_release and group.can_release_all,
                items=tuple(_item_row(i, can_release) for i in group.items)
                if show_items
                else (),
            )
        )
    return rows


def _item_row(item: ReservationItem, can_release: bool) -> ItemRow:
    product = item.product.name or item.product.id
    if item.product_sku:
        product = f"{product} ({item.product_sku})"
    return ItemRow(
        item_id=item.id,
        product=product,
        warehouse=str(item.warehouse) if item.warehouse else "—",
        quantity=item.quantity,
        status=item.status,
        status_label=item.status.label,
        expires_at=item.expires_at,
        project=str(item.project) if item.project else None,
        notes=item.notes,
        can_release=can_release and item.is_reserved,
    )


def _project_ids(group: ReservationGroup) -> set[str]:
    ids = {item.project_id for item in group.items if item.project_id}
    if group.project_id:
        ids.add(group.project_id)
    return ids


def _user_ids(group: ReservationGroup) -> set[str]:
    ids = {item.user_id for item in group.items if item.user_id}
    if group.user:
        ids.add(group.user.id)
    return ids


class ReservationList:
    """The reservations view: current filters, last page and expand state."""

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        permissions: PermissionGate,
        notifier: Notifier,
        filters: ReservationFilters | None = None,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._permissions = permissions
        self._notifier = notifier
        self._filters = filters or ReservationFilters()
        self._page = Page(limit=self._filters.limit)
        self._expanded: set[str] = set()

    @property
    def filters(self) -> ReservationFilters:
        return self._filters

    @property
    def page(self) -> Page:
        return self._page

    @property
    def groups(self) -> list[ReservationGroup]:
        return list(self._page.items)

    @property
    def rows(self) -> list[GroupRow]:
        return project_rows(
            self._page.items,
            self._filters,
            self._expanded,
            can_release=self._permissions.can_perform(CANCEL_RESERVATIONS),
        )

    async def refresh(self) -> Page:
        """Re-fetch the current page; the result replaces any local view."""
        try:
            page = await self._reservation_repo.list_groups(
                self._filters.to_params(), mine_only=self._filters.mine_only
            )
        except RemoteError as exc:
            logger.warning("reservation_list_failed", error=exc.message, status=exc.status_code)
            self._notifier.error(
                exc.message_or("Erreur lors du chargement des réservations")
            )
            raise
        self._page = page
        return page

    def set_filters(self, **changes) -> ReservationFilters:
        """Change filters; any change other than the page resets to page 1."""
        if "page" not in changes:
            changes["page"] = 1
        self._filters = replace(self._filters, **changes)
        return self._filters

    def go_to_page(self, page: int) -> ReservationFilters:
        return self.set_filters(page=page)

    def toggle(self, group_id: str) -> bool:
        """Flip the expand state of *group_id*; returns the new state."""
        if group_id in self._expanded:
            self._expanded.discard(group_id)
            return False
        self._expanded.add(group_id)
        return True

    def is_expanded(self, group_id: str) -> bool:
        return group_id in self._expanded

    def find_group(self, group_id: str) -> ReservationGroup | None:
        for group in self._page.items:
            if group.group_id == group_id:
                return group
        return None

    def find_item(self, item_id: str) -> ReservationItem | None:
        for group in self._page.items:
            item = group.item(item_id)
            if item is not None:
                return item
        return None
