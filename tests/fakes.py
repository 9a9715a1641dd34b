"""In-memory fakes for testing.

These implement the same abstract interfaces as the HTTP and JSON
implementations but keep everything in memory. No network, no file I/O.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from stockdesk.application.ports import Notifier, PermissionGate
from stockdesk.domain.exceptions import RemoteError
from stockdesk.domain.model.cart import EMPTY_CART, Cart
from stockdesk.domain.model.reference import Product, Project, Warehouse
from stockdesk.domain.model.reservation import (
    Page,
    ReservationGroup,
    ReservationItem,
    ReservationStatus,
)
from stockdesk.domain.model.value_objects import EntityRef
from stockdesk.domain.repository.cart_repository import CartRepository
from stockdesk.domain.repository.reference_repository import ReferenceRepository
from stockdesk.domain.repository.reservation_repository import ReservationRepository


class InMemoryCartRepository(CartRepository):

    def __init__(self, cart: Cart = EMPTY_CART) -> None:
        self.stored: Cart | None = cart if not cart.is_empty else None
        self.saves = 0

    def load(self) -> Cart:
        return self.stored or EMPTY_CART

    def save(self, cart: Cart) -> None:
        self.saves += 1
        self.stored = None if cart.is_empty else cart

    def clear(self) -> None:
        self.stored = None


class FakeReferenceRepository(ReferenceRepository):

    def __init__(
        self,
        products: list[Product] | None = None,
        warehouses: list[Warehouse] | None = None,
        projects: list[Project] | None = None,
        extra_projects: list[Project] | None = None,
        fail: bool = False,
    ) -> None:
        self.products = products or []
        self.warehouses = warehouses or []
        self.projects = projects or []
        self.extra_projects = {p.id: p for p in extra_projects or []}
        self.fail = fail
        self.project_lookups: list[str] = []

    async def list_products(self) -> list[Product]:
        if self.fail:
            raise RemoteError("Service unavailable", 503)
        return list(self.products)

    async def list_warehouses(self) -> list[Warehouse]:
        return list(self.warehouses)

    async def list_active_projects(self) -> list[Project]:
        return list(self.projects)

    async def get_project(self, project_id: str) -> Project | None:
        self.project_lookups.append(project_id)
        return self.extra_projects.get(project_id)


class FakeReservationRepository(ReservationRepository):
    """Records every call; ``fail_with`` makes the next calls raise."""

    def __init__(self, groups: list[ReservationGroup] | None = None) -> None:
        self.groups = list(groups or [])
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: RemoteError | None = None
        self.fail_release_ids: set[str] = set()
        self._next_group = 1

    async def create_group(self, payload: dict[str, Any]) -> ReservationGroup:
        self.calls.append(("create_group", payload))
        self._maybe_fail()
        group_id = f"g{self._next_group}"
        self._next_group += 1
        items = tuple(
            ReservationItem(
                id=f"{group_id}-r{i}",
                product=EntityRef(line["productId"]),
                warehouse=EntityRef(line["warehouseId"]),
                quantity=line["quantity"],
                status=ReservationStatus.RESERVED,
                group_id=group_id,
            )
            for i, line in enumerate(payload["items"], start=1)
        )
        group = ReservationGroup(group_id=group_id, items=items, total_items=len(items))
        self.groups.append(group)
        return group

    async def update_item(self, reservation_id: str, payload: dict[str, Any]) -> ReservationItem:
        self.calls.append(("update_item", (reservation_id, payload)))
        self._maybe_fail()
        item = self._find_item(reservation_id)
        if "quantity" in payload:
            item = replace(item, quantity=payload["quantity"])
        return item

    async def update_group(self, group_id: str, payload: dict[str, Any]) -> ReservationGroup:
        self.calls.append(("update_group", (group_id, payload)))
        self._maybe_fail()
        for group in self.groups:
            if group.group_id == group_id:
                return group
        raise RemoteError("Group not found", 404)

    async def release(self, reservation_id: str, notes: str | None = None) -> ReservationItem:
        self.calls.append(("release", (reservation_id, notes)))
        self._maybe_fail()
        if reservation_id in self.fail_release_ids:
            raise RemoteError("Reservation already fulfilled", 409)
        return replace(self._find_item(reservation_id), status=ReservationStatus.RELEASED)

    async def list_groups(self, params: dict[str, str], mine_only: bool = False) -> Page:
        self.calls.append(("list_groups", (dict(params), mine_only)))
        self._maybe_fail()
        return Page(items=list(self.groups), total=len(self.groups))

    # --- Helpers --------------------------------------------------------------

    def calls_named(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _find_item(self, reservation_id: str) -> ReservationItem:
        for group in self.groups:
            item = group.item(reservation_id)
            if item is not None:
                return item
        raise RemoteError("Reservation not found", 404)


class StaticPermissionGate(PermissionGate):

    def __init__(self, *codes: str) -> None:
        self.codes = set(codes)
        self.checked: list[str] = []

    def can_perform(self, action: str) -> bool:
        self.checked.append(action)
        return action in self.codes


class RecordingNotifier(Notifier):

    def __init__(self) -> None:
        self.notices: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.notices.append(("success", message))

    def error(self, message: str) -> None:
        self.notices.append(("error", message))

    def info(self, message: str) -> None:
        self.notices.append(("info", message))

    def of(self, level: str) -> list[str]:
        return [m for lvl, m in self.notices if lvl == level]
