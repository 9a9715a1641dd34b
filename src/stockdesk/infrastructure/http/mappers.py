"""JSON <-> domain mapping for API payloads (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from stockdesk.domain.model.reference import Product, Project, Warehouse
from stockdesk.domain.model.reservation import (
    Page,
    ReservationGroup,
    ReservationItem,
    ReservationStatus,
    UserRef,
)
from stockdesk.domain.model.value_objects import EntityRef


def extract_collection(payload: Any) -> list[dict]:
    """Accept both a bare JSON array and a ``{data: [...]}`` envelope."""
    if not payload:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


def parse_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _ref(raw: dict | None, fallback_id: str | None = None) -> EntityRef | None:
    if raw:
        return EntityRef(id=str(raw["id"]), name=raw.get("name") or "")
    if fallback_id:
        return EntityRef(id=str(fallback_id))
    return None


# --- Reference data -----------------------------------------------------------


def product_from_json(raw: dict) -> Product:
    stock: dict[str, int] = {}
    entries = raw.get("stocks")
    legacy = raw.get("stock")
    if entries is None and isinstance(legacy, list):
        entries = legacy
    for entry in entries or []:
        warehouse_id = entry.get("warehouseId") or (entry.get("warehouse") or {}).get("id")
        if warehouse_id:
            stock[str(warehouse_id)] = stock.get(str(warehouse_id), 0) + int(entry.get("quantity") or 0)
    if isinstance(legacy, dict) and legacy.get("warehouseId"):
        stock.setdefault(str(legacy["warehouseId"]), int(legacy.get("quantity") or 0))
    return Product(
        id=str(raw["id"]),
        name=raw.get("name", ""),
        sku=raw.get("sku") or None,
        stock=stock,
    )


def warehouse_from_json(raw: dict) -> Warehouse:
    return Warehouse(id=str(raw["id"]), name=raw.get("name", ""))


def project_from_json(raw: dict) -> Project:
    return Project(
        id=str(raw["id"]),
        name=raw.get("name", ""),
        status=raw.get("status") or "ACTIVE",
    )


# --- Reservations -------------------------------------------------------------


def item_from_json(raw: dict) -> ReservationItem:
    product = raw.get("product") or {}
    return ReservationItem(
        id=str(raw["id"]),
        product=_ref(product, raw.get("productId")) or EntityRef(id=""),
        product_sku=product.get("sku") or None,
        warehouse=_ref(raw.get("warehouse"), raw.get("warehouseId")),
        quantity=int(raw["quantity"]),
        status=ReservationStatus(raw.get("status") or "RESERVED"),
        created_at=parse_datetime(raw.get("createdAt")),
        expires_at=parse_datetime(raw.get("expiresAt")),
        project=_ref(raw.get("project"), raw.get("projectId")),
        notes=raw.get("notes") or None,
        user_id=raw.get("userId") or (raw.get("user") or {}).get("id"),
        group_id=raw.get("groupId"),
    )


def user_from_json(raw: dict | None) -> UserRef | None:
    if not raw:
        return None
    return UserRef(
        id=str(raw["id"]),
        first_name=raw.get("firstName") or "",
        last_name=raw.get("lastName") or "",
        email=raw.get("email") or "",
    )


def group_from_json(raw: dict) -> ReservationGroup:
    status = raw.get("status")
    return ReservationGroup(
        group_id=str(raw["groupId"]),
        items=tuple(item_from_json(i) for i in raw.get("items") or []),
        status=ReservationStatus(status) if status else None,
        project=_ref(raw.get("project"), raw.get("projectId")),
        expires_at=parse_datetime(raw.get("expiresAt")),
        notes=raw.get("notes") or None,
        total_items=raw.get("totalItems"),
        user=user_from_json(raw.get("user")),
        created_at=parse_datetime(raw.get("createdAt")),
    )


def page_from_json(payload: Any, default_limit: int = 20) -> Page:
    groups = [group_from_json(g) for g in extract_collection(payload)]
    meta = payload.get("meta") if isinstance(payload, dict) else None
    if not meta:
        return Page(items=groups, limit=max(len(groups), default_limit), total=len(groups))
    return Page(
        items=groups,
        page=int(meta.get("page", 1)),
        limit=int(meta.get("limit", default_limit)),
        total=int(meta.get("total", len(groups))),
        total_pages=int(meta.get("totalPages", 1)),
        has_next=bool(meta.get("hasNext", False)),
        has_prev=bool(meta.get("hasPrev", False)),
    )
