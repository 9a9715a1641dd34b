"""Domain service: request payloads for reservations.

A cart is submitted as one bulk-create body.  Reservation updates send
only what changed, and every editable field can be in one of three
states that the payload must keep apart:

* untouched -> the key is absent from the payload,
* set       -> the key carries the new value,
* cleared   -> the key is present with value ``None`` (JSON ``null``).

"Untouched" is expressed with the ``UNSET`` sentinel so it can never be
confused with ``None``.  A field explicitly set back to its current value
is also omitted: the diff is taken against the last-known server value,
captured when the edit began.

Notes are trimmed on both sides before they are compared and sent: a
blank note clears the field, and an edit that only adds or removes
surrounding whitespace is not a change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from stockdesk.domain.exceptions import ValidationError
from stockdesk.domain.model.cart import Cart, CartDraft
from stockdesk.domain.model.reservation import ReservationGroup, ReservationItem
from stockdesk.domain.model.value_objects import Quantity, validate_notes


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class ItemEdit:
    """Requested changes to one reservation item."""

    quantity: Any = UNSET
    project_id: Any = UNSET
    expires_at: Any = UNSET
    notes: Any = UNSET


@dataclass(frozen=True)
class GroupEdit:
    """Requested changes to a group's shared fields and member quantities."""

    project_id: Any = UNSET
    expires_at: Any = UNSET
    notes: Any = UNSET
    item_quantities: Mapping[str, int] = field(default_factory=dict)


# --- Generic diff -------------------------------------------------------------


def diff(original: Mapping[str, Any], edited: Mapping[str, Any]) -> dict[str, Any]:
    """Return the keys of *edited* whose value differs from *original*.

    Keys mapped to ``UNSET`` are skipped entirely.  A ``None`` that replaces
    a real value is kept, meaning "clear this field".
    """
    patch: dict[str, Any] = {}
    for key, value in edited.items():
        if value is UNSET:
            continue
        if value != original.get(key):
            patch[key] = value
    return patch


# --- Normalisation ------------------------------------------------------------


def normalize_datetime(value: datetime | None) -> datetime | None:
    """Reduce to minute precision in UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(second=0, microsecond=0)


def to_wire_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _normalize_project(value: Any) -> Any:
    if value is UNSET:
        return UNSET
    return value or None


def _normalize_expiry(value: Any) -> Any:
    if value is UNSET:
        return UNSET
    return normalize_datetime(value)


def _normalize_notes(value: Any) -> Any:
    if value is UNSET:
        return UNSET
    return validate_notes(value)


def _current_notes(notes: str | None) -> str | None:
    return (notes or "").strip() or None


def _shared_fields(project_id: Any, expires_at: Any, notes: Any) -> dict[str, Any]:
    return {
        "projectId": _normalize_project(project_id),
        "expiresAt": _normalize_expiry(expires_at),
        "notes": _normalize_notes(notes),
    }


def _to_wire(patch: dict[str, Any]) -> dict[str, Any]:
    if "expiresAt" in patch:
        patch["expiresAt"] = to_wire_datetime(patch["expiresAt"])
    return patch


# --- Reservation payloads -----------------------------------------------------


def bulk_create_payload(cart: Cart, draft: CartDraft) -> dict[str, Any]:
    """Body for ``POST /reservations/bulk``.

    Every line carries its warehouse.  Shared fields are included only when
    the draft sets them.
    """
    if cart.is_empty:
        raise ValidationError("Veuillez ajouter au moins un produit au panier")

    payload: dict[str, Any] = {
        "items": [
            {
                "productId": line.product_id,
                "warehouseId": line.warehouse_id,
                "quantity": line.quantity,
            }
            for line in cart
        ],
    }
    if draft.project_id:
        payload["projectId"] = draft.project_id
    if draft.expires_at is not None:
        payload["expiresAt"] = to_wire_datetime(draft.expires_at)
    if draft.notes:
        payload["notes"] = draft.notes
    return payload


def item_update_payload(item: ReservationItem, edit: ItemEdit) -> dict[str, Any]:
    """Diff payload for ``POST /reservations/{id}/update``.

    Returns an empty dict when nothing changed.
    """
    original = {
        "quantity": item.quantity,
        "projectId": item.project_id,
        "expiresAt": normalize_datetime(item.expires_at),
        "notes": _current_notes(item.notes),
    }
    edited = _shared_fields(edit.project_id, edit.expires_at, edit.notes)
    if edit.quantity is not UNSET:
        edited["quantity"] = Quantity(edit.quantity).value
    return _to_wire(diff(original, edited))


def group_update_payload(group: ReservationGroup, edit: GroupEdit) -> dict[str, Any]:
    """Diff payload for ``POST /reservations/group/{groupId}/update``.

    Shared fields follow the same rules as ``item_update_payload``; the
    optional ``items`` list holds only members whose quantity changed.
    """
    original = {
        "projectId": group.project_id,
        "expiresAt": normalize_datetime(group.expires_at),
        "notes": _current_notes(group.notes),
    }
    patch = _to_wire(
        diff(original, _shared_fields(edit.project_id, edit.expires_at, edit.notes))
    )

    changed_items = []
    for item_id, quantity in edit.item_quantities.items():
        member = group.item(item_id)
        if member is None:
            raise ValidationError(
                f"Reservation {item_id} is not part of group {group.group_id}"
            )
        quantity = Quantity(quantity).value
        if quantity != member.quantity:
            changed_items.append({"reservationId": item_id, "quantity": quantity})

    if changed_items:
        patch["items"] = changed_items
    return patch
