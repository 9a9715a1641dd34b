"""JSON-file-backed implementation of CartRepository."""

from __future__ import annotations

import json
from pathlib import Path

from stockdesk.domain.exceptions import ValidationError
from stockdesk.domain.model.cart import EMPTY_CART, Cart, CartLine
from stockdesk.domain.repository.cart_repository import CartRepository
from stockdesk.infrastructure.logging import get_logger

logger = get_logger(__name__)

STORAGE_KEY = "reservation_cart"


def storage_key(user_id: str | None = None) -> str:
    """Storage key for the cart of *user_id* (one cart per user context)."""
    return f"{STORAGE_KEY}_{user_id}" if user_id else STORAGE_KEY


class JsonCartRepository(CartRepository):

    def __init__(self, data_dir: Path, user_id: str | None = None) -> None:
        self._file_path = data_dir / f"{storage_key(user_id)}.json"

    @property
    def file_path(self) -> Path:
        return self._file_path

    # --- CartRepository interface ---------------------------------------------

    def load(self) -> Cart:
        """Load the saved cart.

        Records that no longer hold a valid line (quantity outside
        ``[1, availableStock]``, missing fields, duplicate pair over the
        ceiling) are dropped and the cleaned cart is written back.
        """
        if not self._file_path.exists():
            return EMPTY_CART
        try:
            records = json.loads(self._file_path.read_text(encoding="utf-8"))
            if not isinstance(records, list):
                raise TypeError(f"expected a list of lines, got {type(records).__name__}")
        except (ValueError, TypeError) as exc:
            logger.warning("cart_storage_unreadable", path=str(self._file_path), error=str(exc))
            self.clear()
            return EMPTY_CART

        cart = EMPTY_CART
        dropped = 0
        for raw in records:
            try:
                cart = cart.add(self._to_domain(raw))
            except (ValidationError, KeyError, TypeError, ValueError) as exc:
                dropped += 1
                logger.warning(
                    "cart_storage_unreadable",
                    path=str(self._file_path),
                    record=raw,
                    error=str(exc),
                )
        if dropped:
            self.save(cart)
        return cart

    def save(self, cart: Cart) -> None:
        if cart.is_empty:
            self.clear()
            return
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(
            json.dumps([self._to_raw(line) for line in cart], indent=2) + "\n",
            encoding="utf-8",
        )

    def clear(self) -> None:
        self._file_path.unlink(missing_ok=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(line: CartLine) -> dict:
        return {
            "productId": line.product_id,
            "productName": line.product_name,
            "productSku": line.product_sku,
            "warehouseId": line.warehouse_id,
            "warehouseName": line.warehouse_name,
            "quantity": line.quantity,
            "availableStock": line.available_stock,
        }

    @staticmethod
    def _to_domain(raw: dict) -> CartLine:
        return CartLine.create(
            product_id=raw["productId"],
            product_name=raw["productName"],
            product_sku=raw.get("productSku"),
            warehouse_id=raw["warehouseId"],
            warehouse_name=raw.get("warehouseName", ""),
            quantity=int(raw["quantity"]),
            available_stock=int(raw["availableStock"]),
        )
