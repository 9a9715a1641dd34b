"""Reservation cart: staged allocation lines that are not yet persisted.

The Cart is immutable: every operation returns a new Cart, so a caller
always reads the previous state and writes the next one in a single step.
Lines are unique by ``(product_id, warehouse_id)``; adding an existing
pair merges quantities instead of creating a second line.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from stockdesk.domain.exceptions import InsufficientStockError, ValidationError
from stockdesk.domain.model.value_objects import Quantity, validate_notes


@dataclass(frozen=True)
class CartLine:
    """One product/warehouse allocation request.

    ``available_stock`` is the stock ceiling captured when the line was
    added or last merged.  Build lines with ``CartLine.create()``, which
    enforces ``1 <= quantity <= available_stock``; saved lines go through
    it too when the cart is loaded.
    """

    product_id: str
    product_name: str
    warehouse_id: str
    warehouse_name: str
    quantity: int
    available_stock: int
    product_sku: str | None = None

    @staticmethod
    def create(
        product_id: str,
        product_name: str,
        warehouse_id: str,
        warehouse_name: str,
        quantity: int,
        available_stock: int,
        product_sku: str | None = None,
    ) -> CartLine:
        line = CartLine(
            product_id=product_id,
            product_name=product_name,
            warehouse_id=warehouse_id,
            warehouse_name=warehouse_name,
            quantity=quantity,
            available_stock=max(available_stock, 0),
            product_sku=product_sku,
        )
        Quantity(quantity)
        if quantity > line.available_stock:
            raise InsufficientStockError(line.available_stock)
        return line

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.warehouse_id)

    def with_quantity(self, quantity: int) -> CartLine:
        """Return a copy holding *quantity*, kept within ``[1, available_stock]``.

        Out-of-range targets are rejected, never clamped.
        """
        if quantity < 1:
            raise InsufficientStockError(
                self.available_stock, "La quantité doit être au moins 1"
            )
        if quantity > self.available_stock:
            raise InsufficientStockError(self.available_stock)
        return replace(self, quantity=Quantity(quantity).value)


@dataclass(frozen=True)
class Cart:
    """Ordered, duplicate-free collection of CartLines."""

    lines: tuple[CartLine, ...] = ()

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def index_of(self, product_id: str, warehouse_id: str) -> int | None:
        for i, line in enumerate(self.lines):
            if line.key == (product_id, warehouse_id):
                return i
        return None

    # --- Transformations ------------------------------------------------------

    def add(self, line: CartLine) -> Cart:
        """Append *line*, or merge it into the line for the same pair.

        On merge the summed quantity is checked against the ceiling of the
        incoming line, which carries the freshest stock snapshot.
        """
        index = self.index_of(line.product_id, line.warehouse_id)
        if index is None:
            return Cart(self.lines + (line,))

        existing = self.lines[index]
        merged = replace(existing, available_stock=line.available_stock)
        merged = merged.with_quantity(existing.quantity + line.quantity)
        return self._replace_at(index, merged)

    def change_quantity(self, index: int, delta: int) -> Cart:
        line = self._line_at(index)
        return self._replace_at(index, line.with_quantity(line.quantity + delta))

    def set_quantity(self, index: int, quantity: int) -> Cart:
        line = self._line_at(index)
        return self._replace_at(index, line.with_quantity(quantity))

    def remove(self, index: int) -> Cart:
        self._line_at(index)
        return Cart(self.lines[:index] + self.lines[index + 1:])

    def without(self, submitted: Cart) -> Cart:
        """Drop what *submitted* already reserved.

        A line whose quantity grew after the snapshot keeps the excess;
        lines added after the snapshot are kept as they are.
        """
        remaining = []
        for line in self.lines:
            index = submitted.index_of(line.product_id, line.warehouse_id)
            if index is None:
                remaining.append(line)
                continue
            excess = line.quantity - submitted.lines[index].quantity
            if excess > 0:
                remaining.append(replace(line, quantity=excess))
        return Cart(tuple(remaining))

    # --- Internal helpers -----------------------------------------------------

    def _line_at(self, index: int) -> CartLine:
        if not 0 <= index < len(self.lines):
            raise ValidationError(f"No cart line at position {index + 1}")
        return self.lines[index]

    def _replace_at(self, index: int, line: CartLine) -> Cart:
        lines = list(self.lines)
        lines[index] = line
        return Cart(tuple(lines))


@dataclass(frozen=True)
class CartDraft:
    """The pending reservation form.

    The *selection* (product, warehouse, quantity) is reset after each
    successful add; the *shared fields* (project, expiry, notes) apply to
    the whole group and are kept until the cart is submitted.
    """

    product_id: str | None = None
    warehouse_id: str | None = None
    quantity: int = 1
    project_id: str | None = None
    expires_at: datetime | None = None
    notes: str | None = None

    def select(
        self,
        product_id: str | None = None,
        warehouse_id: str | None = None,
        quantity: int | None = None,
    ) -> CartDraft:
        return replace(
            self,
            product_id=product_id if product_id is not None else self.product_id,
            warehouse_id=warehouse_id if warehouse_id is not None else self.warehouse_id,
            quantity=quantity if quantity is not None else self.quantity,
        )

    def with_shared_fields(
        self,
        project_id: str | None,
        expires_at: datetime | None,
        notes: str | None,
    ) -> CartDraft:
        return replace(
            self,
            project_id=project_id or None,
            expires_at=expires_at,
            notes=validate_notes(notes),
        )

    def reset_selection(self) -> CartDraft:
        return replace(self, product_id=None, warehouse_id=None, quantity=1)


EMPTY_CART = Cart()
