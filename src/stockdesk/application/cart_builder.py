"""Application service: Cart Builder.

Owns the pending reservation cart and the draft form.  There is exactly
one CartBuilder per user context; every entry point that reads or edits
the cart receives the same instance from the composition root.

Each operation reads the current Cart, computes the next one and stores
it in one synchronous step, so two calls can never interleave halfway.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from stockdesk.application.reference_cache import ReferenceCache
from stockdesk.domain.exceptions import ValidationError
from stockdesk.domain.model.cart import EMPTY_CART, Cart, CartDraft, CartLine
from stockdesk.domain.repository.cart_repository import CartRepository

logger = structlog.get_logger(__name__)


class CartBuilder:

    def __init__(self, cart_repo: CartRepository, reference: ReferenceCache) -> None:
        self._cart_repo = cart_repo
        self._reference = reference
        self._cart = cart_repo.load()
        self._draft = CartDraft()

    # --- State ----------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._cart.lines

    @property
    def count(self) -> int:
        return len(self._cart)

    @property
    def is_empty(self) -> bool:
        return self._cart.is_empty

    @property
    def draft(self) -> CartDraft:
        return self._draft

    # --- Draft form -----------------------------------------------------------

    def select(
        self,
        product_id: str | None = None,
        warehouse_id: str | None = None,
        quantity: int | None = None,
    ) -> CartDraft:
        self._draft = self._draft.select(product_id, warehouse_id, quantity)
        return self._draft

    def set_shared_fields(
        self,
        project_id: str | None = None,
        expires_at: datetime | None = None,
        notes: str | None = None,
    ) -> CartDraft:
        """Set the project, expiry and notes that apply to the whole group."""
        self._draft = self._draft.with_shared_fields(project_id, expires_at, notes)
        return self._draft

    # --- Cart operations ------------------------------------------------------

    def add_line(self, product_id: str, warehouse_id: str, quantity: int) -> CartLine:
        """Add a line, or merge into the existing line for the same pair.

        The merged quantity is checked against the cached stock ceiling.
        On success the draft selection is reset; shared fields are kept.
        """
        if not product_id or not warehouse_id:
            raise ValidationError("Veuillez remplir tous les champs requis")

        product = self._reference.product(product_id)
        if product is None:
            raise ValidationError(f"Produit introuvable: '{product_id}'")
        warehouse = self._reference.warehouse(warehouse_id)
        if warehouse is None:
            raise ValidationError(f"Entrepôt introuvable: '{warehouse_id}'")

        line = CartLine.create(
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            warehouse_id=warehouse.id,
            warehouse_name=warehouse.name,
            quantity=quantity,
            available_stock=self._reference.stock_of(product.id, warehouse.id),
        )
        self._commit(self._cart.add(line))
        self._draft = self._draft.reset_selection()

        index = self._cart.index_of(product.id, warehouse.id)
        merged = self._cart.lines[index]  # type: ignore[index]
        logger.debug(
            "cart_line_added",
            product_id=product.id,
            warehouse_id=warehouse.id,
            quantity=merged.quantity,
        )
        return merged

    def add_draft_line(self) -> CartLine:
        """Add the line currently selected in the draft form."""
        return self.add_line(
            self._draft.product_id or "",
            self._draft.warehouse_id or "",
            self._draft.quantity,
        )

    def update_quantity(self, index: int, delta: int) -> CartLine:
        """Move a line's quantity by *delta* within ``[1, available_stock]``."""
        self._commit(self._cart.change_quantity(index, delta))
        return self._cart.lines[index]

    def set_quantity(self, index: int, quantity: int) -> CartLine:
        self._commit(self._cart.set_quantity(index, quantity))
        return self._cart.lines[index]

    def remove_line(self, index: int) -> None:
        self._commit(self._cart.remove(index))

    def remove_submitted(self, submitted: Cart) -> None:
        """Take the lines of *submitted* out of the cart.

        Clears everything, draft included, when the cart has not changed
        since *submitted* was captured; otherwise lines added meanwhile
        survive together with the draft.
        """
        if self._cart == submitted:
            self.clear()
            return
        self._commit(self._cart.without(submitted))
        logger.debug("cart_kept_unsubmitted_lines", remaining=len(self._cart))

    def clear(self) -> None:
        """Empty the cart and its durable copy, and reset the draft."""
        self._cart = EMPTY_CART
        self._cart_repo.clear()
        self._draft = CartDraft()

    # --- Internal helpers -----------------------------------------------------

    def _commit(self, cart: Cart) -> None:
        self._cart = cart
        self._cart_repo.save(cart)
