"""Abstract repository for the pending reservation cart.

The cart lives only on the client.  Implementations keep it in durable
local storage so it survives restarts until it is submitted or cleared.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockdesk.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def load(self) -> Cart:
        """Return the saved cart, or an empty cart if none was saved."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist the cart; saving an empty cart removes the stored copy."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored cart."""
