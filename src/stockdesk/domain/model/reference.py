"""Read-only reference data: products, warehouses and projects.

These are fetched from the server and never mutated locally.  A
``ReferenceSnapshot`` is a point-in-time view used to validate cart lines
before submission; the server re-validates everything on its side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Warehouse:
    id: str
    name: str


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    status: str = "ACTIVE"


@dataclass(frozen=True)
class Product:
    """A catalogue product with its stock level in each warehouse."""

    id: str
    name: str
    sku: str | None = None
    stock: dict[str, int] = field(default_factory=dict)

    def stock_in(self, warehouse_id: str) -> int:
        return max(self.stock.get(warehouse_id, 0), 0)


@dataclass
class ReferenceSnapshot:
    """Products, warehouses and projects indexed by id."""

    products: dict[str, Product] = field(default_factory=dict)
    warehouses: dict[str, Warehouse] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)
    loaded_at: datetime | None = None

    @staticmethod
    def of(
        products: list[Product],
        warehouses: list[Warehouse],
        projects: list[Project],
    ) -> ReferenceSnapshot:
        return ReferenceSnapshot(
            products={p.id: p for p in products},
            warehouses={w.id: w for w in warehouses},
            projects={p.id: p for p in projects},
            loaded_at=datetime.now(timezone.utc),
        )

    @property
    def is_loaded(self) -> bool:
        return self.loaded_at is not None

    def stock_of(self, product_id: str, warehouse_id: str) -> int:
        product = self.products.get(product_id)
        if product is None:
            return 0
        return product.stock_in(warehouse_id)
