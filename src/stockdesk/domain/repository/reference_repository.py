"""Abstract repository for read-only reference data.

Defined in the domain layer so the domain never depends on
infrastructure.  The concrete implementation talks to the remote API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockdesk.domain.model.reference import Product, Project, Warehouse


class ReferenceRepository(ABC):

    @abstractmethod
    async def list_products(self) -> list[Product]:
        """Return every product with its per-warehouse stock."""

    @abstractmethod
    async def list_warehouses(self) -> list[Warehouse]:
        """Return every warehouse."""

    @abstractmethod
    async def list_active_projects(self) -> list[Project]:
        """Return projects a reservation can be attached to."""

    @abstractmethod
    async def get_project(self, project_id: str) -> Project | None:
        """Return one project regardless of its status, or None."""
