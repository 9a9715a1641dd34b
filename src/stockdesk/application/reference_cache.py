"""Application service: Reference Cache.

Loads products, warehouses and active projects once per session and
answers stock lookups from that snapshot.  The snapshot is advisory: the
server re-validates stock when a reservation is submitted.
"""

from __future__ import annotations

import asyncio

import structlog

from stockdesk.application.ports import Notifier
from stockdesk.domain.exceptions import RemoteError
from stockdesk.domain.model.reference import (
    Product,
    Project,
    ReferenceSnapshot,
    Warehouse,
)
from stockdesk.domain.repository.reference_repository import ReferenceRepository

logger = structlog.get_logger(__name__)

LOAD_FAILED_MESSAGE = "Erreur lors du chargement des options"


class ReferenceCache:

    def __init__(self, reference_repo: ReferenceRepository, notifier: Notifier) -> None:
        self._reference_repo = reference_repo
        self._notifier = notifier
        self._snapshot = ReferenceSnapshot()

    @property
    def snapshot(self) -> ReferenceSnapshot:
        return self._snapshot

    async def load_reference(self) -> ReferenceSnapshot:
        """Fetch all reference data and replace the snapshot.

        Best-effort: a remote failure is logged and notified, and leaves an
        empty snapshot behind rather than raising.
        """
        try:
            products, warehouses, projects = await asyncio.gather(
                self._reference_repo.list_products(),
                self._reference_repo.list_warehouses(),
                self._reference_repo.list_active_projects(),
            )
        except RemoteError as exc:
            logger.warning("reference_load_failed", error=exc.message, status=exc.status_code)
            self._notifier.error(LOAD_FAILED_MESSAGE)
            self._snapshot = ReferenceSnapshot()
            return self._snapshot

        self._snapshot = ReferenceSnapshot.of(products, warehouses, projects)
        logger.debug(
            "reference_loaded",
            products=len(products),
            warehouses=len(warehouses),
            projects=len(projects),
        )
        return self._snapshot

    async def ensure_project(self, project_id: str | None) -> Project | None:
        """Make sure *project_id* is known, even when it is no longer active.

        Editing a group attached to a closed project must still show that
        project, so it is fetched individually and merged into the snapshot.
        """
        if not project_id:
            return None
        known = self._snapshot.projects.get(project_id)
        if known is not None:
            return known
        try:
            project = await self._reference_repo.get_project(project_id)
        except RemoteError as exc:
            logger.info("project_lookup_failed", project_id=project_id, error=exc.message)
            return None
        if project is not None:
            self._snapshot.projects[project.id] = project
        return project

    # --- Lookups --------------------------------------------------------------

    def stock_of(self, product_id: str, warehouse_id: str) -> int:
        return self._snapshot.stock_of(product_id, warehouse_id)

    def product(self, product_id: str) -> Product | None:
        return self._snapshot.products.get(product_id)

    def warehouse(self, warehouse_id: str) -> Warehouse | None:
        return self._snapshot.warehouses.get(warehouse_id)

    def project(self, project_id: str) -> Project | None:
        return self._snapshot.projects.get(project_id)
