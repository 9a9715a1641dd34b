"""API-backed implementation of ReferenceRepository."""

from __future__ import annotations

from stockdesk.domain.exceptions import RemoteError
from stockdesk.domain.model.reference import Product, Project, Warehouse
from stockdesk.domain.repository.reference_repository import ReferenceRepository
from stockdesk.infrastructure.http.api_client import ApiClient
from stockdesk.infrastructure.http.mappers import (
    extract_collection,
    product_from_json,
    project_from_json,
    warehouse_from_json,
)

PRODUCT_PAGE_SIZE = "1000"


class HttpReferenceRepository(ReferenceRepository):

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def list_products(self) -> list[Product]:
        body = await self._api.get("/products", params={"limit": PRODUCT_PAGE_SIZE})
        return [product_from_json(raw) for raw in extract_collection(body)]

    async def list_warehouses(self) -> list[Warehouse]:
        body = await self._api.get("/warehouses")
        return [warehouse_from_json(raw) for raw in extract_collection(body)]

    async def list_active_projects(self) -> list[Project]:
        body = await self._api.get("/projects", params={"status": "ACTIVE"})
        return [project_from_json(raw) for raw in extract_collection(body)]

    async def get_project(self, project_id: str) -> Project | None:
        try:
            body = await self._api.get(f"/projects/{project_id}")
        except RemoteError as exc:
            if exc.status_code == 404:
                return None
            raise
        return project_from_json(body) if body else None
