"""API-backed implementation of ReservationRepository."""

from __future__ import annotations

from typing import Any

from stockdesk.domain.model.reservation import Page, ReservationGroup, ReservationItem
from stockdesk.domain.repository.reservation_repository import ReservationRepository
from stockdesk.infrastructure.http.api_client import ApiClient
from stockdesk.infrastructure.http.mappers import (
    group_from_json,
    item_from_json,
    page_from_json,
)


class HttpReservationRepository(ReservationRepository):

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create_group(self, payload: dict[str, Any]) -> ReservationGroup:
        body = await self._api.post("/reservations/bulk", json=payload)
        return group_from_json(body)

    async def update_item(
        self, reservation_id: str, payload: dict[str, Any]
    ) -> ReservationItem:
        body = await self._api.post(f"/reservations/{reservation_id}/update", json=payload)
        return item_from_json(body)

    async def update_group(
        self, group_id: str, payload: dict[str, Any]
    ) -> ReservationGroup:
        body = await self._api.post(f"/reservations/group/{group_id}/update", json=payload)
        # Some server versions answer without echoing the group id.
        return group_from_json({"groupId": group_id, **(body or {})})

    async def release(self, reservation_id: str, notes: str | None = None) -> ReservationItem:
        body = await self._api.patch(
            f"/reservations/{reservation_id}/release",
            json={"notes": notes} if notes else {},
        )
        return item_from_json(body)

    async def list_groups(
        self, params: dict[str, str], mine_only: bool = False
    ) -> Page:
        path = "/reservations/my" if mine_only else "/reservations"
        body = await self._api.get(path, params=params)
        return page_from_json(body, default_limit=int(params.get("limit", 20)))
