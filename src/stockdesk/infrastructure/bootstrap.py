"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  One Container is built
per user context, so every entry point shares the same CartBuilder.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from stockdesk.application.cart_builder import CartBuilder
from stockdesk.application.group_lifecycle import GroupLifecycleManager
from stockdesk.application.ports import Notifier, PermissionGate
from stockdesk.application.reference_cache import ReferenceCache
from stockdesk.application.refresh_bridge import RefreshBridge
from stockdesk.application.reservation_list import ReservationList
from stockdesk.infrastructure.config import Settings, get_settings
from stockdesk.infrastructure.http.api_client import ApiClient
from stockdesk.infrastructure.http.http_reference_repository import (
    HttpReferenceRepository,
)
from stockdesk.infrastructure.http.http_reservation_repository import (
    HttpReservationRepository,
)
from stockdesk.infrastructure.notifier import ClickNotifier
from stockdesk.infrastructure.permissions import RolePermissionGate
from stockdesk.infrastructure.persistence.json_cart_repository import (
    JsonCartRepository,
)


@dataclass
class Container:
    api: ApiClient
    notifier: Notifier
    permissions: PermissionGate
    reference: ReferenceCache
    cart: CartBuilder
    lifecycle: GroupLifecycleManager
    reservations: ReservationList
    refresh_bridge: RefreshBridge

    async def aclose(self) -> None:
        await self.api.aclose()


def build_container(
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Container:
    settings = settings or get_settings()
    notifier = notifier or ClickNotifier()

    api = ApiClient(
        settings.api_url,
        token=settings.api_token,
        timeout=settings.http_timeout,
        transport=transport,
    )
    permissions = RolePermissionGate(settings.permission_codes)
    reservation_repo = HttpReservationRepository(api)

    reference = ReferenceCache(HttpReferenceRepository(api), notifier)
    cart = CartBuilder(JsonCartRepository(settings.data_dir, settings.user_id), reference)
    refresh_bridge = RefreshBridge(notifier)
    reservations = ReservationList(reservation_repo, permissions, notifier)
    refresh_bridge.subscribe(reservations.refresh)
    lifecycle = GroupLifecycleManager(
        reservation_repo,
        permissions,
        notifier,
        refresh_bridge=refresh_bridge,
        current_user_id=settings.user_id,
    )

    return Container(
        api=api,
        notifier=notifier,
        permissions=permissions,
        reference=reference,
        cart=cart,
        lifecycle=lifecycle,
        reservations=reservations,
        refresh_bridge=refresh_bridge,
    )


@asynccontextmanager
async def open_container(
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Container]:
    container = build_container(settings, notifier, transport)
    try:
        yield container
    finally:
        await container.aclose()
