"""Application service: Realtime Refresh Bridge.

A push channel (websocket, SSE, polling loop) calls ``handle_event`` when
the server announces that a reservation was created or updated.  The
bridge shows a short notice and re-pulls every subscribed view; the next
successful fetch is always taken as the truth, so refreshing twice is
harmless.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

import structlog

from stockdesk.application.ports import Notifier
from stockdesk.domain.exceptions import DomainException
from stockdesk.domain.model.reservation import ReservationStatus

logger = structlog.get_logger(__name__)

RESERVATION_CREATED = "reservation.created"
RESERVATION_UPDATED = "reservation.updated"

RefreshCallback = Callable[[], Awaitable[Any]]


class RefreshBridge:

    def __init__(self, notifier: Notifier | None = None) -> None:
        self._notifier = notifier
        self._callbacks: list[RefreshCallback] = []

    def subscribe(self, callback: RefreshCallback) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def refresh(self) -> None:
        """Re-pull every subscribed view.

        A view that fails to refresh is logged and skipped.
        """
        for callback in list(self._callbacks):
            try:
                await callback()
            except DomainException as exc:
                logger.warning("refresh_failed", callback=repr(callback), error=str(exc))

    async def handle_event(self, event: str, payload: Mapping[str, Any] | None = None) -> bool:
        """Handle a realtime event; returns False for events we ignore."""
        if event not in (RESERVATION_CREATED, RESERVATION_UPDATED):
            return False

        payload = payload or {}
        status = _status_label(payload.get("status"))
        logger.info(
            "reservation_event",
            event_name=event,
            reservation_id=payload.get("id"),
            product=payload.get("productName"),
            quantity=payload.get("quantity"),
            warehouse=payload.get("warehouseName"),
            status=status,
        )
        if self._notifier is not None:
            self._notifier.info(event_notice(event, payload, status))
        await self.refresh()
        return True


def event_notice(event: str, payload: Mapping[str, Any], status: str | None) -> str:
    product = payload.get("productName") or payload.get("id") or "?"
    if event == RESERVATION_CREATED:
        notice = f"Nouvelle réservation: {product} - Quantité: {payload.get('quantity')}"
        if payload.get("warehouseName"):
            notice += f" ({payload['warehouseName']})"
        return notice
    return f"Réservation mise à jour: {product} - Statut: {status or '?'}"


def _status_label(raw: Any) -> str | None:
    if not raw:
        return None
    try:
        return ReservationStatus(str(raw).upper()).label
    except ValueError:
        return str(raw)
