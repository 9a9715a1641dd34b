"""Application service: Group Lifecycle Manager.

Submits a cart as one grouped reservation, then updates or releases its
members.  Three rules hold for every operation:

1. The permission gate is consulted first; an unauthorized call never
   reaches the repository.
2. Nothing is changed locally before the server acknowledges.  A failed
   submission leaves the cart exactly as it was.
3. After a successful write the subscribed views re-fetch from the server
   instead of patching their copy.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Sequence

import structlog

from stockdesk.application.cart_builder import CartBuilder
from stockdesk.application.ports import (
    CANCEL_RESERVATIONS,
    CREATE_RESERVATIONS,
    MANAGE_RESERVATIONS,
    Notifier,
    PermissionGate,
)
from stockdesk.application.refresh_bridge import RefreshBridge
from stockdesk.domain.exceptions import (
    AuthorizationError,
    OperationInProgressError,
    RemoteError,
    ValidationError,
)
from stockdesk.domain.model.reservation import ReservationGroup, ReservationItem
from stockdesk.domain.repository.reservation_repository import ReservationRepository
from stockdesk.domain.service.payloads import (
    GroupEdit,
    ItemEdit,
    bulk_create_payload,
    group_update_payload,
    item_update_payload,
)

logger = structlog.get_logger(__name__)

RELEASE_NOTE = "Libéré par l'utilisateur"
NO_CHANGES_MESSAGE = "Aucune modification détectée"

# Operation kinds guarded by the in-flight flag.
SUBMIT = "submit"
UPDATE = "update"
RELEASE = "release"


class GroupLifecycleManager:

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        permissions: PermissionGate,
        notifier: Notifier,
        refresh_bridge: RefreshBridge | None = None,
        current_user_id: str | None = None,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._permissions = permissions
        self._notifier = notifier
        self._refresh_bridge = refresh_bridge
        self._current_user_id = current_user_id
        self._in_flight: set[str] = set()

    # --- Capability queries ---------------------------------------------------

    @property
    def can_submit(self) -> bool:
        return self._permissions.can_perform(CREATE_RESERVATIONS)

    @property
    def can_release(self) -> bool:
        return self._permissions.can_perform(CANCEL_RESERVATIONS)

    def is_busy(self, kind: str) -> bool:
        return kind in self._in_flight

    def can_release_group(self, group: ReservationGroup) -> bool:
        """Whether the "release all" action may be offered for *group*."""
        return self.can_release and group.can_release_all

    def can_release_item(self, item: ReservationItem) -> bool:
        return self.can_release and item.is_reserved

    # --- Submission -----------------------------------------------------------

    async def submit(
        self,
        cart_builder: CartBuilder,
        project_id: str | None = None,
        expires_at: datetime | None = None,
        notes: str | None = None,
    ) -> ReservationGroup:
        """Create one reservation group from the whole cart.

        Shared fields default to the ones held in the cart's draft form.
        The request is atomic server-side: every line is reserved or none
        is.  The submitted lines leave the cart only once the server has
        answered; lines added while the request was in flight stay.
        """
        self._require(
            CREATE_RESERVATIONS,
            "Vous n'avez pas la permission de créer des réservations",
        )
        draft = cart_builder.draft
        if project_id is not None or expires_at is not None or notes is not None:
            draft = draft.with_shared_fields(
                project_id if project_id is not None else draft.project_id,
                expires_at if expires_at is not None else draft.expires_at,
                notes if notes is not None else draft.notes,
            )
        submitted = cart_builder.cart
        payload = bulk_create_payload(submitted, draft)

        with self._exclusive(SUBMIT):
            try:
                group = await self._reservation_repo.create_group(payload)
            except RemoteError as exc:
                logger.warning(
                    "reservation_group_rejected",
                    lines=len(payload["items"]),
                    status=exc.status_code,
                    error=exc.message,
                )
                self._notifier.error(
                    exc.message_or("Erreur lors de la création de la réservation")
                )
                raise

        cart_builder.remove_submitted(submitted)
        logger.info(
            "reservation_group_submitted",
            group_id=group.group_id,
            total_items=group.total_items,
        )
        self._notifier.success(
            f"Réservation créée avec succès ({group.total_items} produit(s))"
        )
        await self._after_write()
        return group

    # --- Updates --------------------------------------------------------------

    async def update_item(
        self, item: ReservationItem, edit: ItemEdit
    ) -> ReservationItem | None:
        """Send the fields of *edit* that differ from *item*.

        Returns None, without any request, when nothing changed.
        """
        self._require_owner_or_manager(item.user_id)
        payload = item_update_payload(item, edit)
        if not payload:
            self._notifier.info(NO_CHANGES_MESSAGE)
            return None

        with self._exclusive(UPDATE):
            try:
                updated = await self._reservation_repo.update_item(item.id, payload)
            except RemoteError as exc:
                logger.warning(
                    "reservation_update_rejected",
                    reservation_id=item.id,
                    fields=sorted(payload),
                    error=exc.message,
                )
                self._notifier.error(
                    exc.message_or("Erreur lors de la mise à jour de la réservation")
                )
                raise

        logger.info("reservation_updated", reservation_id=item.id, fields=sorted(payload))
        self._notifier.success("Réservation mise à jour avec succès")
        await self._after_write()
        return updated

    async def update_group(
        self, group: ReservationGroup, edit: GroupEdit
    ) -> ReservationGroup | None:
        """Send changed shared fields and changed member quantities at once."""
        self._require_owner_or_manager(group.user.id if group.user else None)
        payload = group_update_payload(group, edit)
        if not payload:
            self._notifier.info(NO_CHANGES_MESSAGE)
            return None

        with self._exclusive(UPDATE):
            try:
                updated = await self._reservation_repo.update_group(group.group_id, payload)
            except RemoteError as exc:
                logger.warning(
                    "reservation_group_update_rejected",
                    group_id=group.group_id,
                    fields=sorted(payload),
                    error=exc.message,
                )
                self._notifier.error(
                    exc.message_or(
                        "Erreur lors de la mise à jour du groupe de réservations"
                    )
                )
                raise

        logger.info(
            "reservation_group_updated",
            group_id=group.group_id,
            fields=sorted(payload),
            items=len(payload.get("items", [])),
        )
        self._notifier.success("Groupe de réservations mis à jour avec succès")
        await self._after_write()
        return updated

    # --- Release --------------------------------------------------------------

    async def release(self, items: Sequence[ReservationItem]) -> list[ReservationItem]:
        """Release RESERVED items, one request per item.

        Every item is checked before anything is sent.  Releasing cannot be
        undone from the client.
        """
        self._require(
            CANCEL_RESERVATIONS,
            "Vous n'avez pas la permission de libérer des réservations",
        )
        if not items:
            raise ValidationError("Aucune réservation à libérer")
        for item in items:
            item.ensure_releasable()

        with self._exclusive(RELEASE):
            results = await asyncio.gather(
                *(self._reservation_repo.release(item.id, RELEASE_NOTE) for item in items),
                return_exceptions=True,
            )

        released = [r for r in results if isinstance(r, ReservationItem)]
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, RemoteError):
                raise failure

        if failures:
            first: RemoteError = failures[0]  # type: ignore[assignment]
            logger.warning(
                "reservation_release_failed",
                requested=len(items),
                released=len(released),
                error=first.message,
            )
            self._notifier.error(first.message_or("Erreur lors de la libération"))
            if released:
                await self._after_write()
            raise first

        logger.info("reservations_released", ids=[item.id for item in items])
        if len(items) == 1:
            self._notifier.success("Réservation libérée avec succès")
        else:
            self._notifier.success(f"{len(items)} réservation(s) libérée(s) avec succès")
        await self._after_write()
        return released

    async def release_item(self, item: ReservationItem) -> ReservationItem:
        released = await self.release([item])
        return released[0]

    async def release_group(self, group: ReservationGroup) -> list[ReservationItem]:
        """Release every member of *group*.

        Refused unless every member is still RESERVED: a group with a
        fulfilled or released member cannot be released as a whole.
        """
        if not group.can_release_all:
            raise ValidationError(
                f"Group {group.group_id} cannot be released as a whole: "
                f"not every reservation is still RESERVED"
            )
        return await self.release(list(group.items))

    # --- Internal helpers -----------------------------------------------------

    def _require(self, action: str, message: str) -> None:
        if not self._permissions.can_perform(action):
            raise AuthorizationError(message)

    def _require_owner_or_manager(self, owner_id: str | None) -> None:
        if owner_id and self._current_user_id and owner_id != self._current_user_id:
            self._require(
                MANAGE_RESERVATIONS,
                "Vous n'avez pas la permission de gérer les réservations des autres utilisateurs",
            )
        else:
            self._require(
                CREATE_RESERVATIONS,
                "Vous n'avez pas la permission de modifier des réservations",
            )

    @contextmanager
    def _exclusive(self, kind: str) -> Iterator[None]:
        # Checked and set before the first await, so a second call in the
        # same tick already sees the flag.
        if kind in self._in_flight:
            raise OperationInProgressError(f"A {kind} request is already in progress")
        self._in_flight.add(kind)
        try:
            yield
        finally:
            self._in_flight.discard(kind)

    async def _after_write(self) -> None:
        if self._refresh_bridge is not None:
            await self._refresh_bridge.refresh()
