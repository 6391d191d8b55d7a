"""
Booking service: enrolment, doubles pairing and cancellation for the day's
three court slots.

A player holds at most one place per slot. Every command checks permissions
and slot occupancy first and only then replaces ``store.bookings``.
"""

import logging
import uuid
from typing import List, Optional, Set

from padel_backend.models.schemas import Booking, BookingMode, Player, SlotOverview
from padel_backend.services import auth_service
from padel_backend.services.club_store import ClubStore
from padel_backend.services.errors import (
    AlreadyEnrolledError,
    ForbiddenError,
    InvalidSelectionError,
    NotFoundError,
)
from padel_backend.utils.constants import MAX_BOOKING_PLAYERS, SLOT_TIMES

logger = logging.getLogger(__name__)


def _require_slot(slot_time: str) -> None:
    if slot_time not in SLOT_TIMES:
        raise NotFoundError(f"Unknown slot '{slot_time}'. Available slots: {', '.join(SLOT_TIMES)}")


def _require_booking(store: ClubStore, booking_id: str) -> Booking:
    booking = store.get_booking(booking_id)
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


def _require_players(store: ClubStore, player_ids: List[str]) -> None:
    missing = [pid for pid in player_ids if store.get_player(pid) is None]
    if missing:
        raise NotFoundError(f"Unknown player(s): {', '.join(missing)}")


def busy_player_ids(
    bookings: List[Booking], slot_time: str, exclude_booking_id: Optional[str] = None
) -> Set[str]:
    """Ids already holding a place in ``slot_time``, ignoring the booking being edited."""
    return {
        pid
        for b in bookings
        if b.slot_time == slot_time and b.id != exclude_booking_id
        for pid in b.player_ids
    }


def available_players(
    store: ClubStore,
    slot_time: str,
    exclude_booking_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Player]:
    """Players that can still be placed in ``slot_time``, optionally filtered by name."""
    _require_slot(slot_time)
    busy = busy_player_ids(store.bookings, slot_time, exclude_booking_id)
    needle = (search or "").strip().lower()
    return [p for p in store.players if p.id not in busy and needle in p.name.lower()]


def _check_not_busy(store: ClubStore, slot_time: str, player_ids: List[str], exclude_booking_id=None):
    busy = busy_player_ids(store.bookings, slot_time, exclude_booking_id)
    clash = [pid for pid in player_ids if pid in busy]
    if clash:
        names = ", ".join(store.get_player(pid).name for pid in clash)
        raise AlreadyEnrolledError(f"{names} already enrolled in slot {slot_time}")


def _check_distinct(player_ids: List[str]) -> None:
    if len(set(player_ids)) != len(player_ids):
        raise InvalidSelectionError("The same player was selected twice")


async def self_enroll(store: ClubStore, actor: Player, slot_time: str) -> Booking:
    """
    Book a solo place for ``actor`` in ``slot_time``.

    Raises:
        NotFoundError: If the slot does not exist
        AlreadyEnrolledError: If the actor already holds a place in the slot
    """
    _require_slot(slot_time)
    if actor.id in busy_player_ids(store.bookings, slot_time):
        raise AlreadyEnrolledError(f"Already enrolled in slot {slot_time}")

    booking = Booking(id=str(uuid.uuid4()), slot_time=slot_time, player_ids=[actor.id])
    async with store.transaction():
        store.bookings = [*store.bookings, booking]
        await store.save_bookings()
    logger.info(f"Player {actor.id} enrolled in {slot_time} (booking {booking.id})")
    return booking


async def admin_create(
    store: ClubStore,
    actor: Player,
    slot_time: str,
    player_ids: List[str],
    mode: BookingMode = BookingMode.SOLO,
) -> Booking:
    """
    Create a booking on behalf of other players. Admin only.

    Solo mode takes exactly one player; doubles takes one or two (a doubles
    booking with a single player waits for a partner).
    """
    if not auth_service.is_admin(actor):
        raise ForbiddenError("Only an admin can create bookings for other players")
    _require_slot(slot_time)
    if not player_ids:
        raise InvalidSelectionError("Select at least one player")
    if mode == BookingMode.SOLO and len(player_ids) != 1:
        raise InvalidSelectionError("A solo booking takes exactly one player")
    if len(player_ids) > MAX_BOOKING_PLAYERS:
        raise InvalidSelectionError(f"A doubles booking takes at most {MAX_BOOKING_PLAYERS} players")
    _check_distinct(player_ids)
    _require_players(store, player_ids)
    _check_not_busy(store, slot_time, player_ids)

    booking = Booking(id=str(uuid.uuid4()), slot_time=slot_time, player_ids=list(player_ids))
    async with store.transaction():
        store.bookings = [*store.bookings, booking]
        await store.save_bookings()
    logger.info(f"Admin {actor.id} created {mode.value} booking {booking.id} in {slot_time}")
    return booking


async def add_partner(store: ClubStore, actor: Player, booking_id: str, player_ids: List[str]) -> Booking:
    """
    Turn a solo booking into doubles by replacing its members with ``player_ids``.

    The booking keeps its id. ``player_ids`` must name two distinct players
    who are free in the slot (the booking's own member counts as free).
    """
    if not auth_service.is_admin(actor):
        raise ForbiddenError("Only an admin can add a partner")
    booking = _require_booking(store, booking_id)
    if len(booking.player_ids) != 1:
        raise InvalidSelectionError("Only a solo booking can take a partner")
    if len(player_ids) != MAX_BOOKING_PLAYERS:
        raise InvalidSelectionError(f"Select exactly {MAX_BOOKING_PLAYERS} players")
    _check_distinct(player_ids)
    _require_players(store, player_ids)
    _check_not_busy(store, booking.slot_time, player_ids, exclude_booking_id=booking.id)

    updated = booking.model_copy(update={"player_ids": list(player_ids)})
    async with store.transaction():
        store.bookings = [updated if b.id == booking.id else b for b in store.bookings]
        await store.save_bookings()
    logger.info(f"Admin {actor.id} paired booking {booking.id}: {player_ids}")
    return updated


async def cancel_booking(store: ClubStore, actor: Player, booking_id: str) -> None:
    """Remove a booking entirely. Allowed for admins and for the booking's members."""
    booking = _require_booking(store, booking_id)
    if not auth_service.is_admin(actor) and actor.id not in booking.player_ids:
        raise ForbiddenError("You can only cancel your own bookings")

    async with store.transaction():
        store.bookings = [b for b in store.bookings if b.id != booking_id]
        await store.save_bookings()
    logger.info(f"Booking {booking_id} cancelled by {actor.id}")


async def leave_booking(
    store: ClubStore,
    actor: Player,
    booking_id: str,
    player_id: str,
    cancel_all: bool = False,
) -> Optional[Booking]:
    """
    Remove ``player_id`` from a booking.

    On a doubles booking, drops only that player (the booking becomes solo and
    keeps its id) unless ``cancel_all`` is set. On a solo booking the whole
    booking is cancelled.

    Returns:
        The remaining booking, or None if the booking was cancelled
    """
    booking = _require_booking(store, booking_id)
    if player_id not in booking.player_ids:
        raise NotFoundError(f"Player {player_id} is not part of booking {booking_id}")
    if not auth_service.can_manage_member(actor, booking, player_id):
        raise ForbiddenError("You can only remove yourself from a booking")

    if len(booking.player_ids) == 1 or cancel_all:
        async with store.transaction():
            store.bookings = [b for b in store.bookings if b.id != booking_id]
            await store.save_bookings()
        logger.info(f"Booking {booking_id} cancelled when {player_id} left")
        return None

    updated = booking.model_copy(
        update={"player_ids": [pid for pid in booking.player_ids if pid != player_id]}
    )
    async with store.transaction():
        store.bookings = [updated if b.id == booking_id else b for b in store.bookings]
        await store.save_bookings()
    logger.info(f"Player {player_id} left booking {booking_id}")
    return updated


def slot_overview(store: ClubStore, viewer: Player) -> List[SlotOverview]:
    """The day's slots as ``viewer`` may see them."""
    visible = auth_service.visible_bookings_for(viewer, store.bookings)
    overview = []
    for slot_time in SLOT_TIMES:
        slot_bookings = [b for b in store.bookings if b.slot_time == slot_time]
        visible_in_slot = [b for b in visible if b.slot_time == slot_time]
        overview.append(
            SlotOverview(
                slot_time=slot_time,
                bookings=visible_in_slot,
                # Players only learn about their own bookings
                total_bookings=len(slot_bookings) if viewer.is_admin else len(visible_in_slot),
                is_enrolled=any(viewer.id in b.player_ids for b in slot_bookings),
            )
        )
    return overview
