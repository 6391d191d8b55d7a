"""Court booking route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from padel_backend.api.dependencies import get_current_player, get_store, require_admin
from padel_backend.models.schemas import (
    AddPartnerRequest,
    Booking,
    BookingChangeResponse,
    CreateBookingRequest,
    EnrollRequest,
    LeaveBookingRequest,
    Player,
    PlayerResponse,
    SlotOverview,
)
from padel_backend.services import booking_service
from padel_backend.services.club_store import ClubStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/bookings", response_model=List[SlotOverview])
async def list_bookings(
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """The day's three slots with the bookings visible to the caller."""
    return booking_service.slot_overview(store, current_player)


@router.get("/api/bookings/available", response_model=List[PlayerResponse])
async def list_available_players(
    slot_time: str,
    exclude_booking_id: Optional[str] = None,
    q: Optional[str] = None,
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """
    Players free in a slot, for the admin's booking picker.

    Query params: slot_time, exclude_booking_id (booking being edited), q (name search).
    """
    players = booking_service.available_players(store, slot_time, exclude_booking_id, q)
    return [PlayerResponse.from_player(p) for p in players]


@router.post("/api/bookings/enroll", response_model=Booking, status_code=201)
async def enroll(
    payload: EnrollRequest,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """Book a solo place in a slot for the logged-in player."""
    return await booking_service.self_enroll(store, current_player, payload.slot_time)


@router.post("/api/bookings", response_model=Booking, status_code=201)
async def create_booking(
    payload: CreateBookingRequest,
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """Create a solo or doubles booking for selected players (admin only)."""
    return await booking_service.admin_create(
        store, admin, payload.slot_time, payload.player_ids, payload.mode
    )


@router.put("/api/bookings/{booking_id}/players", response_model=Booking)
async def add_partner(
    booking_id: str,
    payload: AddPartnerRequest,
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """Pair a solo booking with a partner (admin only)."""
    return await booking_service.add_partner(store, admin, booking_id, payload.player_ids)


@router.post("/api/bookings/{booking_id}/leave", response_model=BookingChangeResponse)
async def leave_booking(
    booking_id: str,
    payload: LeaveBookingRequest,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """Remove one player from a booking, or cancel it with cancelAll."""
    remaining = await booking_service.leave_booking(
        store, current_player, booking_id, payload.player_id, cancel_all=payload.cancel_all
    )
    return BookingChangeResponse(cancelled=remaining is None, booking=remaining)


@router.delete("/api/bookings/{booking_id}", response_model=BookingChangeResponse)
async def cancel_booking(
    booking_id: str,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    await booking_service.cancel_booking(store, current_player, booking_id)
    return BookingChangeResponse(cancelled=True)
