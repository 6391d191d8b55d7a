"""Roster route handlers."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from padel_backend.api.dependencies import get_current_player, get_store, require_admin
from padel_backend.models.schemas import (
    CreatePlayerRequest,
    Player,
    PlayerResponse,
    UpdatePlayerRequest,
)
from padel_backend.services import auth_service, roster_service
from padel_backend.services.club_store import ClubStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players", response_model=List[PlayerResponse])
async def list_players(
    q: Optional[str] = None,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """
    Players visible to the caller, optionally searched.

    Admins get the whole roster; players get only their own record.
    Query param q matches name, level or phone.
    """
    visible = auth_service.visible_roster_for(current_player, store.players)
    return [
        PlayerResponse.from_player(p, roster_service.active_booking_count(store, p.id))
        for p in roster_service.search_players(visible, q)
    ]


@router.post("/api/players", response_model=PlayerResponse, status_code=201)
async def create_player(
    payload: CreatePlayerRequest,
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """Register a new player (admin only). The player sets a password on first login."""
    player = await roster_service.add_player(store, payload)
    return PlayerResponse.from_player(player, 0)


@router.put("/api/players/{player_id}", response_model=PlayerResponse)
async def update_player(
    player_id: str,
    payload: UpdatePlayerRequest,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """Edit a profile. Players edit themselves; admins edit anyone."""
    password_hash = None
    if payload.password is not None:
        auth_service.validate_new_password(payload.password)
        password_hash = auth_service.hash_password(payload.password)

    player = await roster_service.update_profile(
        store, player_id, payload, current_player, password_hash=password_hash
    )
    return PlayerResponse.from_player(player, roster_service.active_booking_count(store, player.id))


@router.delete("/api/players/{player_id}", response_model=Dict[str, Any])
async def delete_player(
    player_id: str,
    current_player: Player = Depends(get_current_player),
    store: ClubStore = Depends(get_store),
):
    """Remove a player; their bookings are released and emptied bookings cancelled."""
    cancelled_from = roster_service.active_booking_count(store, player_id)
    deleted = await roster_service.delete_player(store, player_id, current_player)
    return {
        "status": "success",
        "deleted": deleted,
        "released_bookings": cancelled_from if deleted else 0,
    }


@router.post("/api/players/{player_id}/reset-password", response_model=PlayerResponse)
async def reset_password(
    player_id: str,
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """Clear a player's password so they set a new one on next login (admin only)."""
    player = await roster_service.reset_password(store, player_id, admin)
    return PlayerResponse.from_player(player, roster_service.active_booking_count(store, player.id))
