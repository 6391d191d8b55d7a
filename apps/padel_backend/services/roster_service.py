"""
Roster service: create, edit and remove club players.

All functions validate before touching ``store.players`` so a rejected
command leaves the roster (and bookings) exactly as they were.
"""

import logging
import uuid
from typing import List, Optional

from padel_backend.models.schemas import (
    CreatePlayerRequest,
    Player,
    Role,
    UpdatePlayerRequest,
)
from padel_backend.services.club_store import ClubStore
from padel_backend.services.errors import (
    BlankFieldError,
    DuplicatePhoneError,
    ForbiddenError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _require_fields(name: str, phone: str) -> None:
    if not name or not name.strip():
        raise BlankFieldError("Name is required")
    if not phone or not phone.strip():
        raise BlankFieldError("Phone number is required")


def _check_phone_free(store: ClubStore, phone: str, player_id: Optional[str] = None) -> None:
    """Raise if ``phone`` belongs to a live player other than ``player_id``."""
    owner = store.get_player_by_phone(phone)
    if owner is not None and owner.id != player_id:
        raise DuplicatePhoneError(f"Phone number {phone} is already associated with another player")


async def add_player(store: ClubStore, draft: CreatePlayerRequest) -> Player:
    """
    Register a new player.

    The player starts with no password (first login goes through setup),
    zero matches played and the "player" role.

    Raises:
        BlankFieldError: If name or phone is blank
        DuplicatePhoneError: If the phone is already registered
    """
    _require_fields(draft.name, draft.phone)
    phone = draft.phone.strip()
    _check_phone_free(store, phone)

    player = Player(
        id=str(uuid.uuid4()),
        name=draft.name.strip(),
        phone=phone,
        level=draft.level,
        side=draft.side,
        matches_played=0,
        avatar=draft.avatar,
        role=Role.PLAYER,
    )
    async with store.transaction():
        store.players = [*store.players, player]
        await store.save_players()
    logger.info(f"Added player {player.id} ({player.name})")
    return player


async def update_player(store: ClubStore, updated: Player) -> Player:
    """
    Replace the roster record whose id matches ``updated.id``.

    Raises:
        NotFoundError: If no player has that id
        BlankFieldError: If name or phone is blank
        DuplicatePhoneError: If the phone belongs to a different player
    """
    if store.get_player(updated.id) is None:
        raise NotFoundError(f"Player {updated.id} not found")
    _require_fields(updated.name, updated.phone)
    _check_phone_free(store, updated.phone, updated.id)

    async with store.transaction():
        store.players = [updated if p.id == updated.id else p for p in store.players]
        await store.save_players()

        if store.logged_player is not None and store.logged_player.id == updated.id:
            store.logged_player = updated
            await store.save_session()

    logger.info(f"Updated player {updated.id}")
    return updated


async def update_profile(
    store: ClubStore,
    player_id: str,
    changes: UpdatePlayerRequest,
    requested_by: Player,
    password_hash: Optional[str] = None,
) -> Player:
    """
    Apply a profile edit on behalf of ``requested_by``.

    Players may only edit themselves; admins may edit anyone. ``password_hash``
    replaces the stored hash when given (callers hash and length-check it).
    """
    if not requested_by.is_admin and requested_by.id != player_id:
        raise ForbiddenError("You can only edit your own profile")
    current = store.get_player(player_id)
    if current is None:
        raise NotFoundError(f"Player {player_id} not found")

    update = changes.model_dump(exclude_unset=True, exclude={"password"})
    if "name" in update and update["name"] is not None:
        update["name"] = update["name"].strip()
    if "phone" in update and update["phone"] is not None:
        update["phone"] = update["phone"].strip()
    # Only the avatar may be cleared explicitly
    update = {k: v for k, v in update.items() if v is not None or k == "avatar"}
    if password_hash is not None:
        update["password_hash"] = password_hash

    return await update_player(store, current.model_copy(update=update))


async def delete_player(store: ClubStore, player_id: str, requested_by: Player) -> bool:
    """
    Remove a player and cascade to bookings and the session.

    The id is dropped from every booking; bookings left empty are deleted.
    Deleting an id that is not on the roster is a no-op.

    Returns:
        True if a player was removed, False if the id was already absent

    Raises:
        ForbiddenError: If requester is neither admin nor the player themself
    """
    if not requested_by.is_admin and requested_by.id != player_id:
        raise ForbiddenError("Only an admin can remove other players")
    if store.get_player(player_id) is None:
        return False

    remaining_bookings = []
    for booking in store.bookings:
        if player_id not in booking.player_ids:
            remaining_bookings.append(booking)
            continue
        member_ids = [pid for pid in booking.player_ids if pid != player_id]
        if member_ids:
            remaining_bookings.append(booking.model_copy(update={"player_ids": member_ids}))
        else:
            logger.info(f"Cancelled booking {booking.id} after removing its last player")

    async with store.transaction():
        store.players = [p for p in store.players if p.id != player_id]
        store.bookings = remaining_bookings
        await store.save_players()
        await store.save_bookings()

        if store.logged_player is not None and store.logged_player.id == player_id:
            store.logged_player = None
            await store.save_session()
            logger.info(f"Session ended: player {player_id} was removed")

    logger.info(f"Deleted player {player_id}")
    return True


async def reset_password(store: ClubStore, player_id: str, requested_by: Player) -> Player:
    """Clear a player's password so their next login runs first-time setup. Admin only."""
    if not requested_by.is_admin:
        raise ForbiddenError("Only an admin can reset passwords")
    player = store.get_player(player_id)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    updated = await update_player(store, player.model_copy(update={"password_hash": None}))
    logger.info(f"Password reset for player {player_id}")
    return updated


async def ensure_admin(store: ClubStore, phone: str, name: str) -> Player:
    """
    Make sure the seeded admin identity exists.

    Creates it once if no player has ``phone``; an existing player with that
    phone is promoted to admin.
    """
    existing = store.get_player_by_phone(phone)
    if existing is None:
        admin = Player(id=str(uuid.uuid4()), name=name, phone=phone, role=Role.ADMIN)
        async with store.transaction():
            store.players = [*store.players, admin]
            await store.save_players()
        logger.info(f"Created default admin {admin.id} ({phone})")
        return admin
    if existing.role != Role.ADMIN:
        logger.info(f"Promoting player {existing.id} to admin")
        return await update_player(store, existing.model_copy(update={"role": Role.ADMIN}))
    return existing


def active_booking_count(store: ClubStore, player_id: str) -> int:
    """Number of bookings the player currently belongs to."""
    return sum(1 for b in store.bookings if player_id in b.player_ids)


def search_players(players: List[Player], query: Optional[str]) -> List[Player]:
    """Filter by name or level label (case-insensitive) or phone substring."""
    if not query or not query.strip():
        return list(players)
    needle = query.strip().lower()
    return [
        p for p in players
        if needle in p.name.lower() or needle in p.level.value.lower() or query.strip() in p.phone
    ]
