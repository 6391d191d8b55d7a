"""
Authentication service: password hashing, the phone/password login flow and
role-scoped visibility.
"""

import logging
from typing import List, Optional

import bcrypt

from padel_backend.models.schemas import Booking, Player, SessionStep
from padel_backend.services import roster_service
from padel_backend.services.club_store import ClubStore
from padel_backend.services.errors import (
    NotAuthenticatedError,
    PasswordTooShortError,
    SessionStepError,
    UnknownPhoneError,
    WrongPasswordError,
)
from padel_backend.utils.constants import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)


# ============================================================================
# Passwords
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash is malformed")
        return False


def validate_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShortError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


# ============================================================================
# Visibility
# ============================================================================


def is_admin(player: Optional[Player]) -> bool:
    return player is not None and player.is_admin


def visible_roster_for(viewer: Player, players: List[Player]) -> List[Player]:
    """Admins see the whole roster; players see only their own record."""
    if is_admin(viewer):
        return list(players)
    return [p for p in players if p.id == viewer.id]


def visible_bookings_for(viewer: Player, bookings: List[Booking]) -> List[Booking]:
    """
    Admins see every booking; players see the bookings they belong to.

    Co-members of a visible booking stay listed in ``player_ids`` so the
    viewer knows who they are playing with.
    """
    if is_admin(viewer):
        return list(bookings)
    return [b for b in bookings if viewer.id in b.player_ids]


def can_manage_member(viewer: Player, booking: Booking, member_id: str) -> bool:
    """Whether ``viewer`` may remove ``member_id`` from ``booking``."""
    if member_id not in booking.player_ids:
        return False
    return is_admin(viewer) or viewer.id == member_id


# ============================================================================
# Login flow
# ============================================================================


class LoginFlow:
    """
    Single-session login state machine.

    AWAITING_PHONE -> AWAITING_PASSWORD (password set) or AWAITING_SETUP
    (first login) -> AUTHENTICATED. The authenticated identity lives in the
    store's ``logged_player`` bucket, so it survives restarts and is cleared
    when that player is deleted.
    """

    def __init__(self, store: ClubStore):
        self.store = store
        self._step = SessionStep.AWAITING_PHONE
        self._pending_player_id: Optional[str] = None

    @property
    def step(self) -> SessionStep:
        if self.store.logged_player is not None:
            return SessionStep.AUTHENTICATED
        return self._step

    @property
    def current_player(self) -> Optional[Player]:
        """Fresh roster record of the logged-in player, if any."""
        logged = self.store.logged_player
        if logged is None:
            return None
        return self.store.get_player(logged.id)

    def require_player(self) -> Player:
        player = self.current_player
        if player is None:
            raise NotAuthenticatedError("Authentication required")
        return player

    def _pending_player(self) -> Player:
        player = self.store.get_player(self._pending_player_id) if self._pending_player_id else None
        if player is None:
            # Player was removed between steps
            self._reset()
            raise UnknownPhoneError("Phone number not found. Contact the club administrator.")
        return player

    def _reset(self):
        self._step = SessionStep.AWAITING_PHONE
        self._pending_player_id = None

    async def submit_phone(self, phone: str) -> SessionStep:
        if self.step == SessionStep.AUTHENTICATED:
            raise SessionStepError("Already logged in")
        player = self.store.get_player_by_phone(phone.strip())
        if player is None:
            logger.info("Login attempt with unknown phone number")
            raise UnknownPhoneError("Phone number not found. Contact the club administrator.")

        self._pending_player_id = player.id
        self._step = SessionStep.AWAITING_PASSWORD if player.has_password else SessionStep.AWAITING_SETUP
        return self._step

    async def submit_password(self, password: str) -> Player:
        if self.step != SessionStep.AWAITING_PASSWORD:
            raise SessionStepError("Enter your phone number first")
        player = self._pending_player()
        if not verify_password(password, player.password_hash):
            logger.info(f"Wrong password for player {player.id}")
            raise WrongPasswordError("Incorrect password")
        return await self._authenticate(player)

    async def submit_setup(self, new_password: str) -> Player:
        if self.step != SessionStep.AWAITING_SETUP:
            raise SessionStepError("Password setup is only available on first login")
        player = self._pending_player()
        validate_new_password(new_password)

        updated = await roster_service.update_player(
            self.store, player.model_copy(update={"password_hash": hash_password(new_password)})
        )
        logger.info(f"Password set for player {player.id}")
        return await self._authenticate(updated)

    async def _authenticate(self, player: Player) -> Player:
        async with self.store.transaction():
            self.store.logged_player = player
            await self.store.save_session()
        # Falls back to the phone step once the session ends
        self._reset()
        logger.info(f"Player {player.id} logged in")
        return player

    async def logout(self) -> None:
        logged = self.store.logged_player
        async with self.store.transaction():
            self.store.logged_player = None
            await self.store.save_session()
        self._reset()
        if logged is not None:
            logger.info(f"Player {logged.id} logged out")
