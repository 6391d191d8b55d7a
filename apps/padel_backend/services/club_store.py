"""
Explicit container for the club's mutable state.

Holds the roster, the day's bookings and the logged-in identity, and writes
full snapshots of each bucket through a KeyValueStore. Services never touch
the adapter directly; inside ``transaction()`` they replace a collection and
call the matching ``save_*`` method. Loading tolerates damaged buckets:
unreadable records are dropped and bookings are cut back to live players.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from pydantic import ValidationError

from padel_backend.models.schemas import Booking, Player
from padel_backend.services.storage_service import KeyValueStore
from padel_backend.utils.constants import BOOKINGS_KEY, LOGGED_PLAYER_KEY, PLAYERS_KEY

logger = logging.getLogger(__name__)


def _stored_id(raw: Any) -> Any:
    return raw.get("id") if isinstance(raw, dict) else raw


class ClubStore:
    def __init__(
        self,
        kv: KeyValueStore,
        players: Optional[List[Player]] = None,
        bookings: Optional[List[Booking]] = None,
        logged_player: Optional[Player] = None,
    ):
        self.kv = kv
        self.players: List[Player] = list(players or [])
        self.bookings: List[Booking] = list(bookings or [])
        self.logged_player: Optional[Player] = logged_player
        self._closed = False

    @classmethod
    async def load(cls, kv: KeyValueStore) -> "ClubStore":
        """Build a store from whatever the adapter holds; missing buckets start empty."""
        raw_players = await kv.get(PLAYERS_KEY) or []
        raw_bookings = await kv.get(BOOKINGS_KEY) or []
        raw_logged = await kv.get(LOGGED_PLAYER_KEY)

        players = []
        for raw in raw_players:
            try:
                players.append(Player.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Dropping invalid stored player {_stored_id(raw)!r}: {e}")

        live_ids = {p.id for p in players}
        bookings = []
        for raw in raw_bookings:
            try:
                booking = Booking.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Dropping invalid stored booking {_stored_id(raw)!r}: {e}")
                continue
            # Bookings may only reference live roster entries
            member_ids = [pid for pid in booking.player_ids if pid in live_ids]
            if not member_ids:
                logger.warning(f"Dropping stored booking {booking.id}: none of its players exist")
                continue
            if len(member_ids) != len(booking.player_ids):
                logger.warning(f"Removed unknown players from stored booking {booking.id}")
                booking = booking.model_copy(update={"player_ids": member_ids})
            bookings.append(booking)

        logged_player = None
        if raw_logged:
            logged_id = _stored_id(raw_logged)
            # Session must point at a live roster entry
            logged_player = next((p for p in players if p.id == logged_id), None)
            if logged_player is None:
                logger.info(f"Stored session for unknown player {logged_id!r} discarded")

        logger.info(f"Loaded club store: {len(players)} players, {len(bookings)} bookings")
        return cls(kv, players=players, bookings=bookings, logged_player=logged_player)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def get_player_by_phone(self, phone: str) -> Optional[Player]:
        return next((p for p in self.players if p.phone == phone), None)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _check_open(self):
        if self._closed:
            raise RuntimeError("ClubStore is closed")

    async def save_players(self) -> None:
        self._check_open()
        await self.kv.set(PLAYERS_KEY, [p.model_dump(mode="json", by_alias=True) for p in self.players])

    async def save_bookings(self) -> None:
        self._check_open()
        await self.kv.set(BOOKINGS_KEY, [b.model_dump(mode="json", by_alias=True) for b in self.bookings])

    async def save_session(self) -> None:
        self._check_open()
        if self.logged_player is None:
            await self.kv.remove(LOGGED_PLAYER_KEY)
        else:
            await self.kv.set(LOGGED_PLAYER_KEY, self.logged_player.model_dump(mode="json", by_alias=True))

    @asynccontextmanager
    async def transaction(self):
        """
        Scope for one command's in-memory changes and their saves.

        If anything inside fails, players, bookings and the session are put
        back as they were and that snapshot is written again, so memory and
        storage never keep half of a command.

        Usage:
            async with store.transaction():
                store.bookings = [...]
                await store.save_bookings()
        """
        players, bookings, logged_player = self.players, self.bookings, self.logged_player
        try:
            yield self
        except Exception:
            self.players, self.bookings, self.logged_player = players, bookings, logged_player
            try:
                await self.flush()
            except Exception as restore_error:
                logger.error(f"Could not rewrite club state after a failed command: {restore_error}")
            raise

    async def flush(self) -> None:
        """Persist every bucket."""
        await self.save_players()
        await self.save_bookings()
        await self.save_session()

    async def close(self) -> None:
        if self._closed:
            return
        await self.flush()
        await self.kv.close()
        self._closed = True
        logger.info("Club store closed")

    @property
    def closed(self) -> bool:
        return self._closed
