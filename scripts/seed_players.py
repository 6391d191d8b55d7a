#!/usr/bin/env python3
"""
Seed the local club store with test players for manual testing.

Creates four players (enough for a match suggestion) with easy-to-remember
passwords. Idempotent: skips players whose phone is already registered.

Usage:
    python scripts/seed_players.py
"""

import asyncio

from padel_backend.database.db import init_database
from padel_backend.models.schemas import CreatePlayerRequest, PadelLevel, PreferredSide
from padel_backend.services import roster_service
from padel_backend.services.auth_service import hash_password
from padel_backend.services.club_store import ClubStore
from padel_backend.services.storage_service import SqlKeyValueStore

# Test players, easy to remember
TEST_PLAYERS = [
    {"name": "Alice Test", "phone": "910000001", "level": PadelLevel.LEVEL_2, "side": PreferredSide.DRIVE},
    {"name": "Bruno Test", "phone": "910000002", "level": PadelLevel.LEVEL_3, "side": PreferredSide.BACKHAND},
    {"name": "Carla Test", "phone": "910000003", "level": PadelLevel.LEVEL_4, "side": PreferredSide.BOTH},
    {"name": "Diogo Test", "phone": "910000004", "level": PadelLevel.LEVEL_5, "side": PreferredSide.DRIVE},
]
TEST_PASSWORD = "test1234"


async def main():
    """Create test players with a known password."""
    print("\n🎾  Seeding test players...\n")

    await init_database()
    store = await ClubStore.load(SqlKeyValueStore())
    try:
        for data in TEST_PLAYERS:
            if store.get_player_by_phone(data["phone"]):
                print(f"  ⏭  {data['name']} ({data['phone']}) already exists")
                continue
            player = await roster_service.add_player(store, CreatePlayerRequest(**data))
            await roster_service.update_player(
                store, player.model_copy(update={"password_hash": hash_password(TEST_PASSWORD)})
            )
            print(f"  ✓ {player.name} ({player.phone}) / {TEST_PASSWORD}")
    finally:
        await store.close()

    print("\nDone.\n")


if __name__ == "__main__":
    asyncio.run(main())
