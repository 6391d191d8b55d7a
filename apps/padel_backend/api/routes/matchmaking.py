"""Match suggestion route handlers."""

import logging

from fastapi import APIRouter, Depends

from padel_backend.api.dependencies import get_store, require_admin
from padel_backend.models.schemas import MatchOutcomeResponse, Player
from padel_backend.services import matchmaking_service
from padel_backend.services.club_store import ClubStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/matchmaking/suggestion", response_model=MatchOutcomeResponse)
async def suggest_match(
    admin: Player = Depends(require_admin),
    store: ClubStore = Depends(get_store),
):
    """
    Ask the AI advisor for a balanced 2v2 split of the roster (admin only).

    Returns status "failed" with a message when the advisor cannot answer;
    400 when the roster has fewer than four players.
    """
    outcome = await matchmaking_service.suggest_match(list(store.players))
    return MatchOutcomeResponse.from_outcome(outcome)
