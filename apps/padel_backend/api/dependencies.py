"""
Club state and authentication dependencies for FastAPI routes.
"""

from fastapi import Depends, HTTPException, Request, status

from padel_backend.models.schemas import Player
from padel_backend.services.auth_service import LoginFlow
from padel_backend.services.club_store import ClubStore


def get_store(request: Request) -> ClubStore:
    """The ClubStore loaded at startup."""
    return request.app.state.store


def get_login_flow(request: Request) -> LoginFlow:
    """The device's single login flow. Shared by every caller of this process."""
    return request.app.state.login_flow


async def get_current_player(login_flow: LoginFlow = Depends(get_login_flow)) -> Player:
    """
    Dependency to get the logged-in player.

    Raises:
        HTTPException: 401 if nobody is logged in
    """
    player = login_flow.current_player
    if player is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return player


async def require_admin(player: Player = Depends(get_current_player)) -> Player:
    """Require the logged-in player to be the club admin."""
    if not player.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return player
