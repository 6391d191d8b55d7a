"""Login flow route handlers."""

import logging

from fastapi import APIRouter, Depends, Request

from padel_backend.api.dependencies import get_login_flow
from padel_backend.api.routes import limiter
from padel_backend.models.schemas import (
    PasswordRequest,
    PhoneRequest,
    PlayerResponse,
    SessionResponse,
    SetupPasswordRequest,
)
from padel_backend.services.auth_service import LoginFlow

logger = logging.getLogger(__name__)
router = APIRouter()


def _session_response(login_flow: LoginFlow) -> SessionResponse:
    player = login_flow.current_player
    return SessionResponse(
        step=login_flow.step,
        player=PlayerResponse.from_player(player) if player else None,
        is_admin=bool(player and player.is_admin),
    )


@router.get("/api/auth/session", response_model=SessionResponse)
async def get_session(login_flow: LoginFlow = Depends(get_login_flow)):
    """Current login step and, once authenticated, the logged-in player."""
    return _session_response(login_flow)


@router.post("/api/auth/phone", response_model=SessionResponse)
@limiter.limit("10/minute")
async def submit_phone(request: Request, payload: PhoneRequest, login_flow: LoginFlow = Depends(get_login_flow)):
    """Identify the player by phone; next step is password entry or first-time setup."""
    await login_flow.submit_phone(payload.phone)
    return _session_response(login_flow)


@router.post("/api/auth/password", response_model=SessionResponse)
@limiter.limit("10/minute")
async def submit_password(
    request: Request, payload: PasswordRequest, login_flow: LoginFlow = Depends(get_login_flow)
):
    """Log in with the password of the player identified in the previous step."""
    await login_flow.submit_password(payload.password)
    return _session_response(login_flow)


@router.post("/api/auth/setup", response_model=SessionResponse)
@limiter.limit("10/minute")
async def submit_setup(
    request: Request, payload: SetupPasswordRequest, login_flow: LoginFlow = Depends(get_login_flow)
):
    """Set the first password and log in."""
    await login_flow.submit_setup(payload.new_password)
    return _session_response(login_flow)


@router.post("/api/auth/logout", response_model=SessionResponse)
async def logout(login_flow: LoginFlow = Depends(get_login_flow)):
    await login_flow.logout()
    return _session_response(login_flow)
