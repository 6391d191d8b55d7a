"""
Pydantic models for the club domain and for API request/response validation.

Persisted and wire names are camelCase (``matchesPlayed``, ``slotTime`` ...);
Python attributes are snake_case.
"""

import enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from padel_backend.utils.constants import MAX_BOOKING_PLAYERS


class PadelLevel(str, enum.Enum):
    """Skill tier, 1 (best) to 6 (beginner)."""

    LEVEL_1 = "Level 1 (Elite)"
    LEVEL_2 = "Level 2 (Advanced)"
    LEVEL_3 = "Level 3 (Upper Intermediate)"
    LEVEL_4 = "Level 4 (Intermediate)"
    LEVEL_5 = "Level 5 (Lower Intermediate)"
    LEVEL_6 = "Level 6 (Beginner)"

    @property
    def tier(self) -> int:
        return int(self.name.rsplit("_", 1)[1])


class PreferredSide(str, enum.Enum):
    """Preferred court side."""

    DRIVE = "Drive (Forehand)"
    BACKHAND = "Backhand"
    BOTH = "Both"


class Role(str, enum.Enum):
    ADMIN = "admin"
    PLAYER = "player"


class BookingMode(str, enum.Enum):
    SOLO = "solo"
    DOUBLES = "doubles"


class SessionStep(str, enum.Enum):
    """Login flow state."""

    AWAITING_PHONE = "awaiting_phone"
    AWAITING_PASSWORD = "awaiting_password"
    AWAITING_SETUP = "awaiting_setup"
    AUTHENTICATED = "authenticated"


SlotTime = Literal["08:00-09:30", "09:30-11:00", "11:00-13:00"]


# ============================================================================
# Domain records
# ============================================================================


class Player(BaseModel):
    """Registered club member."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    phone: str
    level: PadelLevel = PadelLevel.LEVEL_6
    side: PreferredSide = PreferredSide.BOTH
    matches_played: int = Field(default=0, alias="matchesPlayed")
    avatar: Optional[str] = None
    role: Role = Role.PLAYER
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)


class Booking(BaseModel):
    """A court slot held by one (solo) or two (doubles) players."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    slot_time: SlotTime = Field(alias="slotTime")
    player_ids: List[str] = Field(alias="playerIds")

    @field_validator("player_ids")
    @classmethod
    def validate_player_ids(cls, v):
        if not 1 <= len(v) <= MAX_BOOKING_PLAYERS:
            raise ValueError(f"A booking holds 1 to {MAX_BOOKING_PLAYERS} players, got {len(v)}")
        if len(set(v)) != len(v):
            raise ValueError("A player cannot appear twice in the same booking")
        return v

    @property
    def is_doubles(self) -> bool:
        return len(self.player_ids) == MAX_BOOKING_PLAYERS


class MatchSuggestion(BaseModel):
    """Advisor's proposed 2v2 split. Display data only."""

    model_config = ConfigDict(populate_by_name=True)

    team1: List[Player]
    team2: List[Player]
    reasoning: str
    balance_score: float = Field(alias="balanceScore")


class AdvisorResponse(BaseModel):
    """Raw JSON shape returned by the matchmaking model."""

    model_config = ConfigDict(populate_by_name=True)

    team1_ids: List[str] = Field(alias="team1Ids")
    team2_ids: List[str] = Field(alias="team2Ids")
    reasoning: str
    balance_score: float = Field(alias="balanceScore")


class MatchOutcome(BaseModel):
    """Result of one advisor attempt: a suggestion, or the reason it failed."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "failed"]
    suggestion: Optional[MatchSuggestion] = None
    error_message: Optional[str] = Field(default=None, alias="errorMessage")


# ============================================================================
# API requests
# ============================================================================


class CreatePlayerRequest(BaseModel):
    name: str
    phone: str
    level: PadelLevel = PadelLevel.LEVEL_6
    side: PreferredSide = PreferredSide.BOTH
    avatar: Optional[str] = None


class UpdatePlayerRequest(BaseModel):
    """Profile edit. Omitted fields keep their current value."""

    name: Optional[str] = None
    phone: Optional[str] = None
    level: Optional[PadelLevel] = None
    side: Optional[PreferredSide] = None
    avatar: Optional[str] = None
    password: Optional[str] = None


class PhoneRequest(BaseModel):
    phone: str


class PasswordRequest(BaseModel):
    password: str


class SetupPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_password: str = Field(alias="newPassword")


class EnrollRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slot_time: str = Field(alias="slotTime")


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slot_time: str = Field(alias="slotTime")
    player_ids: List[str] = Field(alias="playerIds")
    mode: BookingMode = BookingMode.SOLO


class AddPartnerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_ids: List[str] = Field(alias="playerIds")


class LeaveBookingRequest(BaseModel):
    """Leave a booking. ``cancel_all`` cancels a doubles booking outright."""

    model_config = ConfigDict(populate_by_name=True)

    player_id: str = Field(alias="playerId")
    cancel_all: bool = Field(default=False, alias="cancelAll")


# ============================================================================
# API responses
# ============================================================================


class PlayerResponse(BaseModel):
    """Player as shown to clients; never carries the password hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    phone: str
    level: PadelLevel
    side: PreferredSide
    matches_played: int = Field(alias="matchesPlayed")
    avatar: Optional[str] = None
    role: Role
    has_password: bool = Field(alias="hasPassword")
    active_bookings: Optional[int] = Field(default=None, alias="activeBookings")

    @classmethod
    def from_player(cls, player: Player, active_bookings: Optional[int] = None) -> "PlayerResponse":
        return cls(
            id=player.id,
            name=player.name,
            phone=player.phone,
            level=player.level,
            side=player.side,
            matches_played=player.matches_played,
            avatar=player.avatar,
            role=player.role,
            has_password=player.has_password,
            active_bookings=active_bookings,
        )


class SessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step: SessionStep
    player: Optional[PlayerResponse] = None
    is_admin: bool = Field(default=False, alias="isAdmin")


class BookingChangeResponse(BaseModel):
    """Result of a leave or cancel: the booking that remains, if any."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    cancelled: bool
    booking: Optional[Booking] = None


class SlotOverview(BaseModel):
    """One slot of the day as seen by a given viewer."""

    model_config = ConfigDict(populate_by_name=True)

    slot_time: SlotTime = Field(alias="slotTime")
    bookings: List[Booking]
    total_bookings: int = Field(alias="totalBookings")
    is_enrolled: bool = Field(alias="isEnrolled")


class MatchSuggestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team1: List[PlayerResponse]
    team2: List[PlayerResponse]
    reasoning: str
    balance_score: float = Field(alias="balanceScore")


class MatchOutcomeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "failed"]
    suggestion: Optional[MatchSuggestionResponse] = None
    error_message: Optional[str] = Field(default=None, alias="errorMessage")

    @classmethod
    def from_outcome(cls, outcome: MatchOutcome) -> "MatchOutcomeResponse":
        suggestion = None
        if outcome.suggestion is not None:
            suggestion = MatchSuggestionResponse(
                team1=[PlayerResponse.from_player(p) for p in outcome.suggestion.team1],
                team2=[PlayerResponse.from_player(p) for p in outcome.suggestion.team2],
                reasoning=outcome.suggestion.reasoning,
                balance_score=outcome.suggestion.balance_score,
            )
        return cls(status=outcome.status, suggestion=suggestion, error_message=outcome.error_message)
