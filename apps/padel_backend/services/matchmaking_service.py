"""
Matchmaking advisor: asks Gemini for a balanced 2v2 split of the roster.

The suggestion is display data only; nothing here touches the roster or the
bookings. Any advisor failure (missing key, timeout, malformed JSON) is
reported as a failed MatchOutcome instead of an exception.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, List

from dotenv import load_dotenv
from pydantic import ValidationError

from padel_backend.models.schemas import AdvisorResponse, MatchOutcome, MatchSuggestion, Player
from padel_backend.services.errors import AdvisorError, NotEnoughPlayersError
from padel_backend.utils.constants import MIN_MATCHMAKING_PLAYERS

load_dotenv()

logger = logging.getLogger(__name__)

# Configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = "gemini-3-flash-preview"
MATCHMAKING_TIMEOUT_SECONDS = float(os.getenv("MATCHMAKING_TIMEOUT_SECONDS", "30"))

RESPONSE_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "team1Ids": {"type": "array", "items": {"type": "string"}},
        "team2Ids": {"type": "array", "items": {"type": "string"}},
        "reasoning": {"type": "string"},
        "balanceScore": {"type": "number"},
    },
    "required": ["team1Ids", "team2Ids", "reasoning", "balanceScore"],
}

# Gemini client (singleton); type is Any to allow lazy import
_gemini_client: Any = None


def get_gemini_client():
    """Get or create Gemini client. Lazy-imports google.genai to avoid import-time dependency."""
    global _gemini_client
    if _gemini_client is None:
        if not GEMINI_API_KEY:
            raise AdvisorError("GEMINI_API_KEY or GOOGLE_API_KEY environment variable is not set")
        from google import genai
        _gemini_client = genai.Client(api_key=GEMINI_API_KEY)
    return _gemini_client


def serialize_players(players: List[Player]) -> List[Dict]:
    """Roster fields the advisor needs. Credentials and contact details stay out."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "level": p.level.value,
            "levelTier": p.level.tier,
            "side": p.side.value,
            "matchesPlayed": p.matches_played,
        }
        for p in players
    ]


def build_matchmaking_prompt(players: List[Player]) -> str:
    return (
        "Analyse these padel players and suggest one balanced match (2 against 2).\n"
        f"Available players: {json.dumps(serialize_players(players), ensure_ascii=False)}\n"
        "IMPORTANT: levels run from 1 to 6, where 1 is the best (Elite) and 6 is a beginner. "
        "Consider both the technical level and the preferred side (Drive/Backhand) to make the "
        "two teams as even as possible. Answer with the player ids of each team, a short "
        "reasoning and a balanceScore from 0 to 100."
    )


def _text_from_response(response) -> str:
    """Extract text from a generate_content response; empty string if absent."""
    if not response:
        return ""
    text = getattr(response, "text", None)
    if text:
        return text
    if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
        return response.candidates[0].content.parts[0].text or ""
    return ""


def parse_advisor_response(raw_text: str, players: List[Player]) -> MatchSuggestion:
    """
    Validate the advisor's JSON and resolve ids back to roster players.

    Ids that match no player are dropped without error.

    Raises:
        AdvisorError: If the text is empty or does not match the response schema
    """
    if not raw_text or not raw_text.strip():
        raise AdvisorError("Advisor returned an empty response")
    try:
        data = AdvisorResponse.model_validate_json(raw_text)
    except ValidationError as e:
        raise AdvisorError(f"Malformed advisor response: {e.error_count()} validation error(s)") from e

    team1_ids = set(data.team1_ids)
    team2_ids = set(data.team2_ids)
    return MatchSuggestion(
        team1=[p for p in players if p.id in team1_ids],
        team2=[p for p in players if p.id in team2_ids],
        reasoning=data.reasoning,
        balance_score=data.balance_score,
    )


async def request_match_suggestion(players: List[Player]) -> MatchSuggestion:
    """Single Gemini call. Raises AdvisorError or asyncio.TimeoutError on failure."""
    client = get_gemini_client()
    prompt = build_matchmaking_prompt(players)

    def _call() -> str:
        response = client.models.generate_content(
            model=GEMINI_MODEL,
            contents=prompt,
            config={
                "response_mime_type": "application/json",
                "response_json_schema": RESPONSE_JSON_SCHEMA,
            },
        )
        return _text_from_response(response)

    raw_text = await asyncio.wait_for(asyncio.to_thread(_call), timeout=MATCHMAKING_TIMEOUT_SECONDS)
    return parse_advisor_response(raw_text, players)


async def suggest_match(players: List[Player]) -> MatchOutcome:
    """
    Ask the advisor for a balanced 2v2 split of ``players``.

    Raises:
        NotEnoughPlayersError: With fewer than four players; the advisor is not called

    Returns:
        MatchOutcome with status "ok" and a suggestion, or "failed" with a message
    """
    if len(players) < MIN_MATCHMAKING_PLAYERS:
        raise NotEnoughPlayersError(
            f"At least {MIN_MATCHMAKING_PLAYERS} players are needed to suggest a match"
        )

    try:
        suggestion = await request_match_suggestion(players)
    except AdvisorError as e:
        logger.error(f"Match suggestion failed: {e.message}")
        return MatchOutcome(status="failed", error_message=e.message)
    except asyncio.TimeoutError:
        logger.error(f"Match suggestion timed out after {MATCHMAKING_TIMEOUT_SECONDS}s")
        return MatchOutcome(status="failed", error_message="The match advisor did not answer in time")
    except Exception as e:
        logger.error(f"Gemini API error during match suggestion: {e}", exc_info=True)
        return MatchOutcome(status="failed", error_message="The match advisor is unavailable")

    logger.info(
        f"Match suggestion ready: {len(suggestion.team1)} vs {len(suggestion.team2)}, "
        f"balance {suggestion.balance_score}"
    )
    return MatchOutcome(status="ok", suggestion=suggestion)
