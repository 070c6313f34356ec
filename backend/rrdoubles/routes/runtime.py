"""
Runtime: score entry and standings. No schedule mutation.
Scores attach to matches of the current schedule; standings are recomputed
on every read and never stored.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from rrdoubles.routes.tournaments import load_context
from rrdoubles.services.errors import SchedulingError
from rrdoubles.services.standings import compute_standings
from rrdoubles.services.tournament_context import ContextRegistry, clear_score, get_registry, record_score
from rrdoubles.utils.http_errors import to_http_exception

router = APIRouter()


class ScoreUpdate(BaseModel):
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    score: Optional[str] = None  # "11-5" style, side A first


class MatchScoreState(BaseModel):
    match_id: str
    round_number: int
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class StandingResponse(BaseModel):
    id: Union[int, str]
    name: str
    rank: int
    games_played: int
    wins: int
    losses: int
    ties: int
    points_for: int
    points_against: int
    margin_total: int
    average_margin: float


@router.put("/tournaments/{tournament_id}/matches/{match_id}/score", response_model=MatchScoreState)
def update_match_score(
    tournament_id: int,
    match_id: str,
    payload: ScoreUpdate,
    registry: ContextRegistry = Depends(get_registry),
) -> MatchScoreState:
    """Record both sides' points. Either score_a + score_b or a score string."""
    context = load_context(tournament_id, registry)
    try:
        match = record_score(context, match_id, payload.score_a, payload.score_b, raw=payload.score)
    except SchedulingError as e:
        raise to_http_exception(e)
    return MatchScoreState(
        match_id=match.match_id, round_number=match.round_number, score_a=match.score_a, score_b=match.score_b
    )


@router.delete("/tournaments/{tournament_id}/matches/{match_id}/score", response_model=MatchScoreState)
def delete_match_score(tournament_id: int, match_id: str, registry: ContextRegistry = Depends(get_registry)):
    context = load_context(tournament_id, registry)
    try:
        match = clear_score(context, match_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    return MatchScoreState(match_id=match.match_id, round_number=match.round_number)


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingResponse])
def get_standings(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    """Teams (fixed mode) or players (rotating/mixed) ranked by wins, then average margin"""
    context = load_context(tournament_id, registry)
    return [StandingResponse(**row.to_dict()) for row in compute_standings(context)]
