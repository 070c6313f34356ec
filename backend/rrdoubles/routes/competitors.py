"""
Competitor API Routes
Team and player entry (single and quick-add) and removal. Every change
re-saves the roster snapshot and discards the current schedule.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlmodel import Session

from rrdoubles.database import get_session
from rrdoubles.routes.tournaments import load_context
from rrdoubles.services import tournament_context as roster
from rrdoubles.services.errors import SchedulingError
from rrdoubles.services.snapshot_store import save_roster
from rrdoubles.services.tournament_context import ContextRegistry, get_registry
from rrdoubles.services.units import FixedTeam, Player, PlayerRole
from rrdoubles.utils.http_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    player1: str
    player2: str


class PlayerCreateRequest(BaseModel):
    name: str
    role: Optional[PlayerRole] = None


class QuickAddRequest(BaseModel):
    text: str


class TeamResponse(BaseModel):
    id: int
    display_number: int
    name: str
    player1: str
    player2: str


class PlayerResponse(BaseModel):
    id: int
    name: str
    role: Optional[PlayerRole] = None


def to_team_response(team: FixedTeam) -> TeamResponse:
    return TeamResponse(
        id=team.unit_id,
        display_number=team.display_number,
        name=team.name,
        player1=team.player1,
        player2=team.player2,
    )


def to_player_response(player: Player) -> PlayerResponse:
    return PlayerResponse(id=player.player_id, name=player.name, role=player.role)


# ============================================================================
# Team Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def get_teams(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    """Teams in display order (T1..TN)"""
    context = load_context(tournament_id, registry)
    return [to_team_response(t) for t in context.teams]


@router.post("/tournaments/{tournament_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(
    tournament_id: int,
    request: TeamCreateRequest,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    context = load_context(tournament_id, registry)
    try:
        team = roster.add_team(context, request.player1, request.player2)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return to_team_response(team)


@router.post("/tournaments/{tournament_id}/teams/quick-add", response_model=List[TeamResponse], status_code=201)
def quick_add_teams(
    tournament_id: int,
    request: QuickAddRequest,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    """One team per line: "Player1, Player2". Malformed lines are skipped."""
    context = load_context(tournament_id, registry)
    try:
        teams = roster.quick_add_teams(context, request.text)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return [to_team_response(t) for t in teams]


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_team(
    tournament_id: int,
    team_id: int,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    """Remove a team; remaining teams keep their ids and are relabelled T1..TN"""
    context = load_context(tournament_id, registry)
    try:
        roster.remove_team(context, team_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return Response(status_code=204)


# ============================================================================
# Player Endpoints (rotating / mixed modes)
# ============================================================================


@router.get("/tournaments/{tournament_id}/players", response_model=List[PlayerResponse])
def get_players(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    context = load_context(tournament_id, registry)
    return [to_player_response(p) for p in context.players]


@router.post("/tournaments/{tournament_id}/players", response_model=PlayerResponse, status_code=201)
def create_player(
    tournament_id: int,
    request: PlayerCreateRequest,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    context = load_context(tournament_id, registry)
    try:
        player = roster.add_player(context, request.name, request.role)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return to_player_response(player)


@router.post(
    "/tournaments/{tournament_id}/players/quick-add", response_model=List[PlayerResponse], status_code=201
)
def quick_add_players(
    tournament_id: int,
    request: QuickAddRequest,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    """One player per line: "Name" or "Name, M" / "Name, F"."""
    context = load_context(tournament_id, registry)
    try:
        players = roster.quick_add_players(context, request.text)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return [to_player_response(p) for p in players]


@router.delete("/tournaments/{tournament_id}/players/{player_id}", status_code=204)
def delete_player(
    tournament_id: int,
    player_id: int,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    context = load_context(tournament_id, registry)
    try:
        roster.remove_player(context, player_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    save_roster(session, context)
    return Response(status_code=204)
