"""
Schedule API Routes

- Generate (with optional manual rounds locked before generation)
- Read the current schedule with courts, byes and per-team court usage
- Pin a match to a round / pin a bye to a round
- Regenerate keeping every pin
- Reset

Every mutating endpoint validates before touching the context; a rejected
pin leaves the schedule exactly as it was.
"""

from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from rrdoubles.routes.competitors import PlayerResponse, to_player_response
from rrdoubles.routes.tournaments import load_context
from rrdoubles.services.court_balancer import court_usage
from rrdoubles.services.errors import SchedulingError
from rrdoubles.services.locks import drop_incomplete_manual_matches
from rrdoubles.services.reassignment import has_pins, pin_bye, pin_match
from rrdoubles.services.round_solver import RoundState, ScheduledMatch
from rrdoubles.services.schedule_orchestrator import generate_schedule, regenerate_with_assignments, reset_schedule
from rrdoubles.services.tournament_context import ContextRegistry, TournamentContext, get_registry
from rrdoubles.services.units import FixedTeam, TournamentMode, Unit
from rrdoubles.utils.http_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ManualMatchInput(BaseModel):
    unit_a_id: Optional[int] = None
    unit_b_id: Optional[int] = None


class ManualRoundInput(BaseModel):
    round_number: int
    matches: List[ManualMatchInput] = []


class GenerateRequest(BaseModel):
    manual_rounds: List[ManualRoundInput] = []
    skip_manual: bool = False
    assigned_byes: Dict[int, int] = {}


class MatchRoundPinRequest(BaseModel):
    target_round: Optional[int] = None  # None clears the pin


class ByePinRequest(BaseModel):
    unit_id: Optional[int] = None  # None clears the pin


class UnitResponse(BaseModel):
    id: Union[int, str]
    name: str
    members: List[str]
    display_number: Optional[int] = None
    roles: Optional[List[Optional[str]]] = None


class MatchResponse(BaseModel):
    match_id: str
    round_number: int
    court: Optional[int] = None
    assigned_round: Optional[int] = None
    unit_a: UnitResponse
    unit_b: UnitResponse
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class RoundResponse(BaseModel):
    round_number: int
    matches: List[MatchResponse]
    bye: Optional[UnitResponse] = None
    assigned_bye: Optional[int] = None
    sitting_out: List[PlayerResponse] = []
    has_assignments: bool = False


class TeamSummary(BaseModel):
    id: int
    display_number: int
    name: str
    matches: int
    courts: Dict[int, int]


class ScheduleResponse(BaseModel):
    tournament_id: int
    mode: Optional[str] = None
    num_courts: int
    total_rounds: int
    total_matches: int
    has_pins: bool
    rounds: List[RoundResponse]
    team_summary: List[TeamSummary] = []


class GenerateResponse(BaseModel):
    summary: dict
    schedule: ScheduleResponse


# ============================================================================
# Serialization
# ============================================================================


def _unit_response(unit: Unit) -> UnitResponse:
    if isinstance(unit, FixedTeam):
        return UnitResponse(
            id=unit.unit_id, name=unit.name, members=list(unit.members), display_number=unit.display_number
        )
    return UnitResponse(
        id=unit.unit_id,
        name=unit.name,
        members=list(unit.members),
        roles=[r.value if r else None for r in unit.role_slots],
    )


def _match_response(match: ScheduledMatch) -> MatchResponse:
    return MatchResponse(
        match_id=match.match_id,
        round_number=match.round_number,
        court=match.court,
        assigned_round=match.assigned_round,
        unit_a=_unit_response(match.unit_a),
        unit_b=_unit_response(match.unit_b),
        score_a=match.score_a,
        score_b=match.score_b,
    )


def _round_response(round_state: RoundState) -> RoundResponse:
    return RoundResponse(
        round_number=round_state.round_number,
        matches=[_match_response(m) for m in round_state.matches],
        bye=_unit_response(round_state.bye_unit) if round_state.bye_unit else None,
        assigned_bye=round_state.assigned_bye,
        sitting_out=[to_player_response(p) for p in round_state.sitting_out],
        has_assignments=round_state.has_assignments,
    )


def _team_summary(context: TournamentContext) -> List[TeamSummary]:
    usage = court_usage(context.schedule)
    summary = []
    for team in context.teams:
        courts = usage.get(("team", team.unit_id), {})
        summary.append(
            TeamSummary(
                id=team.unit_id,
                display_number=team.display_number,
                name=team.name,
                matches=sum(courts.values()),
                courts=dict(sorted(courts.items())),
            )
        )
    return summary


def to_schedule_response(context: TournamentContext) -> ScheduleResponse:
    fixed = context.schedule_mode == TournamentMode.fixed
    return ScheduleResponse(
        tournament_id=context.tournament_id,
        mode=context.schedule_mode.value if context.schedule_mode else None,
        num_courts=context.config.num_courts,
        total_rounds=len(context.schedule),
        total_matches=sum(len(r.matches) for r in context.schedule),
        has_pins=has_pins(context),
        rounds=[_round_response(r) for r in context.schedule],
        team_summary=_team_summary(context) if fixed else [],
    )


# ============================================================================
# Schedule Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/schedule/generate", response_model=GenerateResponse)
def generate(tournament_id: int, request: GenerateRequest, registry: ContextRegistry = Depends(get_registry)):
    """
    Generate the schedule from scratch.

    manual_rounds lock matchups into rounds (rows missing a side are
    skipped); skip_manual ignores them and auto-generates everything.
    """
    context = load_context(tournament_id, registry)
    locked_rounds = drop_incomplete_manual_matches([r.model_dump() for r in request.manual_rounds])
    try:
        summary = generate_schedule(
            context,
            manual_rounds=locked_rounds,
            skip_manual=request.skip_manual,
            assigned_byes=request.assigned_byes,
        )
    except SchedulingError as e:
        raise to_http_exception(e)
    return GenerateResponse(summary=summary.to_dict(), schedule=to_schedule_response(context))


@router.get("/tournaments/{tournament_id}/schedule", response_model=ScheduleResponse)
def get_schedule(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    context = load_context(tournament_id, registry)
    return to_schedule_response(context)


@router.put("/tournaments/{tournament_id}/schedule/matches/{match_id}/round", response_model=ScheduleResponse)
def assign_match_round(
    tournament_id: int,
    match_id: str,
    request: MatchRoundPinRequest,
    registry: ContextRegistry = Depends(get_registry),
):
    """Pin a match to a round (target_round=null clears the pin)"""
    context = load_context(tournament_id, registry)
    try:
        pin_match(context, match_id, request.target_round)
    except SchedulingError as e:
        raise to_http_exception(e)
    return to_schedule_response(context)


@router.put("/tournaments/{tournament_id}/schedule/rounds/{round_number}/bye", response_model=ScheduleResponse)
def assign_round_bye(
    tournament_id: int,
    round_number: int,
    request: ByePinRequest,
    registry: ContextRegistry = Depends(get_registry),
):
    """Pin the team sitting out a round (unit_id=null returns it to automatic)"""
    context = load_context(tournament_id, registry)
    try:
        pin_bye(context, round_number, request.unit_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    return to_schedule_response(context)


@router.post("/tournaments/{tournament_id}/schedule/regenerate", response_model=GenerateResponse)
def regenerate(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    """Re-solve the schedule keeping every round and bye pin"""
    context = load_context(tournament_id, registry)
    try:
        summary = regenerate_with_assignments(context)
    except SchedulingError as e:
        raise to_http_exception(e)
    return GenerateResponse(summary=summary.to_dict(), schedule=to_schedule_response(context))


@router.delete("/tournaments/{tournament_id}/schedule", status_code=204)
def reset(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    context = load_context(tournament_id, registry)
    reset_schedule(context)
    return Response(status_code=204)
