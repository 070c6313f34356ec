"""
Tournament API Routes
Creates and configures tournament contexts. Creating a tournament restores
its saved roster snapshot (matched by name) when one exists.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from rrdoubles import config
from rrdoubles.database import get_session
from rrdoubles.services.errors import SchedulingError
from rrdoubles.services.snapshot_store import restore_roster
from rrdoubles.services.tournament_context import (
    ContextRegistry,
    TournamentConfig,
    TournamentContext,
    get_registry,
    invalidate_schedule,
)
from rrdoubles.services.units import TournamentMode
from rrdoubles.utils.http_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TournamentCreate(BaseModel):
    name: str
    mode: TournamentMode = TournamentMode.fixed
    num_courts: int = config.DEFAULT_NUM_COURTS
    scoring_enabled: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("num_courts")
    @classmethod
    def validate_num_courts(cls, v):
        if v < 1:
            raise ValueError("num_courts must be a positive integer")
        return v


class TournamentUpdate(BaseModel):
    mode: Optional[TournamentMode] = None
    num_courts: Optional[int] = None
    scoring_enabled: Optional[bool] = None

    @field_validator("num_courts")
    @classmethod
    def validate_num_courts(cls, v):
        if v is not None and v < 1:
            raise ValueError("num_courts must be a positive integer")
        return v


class TournamentResponse(BaseModel):
    id: int
    name: str
    mode: TournamentMode
    num_courts: int
    scoring_enabled: bool
    team_count: int
    player_count: int
    has_schedule: bool


def to_tournament_response(context: TournamentContext) -> TournamentResponse:
    return TournamentResponse(
        id=context.tournament_id,
        name=context.name,
        mode=context.config.mode,
        num_courts=context.config.num_courts,
        scoring_enabled=context.config.scoring_enabled,
        team_count=len(context.teams),
        player_count=len(context.players),
        has_schedule=context.has_schedule,
    )


def load_context(tournament_id: int, registry: ContextRegistry) -> TournamentContext:
    try:
        return registry.get(tournament_id)
    except SchedulingError as e:
        raise to_http_exception(e)


# ============================================================================
# Tournament Endpoints
# ============================================================================


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(registry: ContextRegistry = Depends(get_registry)):
    """List all tournaments in this process"""
    return [to_tournament_response(c) for c in registry.all()]


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(
    payload: TournamentCreate,
    session: Session = Depends(get_session),
    registry: ContextRegistry = Depends(get_registry),
):
    """Create a tournament and restore its saved roster, if any"""
    try:
        context = registry.create(
            payload.name,
            TournamentConfig(
                num_courts=payload.num_courts,
                mode=payload.mode,
                scoring_enabled=payload.scoring_enabled,
            ),
        )
    except SchedulingError as e:
        raise to_http_exception(e)

    restore_roster(session, context)
    return to_tournament_response(context)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    return to_tournament_response(load_context(tournament_id, registry))


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(
    tournament_id: int, payload: TournamentUpdate, registry: ContextRegistry = Depends(get_registry)
):
    """
    Update generate-time configuration.

    Changing the mode discards the current schedule; court count and scoring
    apply from the next generate.
    """
    context = load_context(tournament_id, registry)

    if payload.mode is not None and payload.mode != context.config.mode:
        context.config.mode = payload.mode
        invalidate_schedule(context)
    if payload.num_courts is not None:
        context.config.num_courts = payload.num_courts
    if payload.scoring_enabled is not None:
        context.config.scoring_enabled = payload.scoring_enabled

    return to_tournament_response(context)


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, registry: ContextRegistry = Depends(get_registry)):
    """Drop the tournament context; the roster snapshot is kept"""
    load_context(tournament_id, registry)
    registry.delete(tournament_id)
    return Response(status_code=204)
