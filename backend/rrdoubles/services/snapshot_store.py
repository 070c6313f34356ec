"""
Roster snapshot persistence.

Only the competitor lists are stored, one row per list, keyed by
"<tournament name>:teams" and "<tournament name>:players". Schedules,
pins and scores live in the tournament context only.

Restore is best-effort: an absent or malformed snapshot leaves the context's
roster as it is.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from rrdoubles.models.competitor_snapshot import CompetitorSnapshot
from rrdoubles.services.tournament_context import TournamentContext, load_roster, roster_payload

logger = logging.getLogger(__name__)

TEAMS_SUFFIX = "teams"
PLAYERS_SUFFIX = "players"


def snapshot_key(tournament_name: str, suffix: str) -> str:
    return f"{tournament_name.strip()}:{suffix}"


def _write(session: Session, key: str, payload: List[Dict[str, Any]]) -> None:
    row = session.get(CompetitorSnapshot, key)
    if row is None:
        row = CompetitorSnapshot(key=key, payload=payload)
    else:
        row.payload = payload
        row.updated_at = datetime.utcnow()
    session.add(row)


def save_roster(session: Session, context: TournamentContext) -> bool:
    """
    Persist the context's teams and players.

    Returns False (and logs) if the database write fails; roster edits in
    the context are kept either way.
    """
    teams, players = roster_payload(context)
    try:
        _write(session, snapshot_key(context.name, TEAMS_SUFFIX), teams)
        _write(session, snapshot_key(context.name, PLAYERS_SUFFIX), players)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to save roster snapshot for tournament %s", context.tournament_id)
        return False
    return True


def _read(session: Session, key: str) -> Optional[List[Dict[str, Any]]]:
    row = session.get(CompetitorSnapshot, key)
    if row is None:
        return None
    return row.payload


def _valid_rows(payload: Any, required: tuple) -> bool:
    if not isinstance(payload, list):
        return False
    return all(isinstance(item, dict) and all(k in item for k in required) for item in payload)


def restore_roster(session: Session, context: TournamentContext) -> bool:
    """
    Load a saved roster into the context.

    Returns True if anything was restored. Absent or malformed snapshots are
    skipped silently (logged at warning for malformed ones).
    """
    try:
        teams = _read(session, snapshot_key(context.name, TEAMS_SUFFIX))
        players = _read(session, snapshot_key(context.name, PLAYERS_SUFFIX))
    except SQLAlchemyError as exc:
        logger.warning("Roster snapshot unavailable for '%s': %s", context.name, exc)
        return False

    if teams is None and players is None:
        return False

    teams = teams if teams is not None else []
    players = players if players is not None else []
    if not _valid_rows(teams, ("id", "player1", "player2")) or not _valid_rows(players, ("id", "name")):
        logger.warning("Ignoring malformed roster snapshot for '%s'", context.name)
        return False

    try:
        load_roster(context, teams, players)
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed roster snapshot for '%s': %s", context.name, exc)
        return False

    logger.info("Restored %d teams and %d players for '%s'", len(context.teams), len(context.players), context.name)
    return True
