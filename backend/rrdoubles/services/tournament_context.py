"""
Tournament context: the explicit session value every operation works on.

A context owns one tournament's roster (teams or players), its generate-time
configuration, the current schedule and the pins made on it. Operations
validate first and mutate second, so a rejected call leaves the context as
it was.

Team and player ids are stable for the life of the context. Removing a
competitor only renumbers display_number (the T1..TN label); locks and pins
keep pointing at the right unit. Any roster change discards the current
schedule, since its matchups no longer cover the field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from rrdoubles import config
from rrdoubles.services.errors import InputValidationError, NotFoundError
from rrdoubles.services.round_solver import RoundState, ScheduledMatch
from rrdoubles.services.units import FixedTeam, Player, PlayerRole, TournamentMode
from rrdoubles.utils.quick_add import parse_player_lines, parse_team_lines
from rrdoubles.utils.score_parser import parse_game_score

logger = logging.getLogger(__name__)


@dataclass
class TournamentConfig:
    num_courts: int = config.DEFAULT_NUM_COURTS
    mode: TournamentMode = TournamentMode.fixed
    scoring_enabled: bool = True

    def validate(self) -> None:
        if not isinstance(self.num_courts, int) or self.num_courts < 1:
            raise InputValidationError(f"Number of courts must be a positive integer, got {self.num_courts}")


@dataclass
class TournamentContext:
    tournament_id: int
    name: str
    config: TournamentConfig = field(default_factory=TournamentConfig)
    teams: List[FixedTeam] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)
    schedule: List[RoundState] = field(default_factory=list)
    schedule_mode: Optional[TournamentMode] = None  # Mode the current schedule was built with
    next_team_id: int = 1
    next_player_id: int = 1

    @property
    def has_schedule(self) -> bool:
        return bool(self.schedule)

    def team_by_id(self, team_id: int) -> FixedTeam:
        for team in self.teams:
            if team.unit_id == team_id:
                return team
        raise NotFoundError(f"Team {team_id} not found")

    def round_by_number(self, round_number: int) -> RoundState:
        for round_state in self.schedule:
            if round_state.round_number == round_number:
                return round_state
        raise NotFoundError(f"Round {round_number} not found")

    def find_match(self, match_id: str) -> Tuple[RoundState, ScheduledMatch]:
        for round_state in self.schedule:
            for match in round_state.matches:
                if match.match_id == match_id:
                    return round_state, match
        raise NotFoundError(f"Match {match_id} not found")

    def iter_matches(self):
        for round_state in self.schedule:
            yield from round_state.matches


# ============================================================================
# Roster mutation
# ============================================================================


def invalidate_schedule(context: TournamentContext) -> None:
    if context.schedule:
        logger.info("Tournament %s: roster changed, discarding %d-round schedule", context.tournament_id, len(context.schedule))
    context.schedule = []
    context.schedule_mode = None


def _renumber_teams(context: TournamentContext) -> None:
    context.teams = [replace(team, display_number=i + 1) for i, team in enumerate(context.teams)]


def _clean_name(raw: Optional[str], label: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise InputValidationError(f"Please enter {label}")
    return name


def add_team(context: TournamentContext, player1: str, player2: str) -> FixedTeam:
    """Append a fixed team; both player names are required"""
    if not (player1 or "").strip() or not (player2 or "").strip():
        raise InputValidationError("Please enter both player names")

    team = FixedTeam(
        unit_id=context.next_team_id,
        player1=player1.strip(),
        player2=player2.strip(),
        display_number=len(context.teams) + 1,
    )
    context.next_team_id += 1
    context.teams.append(team)
    invalidate_schedule(context)
    return team


def quick_add_teams(context: TournamentContext, text: str) -> List[FixedTeam]:
    parsed = parse_team_lines(text)
    if not parsed:
        raise InputValidationError("No valid teams found. Use format: Player1, Player2 (one team per line)")
    return [add_team(context, p1, p2) for p1, p2 in parsed]


def remove_team(context: TournamentContext, team_id: int) -> FixedTeam:
    team = context.team_by_id(team_id)
    context.teams = [t for t in context.teams if t.unit_id != team_id]
    _renumber_teams(context)
    invalidate_schedule(context)
    return team


def add_player(context: TournamentContext, name: str, role: Optional[PlayerRole] = None) -> Player:
    player = Player(player_id=context.next_player_id, name=_clean_name(name, "a player name"), role=role)
    context.next_player_id += 1
    context.players.append(player)
    invalidate_schedule(context)
    return player


def quick_add_players(context: TournamentContext, text: str) -> List[Player]:
    parsed = parse_player_lines(text)
    if not parsed:
        raise InputValidationError("No valid players found. Use format: Name or Name, M/F (one player per line)")
    return [add_player(context, name, role) for name, role in parsed]


def remove_player(context: TournamentContext, player_id: int) -> Player:
    for player in context.players:
        if player.player_id == player_id:
            context.players = [p for p in context.players if p.player_id != player_id]
            invalidate_schedule(context)
            return player
    raise NotFoundError(f"Player {player_id} not found")


def load_roster(context: TournamentContext, teams: List[Dict], players: List[Dict]) -> None:
    """Replace the roster from snapshot rows; ids are kept as stored"""
    loaded_teams = [
        FixedTeam(unit_id=int(t["id"]), player1=str(t["player1"]), player2=str(t["player2"]), display_number=i + 1)
        for i, t in enumerate(teams)
    ]
    loaded_players = [
        Player(
            player_id=int(p["id"]),
            name=str(p["name"]),
            role=PlayerRole(p["role"]) if p.get("role") else None,
        )
        for p in players
    ]
    context.teams = loaded_teams
    context.players = loaded_players
    context.next_team_id = max((t.unit_id for t in context.teams), default=0) + 1
    context.next_player_id = max((p.player_id for p in context.players), default=0) + 1
    invalidate_schedule(context)


def roster_payload(context: TournamentContext) -> Tuple[List[Dict], List[Dict]]:
    teams = [{"id": t.unit_id, "player1": t.player1, "player2": t.player2} for t in context.teams]
    players = [
        {"id": p.player_id, "name": p.name, "role": p.role.value if p.role else None} for p in context.players
    ]
    return teams, players


# ============================================================================
# Scores
# ============================================================================


def record_score(context: TournamentContext, match_id: str, score_a=None, score_b=None, raw=None) -> ScheduledMatch:
    """
    Record both sides' points for a match.

    Accepts numeric score_a/score_b or a raw "11-5" style string.
    """
    if not context.config.scoring_enabled:
        raise InputValidationError("Scoring is disabled for this tournament")

    _, match = context.find_match(match_id)

    if raw is not None:
        parsed = parse_game_score(raw)
    else:
        parsed = parse_game_score({"a": score_a, "b": score_b})
    if parsed is None:
        raise InputValidationError(f"Invalid score for match {match_id}; use two non-negative numbers like 11-5")

    match.score_a = parsed.score_a
    match.score_b = parsed.score_b
    return match


def clear_score(context: TournamentContext, match_id: str) -> ScheduledMatch:
    _, match = context.find_match(match_id)
    match.score_a = None
    match.score_b = None
    return match


# ============================================================================
# Registry (web layer holds one per process)
# ============================================================================


class ContextRegistry:
    """In-process tournament contexts keyed by tournament id"""

    def __init__(self):
        self._contexts: Dict[int, TournamentContext] = {}
        self._next_id = 1

    def create(self, name: str, tournament_config: Optional[TournamentConfig] = None) -> TournamentContext:
        tournament_config = tournament_config or TournamentConfig()
        tournament_config.validate()
        context = TournamentContext(tournament_id=self._next_id, name=name.strip(), config=tournament_config)
        self._contexts[context.tournament_id] = context
        self._next_id += 1
        return context

    def get(self, tournament_id: int) -> TournamentContext:
        context = self._contexts.get(tournament_id)
        if context is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return context

    def all(self) -> List[TournamentContext]:
        return [self._contexts[k] for k in sorted(self._contexts)]

    def delete(self, tournament_id: int) -> None:
        self.get(tournament_id)
        del self._contexts[tournament_id]

    def clear(self) -> None:
        self._contexts.clear()
        self._next_id = 1


registry = ContextRegistry()


def get_registry() -> ContextRegistry:
    """FastAPI dependency; tests override it with a fresh registry"""
    return registry
