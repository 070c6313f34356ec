"""
Standings Calculator

Aggregates recorded scores into a ranking. Only matches with both scores
recorded count; ties add a game played and points but no win or loss.

Fixed-partner mode ranks teams. Rotating and mixed modes rank players: each
member of a side gets that side's result, because the pairing itself only
exists for one round.

Ranking: wins desc, average margin desc, then name for a stable display order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, List, Sequence

from rrdoubles.services.round_solver import ScheduledMatch
from rrdoubles.services.tournament_context import TournamentContext
from rrdoubles.services.units import TournamentMode, Unit


@dataclass
class StandingRow:
    entity_id: Hashable
    name: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: int = 0
    points_against: int = 0
    margin_total: int = 0
    rank: int = 0

    @property
    def average_margin(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.margin_total / self.games_played

    def add_result(self, scored: int, conceded: int) -> None:
        self.games_played += 1
        self.points_for += scored
        self.points_against += conceded
        self.margin_total += scored - conceded
        if scored > conceded:
            self.wins += 1
        elif scored < conceded:
            self.losses += 1
        else:
            self.ties += 1

    def to_dict(self):
        return {
            "id": self.entity_id,
            "name": self.name,
            "rank": self.rank,
            "games_played": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "margin_total": self.margin_total,
            "average_margin": round(self.average_margin, 2),
        }


def _entity_ids(unit: Unit, per_player: bool) -> Sequence[Hashable]:
    return unit.member_ids if per_player else (unit.unit_id,)


def tally(rows: Dict[Hashable, StandingRow], matches: Sequence[ScheduledMatch], per_player: bool) -> None:
    for match in matches:
        if not match.has_score:
            continue
        for entity_id in _entity_ids(match.unit_a, per_player):
            if entity_id in rows:
                rows[entity_id].add_result(match.score_a, match.score_b)
        for entity_id in _entity_ids(match.unit_b, per_player):
            if entity_id in rows:
                rows[entity_id].add_result(match.score_b, match.score_a)


def rank_rows(rows: Sequence[StandingRow]) -> List[StandingRow]:
    ordered = sorted(rows, key=lambda r: (-r.wins, -r.average_margin, r.name))
    for position, row in enumerate(ordered, start=1):
        row.rank = position
    return ordered


def compute_standings(context: TournamentContext) -> List[StandingRow]:
    """Recompute standings from every scored match in the context's schedule"""
    mode = context.schedule_mode or context.config.mode
    per_player = mode != TournamentMode.fixed

    if per_player:
        rows = {p.player_id: StandingRow(entity_id=p.player_id, name=p.name) for p in context.players}
    else:
        rows = {t.unit_id: StandingRow(entity_id=t.unit_id, name=t.name) for t in context.teams}

    tally(rows, list(context.iter_matches()), per_player)
    return rank_rows(list(rows.values()))
