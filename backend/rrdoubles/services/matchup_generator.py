"""
Matchup universe for a fixed-partner round robin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from rrdoubles.services.units import FixedTeam, UnitId


def matchup_key(unit_a_id: UnitId, unit_b_id: UnitId) -> str:
    """Canonical key for an unordered pair: '<lo>-<hi>'"""
    lo, hi = sorted((unit_a_id, unit_b_id))
    return f"{lo}-{hi}"


@dataclass(frozen=True)
class Matchup:
    unit_a: FixedTeam
    unit_b: FixedTeam

    @property
    def key(self) -> str:
        return matchup_key(self.unit_a.unit_id, self.unit_b.unit_id)

    def involves(self, unit_id: UnitId) -> bool:
        return unit_id in (self.unit_a.unit_id, self.unit_b.unit_id)


def round_robin_match_count(n: int) -> int:
    """Round robin match count: n * (n-1) / 2"""
    return (n * (n - 1)) // 2


def total_rounds_for(n: int) -> int:
    """N-1 rounds for an even field, N for an odd one (each round has one bye)"""
    if n < 2:
        return 0
    return n - 1 if n % 2 == 0 else n


def matches_per_round_for(n: int) -> int:
    return n // 2


def generate_matchups(units: Sequence[FixedTeam]) -> List[Matchup]:
    """
    Enumerate every unordered pair of units.

    Order follows the input list: (0,1), (0,2), ..., (1,2), ...
    """
    matchups: List[Matchup] = []
    for i in range(len(units)):
        for j in range(i + 1, len(units)):
            matchups.append(Matchup(unit_a=units[i], unit_b=units[j]))
    return matchups
