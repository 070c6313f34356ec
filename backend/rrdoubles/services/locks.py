"""
Locked matchups: user-specified (round -> matchup) bindings the solver must keep.

Locks come from two places: the manual round setup before the first
generate, and round pins collected by the reassignment manager before a
regenerate. Both are validated here before the solver runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from rrdoubles.services.errors import InputValidationError, LockConflictError
from rrdoubles.services.matchup_generator import matchup_key
from rrdoubles.services.units import FixedTeam


@dataclass(frozen=True)
class LockedMatch:
    unit_a_id: int
    unit_b_id: int

    @property
    def key(self) -> str:
        return matchup_key(self.unit_a_id, self.unit_b_id)


@dataclass
class LockedRound:
    round_number: int
    matches: List[LockedMatch] = field(default_factory=list)


def drop_incomplete_manual_matches(manual_rounds: Sequence[Mapping]) -> List[LockedRound]:
    """
    Convert raw manual-round rows into LockedRounds.

    Rows with a missing side are treated as unfinished form input and
    skipped; rounds left with no matches are dropped. Self matchups are
    kept so validation can reject them by name.
    """
    locked: List[LockedRound] = []
    for raw_round in manual_rounds:
        matches = []
        for raw_match in raw_round.get("matches", []):
            a = raw_match.get("unit_a_id")
            b = raw_match.get("unit_b_id")
            if a is None or b is None:
                continue
            matches.append(LockedMatch(unit_a_id=int(a), unit_b_id=int(b)))
        if matches:
            locked.append(LockedRound(round_number=int(raw_round["round_number"]), matches=matches))
    return locked


def group_locks_by_round(locked_rounds: Sequence[LockedRound]) -> Dict[int, List[LockedMatch]]:
    """Merge locked rounds sharing a round number, preserving input order"""
    grouped: Dict[int, List[LockedMatch]] = {}
    for locked_round in sorted(locked_rounds, key=lambda r: r.round_number):
        grouped.setdefault(locked_round.round_number, []).extend(locked_round.matches)
    return grouped


def _team_name(units_by_id: Mapping[int, FixedTeam], unit_id: int) -> str:
    unit = units_by_id.get(unit_id)
    return unit.name if unit else f"Team {unit_id}"


def validate_locked_rounds(
    locked_rounds: Sequence[LockedRound],
    units_by_id: Mapping[int, FixedTeam],
    total_rounds: int,
    matches_per_round: Optional[int] = None,
) -> None:
    """
    Reject lock sets that can never be honoured.

    Raises:
        InputValidationError: self matchup, unknown team, round out of range
        LockConflictError: team double-booked within a round, duplicate
            matchup across rounds, round over capacity
    """
    seen_keys: Dict[str, int] = {}

    for round_number, matches in group_locks_by_round(locked_rounds).items():
        if round_number < 1 or round_number > total_rounds:
            raise InputValidationError(
                f"Round {round_number} does not exist; valid rounds are 1..{total_rounds}"
            )

        if matches_per_round is not None and len(matches) > matches_per_round:
            raise LockConflictError(
                f"Round {round_number}: {len(matches)} locked matches exceed the "
                f"{matches_per_round} matches a round can hold."
            )

        units_in_round = set()
        for match in matches:
            if match.unit_a_id == match.unit_b_id:
                raise InputValidationError(
                    f"Round {round_number}: {_team_name(units_by_id, match.unit_a_id)} cannot play itself."
                )
            for unit_id in (match.unit_a_id, match.unit_b_id):
                if unit_id not in units_by_id:
                    raise InputValidationError(f"Round {round_number}: unknown team {unit_id}")

            if match.unit_a_id in units_in_round or match.unit_b_id in units_in_round:
                raise LockConflictError(
                    f"Round {round_number}: A team cannot play multiple matches in the same round."
                )
            units_in_round.add(match.unit_a_id)
            units_in_round.add(match.unit_b_id)

            if match.key in seen_keys:
                raise LockConflictError(
                    f"Duplicate matchup: {_team_name(units_by_id, match.unit_a_id)} vs "
                    f"{_team_name(units_by_id, match.unit_b_id)} appears more than once.",
                    code="DUPLICATE_MATCHUP",
                )
            seen_keys[match.key] = round_number
