"""
Bye Allocator

Odd fields leave one unit idle per round. The assigned (pinned) bye wins;
otherwise the first unit in roster order that has no match that round sits
out.

Rules for assigned byes:
1. A unit may hold at most one bye across the tournament
2. A unit may not sit out a round where it has a locked match
"""

from typing import Dict, List, Mapping, Optional, Sequence

from rrdoubles.services.errors import InputValidationError, LockConflictError
from rrdoubles.services.locks import LockedRound, group_locks_by_round
from rrdoubles.services.round_solver import RoundState
from rrdoubles.services.units import FixedTeam


def validate_assigned_byes(
    assigned_byes: Mapping[int, int],
    units: Sequence[FixedTeam],
    total_rounds: int,
    locked_rounds: Sequence[LockedRound] = (),
) -> None:
    """
    Check assigned byes before the solver runs.

    Raises:
        InputValidationError: even field, unknown team, round out of range
        LockConflictError: a team holds two byes, or a bye collides with a
            locked match in the same round
    """
    if not assigned_byes:
        return

    if len(units) % 2 == 0:
        raise InputValidationError("Byes only exist when the number of teams is odd.")

    units_by_id = {u.unit_id: u for u in units}
    bye_round_for_unit: Dict[int, int] = {}
    locked_by_round = group_locks_by_round(locked_rounds)

    for round_number in sorted(assigned_byes):
        unit_id = assigned_byes[round_number]
        if round_number < 1 or round_number > total_rounds:
            raise InputValidationError(
                f"Round {round_number} does not exist; valid rounds are 1..{total_rounds}"
            )
        unit = units_by_id.get(unit_id)
        if unit is None:
            raise InputValidationError(f"Round {round_number}: unknown team {unit_id}")

        if unit_id in bye_round_for_unit:
            raise LockConflictError(
                f"{unit.name} is already assigned as bye in Round {bye_round_for_unit[unit_id]}. "
                "A team can only have one bye per tournament.",
                code="DUPLICATE_BYE",
            )
        bye_round_for_unit[unit_id] = round_number

        for locked in locked_by_round.get(round_number, []):
            if unit_id in (locked.unit_a_id, locked.unit_b_id):
                raise LockConflictError(
                    f"{unit.name} has an assigned match in Round {round_number}. Cannot assign bye.",
                    code="BYE_MATCH_CONFLICT",
                )


def default_bye(round_state: RoundState, units: Sequence[FixedTeam]) -> Optional[FixedTeam]:
    """First unit in roster order without a match this round"""
    playing = set()
    for match in round_state.matches:
        playing.update(match.unit_ids)
    for unit in units:
        if unit.unit_id not in playing:
            return unit
    return None


def allocate_byes(rounds: List[RoundState], units: Sequence[FixedTeam]) -> List[RoundState]:
    """Resolve bye_unit for every round of an odd field (even fields get None)"""
    units_by_id = {u.unit_id: u for u in units}
    odd_field = len(units) % 2 != 0

    for round_state in rounds:
        round_state.bye_unit = None
        if not odd_field:
            continue
        if round_state.assigned_bye is not None and round_state.assigned_bye in units_by_id:
            round_state.bye_unit = units_by_id[round_state.assigned_bye]
        else:
            round_state.bye_unit = default_bye(round_state, units)

    return rounds
