"""
Round-Reassignment Manager: validation and mutation logic for round and bye pins

Pins let an organiser move a match to a specific round (or make a team sit
out a specific round) on an already generated schedule. Pins are checked
against other *pinned* matches and byes only; unpinned matches are free to
move when the schedule is regenerated.

Rejection rules:
1. **Match pin**: the target round already has a pinned match sharing a team,
   or a pinned bye for one of the match's teams
2. **Bye pin**: the team already holds a pinned bye in another round
3. **Bye pin**: the team has a pinned match in that round

A rejected pin is not applied; the schedule keeps its last valid state.
"""

from typing import Dict, List, Optional, Tuple

from rrdoubles.services.errors import InputValidationError, ReassignmentConflictError
from rrdoubles.services.locks import LockedMatch, LockedRound
from rrdoubles.services.round_solver import ScheduledMatch
from rrdoubles.services.tournament_context import TournamentContext
from rrdoubles.services.units import TournamentMode


def _require_fixed_schedule(context: TournamentContext) -> None:
    if not context.schedule:
        raise InputValidationError("Generate a schedule before assigning rounds")
    if context.schedule_mode != TournamentMode.fixed:
        raise InputValidationError("Round and bye assignments are only available for fixed-partner schedules")


def _require_round_in_range(context: TournamentContext, round_number: int) -> None:
    total_rounds = len(context.schedule)
    if round_number < 1 or round_number > total_rounds:
        raise InputValidationError(f"Round {round_number} does not exist; valid rounds are 1..{total_rounds}")


def _describe(match: ScheduledMatch) -> str:
    return f"{match.unit_a.name} vs {match.unit_b.name}"


def pin_match(context: TournamentContext, match_id: str, target_round: Optional[int]) -> ScheduledMatch:
    """
    Pin a match to target_round, or clear its pin when target_round is None.

    Raises:
        ReassignmentConflictError: a team is already pinned into target_round
    """
    _require_fixed_schedule(context)
    _, match = context.find_match(match_id)

    if target_round is None:
        match.assigned_round = None
        return match

    _require_round_in_range(context, target_round)

    conflicting = [
        other
        for other in context.iter_matches()
        if other is not match
        and other.assigned_round == target_round
        and any(other.involves(unit_id) for unit_id in match.unit_ids)
    ]
    if conflicting:
        names = ", ".join(_describe(m) for m in conflicting)
        raise ReassignmentConflictError(
            f"Cannot assign to Round {target_round}: One of the teams is already assigned to play "
            f"in that round ({names})."
        )

    target_state = context.round_by_number(target_round)
    if target_state.assigned_bye is not None and match.involves(target_state.assigned_bye):
        team = context.team_by_id(target_state.assigned_bye)
        raise ReassignmentConflictError(
            f"Cannot assign to Round {target_round}: {team.name} is assigned a bye in that round."
        )

    match.assigned_round = target_round
    return match


def pin_bye(context: TournamentContext, round_number: int, unit_id: Optional[int]):
    """
    Pin unit_id as the bye of round_number, or clear the pin when unit_id is None.

    Raises:
        InputValidationError: even field, unknown round or team
        ReassignmentConflictError: team already has a bye, or a pinned match that round
    """
    _require_fixed_schedule(context)
    if len(context.teams) % 2 == 0:
        raise InputValidationError("Byes only exist when the number of teams is odd.")
    _require_round_in_range(context, round_number)
    round_state = context.round_by_number(round_number)

    if unit_id is None:
        round_state.assigned_bye = None
        return round_state

    team = context.team_by_id(unit_id)

    for other in context.schedule:
        if other is not round_state and other.assigned_bye == unit_id:
            raise ReassignmentConflictError(
                f"{team.name} is already assigned as bye in Round {other.round_number}. "
                "A team can only have one bye per tournament."
            )

    for match in context.iter_matches():
        if match.assigned_round == round_number and match.involves(unit_id):
            raise ReassignmentConflictError(
                f"{team.name} has an assigned match in Round {round_number} ({_describe(match)}). "
                "Cannot assign bye."
            )

    round_state.assigned_bye = unit_id
    return round_state


def has_pins(context: TournamentContext) -> bool:
    return any(round_state.has_assignments for round_state in context.schedule)


def collect_pins(context: TournamentContext) -> Tuple[List[LockedRound], Dict[int, int]]:
    """
    Gather every pin on the current schedule.

    Returns:
        (locked rounds sorted by target round, round_number -> bye unit id)
    """
    assigned_byes: Dict[int, int] = {}
    for round_state in context.schedule:
        if round_state.assigned_bye is not None:
            assigned_byes[round_state.round_number] = round_state.assigned_bye

    by_round: Dict[int, LockedRound] = {}
    for round_state in context.schedule:
        for match in round_state.matches:
            if match.assigned_round is None:
                continue
            target = by_round.setdefault(match.assigned_round, LockedRound(round_number=match.assigned_round))
            target.matches.append(LockedMatch(unit_a_id=match.unit_a.unit_id, unit_b_id=match.unit_b.unit_id))

    locked_rounds = [by_round[k] for k in sorted(by_round)]
    return locked_rounds, assigned_byes
