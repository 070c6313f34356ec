"""
Schedule Orchestrator Service

Runs the full generate pipeline against a tournament context:

Fixed-partner mode:
1. Validate roster, locked matchups and assigned byes
2. Generate the matchup universe
3. Solve rounds (greedy / circle / bounded backtracking)
4. Resolve byes for odd fields
5. Balance courts

Rotating / mixed mode:
1. Validate roster
2. Rotate partners and set pairs against each other
3. Balance courts

Regenerate collects the pins made on the current schedule, turns them into
locks and runs the fixed-partner pipeline again from scratch. The context is
only written once the whole pipeline has succeeded.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from rrdoubles.services.bye_allocator import allocate_byes, validate_assigned_byes
from rrdoubles.services.court_balancer import balance_courts
from rrdoubles.services.errors import InputValidationError, ScheduleInfeasibleError
from rrdoubles.services.locks import LockedRound, group_locks_by_round, validate_locked_rounds
from rrdoubles.services.matchup_generator import (
    Matchup,
    generate_matchups,
    matches_per_round_for,
    total_rounds_for,
)
from rrdoubles.services.reassignment import collect_pins, has_pins
from rrdoubles.services.rotation import build_rotating_schedule
from rrdoubles.services.round_solver import RoundState, SearchBudget, SolveStatus, solve_rounds
from rrdoubles.services.tournament_context import TournamentContext
from rrdoubles.services.units import FixedTeam, TournamentMode

logger = logging.getLogger(__name__)

MIN_TEAMS = 2


class ScheduleBuildSummary:
    """Summary of a generate/regenerate run"""

    def __init__(self, mode: TournamentMode):
        self.mode = mode
        self.total_rounds = 0
        self.total_matches = 0
        self.matches_per_round = 0
        self.locked_matches = 0
        self.assigned_byes = 0
        self.strategy: Optional[str] = None
        self.nodes_explored = 0

    def to_dict(self):
        return {
            "mode": self.mode.value,
            "total_rounds": self.total_rounds,
            "total_matches": self.total_matches,
            "matches_per_round": self.matches_per_round,
            "locked_matches": self.locked_matches,
            "assigned_byes": self.assigned_byes,
            "strategy": self.strategy,
            "nodes_explored": self.nodes_explored,
        }


def _locked_matchups(
    locked_rounds: Sequence[LockedRound], units_by_id: Mapping[int, FixedTeam]
) -> Dict[int, List[Matchup]]:
    return {
        round_number: [Matchup(unit_a=units_by_id[m.unit_a_id], unit_b=units_by_id[m.unit_b_id]) for m in matches]
        for round_number, matches in group_locks_by_round(locked_rounds).items()
    }


def _build_fixed_schedule(
    context: TournamentContext,
    locked_rounds: Sequence[LockedRound],
    assigned_byes: Mapping[int, int],
    budget: Optional[SearchBudget],
    infeasible_message: str,
    summary: ScheduleBuildSummary,
) -> List[RoundState]:
    teams = list(context.teams)
    if len(teams) < MIN_TEAMS:
        raise InputValidationError(f"Please add at least {MIN_TEAMS} teams")

    total_rounds = total_rounds_for(len(teams))
    matches_per_round = matches_per_round_for(len(teams))
    units_by_id = {t.unit_id: t for t in teams}

    validate_locked_rounds(locked_rounds, units_by_id, total_rounds, matches_per_round)
    validate_assigned_byes(assigned_byes, teams, total_rounds, locked_rounds)

    result = solve_rounds(
        generate_matchups(teams),
        total_rounds=total_rounds,
        matches_per_round=matches_per_round,
        locked=_locked_matchups(locked_rounds, units_by_id),
        assigned_byes=assigned_byes,
        budget=budget,
    )

    if result.status == SolveStatus.budget_exhausted:
        raise ScheduleInfeasibleError(
            f"Schedule search stopped after {result.nodes_explored} steps without finding a valid schedule. "
            "Remove some round assignments and try again.",
            timed_out=True,
        )
    if result.status != SolveStatus.solved:
        raise ScheduleInfeasibleError(infeasible_message)

    allocate_byes(result.rounds, teams)
    balance_courts(result.rounds, context.config.num_courts)

    summary.total_rounds = total_rounds
    summary.matches_per_round = matches_per_round
    summary.total_matches = sum(len(r.matches) for r in result.rounds)
    summary.locked_matches = sum(len(r.matches) for r in locked_rounds)
    summary.assigned_byes = len(assigned_byes)
    summary.strategy = result.strategy
    summary.nodes_explored = result.nodes_explored
    return result.rounds


def _carry_scores(old_rounds: Sequence[RoundState], new_rounds: Sequence[RoundState]) -> None:
    """Keep recorded scores for matchups that survive a regenerate"""
    scores = {}
    for round_state in old_rounds:
        for match in round_state.matches:
            if match.score_a is not None or match.score_b is not None:
                scores[match.key] = (match.unit_a.unit_id, match.score_a, match.score_b)

    for round_state in new_rounds:
        for match in round_state.matches:
            if match.key not in scores:
                continue
            side_a_id, score_a, score_b = scores[match.key]
            if match.unit_a.unit_id == side_a_id:
                match.score_a, match.score_b = score_a, score_b
            else:
                match.score_a, match.score_b = score_b, score_a


def generate_schedule(
    context: TournamentContext,
    manual_rounds: Sequence[LockedRound] = (),
    skip_manual: bool = False,
    assigned_byes: Optional[Mapping[int, int]] = None,
    budget: Optional[SearchBudget] = None,
) -> ScheduleBuildSummary:
    """
    Build a fresh schedule for the context's current mode.

    Args:
        context: Tournament context (written only on success)
        manual_rounds: Matchups locked to rounds before generation
        skip_manual: Ignore manual_rounds and auto-generate everything
        assigned_byes: round_number -> team id that must sit out that round
        budget: Backtracking ceiling; defaults to configured limits

    Raises:
        InputValidationError, LockConflictError, ScheduleInfeasibleError
    """
    context.config.validate()
    mode = context.config.mode
    summary = ScheduleBuildSummary(mode)

    locked_rounds = [] if skip_manual else list(manual_rounds)
    assigned_byes = dict(assigned_byes or {})

    if mode == TournamentMode.fixed:
        rounds = _build_fixed_schedule(
            context,
            locked_rounds,
            assigned_byes,
            budget,
            "Unable to generate a valid schedule with the given manual matchups. Please adjust your manual rounds.",
            summary,
        )
    else:
        if any(r.matches for r in locked_rounds) or assigned_byes:
            raise InputValidationError("Manual rounds and byes are only available for fixed-partner mode")
        rounds = build_rotating_schedule(context.players, mode)
        balance_courts(rounds, context.config.num_courts)
        summary.total_rounds = len(rounds)
        summary.matches_per_round = max((len(r.matches) for r in rounds), default=0)
        summary.total_matches = sum(len(r.matches) for r in rounds)
        summary.strategy = "rotation"

    context.schedule = rounds
    context.schedule_mode = mode
    logger.info(
        "Tournament %s: generated %s schedule with %d rounds, %d matches (strategy=%s)",
        context.tournament_id,
        mode.value,
        summary.total_rounds,
        summary.total_matches,
        summary.strategy,
    )
    return summary


def regenerate_with_assignments(
    context: TournamentContext, budget: Optional[SearchBudget] = None
) -> ScheduleBuildSummary:
    """
    Re-solve the schedule from scratch keeping every current pin.

    Pinned matches become locks in their target round; pinned byes stay.
    Unpinned matches may land anywhere. Recorded scores follow their matchup.
    """
    if not context.schedule:
        raise InputValidationError("Generate a schedule before regenerating")
    if context.schedule_mode != TournamentMode.fixed:
        raise InputValidationError("Regenerating with assignments is only available for fixed-partner schedules")
    if not has_pins(context):
        raise InputValidationError("Assign matches to specific rounds or byes first")

    locked_rounds, assigned_byes = collect_pins(context)
    summary = ScheduleBuildSummary(TournamentMode.fixed)
    rounds = _build_fixed_schedule(
        context,
        locked_rounds,
        assigned_byes,
        budget,
        "Unable to generate a valid schedule. Please adjust your round assignments.",
        summary,
    )
    _carry_scores(context.schedule, rounds)

    context.schedule = rounds
    logger.info(
        "Tournament %s: regenerated schedule with %d pinned matches and %d pinned byes",
        context.tournament_id,
        summary.locked_matches,
        summary.assigned_byes,
    )
    return summary


def reset_schedule(context: TournamentContext) -> None:
    context.schedule = []
    context.schedule_mode = None
