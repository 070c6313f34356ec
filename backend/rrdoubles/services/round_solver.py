"""
Round Constraint Solver

Places every fixed-partner matchup into exactly one round while enforcing:

1. **Capacity**: a round holds at most floor(N/2) matches
2. **One match per unit per round**: a unit is never double-booked
3. **Locks**: locked matchups stay in their locked round verbatim
4. **Assigned byes**: a unit pinned to sit out a round is never scheduled in it

Strategy:
- Seed each round with its locked matches (and block assigned bye units)
- Greedy fill: most constrained round first, most constrained matchup within it
- Circle rotation: when nothing is locked, the classic circle method always
  yields a complete schedule; rounds are permuted to honour assigned byes
- Backtracking: exhaustive search over the unlocked matchups, most
  constrained first, bounded by a SearchBudget

Budget exhaustion is reported separately from proven infeasibility.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Set

from rrdoubles import config
from rrdoubles.services.matchup_generator import Matchup, matchup_key
from rrdoubles.services.units import FixedTeam, Player, Unit, UnitId
from rrdoubles.utils.circle_method import circle_pairings_by_round

logger = logging.getLogger(__name__)


class SolveStatus(str, Enum):
    solved = "solved"
    infeasible = "infeasible"
    budget_exhausted = "budget_exhausted"


class SearchBudgetExhausted(Exception):
    """Raised inside the search to unwind once the budget is spent"""

    pass


@dataclass
class SearchBudget:
    """Node and wall-clock ceiling for the backtracking search (None = unlimited)"""

    max_nodes: Optional[int] = None
    max_seconds: Optional[float] = None
    nodes: int = 0
    _deadline: Optional[float] = field(default=None, repr=False)

    @classmethod
    def from_config(cls) -> "SearchBudget":
        return cls(max_nodes=config.SOLVER_MAX_NODES, max_seconds=config.SOLVER_MAX_SECONDS)

    def start(self) -> None:
        self.nodes = 0
        self._deadline = time.monotonic() + self.max_seconds if self.max_seconds else None

    def spend(self) -> None:
        self.nodes += 1
        if self.max_nodes is not None and self.nodes > self.max_nodes:
            raise SearchBudgetExhausted(f"node limit {self.max_nodes} reached")
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchBudgetExhausted(f"time limit {self.max_seconds}s reached")


@dataclass
class ScheduledMatch:
    """A matchup placed in a round, with its court, pin and scores"""

    unit_a: Unit
    unit_b: Unit
    round_number: int
    assigned_round: Optional[int] = None  # Lock/pin target round; None = free to move
    court: Optional[int] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None

    @property
    def key(self) -> str:
        return matchup_key(self.unit_a.unit_id, self.unit_b.unit_id)

    @property
    def match_id(self) -> str:
        return self.key

    @property
    def unit_ids(self):
        return (self.unit_a.unit_id, self.unit_b.unit_id)

    @property
    def units(self):
        return (self.unit_a, self.unit_b)

    def involves(self, unit_id: UnitId) -> bool:
        return unit_id in self.unit_ids

    @property
    def is_locked(self) -> bool:
        return self.assigned_round is not None

    @property
    def has_score(self) -> bool:
        return self.score_a is not None and self.score_b is not None


@dataclass
class RoundState:
    round_number: int
    matches: List[ScheduledMatch] = field(default_factory=list)
    units_used: Set[UnitId] = field(default_factory=set)
    assigned_bye: Optional[int] = None  # Pinned bye unit id
    bye_unit: Optional[Unit] = None  # Resolved bye (assigned or default)
    sitting_out: List[Player] = field(default_factory=list)  # Rotating modes

    @property
    def has_assigned_matches(self) -> bool:
        return any(m.assigned_round is not None for m in self.matches)

    @property
    def has_assignments(self) -> bool:
        return self.has_assigned_matches or self.assigned_bye is not None

    def accepts_units(self, matchup: Matchup) -> bool:
        return (
            matchup.unit_a.unit_id not in self.units_used
            and matchup.unit_b.unit_id not in self.units_used
        )

    def fits(self, matchup: Matchup, capacity: int) -> bool:
        return len(self.matches) < capacity and self.accepts_units(matchup)

    def place(self, matchup: Matchup, assigned_round: Optional[int] = None) -> ScheduledMatch:
        match = ScheduledMatch(
            unit_a=matchup.unit_a,
            unit_b=matchup.unit_b,
            round_number=self.round_number,
            assigned_round=assigned_round,
        )
        self.matches.append(match)
        self.units_used.add(matchup.unit_a.unit_id)
        self.units_used.add(matchup.unit_b.unit_id)
        return match

    def remove(self, matchup: Matchup) -> None:
        """Undo a free placement; locked matches and the assigned bye stay put"""
        for idx, match in enumerate(self.matches):
            if (
                match.assigned_round is None
                and match.unit_a.unit_id == matchup.unit_a.unit_id
                and match.unit_b.unit_id == matchup.unit_b.unit_id
            ):
                self.matches.pop(idx)
                break
        else:
            return

        for unit_id in (matchup.unit_a.unit_id, matchup.unit_b.unit_id):
            still_used = any(m.involves(unit_id) for m in self.matches)
            if not still_used and unit_id != self.assigned_bye:
                self.units_used.discard(unit_id)


@dataclass
class SolveResult:
    status: SolveStatus
    rounds: List[RoundState] = field(default_factory=list)
    strategy: Optional[str] = None
    nodes_explored: int = 0

    @property
    def solved(self) -> bool:
        return self.status == SolveStatus.solved


# ============================================================================
# Constraint counting
# ============================================================================


def legal_round_count(matchup: Matchup, rounds: Sequence[RoundState], capacity: int) -> int:
    """How many rounds this matchup could still legally occupy"""
    return sum(1 for r in rounds if r.fits(matchup, capacity))


def compatible_matchup_count(round_state: RoundState, matchups: Sequence[Matchup]) -> int:
    """How many unplaced matchups this round could still take (capacity ignored)"""
    return sum(1 for m in matchups if round_state.accepts_units(m))


def candidate_rounds(
    matchup: Matchup, rounds: Sequence[RoundState], pending: Sequence[Matchup], capacity: int
) -> List[RoundState]:
    """Rounds the matchup fits, those the fewest pending matchups could still fill first"""
    fitting = [r for r in rounds if r.fits(matchup, capacity)]
    fitting.sort(key=lambda r: (compatible_matchup_count(r, pending), r.round_number))
    return fitting


def _all_full(rounds: Sequence[RoundState], capacity: int) -> bool:
    return all(len(r.matches) == capacity for r in rounds)


# ============================================================================
# Strategies
# ============================================================================


def _seed_rounds(
    total_rounds: int,
    locked: Mapping[int, Sequence[Matchup]],
    assigned_byes: Mapping[int, int],
) -> List[RoundState]:
    rounds: List[RoundState] = []
    for round_number in range(1, total_rounds + 1):
        round_state = RoundState(round_number=round_number, assigned_bye=assigned_byes.get(round_number))
        if round_state.assigned_bye is not None:
            round_state.units_used.add(round_state.assigned_bye)
        for matchup in locked.get(round_number, []):
            round_state.place(matchup, assigned_round=round_number)
        rounds.append(round_state)
    return rounds


def greedy_fill(rounds: List[RoundState], matchups: Sequence[Matchup], capacity: int) -> bool:
    """
    Fill rounds most-constrained-first.

    Each step picks the round with the fewest compatible unplaced matchups
    (ties: the round needing the most matches), then the matchup with the
    fewest legal rounds that fits it. Stops when a full pass places nothing.
    """
    pending = list(matchups)
    placed = True
    while placed and pending:
        placed = False
        open_rounds = [r for r in rounds if len(r.matches) < capacity]
        open_rounds.sort(
            key=lambda r: (compatible_matchup_count(r, pending), -(capacity - len(r.matches)))
        )

        for round_state in open_rounds:
            best_index = -1
            best_options = None
            for idx, matchup in enumerate(pending):
                if not round_state.accepts_units(matchup):
                    continue
                options = legal_round_count(matchup, rounds, capacity)
                if best_options is None or options < best_options:
                    best_options = options
                    best_index = idx

            if best_index >= 0:
                round_state.place(pending.pop(best_index))
                placed = True
                break

    return not pending and _all_full(rounds, capacity)


def _ordered_units(matchups: Sequence[Matchup]) -> List[FixedTeam]:
    seen: Dict[UnitId, FixedTeam] = {}
    for matchup in matchups:
        for unit in (matchup.unit_a, matchup.unit_b):
            seen.setdefault(unit.unit_id, unit)
    return list(seen.values())


def circle_fill(rounds: List[RoundState], matchups: Sequence[Matchup], capacity: int) -> bool:
    """
    Lay the circle method over empty rounds.

    Only applies when no round holds a locked match. Circle rounds whose
    bye matches an assigned bye go to that round number; the rest fill the
    remaining round numbers in order.
    """
    if any(r.matches for r in rounds):
        return False

    units = _ordered_units(matchups)
    circle_rounds = circle_pairings_by_round(len(units))
    if len(circle_rounds) != len(rounds):
        return False

    by_key = {m.key: m for m in matchups}
    target_for_circle: Dict[int, int] = {}
    for round_state in rounds:
        if round_state.assigned_bye is None:
            continue
        for circle_idx, (_, bye_pos) in enumerate(circle_rounds):
            if bye_pos is not None and units[bye_pos].unit_id == round_state.assigned_bye:
                target_for_circle[circle_idx] = round_state.round_number
                break
        else:
            return False

    bye_targets = set(target_for_circle.values())
    free_round_numbers = iter([r.round_number for r in rounds if r.round_number not in bye_targets])
    for circle_idx in range(len(circle_rounds)):
        if circle_idx not in target_for_circle:
            target_for_circle[circle_idx] = next(free_round_numbers)

    rounds_by_number = {r.round_number: r for r in rounds}
    for circle_idx, (pairs, _) in enumerate(circle_rounds):
        round_state = rounds_by_number[target_for_circle[circle_idx]]
        for pos_a, pos_b in pairs:
            matchup = by_key.get(matchup_key(units[pos_a].unit_id, units[pos_b].unit_id))
            if matchup is None or not round_state.fits(matchup, capacity):
                return False
            round_state.place(matchup)

    return _all_full(rounds, capacity)


def backtrack_fill(
    rounds: List[RoundState], matchups: Sequence[Matchup], capacity: int, budget: SearchBudget
) -> bool:
    """
    Exhaustive search over the unlocked matchups.

    Matchups start sorted by ascending legal-round count; at every step the
    unplaced matchup with the fewest legal rounds left goes next, and a
    matchup with none left ends the branch. Its rounds are tried hardest to
    fill first.

    Raises:
        SearchBudgetExhausted: budget spent before the search finished
    """
    pending = sorted(matchups, key=lambda m: legal_round_count(m, rounds, capacity))

    def solve() -> bool:
        budget.spend()
        if not pending:
            return _all_full(rounds, capacity)

        best_index, best_options = 0, None
        for idx, candidate in enumerate(pending):
            options = legal_round_count(candidate, rounds, capacity)
            if best_options is None or options < best_options:
                best_index, best_options = idx, options
            if options == 0:
                return False

        matchup = pending.pop(best_index)
        for round_state in candidate_rounds(matchup, rounds, pending, capacity):
            round_state.place(matchup)
            if solve():
                return True
            round_state.remove(matchup)
        pending.insert(best_index, matchup)
        return False

    return solve()


# ============================================================================
# Entry point
# ============================================================================


def solve_rounds(
    matchups: Sequence[Matchup],
    total_rounds: int,
    matches_per_round: int,
    locked: Optional[Mapping[int, Sequence[Matchup]]] = None,
    assigned_byes: Optional[Mapping[int, int]] = None,
    budget: Optional[SearchBudget] = None,
) -> SolveResult:
    """
    Assign every matchup to a round.

    Args:
        matchups: Full matchup universe (locked ones included)
        total_rounds: Number of rounds (N-1 even, N odd)
        matches_per_round: Round capacity (floor(N/2))
        locked: round_number -> matchups pinned to that round (validated upstream)
        assigned_byes: round_number -> unit id sitting out that round
        budget: Backtracking ceiling; defaults to configured limits

    Returns:
        SolveResult with status solved/infeasible/budget_exhausted. Rounds are
        only populated on success.
    """
    locked = locked or {}
    assigned_byes = assigned_byes or {}
    budget = budget or SearchBudget.from_config()

    locked_keys = {m.key for matches in locked.values() for m in matches}
    remaining = [m for m in matchups if m.key not in locked_keys]

    strategies = [("greedy", greedy_fill), ("circle", circle_fill)]
    for name, strategy in strategies:
        rounds = _seed_rounds(total_rounds, locked, assigned_byes)
        if strategy(rounds, remaining, matches_per_round):
            logger.info("Schedule solved by %s fill: %d rounds, %d matchups", name, total_rounds, len(matchups))
            return SolveResult(status=SolveStatus.solved, rounds=rounds, strategy=name)

    logger.info(
        "Heuristic fill incomplete (%d locked rounds, %d assigned byes); falling back to backtracking",
        len(locked),
        len(assigned_byes),
    )

    rounds = _seed_rounds(total_rounds, locked, assigned_byes)
    budget.start()
    try:
        found = backtrack_fill(rounds, remaining, matches_per_round, budget)
    except SearchBudgetExhausted as exc:
        logger.warning("Backtracking stopped after %d nodes: %s", budget.nodes, exc)
        return SolveResult(status=SolveStatus.budget_exhausted, nodes_explored=budget.nodes)

    if not found:
        logger.warning("Backtracking failed to find valid schedule after %d nodes", budget.nodes)
        return SolveResult(status=SolveStatus.infeasible, nodes_explored=budget.nodes)

    return SolveResult(
        status=SolveStatus.solved,
        rounds=rounds,
        strategy="backtracking",
        nodes_explored=budget.nodes,
    )
