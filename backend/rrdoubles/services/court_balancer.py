"""
Court Balancer

Post-processes a solved schedule so each unit spreads its matches evenly
across courts. Runs round by round with running per-unit, per-court counts:

1. Order the round's matches by descending court-usage imbalance
   (sum over both sides of max-minus-min appearances per court)
2. Give each match the unused court where its sides have played least
3. Re-sort the round by court number for display

Rounds with more matches than courts reuse courts by index once every court
has been handed out. History always starts empty, so balancing the same
schedule twice gives the same courts.
"""

from collections import defaultdict
from typing import Dict, Hashable, List, Sequence

from rrdoubles.services.round_solver import RoundState, ScheduledMatch


def _tracking_keys(match: ScheduledMatch):
    return list(match.unit_a.tracking_keys) + list(match.unit_b.tracking_keys)


def _imbalance(match: ScheduledMatch, usage: Dict[Hashable, List[int]]) -> int:
    total = 0
    for key in _tracking_keys(match):
        counts = usage[key]
        total += max(counts) - min(counts)
    return total


def _court_cost(match: ScheduledMatch, court_index: int, usage: Dict[Hashable, List[int]]) -> int:
    return sum(usage[key][court_index] for key in _tracking_keys(match))


def balance_courts(rounds: Sequence[RoundState], num_courts: int) -> Sequence[RoundState]:
    """Assign match.court (1-based) for every match in every round"""
    if num_courts < 1:
        raise ValueError(f"num_courts must be >= 1, got {num_courts}")

    usage: Dict[Hashable, List[int]] = defaultdict(lambda: [0] * num_courts)

    for round_state in rounds:
        ordered = sorted(round_state.matches, key=lambda m: (-_imbalance(m, usage), m.key))

        used_courts = set()
        for match in ordered:
            if len(used_courts) >= num_courts:
                used_courts = set()
            free = [c for c in range(num_courts) if c not in used_courts]
            best = min(free, key=lambda c: (_court_cost(match, c, usage), c))
            match.court = best + 1
            used_courts.add(best)
            for key in _tracking_keys(match):
                usage[key][best] += 1

        round_state.matches.sort(key=lambda m: (m.court, m.key))

    return rounds


def court_usage(rounds: Sequence[RoundState]) -> Dict[Hashable, Dict[int, int]]:
    """Per tracking key, how many matches were played on each court"""
    usage: Dict[Hashable, Dict[int, int]] = defaultdict(lambda: defaultdict(int))
    for round_state in rounds:
        for match in round_state.matches:
            if match.court is None:
                continue
            for key in _tracking_keys(match):
                usage[key][match.court] += 1
    return {key: dict(counts) for key, counts in usage.items()}
