"""
Partner rotation for rotating-partner and mixed-doubles modes.

Here the competing units are not stored teams: every round pairs players
afresh and then sets the pairs against each other. A match consumes four
players, so a round holds at most floor(players / 4) matches.

Rotating mode: circle method over players. Every player partners every
other player exactly once over P-1 rounds (even P) or P rounds (odd P, one
player idle per round).

Mixed mode: each round pairs one male with one female player. Over
max(M, F) rounds every player of the smaller side partners every player of
the larger side exactly once; surplus players of the larger side sit out.

When a round has an odd number of pairs one pair sits out. The sitting
pair is chosen across the whole schedule so that per-player game counts
differ by at most one where the rounds allow it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from rrdoubles.services.errors import InputValidationError
from rrdoubles.services.round_solver import RoundState, ScheduledMatch, SearchBudget, SearchBudgetExhausted
from rrdoubles.services.units import MixedPairing, Player, PlayerRole, RotatingPairing, TournamentMode
from rrdoubles.utils.circle_method import circle_pairings_by_round

logger = logging.getLogger(__name__)

PartnerRound = Tuple[List[RotatingPairing], List[Player]]

MIN_ROTATING_PLAYERS = 4
MIN_MIXED_PER_ROLE = 2
SIT_OUT_SEARCH_MAX_NODES = 50_000


def rotating_partner_rounds(players: Sequence[Player]) -> List[PartnerRound]:
    """One (pairs, idle players) entry per round, circle order"""
    rounds: List[PartnerRound] = []
    for round_idx, (pairs, bye_pos) in enumerate(circle_pairings_by_round(len(players)), start=1):
        pairings = [
            RotatingPairing(round_number=round_idx, first=players[a], second=players[b]) for a, b in pairs
        ]
        idle = [players[bye_pos]] if bye_pos is not None else []
        rounds.append((pairings, idle))
    return rounds


def split_by_role(players: Sequence[Player]) -> Tuple[List[Player], List[Player]]:
    men = [p for p in players if p.role == PlayerRole.male]
    women = [p for p in players if p.role == PlayerRole.female]
    return men, women


def mixed_partner_rounds(players: Sequence[Player]) -> List[PartnerRound]:
    """One (male/female pairs, idle players) entry per round"""
    men, women = split_by_role(players)
    if not men or not women:
        return []

    longer, shorter = (men, women) if len(men) >= len(women) else (women, men)
    rounds: List[PartnerRound] = []

    for r in range(len(longer)):
        pairings: List[RotatingPairing] = []
        partnered = set()
        for i, player in enumerate(shorter):
            partner = longer[(i + r) % len(longer)]
            partnered.add(partner.player_id)
            male, female = (partner, player) if partner.role == PlayerRole.male else (player, partner)
            pairings.append(MixedPairing(round_number=r + 1, first=male, second=female))
        idle = [p for p in longer if p.player_id not in partnered]
        rounds.append((pairings, idle))

    return rounds


def group_pairs_into_matches(
    pairings: Sequence[RotatingPairing],
    sit_out_index: Optional[int] = None,
) -> Tuple[List[Tuple[RotatingPairing, RotatingPairing]], List[RotatingPairing]]:
    """
    Set pairs against each other: first half of the list faces the second
    half in order. With an odd pair count the pair at sit_out_index (last
    pair by default) sits the round out.
    """
    playing = list(pairings)
    leftover: List[RotatingPairing] = []
    if len(playing) % 2 == 1:
        index = len(playing) - 1 if sit_out_index is None else sit_out_index
        leftover.append(playing.pop(index))
    half = len(playing) // 2
    matches = [(playing[i], playing[i + half]) for i in range(half)]
    return matches, leftover


def _sit_out_load(pairing: RotatingPairing, counts: Dict[int, int]) -> Tuple[int, int]:
    loads = [counts[pid] for pid in pairing.member_ids]
    return min(loads), sum(loads)


def choose_sit_out_pairs(partner_rounds: Sequence[PartnerRound]) -> List[Optional[int]]:
    """
    Pick the pair that sits out in every round with an odd pair count.

    Returns one pair index per round (None where the pairs divide evenly).
    A bounded search looks for a choice that keeps every player's sit-out
    total within one of every other player's. If none is found, each round
    sits out the pair whose members have sat out least so far.
    """
    choice: List[Optional[int]] = [None] * len(partner_rounds)
    open_rounds = [r for r, (pairings, _) in enumerate(partner_rounds) if len(pairings) % 2 == 1]
    if not open_rounds:
        return choice

    sat_out: Dict[int, int] = {}
    for pairings, idle in partner_rounds:
        for pairing in pairings:
            for pid in pairing.member_ids:
                sat_out.setdefault(pid, 0)
        for player in idle:
            sat_out[player.player_id] = sat_out.get(player.player_id, 0) + 1

    total = sum(sat_out.values()) + 2 * len(open_rounds)
    low = total // len(sat_out)
    high = -(-total // len(sat_out))

    # chances[i][pid]: open rounds from open_rounds[i] onwards in which pid holds a pair
    chances: List[Dict[int, int]] = [{} for _ in range(len(open_rounds) + 1)]
    for i in range(len(open_rounds) - 1, -1, -1):
        chances[i] = dict(chances[i + 1])
        for pairing in partner_rounds[open_rounds[i]][0]:
            for pid in pairing.member_ids:
                chances[i][pid] = chances[i].get(pid, 0) + 1

    budget = SearchBudget(max_nodes=SIT_OUT_SEARCH_MAX_NODES)
    counts = dict(sat_out)

    def search(i: int) -> bool:
        budget.spend()
        if any(counts[pid] + chances[i].get(pid, 0) < low for pid in counts):
            return False
        if i == len(open_rounds):
            return True
        pairings = partner_rounds[open_rounds[i]][0]
        order = sorted(range(len(pairings)), key=lambda k: (_sit_out_load(pairings[k], counts), k))
        for k in order:
            members = pairings[k].member_ids
            if any(counts[pid] >= high for pid in members):
                continue
            for pid in members:
                counts[pid] += 1
            choice[open_rounds[i]] = k
            if search(i + 1):
                return True
            for pid in members:
                counts[pid] -= 1
        return False

    try:
        if max(sat_out.values()) <= high and search(0):
            return choice
    except SearchBudgetExhausted as e:
        logger.info("Sit-out search stopped (%s); using least-sat-out order", e)

    counts = dict(sat_out)
    for r in open_rounds:
        pairings = partner_rounds[r][0]
        k = min(range(len(pairings)), key=lambda k: (_sit_out_load(pairings[k], counts), k))
        choice[r] = k
        for pid in pairings[k].member_ids:
            counts[pid] += 1
    return choice


def validate_rotation_roster(players: Sequence[Player], mode: TournamentMode) -> None:
    if mode == TournamentMode.rotating:
        if len(players) < MIN_ROTATING_PLAYERS:
            raise InputValidationError(f"Please add at least {MIN_ROTATING_PLAYERS} players")
        return

    missing_role = [p.name for p in players if p.role is None]
    if missing_role:
        raise InputValidationError(
            f"Mixed doubles needs a male/female slot for every player (missing: {', '.join(missing_role)})"
        )
    men, women = split_by_role(players)
    if len(men) < MIN_MIXED_PER_ROLE or len(women) < MIN_MIXED_PER_ROLE:
        raise InputValidationError(
            f"Mixed doubles needs at least {MIN_MIXED_PER_ROLE} male and {MIN_MIXED_PER_ROLE} female players"
        )


def build_rotating_schedule(players: Sequence[Player], mode: TournamentMode) -> List[RoundState]:
    """Build the full round list for rotating or mixed mode"""
    validate_rotation_roster(players, mode)

    if mode == TournamentMode.mixed:
        partner_rounds = mixed_partner_rounds(players)
    else:
        partner_rounds = rotating_partner_rounds(players)

    sit_out_choice = choose_sit_out_pairs(partner_rounds)

    rounds: List[RoundState] = []
    for round_number, (pairings, idle) in enumerate(partner_rounds, start=1):
        round_state = RoundState(round_number=round_number)
        matched, leftover = group_pairs_into_matches(pairings, sit_out_choice[round_number - 1])
        for unit_a, unit_b in matched:
            round_state.matches.append(
                ScheduledMatch(unit_a=unit_a, unit_b=unit_b, round_number=round_number)
            )
            round_state.units_used.update((unit_a.unit_id, unit_b.unit_id))
        sitting_out = list(idle)
        for pairing in leftover:
            sitting_out.extend((pairing.first, pairing.second))
        round_state.sitting_out = sitting_out
        rounds.append(round_state)

    return rounds
