"""
Tests for court balancing: spread, determinism and court reuse when a
round has more matches than courts.
"""

import copy

import pytest

from rrdoubles.services.court_balancer import balance_courts, court_usage
from rrdoubles.services.matchup_generator import Matchup, generate_matchups, matches_per_round_for, total_rounds_for
from rrdoubles.services.round_solver import RoundState, solve_rounds
from rrdoubles.services.units import FixedTeam


def _make_teams(n: int) -> list[FixedTeam]:
    return [FixedTeam(unit_id=i, player1=f"A{i}", player2=f"B{i}", display_number=i) for i in range(1, n + 1)]


def _solved_rounds(n: int):
    teams = _make_teams(n)
    result = solve_rounds(
        generate_matchups(teams),
        total_rounds=total_rounds_for(n),
        matches_per_round=matches_per_round_for(n),
    )
    assert result.solved
    return result.rounds


def _courts(rounds):
    return [[(m.key, m.court) for m in r.matches] for r in rounds]


def test_every_match_gets_a_court():
    rounds = balance_courts(_solved_rounds(6), 3)
    for r in rounds:
        assert sorted(m.court for m in r.matches) == [1, 2, 3]


def test_round_sorted_by_court():
    rounds = balance_courts(_solved_rounds(8), 4)
    for r in rounds:
        assert [m.court for m in r.matches] == sorted(m.court for m in r.matches)


def test_balancing_twice_gives_same_courts():
    rounds = _solved_rounds(7)
    balance_courts(rounds, 2)
    first = _courts(rounds)

    again = copy.deepcopy(rounds)
    balance_courts(again, 2)
    assert _courts(again) == first


def test_courts_reused_when_fewer_than_matches():
    rounds = balance_courts(_solved_rounds(8), 2)
    for r in rounds:
        assert len(r.matches) == 4
        assert all(m.court in (1, 2) for m in r.matches)
        assert sorted(m.court for m in r.matches) == [1, 1, 2, 2]


def test_teams_move_to_their_least_used_court():
    teams = _make_teams(4)
    rounds = []
    for round_number in (1, 2):
        round_state = RoundState(round_number=round_number)
        round_state.place(Matchup(unit_a=teams[0], unit_b=teams[1]))
        round_state.place(Matchup(unit_a=teams[2], unit_b=teams[3]))
        rounds.append(round_state)

    balance_courts(rounds, 2)

    assert _courts(rounds) == [[("1-2", 1), ("3-4", 2)], [("3-4", 1), ("1-2", 2)]]
    usage = court_usage(rounds)
    assert usage[("team", 1)] == {1: 1, 2: 1}
    assert usage[("team", 4)] == {1: 1, 2: 1}


def test_single_court():
    rounds = balance_courts(_solved_rounds(5), 1)
    assert all(m.court == 1 for r in rounds for m in r.matches)


def test_zero_courts_rejected():
    with pytest.raises(ValueError):
        balance_courts(_solved_rounds(4), 0)
