"""
Tests for rotating-partner and mixed-doubles round building.
"""

from collections import Counter
from itertools import combinations

import pytest

from rrdoubles.services.errors import InputValidationError
from rrdoubles.services.rotation import (
    build_rotating_schedule,
    choose_sit_out_pairs,
    group_pairs_into_matches,
    mixed_partner_rounds,
    rotating_partner_rounds,
)
from rrdoubles.services.units import MixedPairing, Player, PlayerRole, TournamentMode


def _players(n: int) -> list[Player]:
    return [Player(player_id=i, name=f"P{i}") for i in range(1, n + 1)]


def _mixed(men: int, women: int) -> list[Player]:
    players = [Player(player_id=i, name=f"M{i}", role=PlayerRole.male) for i in range(1, men + 1)]
    players += [
        Player(player_id=100 + i, name=f"F{i}", role=PlayerRole.female) for i in range(1, women + 1)
    ]
    return players


def _games_played(rounds) -> Counter:
    games = Counter()
    for r in rounds:
        for m in r.matches:
            for unit in m.units:
                games.update(unit.member_ids)
    return games


class TestRotatingPartners:
    @pytest.mark.parametrize("n", [4, 5, 6, 7, 8])
    def test_everyone_partners_everyone_once(self, n):
        partnerships = Counter()
        for pairings, _ in rotating_partner_rounds(_players(n)):
            for pairing in pairings:
                partnerships[frozenset(pairing.member_ids)] += 1

        expected = {frozenset(pair) for pair in combinations(range(1, n + 1), 2)}
        assert set(partnerships) == expected
        assert all(count == 1 for count in partnerships.values())

    def test_match_capacity_is_players_over_four(self):
        rounds = build_rotating_schedule(_players(9), TournamentMode.rotating)
        for r in rounds:
            assert len(r.matches) <= 9 // 4

    def test_no_player_twice_in_a_round(self):
        for r in build_rotating_schedule(_players(8), TournamentMode.rotating):
            ids = [pid for m in r.matches for unit in m.units for pid in unit.member_ids]
            assert len(ids) == len(set(ids))
            sitting = {p.player_id for p in r.sitting_out}
            assert not sitting & set(ids)
            assert len(ids) + len(sitting) == 8

    def test_six_players_leave_a_pair_out(self):
        rounds = build_rotating_schedule(_players(6), TournamentMode.rotating)
        assert len(rounds) == 5
        for r in rounds:
            assert len(r.matches) == 1
            assert len(r.sitting_out) == 2

    def test_too_few_players(self):
        with pytest.raises(InputValidationError, match="at least 4 players"):
            build_rotating_schedule(_players(3), TournamentMode.rotating)


class TestMixedPartners:
    def test_every_woman_partners_every_man(self):
        partnerships = Counter()
        for pairings, idle in mixed_partner_rounds(_mixed(3, 2)):
            assert len(idle) == 1
            for pairing in pairings:
                assert isinstance(pairing, MixedPairing)
                assert pairing.first.role == PlayerRole.male
                assert pairing.second.role == PlayerRole.female
                partnerships[(pairing.first.player_id, pairing.second.player_id)] += 1

        assert set(partnerships) == {(m, f) for m in (1, 2, 3) for f in (101, 102)}
        assert all(count == 1 for count in partnerships.values())

    def test_round_count_is_larger_side(self):
        rounds = build_rotating_schedule(_mixed(2, 4), TournamentMode.mixed)
        assert len(rounds) == 4
        for r in rounds:
            assert len(r.matches) == 1
            assert {p.role for p in r.sitting_out} == {PlayerRole.female}

    def test_role_slots_reported(self):
        rounds = build_rotating_schedule(_mixed(2, 2), TournamentMode.mixed)
        unit = rounds[0].matches[0].unit_a
        assert unit.role_slots == (PlayerRole.male, PlayerRole.female)

    def test_missing_role_rejected(self):
        players = _mixed(2, 2) + [Player(player_id=50, name="Sam")]
        with pytest.raises(InputValidationError, match="Sam"):
            build_rotating_schedule(players, TournamentMode.mixed)

    def test_needs_two_of_each(self):
        with pytest.raises(InputValidationError, match="at least 2 male and 2 female"):
            build_rotating_schedule(_mixed(3, 1), TournamentMode.mixed)


def test_group_pairs_first_half_faces_second_half():
    pairings = rotating_partner_rounds(_players(10))[0][0]
    matches, leftover = group_pairs_into_matches(pairings)
    assert matches == [(pairings[0], pairings[2]), (pairings[1], pairings[3])]
    assert leftover == [pairings[4]]


def test_group_pairs_honours_sit_out_index():
    pairings = rotating_partner_rounds(_players(10))[0][0]
    matches, leftover = group_pairs_into_matches(pairings, sit_out_index=0)
    assert leftover == [pairings[0]]
    assert matches == [(pairings[1], pairings[3]), (pairings[2], pairings[4])]


class TestSitOutBalance:
    @pytest.mark.parametrize("n", [4, 5, 6, 7, 8, 9])
    def test_rotating_game_counts_within_one(self, n):
        games = _games_played(build_rotating_schedule(_players(n), TournamentMode.rotating))
        assert set(games) == set(range(1, n + 1))
        assert max(games.values()) - min(games.values()) <= 1

    def test_six_players_share_the_sit_outs(self):
        rounds = build_rotating_schedule(_players(6), TournamentMode.rotating)
        sat_out = Counter(p.player_id for r in rounds for p in r.sitting_out)
        assert sum(sat_out.values()) == 10
        assert sorted(sat_out.values()) == [1, 1, 2, 2, 2, 2]

    def test_three_and_three_everyone_plays_twice(self):
        games = _games_played(build_rotating_schedule(_mixed(3, 3), TournamentMode.mixed))
        assert games == Counter({pid: 2 for pid in (1, 2, 3, 101, 102, 103)})

    @pytest.mark.parametrize("men, women", [(4, 3), (3, 4)])
    def test_uneven_mixed_game_counts_within_one(self, men, women):
        players = _mixed(men, women)
        games = _games_played(build_rotating_schedule(players, TournamentMode.mixed))
        assert set(games) == {p.player_id for p in players}
        assert max(games.values()) - min(games.values()) <= 1

    def test_even_pair_counts_need_no_choice(self):
        assert choose_sit_out_pairs(rotating_partner_rounds(_players(8))) == [None] * 7
