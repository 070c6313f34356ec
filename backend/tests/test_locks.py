"""
Tests for locked-matchup parsing and validation.
"""

import pytest

from rrdoubles.services.errors import InputValidationError, LockConflictError
from rrdoubles.services.locks import (
    LockedMatch,
    LockedRound,
    drop_incomplete_manual_matches,
    group_locks_by_round,
    validate_locked_rounds,
)
from rrdoubles.services.units import FixedTeam


def _teams_by_id(n: int) -> dict[int, FixedTeam]:
    return {i: FixedTeam(unit_id=i, player1=f"A{i}", player2=f"B{i}", display_number=i) for i in range(1, n + 1)}


def _round(number: int, *pairs) -> LockedRound:
    return LockedRound(round_number=number, matches=[LockedMatch(unit_a_id=a, unit_b_id=b) for a, b in pairs])


class TestManualRoundInput:
    def test_rows_missing_a_side_are_skipped(self):
        raw = [
            {"round_number": 1, "matches": [{"unit_a_id": 1, "unit_b_id": 2}, {"unit_a_id": 3, "unit_b_id": None}]},
            {"round_number": 2, "matches": [{"unit_a_id": None, "unit_b_id": None}]},
        ]
        locked = drop_incomplete_manual_matches(raw)
        assert len(locked) == 1
        assert locked[0].round_number == 1
        assert [m.key for m in locked[0].matches] == ["1-2"]

    def test_self_matchup_kept_for_validation(self):
        locked = drop_incomplete_manual_matches([{"round_number": 1, "matches": [{"unit_a_id": 2, "unit_b_id": 2}]}])
        assert locked[0].matches[0].unit_a_id == locked[0].matches[0].unit_b_id == 2

    def test_group_merges_same_round(self):
        grouped = group_locks_by_round([_round(2, (1, 2)), _round(1, (3, 4)), _round(2, (3, 5))])
        assert list(grouped) == [1, 2]
        assert [m.key for m in grouped[2]] == ["1-2", "3-5"]


class TestValidateLockedRounds:
    def test_valid_locks_pass(self):
        validate_locked_rounds([_round(1, (1, 2), (3, 4)), _round(2, (1, 3))], _teams_by_id(4), 3, 2)

    def test_duplicate_matchup_across_rounds_rejected(self):
        with pytest.raises(LockConflictError) as exc:
            validate_locked_rounds([_round(1, (1, 2)), _round(3, (2, 1))], _teams_by_id(5), 5, 2)
        assert exc.value.code == "DUPLICATE_MATCHUP"
        assert exc.value.message == "Duplicate matchup: A2 & B2 vs A1 & B1 appears more than once."

    def test_team_twice_in_one_round_rejected(self):
        with pytest.raises(LockConflictError, match="cannot play multiple matches in the same round"):
            validate_locked_rounds([_round(1, (1, 2), (2, 3))], _teams_by_id(6), 5, 3)

    def test_self_matchup_rejected(self):
        with pytest.raises(InputValidationError, match="cannot play itself"):
            validate_locked_rounds([_round(1, (2, 2))], _teams_by_id(4), 3, 2)

    def test_unknown_team_rejected(self):
        with pytest.raises(InputValidationError, match="unknown team 7"):
            validate_locked_rounds([_round(1, (1, 7))], _teams_by_id(4), 3, 2)

    def test_round_out_of_range_rejected(self):
        with pytest.raises(InputValidationError, match="Round 4 does not exist"):
            validate_locked_rounds([_round(4, (1, 2))], _teams_by_id(4), 3, 2)

    def test_round_over_capacity_rejected(self):
        with pytest.raises(LockConflictError, match="exceed"):
            validate_locked_rounds([_round(1, (1, 2), (3, 4), (5, 6))], _teams_by_id(6), 5, 2)
