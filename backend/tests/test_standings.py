"""
Tests for standings: per-team in fixed mode, per-player in rotating modes.
"""

import pytest

from rrdoubles.services.errors import InputValidationError
from rrdoubles.services.round_solver import RoundState, ScheduledMatch
from rrdoubles.services.schedule_orchestrator import generate_schedule
from rrdoubles.services.standings import StandingRow, compute_standings, rank_rows
from rrdoubles.services.tournament_context import (
    ContextRegistry,
    TournamentConfig,
    TournamentContext,
    add_player,
    add_team,
    clear_score,
    record_score,
)
from rrdoubles.services.units import FixedTeam, TournamentMode


def _two_team_context() -> TournamentContext:
    """A and B meet twice, once per round (hand-built schedule)"""
    context = ContextRegistry().create("Rematch", TournamentConfig())
    team_a = add_team(context, "Ann", "Al")
    team_b = add_team(context, "Bea", "Bo")
    context.schedule = [
        RoundState(round_number=1, matches=[ScheduledMatch(unit_a=team_a, unit_b=team_b, round_number=1)]),
        RoundState(round_number=2, matches=[ScheduledMatch(unit_a=team_b, unit_b=team_a, round_number=2)]),
    ]
    context.schedule_mode = TournamentMode.fixed
    return context


def test_split_series_average_margin():
    context = _two_team_context()
    first, second = context.schedule[0].matches[0], context.schedule[1].matches[0]
    # A beats B 11-5; then B (side A of the rematch) beats A 11-8
    first.score_a, first.score_b = 11, 5
    second.score_a, second.score_b = 11, 8

    rows = {row.name: row for row in compute_standings(context)}
    a = rows["Ann & Al"]
    assert (a.wins, a.losses, a.games_played) == (1, 1, 2)
    assert a.average_margin == pytest.approx(1.5)
    assert (a.points_for, a.points_against) == (19, 16)

    b = rows["Bea & Bo"]
    assert b.average_margin == pytest.approx(-1.5)


def test_ranking_wins_then_average_margin():
    rows = [
        StandingRow(entity_id=1, name="One", games_played=2, wins=1, margin_total=2),
        StandingRow(entity_id=2, name="Two", games_played=2, wins=2, margin_total=1),
        StandingRow(entity_id=3, name="Three", games_played=2, wins=1, margin_total=6),
    ]
    ranked = rank_rows(rows)
    assert [r.name for r in ranked] == ["Two", "Three", "One"]
    assert [r.rank for r in ranked] == [1, 2, 3]


def test_tie_counts_game_but_no_result():
    context = _two_team_context()
    context.schedule[0].matches[0].score_a, context.schedule[0].matches[0].score_b = 9, 9

    rows = compute_standings(context)
    for row in rows:
        assert (row.games_played, row.wins, row.losses, row.ties) == (1, 0, 0, 1)
        assert row.points_for == 9


def test_unscored_matches_ignored():
    context = _two_team_context()
    rows = compute_standings(context)
    assert all(row.games_played == 0 and row.average_margin == 0.0 for row in rows)


def test_record_and_clear_score_by_match_id():
    context = ContextRegistry().create("Scores", TournamentConfig())
    for i in range(1, 5):
        add_team(context, f"A{i}", f"B{i}")
    generate_schedule(context)

    record_score(context, "1-2", raw="11-4")
    leader = compute_standings(context)[0]
    assert leader.entity_id == 1
    assert leader.margin_total == 7

    clear_score(context, "1-2")
    assert all(row.games_played == 0 for row in compute_standings(context))


def test_invalid_score_rejected():
    context = _two_team_context()
    with pytest.raises(InputValidationError, match="Invalid score"):
        record_score(context, "1-2", raw="eleven to five")
    with pytest.raises(InputValidationError, match="Invalid score"):
        record_score(context, "1-2", score_a=-1, score_b=11)


def test_scoring_disabled():
    context = _two_team_context()
    context.config.scoring_enabled = False
    with pytest.raises(InputValidationError, match="disabled"):
        record_score(context, "1-2", 11, 5)


def test_rotating_mode_tracks_players():
    context = ContextRegistry().create("Social", TournamentConfig(mode=TournamentMode.rotating))
    for name in ("Ann", "Bob", "Cat", "Dan"):
        add_player(context, name)
    generate_schedule(context)

    match = next(context.iter_matches())
    record_score(context, match.match_id, 11, 3)

    rows = {row.entity_id: row for row in compute_standings(context)}
    assert len(rows) == 4
    for player_id in match.unit_a.member_ids:
        assert rows[player_id].wins == 1
        assert rows[player_id].margin_total == 8
    for player_id in match.unit_b.member_ids:
        assert rows[player_id].losses == 1


def test_team_rows_keyed_by_stable_id():
    team = FixedTeam(unit_id=7, player1="X", player2="Y", display_number=1)
    row = StandingRow(entity_id=team.unit_id, name=team.name)
    assert row.to_dict()["id"] == 7
