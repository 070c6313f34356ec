"""
Tests for roster snapshot save/restore (best-effort, keyed by tournament name).
"""

from sqlmodel import Session

from rrdoubles.models.competitor_snapshot import CompetitorSnapshot
from rrdoubles.services.snapshot_store import restore_roster, save_roster, snapshot_key
from rrdoubles.services.tournament_context import (
    ContextRegistry,
    TournamentConfig,
    add_player,
    add_team,
    remove_team,
)
from rrdoubles.services.units import PlayerRole


def test_round_trip_keeps_ids_and_order(session: Session):
    registry = ContextRegistry()
    original = registry.create("Club Night", TournamentConfig())
    add_team(original, "Ann", "Al")
    add_team(original, "Bea", "Bo")
    add_team(original, "Cat", "Cy")
    remove_team(original, 2)
    add_player(original, "Dee", PlayerRole.female)

    assert save_roster(session, original)

    restored = registry.create("Club Night", TournamentConfig())
    assert restore_roster(session, restored)
    assert [(t.unit_id, t.display_number, t.name) for t in restored.teams] == [
        (1, 1, "Ann & Al"),
        (3, 2, "Cat & Cy"),
    ]
    assert [(p.player_id, p.name, p.role) for p in restored.players] == [(1, "Dee", PlayerRole.female)]

    # New ids continue after the highest restored id
    assert add_team(restored, "Eve", "Ed").unit_id == 4


def test_save_overwrites_previous_snapshot(session: Session):
    context = ContextRegistry().create("Weekly", TournamentConfig())
    add_team(context, "Ann", "Al")
    save_roster(session, context)
    add_team(context, "Bea", "Bo")
    save_roster(session, context)

    row = session.get(CompetitorSnapshot, snapshot_key("Weekly", "teams"))
    assert len(row.payload) == 2


def test_absent_snapshot_is_a_no_op(session: Session):
    context = ContextRegistry().create("Brand New", TournamentConfig())
    assert restore_roster(session, context) is False
    assert context.teams == []


def test_malformed_snapshot_ignored(session: Session):
    session.add(CompetitorSnapshot(key=snapshot_key("Broken", "teams"), payload=[{"id": 1, "player1": "Solo"}]))
    session.commit()

    context = ContextRegistry().create("Broken", TournamentConfig())
    add_team(context, "Keep", "Me")

    assert restore_roster(session, context) is False
    assert [t.name for t in context.teams] == ["Keep & Me"]


def test_bad_role_value_ignored(session: Session):
    session.add(
        CompetitorSnapshot(key=snapshot_key("Odd Roles", "players"), payload=[{"id": 1, "name": "X", "role": "captain"}])
    )
    session.commit()

    context = ContextRegistry().create("Odd Roles", TournamentConfig())
    assert restore_roster(session, context) is False
    assert context.players == []
