"""
Competing units.

A unit is whatever sits on one side of the net in a single match:

- FixedTeam: a stored team of two named players (fixed-partner mode)
- RotatingPairing: two players paired for one round only (rotating mode)
- MixedPairing: one male and one female player paired for one round (mixed mode)

All three expose the same surface (unit_id, name, members, member_ids,
tracking_keys) so the solver, court balancer and standings calculator never
branch on mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Optional, Tuple, Union

UnitId = Union[int, str]


class TournamentMode(str, Enum):
    fixed = "fixed"
    rotating = "rotating"
    mixed = "mixed"


class PlayerRole(str, Enum):
    male = "male"
    female = "female"


@dataclass(frozen=True)
class Player:
    player_id: int
    name: str
    role: Optional[PlayerRole] = None


@dataclass(frozen=True)
class FixedTeam:
    """Two players entered together; unit_id is stable, display_number is the T# label."""

    unit_id: int
    player1: str
    player2: str
    display_number: int = 0

    @property
    def name(self) -> str:
        return f"{self.player1} & {self.player2}"

    @property
    def members(self) -> Tuple[str, str]:
        return (self.player1, self.player2)

    @property
    def member_ids(self) -> Tuple[int, ...]:
        # Team members are names, not registered players
        return ()

    @property
    def tracking_keys(self) -> Tuple[Hashable, ...]:
        return (("team", self.unit_id),)


@dataclass(frozen=True)
class RotatingPairing:
    round_number: int
    first: Player
    second: Player
    role_slots: Tuple[Optional[PlayerRole], Optional[PlayerRole]] = field(default=(None, None))

    @property
    def unit_id(self) -> str:
        lo, hi = sorted((self.first.player_id, self.second.player_id))
        return f"R{self.round_number}:P{lo}+P{hi}"

    @property
    def name(self) -> str:
        return f"{self.first.name} & {self.second.name}"

    @property
    def members(self) -> Tuple[str, str]:
        return (self.first.name, self.second.name)

    @property
    def member_ids(self) -> Tuple[int, ...]:
        return (self.first.player_id, self.second.player_id)

    @property
    def tracking_keys(self) -> Tuple[Hashable, ...]:
        return tuple(("player", pid) for pid in self.member_ids)


@dataclass(frozen=True)
class MixedPairing(RotatingPairing):
    """Rotating pairing whose first member fills the male slot and second the female slot"""

    role_slots: Tuple[Optional[PlayerRole], Optional[PlayerRole]] = field(
        default=(PlayerRole.male, PlayerRole.female)
    )


Unit = Union[FixedTeam, RotatingPairing, MixedPairing]

