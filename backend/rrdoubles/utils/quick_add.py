"""
Quick-add text parsing for bulk roster entry.

Teams:   one team per line, "Player1, Player2"
Players: one player per line, "Name" or "Name, M" / "Name, F" for mixed doubles

Invalid lines are skipped; an input with no valid lines is the caller's error.
"""

from typing import List, Optional, Tuple

from rrdoubles.services.units import PlayerRole

ROLE_ALIASES = {
    "m": PlayerRole.male,
    "male": PlayerRole.male,
    "f": PlayerRole.female,
    "female": PlayerRole.female,
}


def _split_line(line: str) -> List[str]:
    return [part.strip() for part in line.split(",")]


def parse_team_lines(text: Optional[str]) -> List[Tuple[str, str]]:
    """Return (player1, player2) for every well-formed line"""
    if not text or not text.strip():
        return []

    teams: List[Tuple[str, str]] = []
    for line in text.strip().split("\n"):
        parts = _split_line(line)
        if len(parts) >= 2 and parts[0] and parts[1]:
            teams.append((parts[0], parts[1]))
    return teams


def parse_role(token: Optional[str]) -> Optional[PlayerRole]:
    if token is None:
        return None
    return ROLE_ALIASES.get(token.strip().lower())


def parse_player_lines(text: Optional[str]) -> List[Tuple[str, Optional[PlayerRole]]]:
    """Return (name, role) for every well-formed line; role is None when omitted"""
    if not text or not text.strip():
        return []

    players: List[Tuple[str, Optional[PlayerRole]]] = []
    for line in text.strip().split("\n"):
        parts = _split_line(line)
        if not parts[0]:
            continue
        role = None
        if len(parts) >= 2 and parts[1]:
            role = parse_role(parts[1])
            if role is None:
                continue
        players.append((parts[0], role))
    return players
