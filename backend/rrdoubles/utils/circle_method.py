"""
Circle-method round robin over list positions.

Used twice: as the rotation strategy of the fixed-partner solver, and to
rotate partners in rotating-partner mode.
"""

from typing import List, Optional, Tuple


def circle_pairings_by_round(n: int) -> List[Tuple[List[Tuple[int, int]], Optional[int]]]:
    """
    Circle-method pairings of positions 0..n-1.

    Returns one (pairs, bye_position) entry per round. pairs are (lo, hi)
    position tuples in sequence order; bye_position is the position paired
    with the phantom BYE slot (None for even n).
    """
    if n < 2:
        return []

    n2 = n + 1 if n % 2 == 1 else n  # Add BYE for odd n
    half = n2 // 2
    bye_idx = n if n % 2 == 1 else -1

    result: List[Tuple[List[Tuple[int, int]], Optional[int]]] = []
    positions = list(range(n2))

    for _ in range(n2 - 1):
        pairs: List[Tuple[int, int]] = []
        bye: Optional[int] = None
        for i in range(half):
            a, b = positions[i], positions[n2 - 1 - i]
            if a == bye_idx or b == bye_idx:
                bye = b if a == bye_idx else a
                continue
            pairs.append((min(a, b), max(a, b)))
        result.append((pairs, bye))
        # Rotate: keep 0, move last to second, shift others
        positions = [positions[0]] + [positions[-1]] + positions[1:-1]

    return result
