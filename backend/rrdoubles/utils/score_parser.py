"""
Minimal score parser for single-game rally scores.

Supports formats like:
  "11-5"           → 11 to 5
  "11 - 5", "11:5" → separator variants
  {"a": 11, "b": 5} → structured form
  {"display": "11-5"} → extracts display string first

Returns None on parse failure (non-fatal); callers decide how to report it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

_SCORE_RE = re.compile(r"^\s*(\d+)\s*[-:]\s*(\d+)\s*$")


@dataclass
class ParsedScore:
    score_a: int
    score_b: int

    @property
    def margin(self) -> int:
        return self.score_a - self.score_b

    @property
    def is_tie(self) -> bool:
        return self.score_a == self.score_b


def parse_game_score(raw: Any) -> Optional[ParsedScore]:
    """Parse a score string or blob into side A / side B points.

    Returns None if the score cannot be parsed.
    """
    if raw is None:
        return None

    if isinstance(raw, dict):
        if "a" in raw and "b" in raw:
            return _parse_pair(raw.get("a"), raw.get("b"))
        raw = raw.get("display") or raw.get("score") or ""

    if not isinstance(raw, str) or not raw.strip():
        return None

    m = _SCORE_RE.match(raw)
    if not m:
        return None
    return ParsedScore(score_a=int(m.group(1)), score_b=int(m.group(2)))


def _parse_pair(a: Any, b: Any) -> Optional[ParsedScore]:
    try:
        score_a = int(a)
        score_b = int(b)
    except (TypeError, ValueError):
        return None
    if score_a < 0 or score_b < 0:
        return None
    return ParsedScore(score_a=score_a, score_b=score_b)
