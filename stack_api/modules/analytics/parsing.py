"""
Helpers for the free-text stakes and game-name fields on sessions.

Stakes are typed by hand, so several shapes occur in practice:
"$1/$2", "$1/$2/$5" (straddle), "$2/$5 ($1)" (ante), "1/2", "NL200".
"""

import re
from typing import Optional

_STAKES_IN_NAME = [
    re.compile(r"\$\d+/\$\d+(/\$\d+)?"),
    re.compile(r"NL\d+"),
    re.compile(r"PLO\d+"),
    re.compile(r"FL\d+"),
    re.compile(r"\d+/\d+"),
    re.compile(r"\(\$\d+\)"),
]
_ONLINE_STAKES = re.compile(r"(?:NL|PLO|FL)?(\d+)", re.IGNORECASE)
_ANY_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


def parse_standard_stakes(stakes: str) -> Optional[float]:
    """Big blind from "$sb/$bb[/$straddle][ ($ante)]"."""
    cleaned = stakes.replace(" $", "").replace("$", "").replace(" ", "")
    base = cleaned.split("(")[0]
    parts = [p for p in base.split("/") if p]
    if len(parts) < 2:
        return None
    return _to_float(parts[1])


def parse_online_stakes(stakes: str) -> Optional[float]:
    """NL200 is $1/$2, so the number is the big blind in cents."""
    match = _ONLINE_STAKES.search(stakes)
    if not match:
        return None
    number = _to_float(match.group(1))
    return number / 100.0 if number is not None else None


def parse_big_blind(stakes: Optional[str]) -> Optional[float]:
    stakes = (stakes or "").strip()
    if not stakes:
        return None
    big_blind = parse_standard_stakes(stakes)
    if big_blind is not None:
        return big_blind
    big_blind = parse_online_stakes(stakes)
    if big_blind is not None:
        return big_blind
    if "tournament" in stakes.lower():
        return None
    # Last resort: largest number in the string
    numbers = [_to_float(m) for m in _ANY_NUMBER.findall(stakes)]
    largest = max([n for n in numbers if n is not None], default=0.0)
    return largest if largest > 0 else None


def parse_location_from_game_name(game_name: str) -> str:
    """Strip stakes notation from a game name, leaving the venue."""
    cleaned = (game_name or "").strip()
    result = cleaned
    for pattern in _STAKES_IN_NAME:
        result = pattern.sub("", result)
    result = result.replace("  ", " ").strip().strip("-.,").strip()
    return result or cleaned
