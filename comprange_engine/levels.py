"""Level labels and market vendor level tokens.

Level labels look like ``"L5 IC"``, ``"L6 Mgr"`` or ``"L5.5 IC"``; vendor
tokens look like ``"P5"`` (individual contributor), ``"M5"`` (manager),
``"E1"`` (executive) or ``"R4"`` (rollup across both tracks).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

IC_TRACK = "IC"
MGR_TRACK = "Mgr"

IC_TOKEN_RANGE = range(1, 8)
MGR_TOKEN_RANGE = range(1, 7)

EXECUTIVE_TOKENS: Dict[str, str] = {
    "E1": "L7 Mgr",
    "E3": "L8 Mgr",
    "E5": "L9 Mgr",
    "E6": "L10 Mgr",
}

_LEVEL_PATTERN = re.compile(r"^L(\d+(?:\.5)?)\s+(IC|Mgr)$", re.IGNORECASE)
_ROLLUP_PATTERN = re.compile(r"^R(\d+)$", re.IGNORECASE)


def _build_token_table() -> Dict[str, str]:
    table: Dict[str, str] = {}
    for n in IC_TOKEN_RANGE:
        table[f"P{n}"] = f"L{n} {IC_TRACK}"
    for n in MGR_TOKEN_RANGE:
        table[f"M{n}"] = f"L{n} {MGR_TRACK}"
    table.update(EXECUTIVE_TOKENS)
    return table


TOKEN_TO_LEVEL: Dict[str, str] = _build_token_table()


def _default_levels() -> List[str]:
    ic = []
    for n in range(1, 8):
        ic.append(f"L{n} IC")
        if 2 <= n <= 6:
            ic.append(f"L{n}.5 IC")
    mgr = []
    for n in range(3, 11):
        mgr.append(f"L{n} Mgr")
        if 4 <= n <= 6:
            mgr.append(f"L{n}.5 Mgr")
    return ic + mgr


DEFAULT_LEVELS: Tuple[str, ...] = tuple(_default_levels())


@dataclass(frozen=True)
class LevelLabel:
    number: float
    track: str

    @property
    def is_half(self) -> bool:
        return self.number != int(self.number)

    def __str__(self) -> str:
        number = int(self.number) if not self.is_half else self.number
        return f"L{number} {self.track}"


def parse_level(level: str) -> Optional[LevelLabel]:
    """Parse a level label, returning None when it is not recognized."""
    match = _LEVEL_PATTERN.match((level or "").strip())
    if not match:
        return None
    track = IC_TRACK if match.group(2).lower() == "ic" else MGR_TRACK
    return LevelLabel(float(match.group(1)), track)


def normalize_level(level: str) -> Optional[str]:
    parsed = parse_level(level)
    return str(parsed) if parsed else None


def is_half_level(level: str) -> bool:
    parsed = parse_level(level)
    return bool(parsed and parsed.is_half)


def whole_level_number(level: str) -> Optional[int]:
    """Level number for whole levels; None for half-levels and unknown labels."""
    parsed = parse_level(level)
    if parsed is None or parsed.is_half:
        return None
    return int(parsed.number)


def neighbor_levels(level: str) -> Tuple[str, str]:
    """Whole levels bracketing a half-level on the same track.

    >>> neighbor_levels("L5.5 IC")
    ('L5 IC', 'L6 IC')
    """
    parsed = parse_level(level)
    if parsed is None or not parsed.is_half:
        raise ValueError(f"Not a half-level label: {level!r}")
    lower = int(parsed.number)
    return f"L{lower} {parsed.track}", f"L{lower + 1} {parsed.track}"


class LevelTokenCodec:
    """Bidirectional mapping between level labels and vendor tokens.

    Unrecognized inputs map to None; vendor data quality varies, so a
    missing mapping is a silent no-match rather than an error.
    """

    def __init__(self, token_table: Optional[Dict[str, str]] = None):
        self._token_to_level = dict(token_table or TOKEN_TO_LEVEL)
        self._level_to_token = {level: token for token, level in self._token_to_level.items()}

    def token_to_level(self, token: str) -> Optional[str]:
        if not token:
            return None
        return self._token_to_level.get(token.strip().upper())

    def level_to_token(self, level: str) -> Optional[str]:
        normalized = normalize_level(level)
        if normalized is None:
            return None
        return self._level_to_token.get(normalized)

    @staticmethod
    def parse_rollup_token(token: str) -> Optional[int]:
        match = _ROLLUP_PATTERN.match((token or "").strip())
        return int(match.group(1)) if match else None

    @staticmethod
    def rollup_levels(level_number: int) -> Tuple[str, str]:
        """Both track labels a rollup figure applies to."""
        return f"L{level_number} {IC_TRACK}", f"L{level_number} {MGR_TRACK}"
