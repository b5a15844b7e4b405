"""
Geo / Amount Normalizers for the Investor Matching Engine

Canonicalizes free-text geography and money strings into comparable
primitives so strategies and investor records can be scored against each
other.

Usage:
    from utils.normalizers import normalize_geo_tokens, check_size_score

    tokens = normalize_geo_tokens("UAE, India")
    fit = check_size_score("$100k - $1M", 500_000)   # -> 1.0
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


# =============================================================================
# GEOGRAPHY
# =============================================================================

_GEO_SPLIT_RE = re.compile(r"[,/]|\band\b|&", re.IGNORECASE)

# Each alias group expands to the same canonical token list
_GEO_SYNONYMS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (
        ("uae", "united arab emirates", "dubai", "abu dhabi"),
        ("uae", "united arab emirates", "dubai", "abu dhabi"),
    ),
    (
        ("us", "usa", "united states", "america"),
        ("us", "usa", "united states", "new york", "san francisco"),
    ),
    (
        ("india",),
        ("india", "mumbai", "bangalore", "bengaluru", "delhi"),
    ),
    (
        ("saudi arabia", "ksa", "saudi"),
        ("saudi", "ksa", "saudi arabia", "riyadh", "jeddah"),
    ),
    (
        ("europe", "uk", "united kingdom", "london"),
        ("europe", "uk", "united kingdom", "london"),
    ),
)

GEO_EXPANSIONS: Dict[str, Tuple[str, ...]] = {
    alias: expansion
    for aliases, expansion in _GEO_SYNONYMS
    for alias in aliases
}


def normalize_geo_tokens(text: Optional[str]) -> List[str]:
    """
    Split a geography string into lowercase, synonym-expanded tokens.

    Examples:
      - "UAE"            -> ["uae", "united arab emirates", "dubai", "abu dhabi"]
      - "Berlin / Paris" -> ["berlin", "paris"]
      - ""               -> []
    """
    if not text or not isinstance(text, str):
        return []

    tokens: List[str] = []
    seen = set()
    for raw in _GEO_SPLIT_RE.split(text):
        part = raw.strip().lower()
        if not part:
            continue
        for token in GEO_EXPANSIONS.get(part, (part,)):
            if token not in seen:
                seen.add(token)
                tokens.append(token)
    return tokens


# =============================================================================
# AMOUNTS
# =============================================================================

_AMOUNT_RE = re.compile(r"\$?([0-9]*\.?[0-9]+)([kmb])?", re.IGNORECASE)
_RANGE_SPLIT_RE = re.compile(r"-|\bto\b", re.IGNORECASE)

_MULTIPLIERS = {
    "k": 1e3,
    "m": 1e6,
    "b": 1e9,
}


@dataclass(frozen=True)
class AmountRange:
    """Parsed check-size band. A max of 0 means unbounded above."""
    min: float
    max: float


def parse_amount(text: Optional[str]) -> float:
    """
    Extract a dollar amount with optional k/m/b suffix.

    Examples:
      - "$1.5M"     -> 1500000.0
      - "250,000"   -> 250000.0
      - "n/a"       -> 0.0
    """
    if text is None:
        return 0.0
    cleaned = re.sub(r"[,\s]", "", str(text))
    if not cleaned:
        return 0.0

    match = _AMOUNT_RE.search(cleaned)
    if not match:
        return 0.0

    value = float(match.group(1))
    unit = (match.group(2) or "").lower()
    return value * _MULTIPLIERS.get(unit, 1.0)


def parse_range(text: Optional[str]) -> AmountRange:
    """
    Parse a range such as "$100k - $1M" or "$250K to $2M+".

    A single amount yields min == max.
    """
    parts = _RANGE_SPLIT_RE.split(str(text or ""), maxsplit=1)
    low = parse_amount(parts[0])
    high = parse_amount(parts[1]) if len(parts) > 1 and parts[1].strip() else low
    return AmountRange(min=low, max=high)


def check_size_score(check_size: Optional[str], target: float) -> float:
    """
    Score how well a target raise fits an investor's check-size band.

    Returns:
        1.0  target inside [min, max]
        0.7  target inside [0.5*min, 2*max]
        0.2  otherwise
        0.5  check size missing or unparsable
    """
    if not check_size:
        return 0.5

    band = parse_range(check_size)
    if not band.min and not band.max:
        return 0.5

    unbounded = band.max == 0
    if target >= band.min and (unbounded or target <= band.max):
        return 1.0

    if (
        target > 0
        and band.min > 0
        and target >= band.min * 0.5
        and (unbounded or target <= band.max * 2)
    ):
        return 0.7

    return 0.2
