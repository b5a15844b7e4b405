"""
Heuristic strategy completion from founder data.

AI-generated strategies often come back with empty sectors or no geography.
These helpers fill the gaps from the founder's own description using
keyword corridors, then apply the defaults every strategy must carry.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from matching.models import (
    DEFAULT_GEOGRAPHIC_FOCUS,
    Strategy,
    coerce_str,
    coerce_str_list,
)


DEFAULT_INVESTOR_TYPES = ("Venture Capital", "Angel Investors")

# (keywords, label) - label is what ends up in geographicFocus
GEO_CORRIDORS = (
    (("india", "inr", "mumbai", "bangalore", "bengaluru", "delhi"), "India"),
    (("uae", "united arab emirates", "dubai", "abu dhabi", "aed"), "United Arab Emirates"),
    (("us", "usa", "united states", "new york", "san francisco", "usd"), "United States"),
    (("saudi", "ksa", "riyadh", "jeddah"), "Saudi Arabia"),
    (("europe", "eu", "london", "uk", "united kingdom"), "Europe"),
)

_FINTECH_RE = re.compile(
    r"(payments|remittance|invoice|payroll|settlement|onramp|offramp|kyc|aml|"
    r"wallet|usdt|stablecoin|cross[-\s]?border)"
)
_SAAS_RE = re.compile(r"\b(api|platform|saas|b2b)\b")


def _keyword_re(keywords) -> re.Pattern:
    return re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b")


_GEO_PATTERNS = [(_keyword_re(keys), label) for keys, label in GEO_CORRIDORS]


def _founder_text(founder_data: Dict[str, Any]) -> str:
    description = coerce_str(founder_data.get("description"))
    traction = coerce_str(founder_data.get("tractionMetrics"))
    return f"{description} {traction}".lower()


def infer_strategy_from_founder(
    founder_data: Optional[Dict[str, Any]],
    current_strategy: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Infer missing strategy fields from the founder's description.

    Only fields the current strategy leaves empty are returned, using the
    wire (camelCase) keys so the result can be merged over a raw strategy.
    """
    founder_data = founder_data if isinstance(founder_data, dict) else {}
    current = current_strategy if isinstance(current_strategy, dict) else {}
    text = _founder_text(founder_data)
    inferred: Dict[str, Any] = {}

    if not coerce_str(current.get("geographicFocus")):
        labels = [label for pattern, label in _GEO_PATTERNS if pattern.search(text)]
        if labels:
            inferred["geographicFocus"] = ", ".join(labels)

    current_sectors = coerce_str_list(current.get("sectors"))
    if not current_sectors:
        sectors: List[str] = []
        if _FINTECH_RE.search(text):
            sectors.extend(["Fintech", "Payments"])
        if _SAAS_RE.search(text):
            sectors.append("SaaS")
        if sectors:
            inferred["sectors"] = sectors

    return inferred


def complete_strategy(
    strategy: Optional[Dict[str, Any]],
    founder_data: Optional[Dict[str, Any]] = None,
) -> Strategy:
    """
    Merge inferred fields into a raw strategy and apply defaults.

    Defaults: geography "Global", stages from the founder's stage, investor
    types VC + angels, check size range from the fundraising target.
    """
    raw = dict(strategy) if isinstance(strategy, dict) else {}
    founder_data = founder_data if isinstance(founder_data, dict) else {}
    raw.update(infer_strategy_from_founder(founder_data, raw))

    completed = Strategy.from_dict(raw)

    if not coerce_str(raw.get("geographicFocus")):
        completed.geographic_focus = DEFAULT_GEOGRAPHIC_FOCUS
    if not completed.stages:
        stage = coerce_str(founder_data.get("stage"))
        completed.stages = [stage] if stage else []
    if not completed.investor_types:
        completed.investor_types = list(DEFAULT_INVESTOR_TYPES)
    if not completed.check_size_range:
        completed.check_size_range = coerce_str(founder_data.get("fundraisingTarget"))

    return completed
