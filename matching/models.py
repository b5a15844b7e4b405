"""
Data models for investor matching.

InvestorRecord mirrors one entry of the static investor dataset. Strategy is
the founder's targeting intent; both are built from loosely-typed JSON and
coerce bad values to empty rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


DEFAULT_GEOGRAPHIC_FOCUS = "Global"

# Geography values that express no regional preference
GLOBAL_GEO_TOKENS = frozenset({"global", "worldwide", "anywhere"})


# =============================================================================
# COERCION HELPERS
# =============================================================================

def coerce_str(value: Any) -> str:
    """Return a stripped string, or "" for anything that is not text-like."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def coerce_str_list(value: Any) -> List[str]:
    """
    Coerce a list-ish value into a deduplicated list of trimmed strings.

    Non-sequence values (including bare strings) are treated as absent.
    """
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []

    out: List[str] = []
    seen = set()
    for item in value:
        text = coerce_str(item)
        key = text.lower()
        if text and key not in seen:
            seen.add(key)
            out.append(text)
    return out


# =============================================================================
# INVESTOR RECORD
# =============================================================================

# Dataset (JSON) key -> attribute name
_INVESTOR_FIELD_KEYS = {
    "name": "name",
    "firm": "firm",
    "role": "role",
    "email": "email",
    "location": "location",
    "linkedIn": "linkedin",
    "website": "website",
    "checkSize": "check_size",
    "investmentThesis": "investment_thesis",
}

_INVESTOR_LIST_KEYS = {
    "sectors": "sectors",
    "stages": "stages",
    "portfolioHighlights": "portfolio_highlights",
}


@dataclass
class InvestorRecord:
    """One potential funding source, keyed by email when present."""
    name: str = ""
    firm: str = ""
    role: str = ""
    email: str = ""
    location: str = ""
    linkedin: str = ""
    website: str = ""

    # Targeting attributes
    sectors: List[str] = field(default_factory=list)
    stages: List[str] = field(default_factory=list)
    check_size: str = ""
    investment_thesis: str = ""
    portfolio_highlights: List[str] = field(default_factory=list)

    # Set by enrichment when the email was synthesized, not sourced
    email_guessed: bool = False

    # Dataset keys this model does not know about, passed through untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_verified_email(self) -> bool:
        """True when the record carries a sourced (not guessed) email."""
        return bool(self.email) and not self.email_guessed

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InvestorRecord:
        """Build a record from a dataset entry, tolerating bad types."""
        kwargs: Dict[str, Any] = {}
        for key, attr in _INVESTOR_FIELD_KEYS.items():
            kwargs[attr] = coerce_str(data.get(key))
        for key, attr in _INVESTOR_LIST_KEYS.items():
            kwargs[attr] = coerce_str_list(data.get(key))

        known = set(_INVESTOR_FIELD_KEYS) | set(_INVESTOR_LIST_KEYS) | {"emailGuessed"}
        kwargs["extra"] = {k: v for k, v in data.items() if k not in known}
        kwargs["email_guessed"] = bool(data.get("emailGuessed", False))
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the dataset's JSON shape."""
        out: Dict[str, Any] = dict(self.extra)
        for key, attr in _INVESTOR_FIELD_KEYS.items():
            out[key] = getattr(self, attr)
        for key, attr in _INVESTOR_LIST_KEYS.items():
            out[key] = list(getattr(self, attr))
        if self.email_guessed:
            out["emailGuessed"] = True
        return out

    def copy(self) -> InvestorRecord:
        """Return a copy whose lists and extras are independent of this one."""
        return InvestorRecord(
            name=self.name,
            firm=self.firm,
            role=self.role,
            email=self.email,
            location=self.location,
            linkedin=self.linkedin,
            website=self.website,
            sectors=list(self.sectors),
            stages=list(self.stages),
            check_size=self.check_size,
            investment_thesis=self.investment_thesis,
            portfolio_highlights=list(self.portfolio_highlights),
            email_guessed=self.email_guessed,
            extra=dict(self.extra),
        )


def investors_from_dicts(rows: Iterable[Any]) -> List[InvestorRecord]:
    """Convert raw dataset rows, skipping anything that is not an object."""
    return [InvestorRecord.from_dict(row) for row in rows if isinstance(row, dict)]


# =============================================================================
# STRATEGY
# =============================================================================

@dataclass
class Strategy:
    """Founder targeting intent, sanitized."""
    sectors: List[str] = field(default_factory=list)
    stages: List[str] = field(default_factory=list)
    geographic_focus: str = DEFAULT_GEOGRAPHIC_FOCUS
    investor_types: List[str] = field(default_factory=list)
    check_size_range: str = ""
    target_amount_usd: str = ""
    fundraising_target: str = ""
    value_propositions: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Strategy:
        """
        Sanitize a strategy payload.

        Accepts either camelCase (wire) or snake_case keys. Anything that is
        not a mapping yields the neutral strategy.
        """
        if isinstance(data, Strategy):
            return data
        if not isinstance(data, dict):
            return cls()

        def pick(camel: str, snake: str) -> Any:
            return data.get(camel, data.get(snake))

        return cls(
            sectors=coerce_str_list(pick("sectors", "sectors")),
            stages=coerce_str_list(pick("stages", "stages")),
            geographic_focus=(
                coerce_str(pick("geographicFocus", "geographic_focus"))
                or DEFAULT_GEOGRAPHIC_FOCUS
            ),
            investor_types=coerce_str_list(pick("investorTypes", "investor_types")),
            check_size_range=coerce_str(pick("checkSizeRange", "check_size_range")),
            target_amount_usd=coerce_str(pick("targetAmountUSD", "target_amount_usd")),
            fundraising_target=coerce_str(pick("fundraisingTarget", "fundraising_target")),
            value_propositions=coerce_str_list(pick("valuePropositions", "value_propositions")),
        )

    @property
    def target_amount_text(self) -> str:
        """Raw amount to match check sizes against, in precedence order."""
        return self.target_amount_usd or self.fundraising_target or self.check_size_range

    @property
    def is_global(self) -> bool:
        focus = self.geographic_focus.strip().lower()
        return not focus or focus in GLOBAL_GEO_TOKENS

    def is_neutral(self) -> bool:
        """True when no dimension carries an opinion that scoring could use."""
        return (
            not self.sectors
            and not self.stages
            and self.is_global
            and not self.target_amount_text
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectors": list(self.sectors),
            "stages": list(self.stages),
            "geographicFocus": self.geographic_focus,
            "investorTypes": list(self.investor_types),
            "checkSizeRange": self.check_size_range,
            "targetAmountUSD": self.target_amount_usd,
            "fundraisingTarget": self.fundraising_target,
            "valuePropositions": list(self.value_propositions),
        }
