"""
Strategy Matcher - weighted investor fit scoring.

Ranks enriched investor records against a founder's targeting strategy.

Each investor gets four partial-credit components in [0, 1]:
- sector: any investor sector matches a strategy sector (case-insensitive)
- stage:  same rule for stages
- geo:    any normalized geo token appears in the investor's location
- check:  check-size band vs. target raise

A dimension the strategy says nothing about scores 0.5, so it neither
helps nor excludes anyone. Investors scoring below 0.5 overall are dropped,
the rest are sorted (stable) by score and capped.

Usage:
    from matching.strategy_matcher import StrategyMatcher

    matcher = StrategyMatcher()
    ranked = matcher.match({"sectors": ["Fintech"]}, enriched_investors)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from matching.models import GLOBAL_GEO_TOKENS, InvestorRecord, Strategy
from utils.normalizers import check_size_score, normalize_geo_tokens, parse_amount

logger = logging.getLogger(__name__)


# =============================================================================
# SCORING CONSTANTS
# =============================================================================

WEIGHT_SECTOR = 0.5
WEIGHT_STAGE = 0.2
WEIGHT_GEO = 0.2
WEIGHT_CHECK = 0.1

NEUTRAL_CREDIT = 0.5
MIN_MATCH_SCORE = 0.5
MAX_RESULTS = 300

# Rounding keeps exact-threshold scores (e.g. all-neutral 0.5) from
# falling just below MIN_MATCH_SCORE through float accumulation
_SCORE_PRECISION = 6


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class MatchScore:
    """Per-component breakdown of an investor's fit."""
    sector: float
    stage: float
    geo: float
    check: float

    @property
    def total(self) -> float:
        weighted = (
            self.sector * WEIGHT_SECTOR
            + self.stage * WEIGHT_STAGE
            + self.geo * WEIGHT_GEO
            + self.check * WEIGHT_CHECK
        )
        return round(weighted, _SCORE_PRECISION)

    @property
    def is_match(self) -> bool:
        return self.total >= MIN_MATCH_SCORE

    def to_dict(self) -> Dict[str, float]:
        return {
            "sector": self.sector,
            "stage": self.stage,
            "geo": self.geo,
            "check": self.check,
            "total": self.total,
        }


@dataclass(frozen=True)
class ScoredInvestor:
    investor: InvestorRecord
    score: MatchScore


@dataclass(frozen=True)
class _Criteria:
    """Strategy reduced to the primitives scoring needs."""
    sectors: frozenset
    stages: frozenset
    geo_tokens: tuple
    target_amount: float

    @classmethod
    def from_strategy(cls, strategy: Strategy) -> _Criteria:
        # "Global" adds no regional preference; only a focus made up entirely
        # of global tokens ends up neutral
        geo_tokens = [
            token for token in normalize_geo_tokens(strategy.geographic_focus)
            if token not in GLOBAL_GEO_TOKENS
        ]
        return cls(
            sectors=frozenset(s.lower() for s in strategy.sectors),
            stages=frozenset(s.lower() for s in strategy.stages),
            geo_tokens=tuple(geo_tokens),
            target_amount=parse_amount(strategy.target_amount_text),
        )


# =============================================================================
# MATCHER
# =============================================================================

class StrategyMatcher:
    """Scores, filters, ranks and caps investors for a strategy."""

    def __init__(
        self,
        min_score: float = MIN_MATCH_SCORE,
        max_results: int = MAX_RESULTS,
    ):
        self.min_score = min_score
        self.max_results = max_results

    def score(self, strategy: Any, investor: InvestorRecord) -> MatchScore:
        """Score a single investor against a (possibly raw) strategy."""
        return self._score(_Criteria.from_strategy(Strategy.from_dict(strategy)), investor)

    def rank(
        self,
        strategy: Any,
        investors: Iterable[InvestorRecord],
    ) -> List[ScoredInvestor]:
        """Return scored investors passing the threshold, best first, capped."""
        criteria = _Criteria.from_strategy(Strategy.from_dict(strategy))

        scored = [ScoredInvestor(inv, self._score(criteria, inv)) for inv in investors]
        kept = [s for s in scored if s.score.total >= self.min_score]
        # sorted() is stable: equal scores keep dataset order
        kept = sorted(kept, key=lambda s: s.score.total, reverse=True)

        logger.debug(
            f"Scored {len(scored)} investors, {len(kept)} at or above {self.min_score}"
        )
        return kept[: self.max_results]

    def match(
        self,
        strategy: Any,
        investors: Sequence[InvestorRecord],
    ) -> List[InvestorRecord]:
        """
        Rank investors for a strategy.

        An absent or empty strategy returns the investors in their original
        order without scoring (still capped).
        """
        if self._is_empty(strategy):
            return list(investors)[: self.max_results]
        return [s.investor for s in self.rank(strategy, investors)]

    @staticmethod
    def _is_empty(strategy: Any) -> bool:
        if strategy is None:
            return True
        if isinstance(strategy, Strategy):
            return strategy.is_neutral()
        if isinstance(strategy, dict):
            return not strategy
        # Wrong type altogether: treated as absent
        return True

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    def _score(self, criteria: _Criteria, investor: InvestorRecord) -> MatchScore:
        return MatchScore(
            sector=_overlap_credit(investor.sectors, criteria.sectors),
            stage=_overlap_credit(investor.stages, criteria.stages),
            geo=_geo_credit(investor.location, criteria.geo_tokens),
            check=(
                check_size_score(investor.check_size, criteria.target_amount)
                if criteria.target_amount > 0
                else NEUTRAL_CREDIT
            ),
        )


def _overlap_credit(values: Iterable[str], wanted: frozenset) -> float:
    if not wanted:
        return NEUTRAL_CREDIT
    return 1.0 if any(v.lower() in wanted for v in values) else 0.0


def _geo_credit(location: str, tokens: tuple) -> float:
    if not tokens:
        return NEUTRAL_CREDIT
    text = (location or "").lower()
    return 1.0 if any(token in text for token in tokens) else 0.0


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def filter_by_strategy(
    strategy: Any,
    investors: Sequence[InvestorRecord],
    matcher: Optional[StrategyMatcher] = None,
) -> List[InvestorRecord]:
    """
    Convenience wrapper around ``StrategyMatcher.match``.

    Usage:
        ranked = filter_by_strategy({"sectors": ["SaaS"]}, enriched)
    """
    return (matcher or StrategyMatcher()).match(strategy, investors)
