"""
Investor Sourcing workflow

Ties the matching pieces together:
  dataset.load() → infer_strategy_from_founder() → enrich() → match()

Usage:
    from workflows.investor_sourcing import InvestorSourcing

    sourcing = InvestorSourcing.from_config(EngineConfig.from_env())
    result = sourcing.source({"sectors": ["Fintech"]}, founder_data={"stage": "Seed"})
    print(result.total_count)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from matching.dataset import InvestorDataset
from matching.enrichment import InvestorEnricher
from matching.models import InvestorRecord, Strategy
from matching.strategy_inference import infer_strategy_from_founder
from matching.strategy_matcher import StrategyMatcher
from workflows.config import EngineConfig

logger = logging.getLogger(__name__)


@dataclass
class SourcingResult:
    """Ranked investors for one strategy."""
    investors: List[InvestorRecord]
    strategy: Optional[Strategy]

    @property
    def total_count(self) -> int:
        return len(self.investors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "investors": [inv.to_dict() for inv in self.investors],
            "strategy": self.strategy.to_dict() if self.strategy else None,
            "total_count": self.total_count,
        }


class InvestorSourcing:
    """Pure (no I/O beyond the first dataset read) investor sourcing."""

    def __init__(
        self,
        dataset: InvestorDataset,
        enricher: Optional[InvestorEnricher] = None,
        matcher: Optional[StrategyMatcher] = None,
    ):
        self.dataset = dataset
        self.enricher = enricher or InvestorEnricher()
        self.matcher = matcher or StrategyMatcher()

    @classmethod
    def from_config(cls, config: EngineConfig) -> InvestorSourcing:
        rng = random.Random(config.enrichment_seed)
        return cls(
            dataset=InvestorDataset(config.dataset_path, config.dataset_fallback_path),
            enricher=InvestorEnricher(rng=rng),
        )

    def source(
        self,
        strategy: Optional[Dict[str, Any]] = None,
        founder_data: Optional[Dict[str, Any]] = None,
    ) -> SourcingResult:
        """
        Rank the dataset for a strategy.

        Sectors and geography the strategy leaves empty are inferred from the
        founder's description and merged over it. Stage, check-size and
        investor-type defaults are not applied here (see complete_strategy),
        so founder data never adds filters the strategy did not ask for. A
        strategy that is still empty returns the enriched dataset unranked.
        """
        enriched = self.enricher.enrich_all(self.dataset.load())

        raw: Dict[str, Any] = dict(strategy) if isinstance(strategy, dict) else {}
        if founder_data:
            raw.update(infer_strategy_from_founder(founder_data, raw))
        effective = Strategy.from_dict(raw) if raw else None

        investors = self.matcher.match(effective, enriched)
        logger.info(f"Sourced {len(investors)} of {len(enriched)} investors")
        return SourcingResult(investors=investors, strategy=effective)
