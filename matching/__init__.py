"""
Investor matching: models, dataset provider, enrichment and strategy scoring.

Quick start:
    from matching import InvestorDataset, InvestorEnricher, StrategyMatcher

    investors = InvestorEnricher().enrich_all(InvestorDataset().load())
    ranked = StrategyMatcher().match({"sectors": ["Fintech"]}, investors)
"""

from matching.dataset import DatasetLoadError, InvestorDataset
from matching.dataset_tools import DatasetImportError, fill_missing_emails, read_investors_csv
from matching.enrichment import InvestorEnricher
from matching.models import InvestorRecord, Strategy
from matching.strategy_inference import complete_strategy, infer_strategy_from_founder
from matching.strategy_matcher import (
    MAX_RESULTS,
    MIN_MATCH_SCORE,
    MatchScore,
    ScoredInvestor,
    StrategyMatcher,
    filter_by_strategy,
)

__all__ = [
    "DatasetImportError",
    "DatasetLoadError",
    "InvestorDataset",
    "InvestorEnricher",
    "InvestorRecord",
    "Strategy",
    "complete_strategy",
    "fill_missing_emails",
    "infer_strategy_from_founder",
    "read_investors_csv",
    "MAX_RESULTS",
    "MIN_MATCH_SCORE",
    "MatchScore",
    "ScoredInvestor",
    "StrategyMatcher",
    "filter_by_strategy",
]
