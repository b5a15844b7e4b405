"""
Investor Enrichment

Fills the gaps in raw investor records so every record can be scored and
shown: sectors, stages, check size, thesis, portfolio highlights and email.

Sector/stage/check-size fallbacks are sampled from fixed pools using an
injected random source. Email synthesis is deterministic and never touches
that random source.

Usage:
    enricher = InvestorEnricher(rng=random.Random(42))
    enriched = enricher.enrich_all(dataset.load())
"""

from __future__ import annotations

import logging
import random
import re
from typing import Iterable, List, Optional, Sequence

from matching.models import InvestorRecord
from utils.email_guess import guess_email

logger = logging.getLogger(__name__)


# =============================================================================
# FALLBACK POOLS
# =============================================================================

SECTOR_POOL = (
    "Fintech",
    "SaaS",
    "AI",
    "Healthcare",
    "Consumer",
    "Enterprise",
    "Developer Tools",
    "Cybersecurity",
    "Marketplace",
    "Climate",
    "Crypto",
    "Deep Tech",
    "Supply Chain",
    "Edtech",
    "HR Tech",
)

STAGE_POOL = ("Pre-seed", "Seed", "Series A", "Series B")

CHECK_SIZE_POOL = (
    "$25k - $100k",
    "$100k - $250k",
    "$250k - $500k",
    "$500k - $1M",
    "$1M - $3M",
    "$3M - $10M",
)

ANGEL_STAGES = ("Pre-seed", "Seed")
PRE_SEED_CHECK_SIZE = "$25k - $250k"
SEED_CHECK_SIZE = "$100k - $1M"
SERIES_A_CHECK_SIZE = "$1M - $3M"
PLACEHOLDER_PORTFOLIO = ("Company A", "Company B")

_ANGEL_RE = re.compile(r"angel", re.IGNORECASE)


class InvestorEnricher:
    """
    Produces enriched copies of investor records.

    Args:
        rng: Random source for pool sampling. Pass a seeded
             ``random.Random`` for reproducible output.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def enrich_all(self, investors: Iterable[InvestorRecord]) -> List[InvestorRecord]:
        """Enrich every record; the inputs are left untouched."""
        return [self.enrich(inv) for inv in investors]

    def enrich(self, investor: InvestorRecord) -> InvestorRecord:
        """Return an enriched copy of a single record."""
        record = investor.copy()

        if not record.sectors:
            record.sectors = self._pick(SECTOR_POOL, 2)

        if not record.stages:
            if self.is_angel(record):
                record.stages = list(ANGEL_STAGES)
            else:
                record.stages = self._pick(STAGE_POOL, 2)

        if not record.check_size.strip():
            record.check_size = self._check_size_for_stage(record.stages)

        if not record.investment_thesis.strip():
            focus = ", ".join(record.sectors[:2]) or "technology"
            record.investment_thesis = (
                f"Focuses on {focus} with strong founder-market fit "
                f"and scalable business models."
            )

        if not record.portfolio_highlights:
            record.portfolio_highlights = list(PLACEHOLDER_PORTFOLIO)

        if not record.email.strip():
            record.email = guess_email(record.name, record.firm, record.website)
            record.email_guessed = True
            logger.debug(f"Guessed email for {record.name or record.firm}: {record.email}")

        return record

    @staticmethod
    def is_angel(investor: InvestorRecord) -> bool:
        return bool(_ANGEL_RE.search(investor.role) or _ANGEL_RE.search(investor.firm))

    def _check_size_for_stage(self, stages: Sequence[str]) -> str:
        stage_key = (stages[0] if stages else "").lower()
        if "pre" in stage_key:
            return PRE_SEED_CHECK_SIZE
        if "seed" in stage_key:
            return SEED_CHECK_SIZE
        if "a" in stage_key:
            return SERIES_A_CHECK_SIZE
        return self.rng.choice(CHECK_SIZE_POOL)

    def _pick(self, pool: Sequence[str], count: int) -> List[str]:
        return self.rng.sample(list(pool), min(count, len(pool)))
