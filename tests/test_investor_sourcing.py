"""
Tests for the end-to-end sourcing workflow (load -> infer -> enrich -> match).
"""

import random

import pytest

from matching.dataset import InvestorDataset
from matching.enrichment import InvestorEnricher
from workflows.config import EngineConfig
from workflows.investor_sourcing import InvestorSourcing

ROWS = [
    {"name": "Priya Raman", "sectors": ["Fintech"], "location": "Mumbai, India", "email": "priya@meridian.vc"},
    {"name": "Wei Chen", "sectors": ["SaaS"], "location": "Singapore", "email": "wei@lattice.capital"},
    {"name": "Omar Haddad", "firm": "Falcon Gulf Capital", "sectors": ["Fintech", "SaaS"], "location": "Dubai"},
]


@pytest.fixture
def sourcing():
    return InvestorSourcing(
        dataset=InvestorDataset.from_records(ROWS),
        enricher=InvestorEnricher(rng=random.Random(3)),
    )


class TestSource:

    def test_strategy_filters_and_enriches(self, sourcing):
        result = sourcing.source({"sectors": ["Fintech"]})

        assert [inv.name for inv in result.investors] == ["Priya Raman", "Omar Haddad"]
        assert result.investors[1].email == "omar.haddad@falcongulf.com"
        assert result.investors[1].email_guessed
        assert result.total_count == 2

    def test_no_strategy_returns_everything(self, sourcing):
        result = sourcing.source(None)

        assert result.total_count == 3
        assert result.strategy is None
        assert result.to_dict()["strategy"] is None

    def test_founder_data_fills_gaps(self, sourcing):
        result = sourcing.source({}, founder_data={"description": "Payments rails for India"})

        assert result.strategy.geographic_focus == "India"
        assert result.strategy.sectors == ["Fintech", "Payments"]
        # Omar matches the sector but not the geography, so ranks below Priya
        assert [inv.name for inv in result.investors] == ["Priya Raman", "Omar Haddad"]

    def test_founder_stage_and_target_add_no_filters(self):
        sourcing = InvestorSourcing(
            dataset=InvestorDataset.from_records([
                {"name": "Wei Chen", "stages": ["Series B"], "checkSize": "$5M - $10M"},
            ]),
            enricher=InvestorEnricher(rng=random.Random(3)),
        )

        result = sourcing.source(
            {},
            founder_data={"stage": "Seed", "fundraisingTarget": "$500k", "description": "we build robots"},
        )

        assert result.total_count == 1
        assert result.strategy is None

    def test_founder_data_keeps_explicit_strategy_fields(self, sourcing):
        result = sourcing.source(
            {"sectors": ["SaaS"]},
            founder_data={"stage": "Seed", "description": "Payments rails for India"},
        )

        assert result.strategy.sectors == ["SaaS"]
        assert result.strategy.stages == []
        assert result.strategy.geographic_focus == "India"

    def test_dataset_left_untouched(self, sourcing):
        sourcing.source({"sectors": ["Fintech"]})
        assert sourcing.dataset.load()[2].email == ""

    def test_to_dict_shape(self, sourcing):
        data = sourcing.source({"sectors": ["SaaS"]}).to_dict()

        assert data["total_count"] == 2
        assert data["strategy"]["sectors"] == ["SaaS"]
        assert "checkSize" in data["investors"][0]


def test_from_config_uses_dataset_and_seed(tmp_path):
    path = tmp_path / "investors.json"
    path.write_text('[{"name": "Solo Investor"}]', encoding="utf-8")
    config = EngineConfig(dataset_path=str(path), dataset_fallback_path=None, enrichment_seed=11)

    first = InvestorSourcing.from_config(config).source(None)
    second = InvestorSourcing.from_config(config).source(None)

    assert first.investors[0].name == "Solo Investor"
    assert first.investors[0].sectors == second.investors[0].sectors
