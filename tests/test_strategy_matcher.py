"""
Tests for weighted strategy scoring and ranking.
"""

import pytest

from matching.models import InvestorRecord, Strategy
from matching.strategy_matcher import (
    MAX_RESULTS,
    MatchScore,
    StrategyMatcher,
    filter_by_strategy,
)


def _investor(name, sectors=(), stages=(), location="", check_size=""):
    return InvestorRecord(
        name=name,
        sectors=list(sectors),
        stages=list(stages),
        location=location,
        check_size=check_size,
    )


@pytest.fixture
def matcher():
    return StrategyMatcher()


class TestMatchScore:

    def test_weights(self):
        assert MatchScore(1, 1, 1, 1).total == pytest.approx(1.0)
        assert MatchScore(0, 0.5, 0.5, 0.5).total == pytest.approx(0.25)

    def test_all_neutral_exactly_at_threshold(self):
        score = MatchScore(0.5, 0.5, 0.5, 0.5)
        assert score.total == 0.5
        assert score.is_match


class TestScore:
    """Tests for single-investor component scoring."""

    def test_neutral_strategy_scores_half_everywhere(self, matcher):
        score = matcher.score({}, _investor("A", ["Fintech"], ["Seed"], "Dubai", "$1M - $2M"))
        assert (score.sector, score.stage, score.geo, score.check) == (0.5, 0.5, 0.5, 0.5)

    def test_sector_match_is_case_insensitive(self, matcher):
        score = matcher.score({"sectors": ["fintech"]}, _investor("A", ["FinTech"]))
        assert score.sector == 1.0

    def test_sector_overlap_worth_half_a_point(self, matcher):
        strategy = {"sectors": ["Fintech"], "stages": ["Seed"], "geographicFocus": "India"}
        common = dict(stages=["Seed"], location="Mumbai, India", check_size="$100k - $1M")

        hit = matcher.score(strategy, _investor("hit", ["Fintech"], **common))
        miss = matcher.score(strategy, _investor("miss", ["Climate"], **common))

        assert hit.total - miss.total == pytest.approx(0.5)

    def test_geo_uses_synonym_expansion(self, matcher):
        score = matcher.score({"geographicFocus": "UAE"}, _investor("A", location="Dubai"))
        assert score.geo == 1.0

    def test_geo_miss(self, matcher):
        score = matcher.score({"geographicFocus": "India"}, _investor("A", location="Berlin"))
        assert score.geo == 0.0

    def test_global_focus_is_neutral(self, matcher):
        score = matcher.score({"geographicFocus": "Global"}, _investor("A", location="Berlin"))
        assert score.geo == 0.5

    def test_global_alongside_region_keeps_region(self, matcher):
        strategy = {"sectors": ["Fintech"], "geographicFocus": "India, Global"}

        india = matcher.score(strategy, _investor("A", ["Fintech"], location="Mumbai, India"))
        berlin = matcher.score(strategy, _investor("B", ["Fintech"], location="Berlin"))

        assert india.geo == 1.0
        assert berlin.geo == 0.0

    def test_only_global_tokens_are_neutral(self, matcher):
        score = matcher.score({"geographicFocus": "Global / Worldwide"}, _investor("A", location="Berlin"))
        assert score.geo == 0.5

    def test_check_fit_from_target_amount(self, matcher):
        investor = _investor("A", check_size="$100k - $1M")

        assert matcher.score({"targetAmountUSD": "$500k"}, investor).check == 1.0
        assert matcher.score({"targetAmountUSD": "$3M"}, investor).check == 0.2
        assert matcher.score({"sectors": ["AI"]}, investor).check == 0.5

    def test_target_amount_precedence(self, matcher):
        investor = _investor("A", check_size="$100k - $1M")
        strategy = {"targetAmountUSD": "$500k", "fundraisingTarget": "$10M", "checkSizeRange": "$20M"}
        assert matcher.score(strategy, investor).check == 1.0

    def test_malformed_strategy_fields_are_neutral(self, matcher):
        strategy = {"sectors": "Fintech", "stages": 5, "geographicFocus": ["UAE"]}
        score = matcher.score(strategy, _investor("A", ["Fintech"], ["Seed"], "Dubai"))
        assert (score.sector, score.stage, score.geo, score.check) == (0.5, 0.5, 0.5, 0.5)


class TestMatch:
    """Tests for filtering, ordering and capping."""

    def test_fintech_strategy_excludes_non_fintech(self, matcher):
        investors = [
            _investor("one", ["Fintech"]),
            _investor("two", ["SaaS"]),
            _investor("three", ["Fintech", "SaaS"]),
        ]

        ranked = matcher.match({"sectors": ["Fintech"]}, investors)

        assert [inv.name for inv in ranked] == ["one", "three"]
        assert matcher.score({"sectors": ["Fintech"]}, investors[1]).total == pytest.approx(0.25)

    def test_empty_strategy_returns_everything_unranked(self, matcher):
        investors = [_investor(str(i), ["SaaS"] if i % 2 else ["Fintech"]) for i in range(6)]
        assert matcher.match({}, investors) == investors
        assert matcher.match(None, investors) == investors

    def test_neutral_strategy_object_keeps_everyone(self, matcher):
        investors = [_investor("a"), _investor("b", ["AI"], location="Lagos")]
        assert matcher.match(Strategy(), investors) == investors

    def test_non_dict_strategy_treated_as_absent(self, matcher):
        investors = [_investor("a"), _investor("b")]
        assert matcher.match("fintech please", investors) == investors

    def test_sorted_best_first(self, matcher):
        strategy = {"sectors": ["Fintech"], "geographicFocus": "India"}
        investors = [
            _investor("fintech-elsewhere", ["Fintech"], location="Berlin"),
            _investor("fintech-india", ["Fintech"], location="Mumbai, India"),
        ]

        ranked = matcher.match(strategy, investors)

        assert [inv.name for inv in ranked] == ["fintech-india", "fintech-elsewhere"]

    def test_ties_keep_dataset_order(self, matcher):
        investors = [_investor(f"inv-{i}", ["Fintech"]) for i in range(10)]
        ranked = matcher.match({"sectors": ["Fintech"]}, investors)
        assert [inv.name for inv in ranked] == [f"inv-{i}" for i in range(10)]

    def test_result_capped(self, matcher):
        investors = [_investor(f"inv-{i}", ["Fintech"]) for i in range(MAX_RESULTS + 50)]

        assert len(matcher.match({"sectors": ["Fintech"]}, investors)) == MAX_RESULTS
        assert len(matcher.match({}, investors)) == MAX_RESULTS

    def test_custom_limits(self):
        matcher = StrategyMatcher(min_score=0.9, max_results=1)
        investors = [
            _investor("partial", ["Fintech"]),
            _investor("full", ["Fintech"], ["Seed"], "Dubai"),
            _investor("full-2", ["Fintech"], ["Seed"], "Abu Dhabi"),
        ]
        strategy = {"sectors": ["Fintech"], "stages": ["Seed"], "geographicFocus": "UAE"}

        assert [inv.name for inv in matcher.match(strategy, investors)] == ["full"]

    def test_rank_exposes_scores(self, matcher):
        ranked = matcher.rank({"sectors": ["AI"]}, [_investor("a", ["AI"])])
        assert ranked[0].score.sector == 1.0
        assert ranked[0].investor.name == "a"

    def test_filter_by_strategy_wrapper(self):
        investors = [_investor("one", ["Fintech"]), _investor("two", ["SaaS"])]
        assert [i.name for i in filter_by_strategy({"sectors": ["SaaS"]}, investors)] == ["two"]
