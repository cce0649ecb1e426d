"""
Tests for the Vendor Insights generator.
"""

from dataclasses import replace

from smartmatch.config import DEFAULT_WEIGHTS
from smartmatch.insights import build_vendor_insights, simulate_match_scores, summarize_insights
from smartmatch.types import VendorMatchInsight, VendorReliabilityProfile

BIZ = "biz-lagos-001"


def _strong_profile(**overrides):
    profile = VendorReliabilityProfile(
        business_id=BIZ,
        fulfillment_rate=97,
        avg_delivery_hours=18,
        dispute_rate=1.2,
        total_completed_orders=40,
        total_attempted_orders=41,
        is_verified=True,
        verification_tier=3,
        state="Lagos",
        city="Ikeja",
        supports_card=True,
        supports_bank_transfer=True,
        stock_accuracy_rate=95,
        computed_at_ms=1,
    )
    return replace(profile, **overrides)


def _by_factor(insights):
    return {insight.factor: insight for insight in insights}


class TestBuildVendorInsights:
    def test_factor_order(self):
        factors = [i.factor for i in build_vendor_insights(_strong_profile())]
        assert factors == [
            "fulfillment_rate",
            "delivery_speed",
            "dispute_rate",
            "verification",
            "payment_options",
            "stock_accuracy",
        ]

    def test_flagged_entry_leads(self):
        insights = build_vendor_insights(_strong_profile(flagged=True))
        assert insights[0].factor == "flagged"
        assert insights[0].status == "bad"
        assert insights[0].value == "Flagged by admin"
        assert len(insights) == 7

    def test_strong_vendor_values(self):
        insights = _by_factor(build_vendor_insights(_strong_profile()))
        assert insights["fulfillment_rate"].status == "good"
        assert insights["fulfillment_rate"].value == "97%"
        assert insights["delivery_speed"].value == "~18h avg"
        assert insights["delivery_speed"].status == "good"
        assert insights["dispute_rate"].value == "1.2%"
        assert insights["verification"].value == "Address verified"
        assert insights["payment_options"].value == "Card, Bank transfer"
        assert insights["payment_options"].status == "good"
        assert insights["stock_accuracy"].status == "good"

    def test_new_vendor(self):
        profile = VendorReliabilityProfile(business_id=BIZ, computed_at_ms=1)
        insights = _by_factor(build_vendor_insights(profile))
        assert insights["fulfillment_rate"].status == "improve"
        assert insights["fulfillment_rate"].value == "No orders yet"
        assert insights["delivery_speed"].value == "No data"
        assert insights["dispute_rate"].status == "good"
        assert insights["dispute_rate"].value == "No disputes"
        assert insights["verification"].status == "bad"
        assert insights["payment_options"].value == "None detected"
        assert insights["payment_options"].status == "bad"

    def test_struggling_vendor(self):
        profile = _strong_profile(
            fulfillment_rate=70,
            avg_delivery_hours=100,
            dispute_rate=8.0,
            verification_tier=1,
            supports_bank_transfer=False,
            stock_accuracy_rate=50,
        )
        insights = _by_factor(build_vendor_insights(profile))
        assert insights["fulfillment_rate"].status == "bad"
        assert insights["delivery_speed"].status == "bad"
        assert insights["dispute_rate"].status == "bad"
        assert insights["verification"].value == "Basic verified"
        assert insights["verification"].status == "improve"
        assert insights["payment_options"].status == "improve"
        assert insights["stock_accuracy"].status == "bad"

    def test_apex_badge_wins_over_tier(self):
        insights = _by_factor(build_vendor_insights(_strong_profile(apex_badge_active=True, verification_tier=0)))
        assert insights["verification"].value == "Apex verified"

    def test_profile_not_mutated(self):
        profile = _strong_profile(flagged=True)
        snapshot = replace(profile)
        build_vendor_insights(profile)
        assert profile == snapshot


class TestSummarizeInsights:
    def _insights(self, *statuses):
        return [VendorMatchInsight(f"f{i}", "F", status, "", "") for i, status in enumerate(statuses)]

    def test_strong(self):
        summary = summarize_insights(self._insights("good", "good", "improve"))
        assert summary == {"good": 2, "improve": 1, "bad": 0, "overallHealth": "strong"}

    def test_moderate(self):
        assert summarize_insights(self._insights("good", "improve", "improve"))["overallHealth"] == "moderate"

    def test_needs_work(self):
        assert summarize_insights(self._insights("good", "bad"))["overallHealth"] == "needs_work"


class TestSimulatedScores:
    def test_same_location_beats_elsewhere(self):
        scores = simulate_match_scores(_strong_profile(), DEFAULT_WEIGHTS)
        assert scores["sameLocation"].location == 25
        assert scores["differentLocation"].location == 10
        assert scores["sameLocation"].total > scores["differentLocation"].total
        assert scores["sameLocation"].payment_fit == 10
