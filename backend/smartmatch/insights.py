"""
Vendor insights — explain to a vendor what drives their SmartMatch visibility.

One entry per factor (fulfillment, delivery, disputes, verification,
payment options, stock accuracy), preceded by a warning entry when the
vendor is flagged. Status cut-offs reuse the scorer's threshold tables.
"""

from __future__ import annotations

from smartmatch.config import (
    DELIVERY_THRESHOLDS,
    DISPUTE_THRESHOLDS,
    FULFILLMENT_THRESHOLDS,
    STOCK_ACCURACY_THRESHOLDS,
)
from smartmatch.score import compute_match_score
from smartmatch.types import (
    BuyerIntentProfile,
    MatchScoreBreakdown,
    SmartMatchWeights,
    VendorMatchInsight,
    VendorReliabilityProfile,
)

FLAGGED_TIP = (
    "Your account has been flagged for potential Smart Match abuse. Your visibility is "
    "severely reduced. Contact support if you believe this is an error."
)


def _fulfillment_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    value = f"{profile.fulfillment_rate}%"
    if not profile.has_order_history:
        status, value, tip = "improve", "No orders yet", "Complete your first orders to build your fulfillment score."
    elif profile.fulfillment_rate >= FULFILLMENT_THRESHOLDS["excellent"]:
        status, tip = "good", "Excellent! Keep maintaining this high fulfillment rate."
    elif profile.fulfillment_rate >= FULFILLMENT_THRESHOLDS["good"]:
        status, tip = "improve", "Good, but aim for 95%+ to rank higher in search results."
    else:
        status, tip = "bad", "This is hurting your visibility. Fulfill orders promptly and avoid cancellations."
    return VendorMatchInsight("fulfillment_rate", "Fulfillment Rate", status, value, tip)


def _delivery_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    hours = profile.avg_delivery_hours
    value = f"~{round(hours)}h avg"
    if hours <= 0 or not profile.has_order_history:
        status, value, tip = "improve", "No data", "Mark orders as delivered to build your delivery speed score."
    elif hours <= DELIVERY_THRESHOLDS["fast"]:
        status, tip = "good", "Great delivery speed! This boosts your visibility significantly."
    elif hours <= DELIVERY_THRESHOLDS["moderate"]:
        status, tip = "improve", "Try to deliver within 24 hours when possible for maximum visibility."
    else:
        status, tip = "bad", "Slow delivery reduces your ranking. Ship orders faster."
    return VendorMatchInsight("delivery_speed", "Delivery Speed", status, value, tip)


def _dispute_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    value = f"{profile.dispute_rate:g}%"
    if not profile.has_order_history:
        status, value, tip = "good", "No disputes", "Keep it this way! Low disputes build trust."
    elif profile.dispute_rate < DISPUTE_THRESHOLDS["excellent"]:
        status, tip = "good", "Excellent dispute rate. Buyers trust you."
    elif profile.dispute_rate < DISPUTE_THRESHOLDS["acceptable"]:
        status, tip = "improve", "Try to reduce disputes by communicating clearly with buyers."
    else:
        status, tip = "bad", "High dispute rate seriously hurts your visibility. Resolve issues proactively."
    return VendorMatchInsight("dispute_rate", "Dispute Rate", status, value, tip)


def _verification_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    if profile.apex_badge_active:
        status, value, tip = "good", "Apex verified", "Maximum trust level. You rank highest for trust signals."
    elif profile.verification_tier >= 3:
        status, value, tip = (
            "good",
            "Address verified",
            "Strong verification. Consider earning the Apex badge for even more trust.",
        )
    elif profile.verification_tier >= 2:
        status, value, tip = "improve", "ID verified", "Verify your address to unlock higher rankings."
    elif profile.verification_tier >= 1:
        status, value, tip = "improve", "Basic verified", "Complete ID and address verification to rank higher."
    else:
        status, value, tip = "bad", "Not verified", "Unverified sellers rank lowest. Start verification now."
    return VendorMatchInsight("verification", "Verification", status, value, tip)


def _payment_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    methods = [
        name
        for name, supported in (
            ("Card", profile.supports_card),
            ("Bank transfer", profile.supports_bank_transfer),
            ("Chat", profile.supports_chat),
        )
        if supported
    ]
    if len(methods) >= 2:
        status, tip = "good", "Multiple payment options help you match with more buyers."
    elif len(methods) == 1:
        status, tip = "improve", "Add more payment options to match with more buyers."
    else:
        status, tip = "bad", "No payment methods detected. Complete orders to build your payment profile."
    value = ", ".join(methods) if methods else "None detected"
    return VendorMatchInsight("payment_options", "Payment Options", status, value, tip)


def _stock_insight(profile: VendorReliabilityProfile) -> VendorMatchInsight:
    value = f"{profile.stock_accuracy_rate}%"
    if profile.stock_accuracy_rate >= STOCK_ACCURACY_THRESHOLDS["good"]:
        status, tip = "good", "Your stock levels are accurate. Buyers see reliable availability."
    elif profile.stock_accuracy_rate >= STOCK_ACCURACY_THRESHOLDS["fair"]:
        status, tip = "improve", "Update out-of-stock products to improve accuracy."
    else:
        status, tip = "bad", "Many products show 0 stock. Update your inventory to avoid ranking penalties."
    return VendorMatchInsight("stock_accuracy", "Stock Accuracy", status, value, tip)


def build_vendor_insights(profile: VendorReliabilityProfile) -> list[VendorMatchInsight]:
    """Ordered dashboard insights for one vendor profile. Read-only."""
    insights: list[VendorMatchInsight] = []
    if profile.flagged:
        insights.append(VendorMatchInsight("flagged", "Account Flagged", "bad", "Flagged by admin", FLAGGED_TIP))

    insights.extend(
        [
            _fulfillment_insight(profile),
            _delivery_insight(profile),
            _dispute_insight(profile),
            _verification_insight(profile),
            _payment_insight(profile),
            _stock_insight(profile),
        ]
    )
    return insights


def summarize_insights(insights: list[VendorMatchInsight]) -> dict:
    good = sum(1 for i in insights if i.status == "good")
    improve = sum(1 for i in insights if i.status == "improve")
    bad = sum(1 for i in insights if i.status == "bad")

    if bad == 0 and improve <= 1:
        overall_health = "strong"
    elif bad == 0:
        overall_health = "moderate"
    else:
        overall_health = "needs_work"

    return {"good": good, "improve": improve, "bad": bad, "overallHealth": overall_health}


def simulate_match_scores(
    profile: VendorReliabilityProfile,
    weights: SmartMatchWeights,
) -> dict[str, MatchScoreBreakdown]:
    """
    What a typical card-paying buyer would see, both nearby and elsewhere.
    Gives vendors a rough feel for their score without a real buyer.
    """
    nearby = BuyerIntentProfile(
        state=profile.state or None,
        city=profile.city or None,
        preferred_payment_type="card",
        prefers_delivery=True,
    )
    elsewhere = BuyerIntentProfile(
        state="different_state",
        city="different_city",
        preferred_payment_type="card",
        prefers_delivery=True,
    )
    return {
        "sameLocation": compute_match_score(nearby, profile, weights=weights),
        "differentLocation": compute_match_score(elsewhere, profile, weights=weights),
    }
