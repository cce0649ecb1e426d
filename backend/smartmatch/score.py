"""
Match Score Engine — combine buyer intent and a vendor profile into a 0–100 score.

Six independently bounded factors, each scored in coarse tiers expressed as
a fraction of that factor's weight:

  location        city/state match against the buyer's filters
  delivery        average delivery hours
  reliability     fulfillment rate
  payment_fit     buyer's preferred payment method vs methods seen on orders
  vendor_quality  verification + disputes + stock accuracy + reviews
  buyer_history   repeat buyer, or category overlap with past purchases

Post-processing runs in a fixed order on the raw sum:
  1. flagged vendors are capped at FLAGGED_SCORE_CAP
  2. premium listings get the bonus only if unflagged and already >= premium_min_score
  3. clamp to [0, 100]

Everything here is pure and synchronous.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from smartmatch.coerce import round_half_up
from smartmatch.config import (
    DEFAULT_WEIGHTS,
    DELIVERY_THRESHOLDS,
    DISPUTE_THRESHOLDS,
    FULFILLMENT_THRESHOLDS,
    STOCK_ACCURACY_THRESHOLDS,
    score_to_label,
)
from smartmatch.types import (
    BuyerIntentProfile,
    MatchScoreBreakdown,
    ProductMatchResult,
    SmartMatchWeights,
    VendorReliabilityProfile,
)

FLAGGED_SCORE_CAP = 30
DEFAULT_PREMIUM_MIN_SCORE = 70

# Reason clauses fire at this share of a factor's max points
REASON_STRONG_SHARE = 0.8
REASON_STATE_SHARE = 0.6
REASON_MIN_ORDERS_FOR_DISPUTES = 5
REASON_MIN_REVIEWS = 5
REASON_MIN_RATING = 4.0

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def _norm(value: str | None) -> str:
    return _NON_ALNUM.sub("", str(value or "").lower()).strip()


def _pts(max_pts: int, fraction: float) -> int:
    return round_half_up(max_pts * fraction)


def _overlaps(a: str, b: str) -> bool:
    return a in b or b in a


def _clears(points: int, max_pts: int, share: float) -> bool:
    return max_pts > 0 and points >= max_pts * share


# ──────────────────────────────────────────────────────────────────────────
# Factor scorers
# ──────────────────────────────────────────────────────────────────────────


def score_location(buyer: BuyerIntentProfile, vendor: VendorReliabilityProfile, max_pts: int) -> int:
    buyer_state, buyer_city = _norm(buyer.state), _norm(buyer.city)
    vendor_state, vendor_city = _norm(vendor.state), _norm(vendor.city)

    if not buyer_state and not buyer_city:
        return _pts(max_pts, 0.5)
    if buyer_city and vendor_city and buyer_city == vendor_city:
        return max_pts
    if buyer_city and vendor_city and _overlaps(buyer_city, vendor_city):
        return _pts(max_pts, 0.85)
    if buyer_state and vendor_state and buyer_state == vendor_state:
        return _pts(max_pts, 0.72)
    if buyer_state and vendor_state and _overlaps(buyer_state, vendor_state):
        return _pts(max_pts, 0.6)
    if vendor_state:
        return _pts(max_pts, 0.4)
    return 0


def score_delivery(vendor: VendorReliabilityProfile, max_pts: int) -> int:
    hours = vendor.avg_delivery_hours
    if not hours or hours <= 0:
        return _pts(max_pts, 0.3)
    if hours <= DELIVERY_THRESHOLDS["fast"]:
        return max_pts
    elif hours <= DELIVERY_THRESHOLDS["moderate"]:
        return _pts(max_pts, 0.67)
    elif hours <= DELIVERY_THRESHOLDS["slow"]:
        return _pts(max_pts, 0.33)
    return 0


def score_reliability(vendor: VendorReliabilityProfile, max_pts: int) -> int:
    # No order history is neutral, not a 0% fulfillment rate.
    if not vendor.has_order_history:
        return _pts(max_pts, 0.4)

    rate = vendor.fulfillment_rate
    if rate >= FULFILLMENT_THRESHOLDS["excellent"]:
        return max_pts
    elif rate >= FULFILLMENT_THRESHOLDS["good"]:
        return _pts(max_pts, 0.72)
    elif rate >= FULFILLMENT_THRESHOLDS["fair"]:
        return _pts(max_pts, 0.4)
    return 0


def score_payment_fit(buyer: BuyerIntentProfile, vendor: VendorReliabilityProfile, max_pts: int) -> int:
    supported = {
        "card": vendor.supports_card,
        "bank_transfer": vendor.supports_bank_transfer,
        "chat": vendor.supports_chat,
    }
    preference = buyer.preferred_payment_type
    if not preference:
        return _pts(max_pts, 0.5)
    if supported.get(preference):
        return max_pts
    if any(supported.values()):
        return _pts(max_pts, 0.5)
    return 0


def score_vendor_quality(vendor: VendorReliabilityProfile, max_pts: int) -> int:
    """
    Composite bucket, as shares of max_pts:
      verification 35%, dispute rate 25%, stock accuracy 15%, review rating 25%.
    """
    pts = 0

    verify_max = _pts(max_pts, 0.35)
    if vendor.apex_badge_active:
        pts += verify_max
    elif vendor.verification_tier >= 3:
        pts += _pts(verify_max, 0.9)
    elif vendor.verification_tier >= 2:
        pts += _pts(verify_max, 0.7)
    elif vendor.verification_tier >= 1:
        pts += _pts(verify_max, 0.5)

    dispute_max = _pts(max_pts, 0.25)
    if not vendor.has_order_history:
        pts += _pts(dispute_max, 0.5)
    elif vendor.dispute_rate < DISPUTE_THRESHOLDS["excellent"]:
        pts += dispute_max
    elif vendor.dispute_rate < DISPUTE_THRESHOLDS["acceptable"]:
        pts += _pts(dispute_max, 0.5)

    stock_max = _pts(max_pts, 0.15)
    if vendor.stock_accuracy_rate >= STOCK_ACCURACY_THRESHOLDS["good"]:
        pts += stock_max
    elif vendor.stock_accuracy_rate >= STOCK_ACCURACY_THRESHOLDS["fair"]:
        pts += _pts(stock_max, 0.5)

    review_max = _pts(max_pts, 0.25)
    if vendor.total_reviews > 0 and vendor.average_rating > 0:
        rating = vendor.average_rating
        if rating >= 4.5:
            pts += review_max
        elif rating >= 4.0:
            pts += _pts(review_max, 0.8)
        elif rating >= 3.5:
            pts += _pts(review_max, 0.5)
        elif rating >= 3.0:
            pts += _pts(review_max, 0.25)
    else:
        # No reviews yet: neutral
        pts += _pts(review_max, 0.4)

    return min(max_pts, pts)


def score_buyer_history(
    buyer: BuyerIntentProfile,
    vendor: VendorReliabilityProfile,
    max_pts: int,
    product_categories: Sequence[str] | None = None,
) -> int:
    if buyer.vendor_history.get(vendor.business_id, 0) > 0:
        return max_pts
    if product_categories and buyer.past_categories:
        past = set(buyer.past_categories)
        if any(category in past for category in product_categories):
            return _pts(max_pts, 0.5)
    return 0


# ──────────────────────────────────────────────────────────────────────────
# Main scorer
# ──────────────────────────────────────────────────────────────────────────


def apply_post_processing(
    raw_total: int,
    *,
    flagged: bool,
    is_premium: bool = False,
    premium_bonus: int = 0,
    premium_min_score: int = DEFAULT_PREMIUM_MIN_SCORE,
) -> int:
    """Flag cap, then premium bonus, then clamp. Order matters."""
    total = raw_total
    if flagged:
        total = min(total, FLAGGED_SCORE_CAP)
    if is_premium and not flagged and premium_bonus > 0 and total >= premium_min_score:
        total = min(100, total + premium_bonus)
    return max(0, min(100, total))


def compute_match_score(
    buyer: BuyerIntentProfile,
    vendor: VendorReliabilityProfile,
    weights: SmartMatchWeights = DEFAULT_WEIGHTS,
    product_categories: Sequence[str] | None = None,
    is_premium: bool = False,
    premium_bonus: int = 0,
    premium_min_score: int = DEFAULT_PREMIUM_MIN_SCORE,
) -> MatchScoreBreakdown:
    """Score one vendor (and optionally one product's categories) for one buyer."""
    score = MatchScoreBreakdown(
        location=score_location(buyer, vendor, weights.location),
        delivery=score_delivery(vendor, weights.delivery),
        reliability=score_reliability(vendor, weights.reliability),
        payment_fit=score_payment_fit(buyer, vendor, weights.payment_fit),
        vendor_quality=score_vendor_quality(vendor, weights.vendor_quality),
        buyer_history=score_buyer_history(buyer, vendor, weights.buyer_history, product_categories),
    )
    score.total = apply_post_processing(
        score.raw_total,
        flagged=vendor.flagged,
        is_premium=is_premium,
        premium_bonus=premium_bonus,
        premium_min_score=premium_min_score,
    )
    return score


def build_match_reason(
    score: MatchScoreBreakdown,
    vendor: VendorReliabilityProfile,
    weights: SmartMatchWeights = DEFAULT_WEIGHTS,
) -> str:
    """Human-readable explanation; empty when nothing stands out."""
    parts: list[str] = []

    if _clears(score.location, weights.location, REASON_STRONG_SHARE):
        parts.append("near you")
    elif _clears(score.location, weights.location, REASON_STATE_SHARE):
        parts.append("in your state")

    if _clears(score.delivery, weights.delivery, REASON_STRONG_SHARE):
        parts.append("delivers fast")

    if vendor.has_order_history and vendor.fulfillment_rate >= FULFILLMENT_THRESHOLDS["good"]:
        parts.append(f"{vendor.fulfillment_rate}% fulfillment rate")

    if vendor.apex_badge_active:
        parts.append("trusted vendor")
    elif vendor.is_verified:
        parts.append("verified seller")

    if (
        vendor.total_completed_orders >= REASON_MIN_ORDERS_FOR_DISPUTES
        and vendor.dispute_rate < DISPUTE_THRESHOLDS["excellent"]
    ):
        parts.append("low dispute rate")

    if vendor.total_reviews >= REASON_MIN_REVIEWS and vendor.average_rating >= REASON_MIN_RATING:
        parts.append(f"{vendor.average_rating:.1f}★ rating")

    if _clears(score.buyer_history, weights.buyer_history, REASON_STRONG_SHARE):
        parts.append("you've ordered here before")

    if not parts:
        return ""
    joined = " · ".join(parts)
    return joined[0].upper() + joined[1:]


def build_product_match_result(
    product_id: str,
    business_id: str,
    buyer: BuyerIntentProfile,
    vendor: VendorReliabilityProfile,
    weights: SmartMatchWeights = DEFAULT_WEIGHTS,
    product_categories: Sequence[str] | None = None,
    is_premium: bool = False,
    premium_bonus: int = 0,
    premium_min_score: int = DEFAULT_PREMIUM_MIN_SCORE,
) -> ProductMatchResult:
    score = compute_match_score(
        buyer,
        vendor,
        weights=weights,
        product_categories=product_categories,
        is_premium=is_premium,
        premium_bonus=premium_bonus,
        premium_min_score=premium_min_score,
    )
    return ProductMatchResult(
        product_id=product_id,
        business_id=business_id,
        score=score,
        label=score_to_label(score.total),
        reason=build_match_reason(score, vendor, weights),
    )
