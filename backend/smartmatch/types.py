"""
SmartMatch — Buyer–Vendor Match & Trust Score types.

Types for the entire pipeline:
  1. Vendor reliability profiles (precomputed, cached on the vendor record)
  2. Buyer intent signals (inferred at query time, never stored)
  3. Match score output (per buyer × product)
  4. Admin-tunable scoring config
  5. Vendor dashboard insights

Documents are stored with camelCase keys; Python attributes are snake_case.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

from pydantic.alias_generators import to_camel

from smartmatch.coerce import as_bool, as_float, as_int, as_text

MatchLabel = Literal["best_match", "recommended", "fair_match", "low_match"]
FactorStatus = Literal["good", "improve", "bad"]
PaymentPreference = Literal["card", "bank_transfer", "chat"]
ReviewTrend = Literal["improving", "stable", "declining"]

REVIEW_TRENDS = ("improving", "stable", "declining")


def _camel_dict(obj: Any) -> dict[str, Any]:
    return {to_camel(f.name): getattr(obj, f.name) for f in fields(obj)}


# ─── Vendor Reliability Profile ────────────────────────────────────────────


@dataclass
class VendorReliabilityProfile:
    """Precomputed vendor signals, overwritten wholesale on every recompute."""

    business_id: str
    fulfillment_rate: int = 0  # 0–100
    avg_delivery_hours: float = 0  # 0 = unknown
    dispute_rate: float = 0.0  # 0–100, one decimal
    total_completed_orders: int = 0
    total_attempted_orders: int = 0
    total_disputes: int = 0
    is_verified: bool = False
    verification_tier: int = 0  # 0=none, 1=basic, 2=ID, 3=address
    apex_badge_active: bool = False
    state: str = ""
    city: str = ""
    supports_card: bool = False
    supports_bank_transfer: bool = False
    supports_chat: bool = False
    stock_accuracy_rate: int = 100
    average_rating: float = 0.0
    total_reviews: int = 0
    rating_score: float = 0.0
    review_trend: ReviewTrend = "stable"
    computed_at_ms: int = 0
    flagged: bool = False

    @property
    def has_order_history(self) -> bool:
        # Profiles cached before totalAttemptedOrders existed only carry the completed count.
        return self.total_attempted_orders > 0 or self.total_completed_orders > 0

    def to_document(self) -> dict[str, Any]:
        return _camel_dict(self)

    @classmethod
    def from_document(cls, doc: Any, business_id: str | None = None) -> VendorReliabilityProfile | None:
        """Rebuild a profile from a stored document. Returns None when unusable."""
        if not isinstance(doc, Mapping):
            return None
        computed_at_ms = as_int(doc.get("computedAtMs"))
        if computed_at_ms <= 0:
            return None
        resolved_id = as_text(doc.get("businessId")) or (business_id or "")
        if not resolved_id:
            return None

        trend = doc.get("reviewTrend")
        verification_tier = as_int(doc.get("verificationTier"))
        return cls(
            business_id=resolved_id,
            fulfillment_rate=as_int(doc.get("fulfillmentRate")),
            avg_delivery_hours=as_float(doc.get("avgDeliveryHours")),
            dispute_rate=as_float(doc.get("disputeRate")),
            total_completed_orders=as_int(doc.get("totalCompletedOrders")),
            total_attempted_orders=as_int(doc.get("totalAttemptedOrders")),
            total_disputes=as_int(doc.get("totalDisputes")),
            is_verified=as_bool(doc.get("isVerified")) or verification_tier >= 1,
            verification_tier=verification_tier,
            apex_badge_active=as_bool(doc.get("apexBadgeActive")),
            state=as_text(doc.get("state")),
            city=as_text(doc.get("city")),
            supports_card=as_bool(doc.get("supportsCard")),
            supports_bank_transfer=as_bool(doc.get("supportsBankTransfer")),
            supports_chat=as_bool(doc.get("supportsChat")),
            stock_accuracy_rate=as_int(doc.get("stockAccuracyRate"), 100),
            average_rating=as_float(doc.get("averageRating")),
            total_reviews=as_int(doc.get("totalReviews")),
            rating_score=as_float(doc.get("ratingScore")),
            review_trend=trend if trend in REVIEW_TRENDS else "stable",
            computed_at_ms=computed_at_ms,
            flagged=as_bool(doc.get("flagged")),
        )


# ─── Buyer Intent ──────────────────────────────────────────────────────────


@dataclass
class MarketFilters:
    """Marketplace filter state as submitted by the storefront."""

    state: str | None = None
    city: str | None = None
    category: str | None = None
    price_min: float | None = None
    price_max: float | None = None


@dataclass
class BuyerOrder:
    """A past order from the buyer's history, reduced to the fields intent needs."""

    business_id: str = ""
    payment_type: str | None = None
    category_keys: list[str] = field(default_factory=list)


@dataclass
class BuyerIntentProfile:
    state: str | None = None
    city: str | None = None
    category: str | None = None
    price_min: float | None = None
    price_max: float | None = None
    preferred_payment_type: PaymentPreference | None = None
    prefers_pickup: bool = False
    prefers_delivery: bool = False
    vendor_history: dict[str, int] = field(default_factory=dict)
    past_categories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _camel_dict(self)


# ─── Match Score Output ────────────────────────────────────────────────────


@dataclass
class MatchScoreBreakdown:
    location: int = 0
    delivery: int = 0
    reliability: int = 0
    payment_fit: int = 0
    vendor_quality: int = 0
    buyer_history: int = 0
    total: int = 0

    @property
    def raw_total(self) -> int:
        return (
            self.location
            + self.delivery
            + self.reliability
            + self.payment_fit
            + self.vendor_quality
            + self.buyer_history
        )

    def to_dict(self) -> dict[str, int]:
        return _camel_dict(self)


@dataclass
class ProductMatchResult:
    product_id: str
    business_id: str
    score: MatchScoreBreakdown
    label: MatchLabel
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "businessId": self.business_id,
            "score": self.score.to_dict(),
            "label": self.label,
            "reason": self.reason,
        }


# ─── Scoring Config ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SmartMatchWeights:
    """Max points per factor. Defaults sum to 100."""

    location: int = 25
    delivery: int = 15
    reliability: int = 25
    payment_fit: int = 10
    vendor_quality: int = 15
    buyer_history: int = 10

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> dict[str, int]:
        return _camel_dict(self)


@dataclass(frozen=True)
class SmartMatchConfig:
    enabled: bool = True
    weights: SmartMatchWeights = field(default_factory=SmartMatchWeights)
    # Minimum score to show in results
    hide_threshold: int = 0
    # Bonus points for premium listings, only granted at or above premium_min_score
    premium_bonus: int = 10
    premium_min_score: int = 70
    profile_cache_ttl_ms: int = 30 * 60 * 1000
    score_cache_ttl_ms: int = 10 * 60 * 1000

    def to_dict(self) -> dict[str, Any]:
        data = _camel_dict(self)
        data["weights"] = self.weights.to_dict()
        return data


# ─── Vendor Dashboard ──────────────────────────────────────────────────────


@dataclass
class VendorMatchInsight:
    factor: str
    label: str
    status: FactorStatus
    value: str
    tip: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class BatchRecomputeResult:
    computed: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
