"""
Vendor Profile Builder — aggregate a vendor's history into a reliability profile.

Runs server-side from the batch recompute job or on a dashboard cache miss.
Inputs are the vendor record plus its recent orders, disputes and products;
the output is stored on the vendor record as `smart_match.profile`.

Profile signals:
  - Fulfillment rate: fulfilled / attempted orders
  - Average delivery hours: mean over fulfilled orders with a plausible duration
  - Dispute rate: disputes / attempted orders, one decimal
  - Payment support: inferred from payment types actually seen on orders
  - Stock accuracy: share of physical listings with stock > 0
  - Reviews: copied from the precomputed review summary

Any record may be an ORM row or a plain document. Missing or malformed
fields fall back to 0/False instead of failing the whole profile.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from smartmatch.coerce import as_bool, as_float, as_int, as_mapping, as_text, field, round_half_up, to_ms
from smartmatch.config import now_ms as current_time_ms
from smartmatch.types import REVIEW_TRENDS, VendorReliabilityProfile

FULFILLED_ORDER_STATUSES = frozenset(
    {
        "released_to_vendor_wallet",
        "delivered",
        "completed",
        "fulfilled",
        "paid",
    }
)
FULFILLED_ESCROW_STATUSES = frozenset({"released"})
NON_ATTEMPTED_ORDER_STATUSES = frozenset({"draft", "abandoned", "expired"})

CARD_PAYMENT_TYPES = frozenset({"paystack_escrow", "flutterwave"})
BANK_TRANSFER_PAYMENT_TYPES = frozenset({"direct_transfer"})

PHYSICAL_LISTING_TYPE = "product"
MAX_PLAUSIBLE_DELIVERY_HOURS = 720
MS_PER_HOUR = 3600 * 1000


def _order_status(order: Any) -> str:
    status = field(order, "order_status") or field(order, "ops_status") or ""
    return as_text(status).lower()


def is_order_attempted(order: Any) -> bool:
    """An order counts as attempted unless it never left draft/checkout."""
    return _order_status(order) not in NON_ATTEMPTED_ORDER_STATUSES


def is_order_fulfilled(order: Any) -> bool:
    escrow = as_text(field(order, "escrow_status")).lower()
    return _order_status(order) in FULFILLED_ORDER_STATUSES or escrow in FULFILLED_ESCROW_STATUSES


def estimate_delivery_hours(order: Any) -> float | None:
    """Stored duration when present, else delivered − created. None when unknown."""
    explicit = as_float(field(order, "delivery_duration_hours"))
    if explicit > 0:
        return explicit

    delivered_ms = to_ms(field(order, "delivered_at_ms"))
    if delivered_ms:
        created_ms = to_ms(field(order, "created_at")) or to_ms(field(order, "created_at_ms"))
        if created_ms > 0 and delivered_ms > created_ms:
            return (delivered_ms - created_ms) / MS_PER_HOUR

    return None


def has_active_subscription(business: Any, at_ms: int) -> bool:
    subscription = as_mapping(field(business, "subscription"))
    return bool(subscription.get("planKey")) and as_int(subscription.get("expiresAtMs")) > at_ms


def compute_vendor_profile(
    business: Any,
    orders: Iterable[Any],
    disputes: Iterable[Any],
    products: Iterable[Any],
    *,
    now_ms: int | None = None,
) -> VendorReliabilityProfile:
    """
    Compute the vendor reliability profile from raw records.

    Deterministic for identical inputs apart from `computed_at_ms`.
    """
    now = current_time_ms() if now_ms is None else now_ms
    business_id = as_text(field(business, "business_id") or field(business, "id"))
    orders = list(orders)

    # --- Order stats ---
    attempted = [o for o in orders if is_order_attempted(o)]
    fulfilled = [o for o in attempted if is_order_fulfilled(o)]
    total_attempted = len(attempted)
    total_fulfilled = len(fulfilled)

    fulfillment_rate = round_half_up(total_fulfilled / total_attempted * 100) if total_attempted else 0

    # --- Delivery speed ---
    delivery_hours = []
    for order in fulfilled:
        hours = estimate_delivery_hours(order)
        if hours is not None and 0 < hours < MAX_PLAUSIBLE_DELIVERY_HOURS:
            delivery_hours.append(hours)
    avg_delivery_hours = round_half_up(sum(delivery_hours) / len(delivery_hours)) if delivery_hours else 0

    # --- Disputes ---
    # Blank vendor ids come from the order-id fallback lookup and belong to this vendor.
    vendor_disputes = [d for d in disputes if as_text(field(d, "business_id")) in ("", business_id)]
    total_disputes = len(vendor_disputes)
    dispute_rate = round_half_up(total_disputes / total_attempted * 1000) / 10 if total_attempted else 0.0

    # --- Verification ---
    verification_tier = as_int(field(business, "verification_tier"))

    # --- Payment methods (observed, not configured) ---
    payment_types = {as_text(field(o, "payment_type")) for o in orders} - {""}
    supports_card = bool(payment_types & CARD_PAYMENT_TYPES)
    supports_bank_transfer = bool(payment_types & BANK_TRANSFER_PAYMENT_TYPES)
    supports_chat = as_bool(field(business, "continue_in_chat_enabled")) and has_active_subscription(business, now)

    # --- Stock accuracy ---
    physical = [p for p in products if as_text(field(p, "listing_type") or PHYSICAL_LISTING_TYPE) == PHYSICAL_LISTING_TYPE]
    in_stock = [p for p in physical if as_float(field(p, "stock")) > 0]
    stock_accuracy_rate = round_half_up(len(in_stock) / len(physical) * 100) if physical else 100

    # --- Reviews (precomputed elsewhere) ---
    review_summary = as_mapping(field(business, "review_summary"))
    trend = review_summary.get("recentTrend")

    smart_match = as_mapping(field(business, "smart_match"))

    return VendorReliabilityProfile(
        business_id=business_id,
        fulfillment_rate=fulfillment_rate,
        avg_delivery_hours=avg_delivery_hours,
        dispute_rate=dispute_rate,
        total_completed_orders=total_fulfilled,
        total_attempted_orders=total_attempted,
        total_disputes=total_disputes,
        is_verified=verification_tier >= 1,
        verification_tier=verification_tier,
        apex_badge_active=as_bool(field(business, "apex_badge_active")),
        state=as_text(field(business, "state")).strip(),
        city=as_text(field(business, "city")).strip(),
        supports_card=supports_card,
        supports_bank_transfer=supports_bank_transfer,
        supports_chat=supports_chat,
        stock_accuracy_rate=stock_accuracy_rate,
        average_rating=as_float(review_summary.get("averageRating")),
        total_reviews=as_int(review_summary.get("totalReviews")),
        rating_score=as_float(review_summary.get("ratingScore")),
        review_trend=trend if trend in REVIEW_TRENDS else "stable",
        computed_at_ms=now,
        flagged=as_bool(smart_match.get("flagged")),
    )
