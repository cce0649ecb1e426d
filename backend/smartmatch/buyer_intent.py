"""
Buyer Intent Builder — infer a lightweight buyer profile at query time.

Signals come from the current marketplace filters and, when the buyer is
known, their past orders. Nothing here is persisted or does I/O.
"""

from __future__ import annotations

from collections.abc import Iterable

from smartmatch.types import BuyerIntentProfile, BuyerOrder, MarketFilters, PaymentPreference

PAYMENT_TYPE_BUCKETS: dict[str, PaymentPreference] = {
    "paystack_escrow": "card",
    "flutterwave": "card",
    "direct_transfer": "bank_transfer",
    "chat_whatsapp": "chat",
}


def infer_payment_preference(order_history: Iterable[BuyerOrder]) -> PaymentPreference | None:
    """Majority vote over bucketed payment types; ties go to the first bucket seen."""
    counts: dict[PaymentPreference, int] = {}
    for order in order_history:
        bucket = PAYMENT_TYPE_BUCKETS.get(str(order.payment_type or ""))
        if bucket:
            counts[bucket] = counts.get(bucket, 0) + 1
    if not counts:
        return None
    # sorted() is stable under reverse=True, so equal counts keep insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[0][0]


def build_buyer_intent(
    filters: MarketFilters | None = None,
    order_history: Iterable[BuyerOrder] | None = None,
) -> BuyerIntentProfile:
    filters = filters or MarketFilters()
    history = list(order_history or [])

    vendor_history: dict[str, int] = {}
    for order in history:
        if order.business_id:
            vendor_history[order.business_id] = vendor_history.get(order.business_id, 0) + 1

    past_categories: dict[str, None] = {}
    for order in history:
        for category in order.category_keys or []:
            past_categories.setdefault(str(category), None)

    return BuyerIntentProfile(
        state=filters.state or None,
        city=filters.city or None,
        category=filters.category or None,
        price_min=filters.price_min,
        price_max=filters.price_max,
        preferred_payment_type=infer_payment_preference(history),
        # TODO: infer pickup vs delivery once orders record the fulfilment method
        prefers_pickup=False,
        prefers_delivery=False,
        vendor_history=vendor_history,
        past_categories=list(past_categories),
    )
