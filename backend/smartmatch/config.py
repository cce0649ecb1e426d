"""
SmartMatch scoring constants, config clamping, and label mapping.

Default weights total 25 + 15 + 25 + 10 + 15 + 10 = 100. Admins override
them through the `config/smartmatch` document; every stored value is
clamped on load so a malformed document can never push a sub-score or the
total out of range.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from smartmatch.coerce import as_float, as_mapping, round_half_up
from smartmatch.types import MatchLabel, SmartMatchConfig, SmartMatchWeights

CONFIG_DOC_PATH = "config/smartmatch"
CONFIG_CACHE_TTL_MS = 5 * 60 * 1000

DEFAULT_WEIGHTS = SmartMatchWeights()
DEFAULT_CONFIG = SmartMatchConfig()

# (min, max) per clamped field
WEIGHT_RANGE = (0, 50)
CONFIG_RANGES = {
    "hide_threshold": (0, 100),
    "premium_bonus": (0, 20),
    "premium_min_score": (0, 100),
    "profile_cache_ttl_ms": (60_000, 24 * 3600_000),
    "score_cache_ttl_ms": (60_000, 3600_000),
}
_DOC_KEYS = {
    "hide_threshold": "hideThreshold",
    "premium_bonus": "premiumBonus",
    "premium_min_score": "premiumMinScore",
    "profile_cache_ttl_ms": "profileCacheTtlMs",
    "score_cache_ttl_ms": "scoreCacheTtlMs",
}

# Admin POST guard: weights are clamped individually, this stops runaway totals
MAX_WEIGHT_TOTAL = 150

# ──────────────────────────────────────────────────────────────────────────
# Scoring thresholds
# ──────────────────────────────────────────────────────────────────────────

DELIVERY_THRESHOLDS = {
    "fast": 24,  # ≤ 24h → max points
    "moderate": 72,  # ≤ 72h → medium points
    "slow": 168,  # ≤ 7 days → low points
}

FULFILLMENT_THRESHOLDS = {
    "excellent": 95,
    "good": 90,
    "fair": 80,
}

DISPUTE_THRESHOLDS = {
    "excellent": 2,  # < 2%
    "acceptable": 5,  # < 5%
}

STOCK_ACCURACY_THRESHOLDS = {
    "good": 90,
    "fair": 70,
}

LABEL_THRESHOLDS = {
    "best_match": 85,
    "recommended": 70,
    "fair_match": 50,
}


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp_int(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    """Round and clamp a stored number; non-numeric values fall back."""
    if value is None:
        return fallback
    number = as_float(value, float("nan"))
    if number != number:  # NaN
        return fallback
    return max(minimum, min(maximum, round_half_up(number)))


def weights_from_document(doc: Any, defaults: SmartMatchWeights = DEFAULT_WEIGHTS) -> SmartMatchWeights:
    data = as_mapping(doc)
    lo, hi = WEIGHT_RANGE
    return SmartMatchWeights(
        location=clamp_int(data.get("location"), lo, hi, defaults.location),
        delivery=clamp_int(data.get("delivery"), lo, hi, defaults.delivery),
        reliability=clamp_int(data.get("reliability"), lo, hi, defaults.reliability),
        payment_fit=clamp_int(data.get("paymentFit"), lo, hi, defaults.payment_fit),
        vendor_quality=clamp_int(data.get("vendorQuality"), lo, hi, defaults.vendor_quality),
        buyer_history=clamp_int(data.get("buyerHistory"), lo, hi, defaults.buyer_history),
    )


def config_from_document(doc: Mapping | None) -> SmartMatchConfig:
    """Build a clamped config from a stored document; None yields the defaults."""
    if doc is None:
        return DEFAULT_CONFIG
    data = as_mapping(doc)
    clamped = {
        name: clamp_int(
            data.get(_DOC_KEYS[name]),
            lo,
            hi,
            getattr(DEFAULT_CONFIG, name),
        )
        for name, (lo, hi) in CONFIG_RANGES.items()
    }
    return SmartMatchConfig(
        enabled=data.get("enabled") is not False,
        weights=weights_from_document(data.get("weights")),
        **clamped,
    )


# ──────────────────────────────────────────────────────────────────────────
# Labels
# ──────────────────────────────────────────────────────────────────────────


def score_to_label(total: float) -> MatchLabel:
    """Map a total score (0–100) to a display label."""
    if total >= LABEL_THRESHOLDS["best_match"]:
        return "best_match"
    elif total >= LABEL_THRESHOLDS["recommended"]:
        return "recommended"
    elif total >= LABEL_THRESHOLDS["fair_match"]:
        return "fair_match"
    return "low_match"


LABEL_DISPLAY_TEXT: dict[str, str] = {
    "best_match": "Best Match",
    "recommended": "Recommended",
    "fair_match": "Fair Match",
    "low_match": "",  # no badge
}

LABEL_COLOR_CLASSES: dict[str, dict[str, str]] = {
    "best_match": {"bg": "bg-emerald-50", "text": "text-emerald-700", "border": "border-emerald-200"},
    "recommended": {"bg": "bg-blue-50", "text": "text-blue-700", "border": "border-blue-200"},
    "fair_match": {"bg": "bg-amber-50", "text": "text-amber-700", "border": "border-amber-200"},
    "low_match": {"bg": "bg-gray-50", "text": "text-gray-500", "border": "border-gray-200"},
}


def label_to_display_text(label: MatchLabel) -> str:
    return LABEL_DISPLAY_TEXT[label]


def label_to_color_classes(label: MatchLabel) -> dict[str, str]:
    return dict(LABEL_COLOR_CLASSES[label])
