"""
SmartMatch Database Models

Marketplace records consumed by the match-scoring core. Every table is keyed
by an opaque string document id, and nested sub-documents (subscription,
review summary, SmartMatch state, platform config) are stored as JSON.

Tables:
  1. businesses       - Vendor records (+ smart_match sub-document holding the cached profile)
  2. orders           - Buyer orders placed with a vendor
  3. disputes         - Disputes filed against orders
  4. products         - Vendor listings (physical products and services)
  5. platform_config  - Singleton config documents keyed by path (e.g. "config/smartmatch")

The `smart_match` JSON on businesses has the shape:
  {
    "profile": {...VendorReliabilityProfile, camelCase...},
    "lastComputedAtMs": 1700000000000,
    "flagged": false,
    "flagReason": null,
    "flaggedAtMs": null,
    "flaggedBy": null
  }
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from db.session import Base


def _new_id() -> str:
    return uuid.uuid4().hex


# ─── 1. Businesses ─────────────────────────────────────────────────────────


class Business(Base):
    __tablename__ = "businesses"

    business_id = Column(String(64), primary_key=True, default=_new_id)
    slug = Column(String(255))
    name = Column(String(255), nullable=False, default="")
    state = Column(String(100))
    city = Column(String(100))
    whatsapp = Column(String(50))
    verification_tier = Column(Integer, nullable=False, default=0)
    apex_badge_active = Column(Boolean, nullable=False, default=False)
    continue_in_chat_enabled = Column(Boolean, nullable=False, default=False)
    subscription = Column(JSON)  # {"planKey": str, "expiresAtMs": int}
    review_summary = Column(JSON)  # {"averageRating", "totalReviews", "ratingScore", "recentTrend"}
    smart_match = Column(JSON)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("verification_tier >= 0 AND verification_tier <= 3", name="ck_business_verification_tier"),
    )

    orders = relationship("Order", back_populates="business")
    products = relationship("Product", back_populates="business")


# ─── 2. Orders ─────────────────────────────────────────────────────────────


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(String(64), primary_key=True, default=_new_id)
    business_id = Column(String(64), ForeignKey("businesses.business_id"), nullable=False)
    buyer_id = Column(String(64))
    order_status = Column(String(50))
    ops_status = Column(String(50))
    payment_status = Column(String(50))
    payment_type = Column(String(50))  # paystack_escrow, flutterwave, direct_transfer, chat_whatsapp
    escrow_status = Column(String(50))
    category_keys = Column(JSON)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at_ms = Column(BigInteger)
    updated_at_ms = Column(BigInteger)
    delivered_at_ms = Column(BigInteger)
    delivery_duration_hours = Column(Float)

    __table_args__ = (
        Index("ix_orders_business_created", "business_id", "created_at"),
        Index("ix_orders_buyer", "buyer_id"),
    )

    business = relationship("Business", back_populates="orders")


# ─── 3. Disputes ───────────────────────────────────────────────────────────


class Dispute(Base):
    __tablename__ = "disputes"

    dispute_id = Column(String(64), primary_key=True, default=_new_id)
    order_id = Column(String(64), nullable=False)
    # Older disputes were filed without a vendor id; resolved via order_id.
    business_id = Column(String(64))
    status = Column(String(50), nullable=False, default="open")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_disputes_business", "business_id"),
        Index("ix_disputes_order", "order_id"),
    )


# ─── 4. Products ───────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    product_id = Column(String(64), primary_key=True, default=_new_id)
    business_id = Column(String(64), ForeignKey("businesses.business_id"), nullable=False)
    name = Column(String(255), nullable=False, default="")
    listing_type = Column(String(20), nullable=False, default="product")  # product | service
    stock = Column(Integer)
    price = Column(Float)
    category_keys = Column(JSON)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_products_business", "business_id"),)

    business = relationship("Business", back_populates="products")


# ─── 5. Platform Config ────────────────────────────────────────────────────


class PlatformConfig(Base):
    __tablename__ = "platform_config"

    config_key = Column(String(128), primary_key=True)
    document = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
