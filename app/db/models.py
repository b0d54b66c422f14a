"""
Modelos SQLAlchemy de la base de datos local del POS.

- WooCommerceOrder: registro reconciliado de cada pedido recibido por webhook
- Product: catálogo del POS (este núcleo solo escribe stock y stock_status)
- Customer: clientes del POS (este núcleo solo crea, nunca actualiza)
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

from app.domain.value_objects import DEFAULT_LOW_STOCK_THRESHOLD, StockStatus

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingStatus:
    """Estados del pipeline de procesamiento de un pedido."""

    RECEIVED = "received"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class WooCommerceOrder(Base):
    __tablename__ = "woocommerce_orders"

    id = Column(Integer, primary_key=True)
    wc_order_id = Column(Integer, unique=True, nullable=False, index=True)
    order_number = Column(String(64))
    status = Column(String(32), index=True)
    currency = Column(String(8))
    date_created = Column(String(64))
    date_modified = Column(String(64))

    # Totales
    total = Column(Float, default=0.0)
    subtotal = Column(Float, default=0.0)
    total_tax = Column(Float, default=0.0)
    total_shipping = Column(Float, default=0.0)
    discount_total = Column(Float, default=0.0)

    # Pago
    payment_method = Column(String(64))
    payment_method_title = Column(String(128))
    transaction_id = Column(String(128))

    # Cliente
    customer_id = Column(Integer)
    customer_note = Column(Text)
    billing = Column(JSON, default=dict)
    shipping = Column(JSON, default=dict)
    billing_email = Column(String(255), index=True)
    billing_first_name = Column(String(128))
    billing_last_name = Column(String(128))

    # Líneas
    line_items = Column(JSON, default=list)
    shipping_lines = Column(JSON, default=list)
    tax_lines = Column(JSON, default=list)
    fee_lines = Column(JSON, default=list)
    coupon_lines = Column(JSON, default=list)
    meta_data = Column(JSON, default=list)

    # Webhook y procesamiento
    event_type = Column(String(64), index=True)
    status_changes = Column(JSON, default=list, nullable=False)
    webhook_received_at = Column(DateTime(timezone=True), default=utc_now)
    processing_status = Column(String(16), default=ProcessingStatus.RECEIVED, nullable=False)
    processed = Column(Boolean, default=False, nullable=False, index=True)
    processed_at = Column(DateTime(timezone=True))
    processing_error = Column(Text)
    inventory_reserved = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "wc_order_id": self.wc_order_id,
            "order_number": self.order_number,
            "status": self.status,
            "currency": self.currency,
            "date_created": self.date_created,
            "date_modified": self.date_modified,
            "total": self.total,
            "subtotal": self.subtotal,
            "total_tax": self.total_tax,
            "total_shipping": self.total_shipping,
            "discount_total": self.discount_total,
            "payment_method": self.payment_method,
            "payment_method_title": self.payment_method_title,
            "transaction_id": self.transaction_id,
            "customer_id": self.customer_id,
            "customer_note": self.customer_note,
            "billing": self.billing or {},
            "shipping": self.shipping or {},
            "line_items": self.line_items or [],
            "shipping_lines": self.shipping_lines or [],
            "tax_lines": self.tax_lines or [],
            "fee_lines": self.fee_lines or [],
            "coupon_lines": self.coupon_lines or [],
            "meta_data": self.meta_data or [],
            "event_type": self.event_type,
            "status_changes": self.status_changes or [],
            "webhook_received_at": _iso(self.webhook_received_at),
            "processing_status": self.processing_status,
            "processed": self.processed,
            "processed_at": _iso(self.processed_at),
            "processing_error": self.processing_error,
            "inventory_reserved": self.inventory_reserved,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


Index("ix_woocommerce_orders_search", WooCommerceOrder.order_number, WooCommerceOrder.billing_last_name)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(128), unique=True, index=True)
    category = Column(String(128))
    description = Column(Text, default="")
    selling_price = Column(Float, default=0.0)
    discounted_price = Column(Float)
    stock = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, default=DEFAULT_LOW_STOCK_THRESHOLD, nullable=False)
    stock_status = Column(String(16), default=StockStatus.IN_STOCK.value, nullable=False)
    image = Column(String(512))
    is_active = Column(Boolean, default=True, nullable=False)
    tax_rate = Column(Float, default=0.0)
    unit = Column(String(32))
    weight = Column(Float)
    length = Column(Float)
    width = Column(Float)
    height = Column(Float)
    has_variations = Column(Boolean, default=False, nullable=False)
    variation_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), default="")
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(64), default="")
    address = Column(String(255), default="")
    city = Column(String(128), default="")
    state = Column(String(128), default="")
    zip_code = Column(String(32), default="")
    country = Column(String(64), default="")
    source = Column(String(32))
    notes = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)


def _iso(value):
    return value.isoformat() if value is not None else None
