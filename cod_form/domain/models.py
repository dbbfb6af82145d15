import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from cod_form.infrastructure.database import Base


def utcnow() -> datetime:
    # Stored naive so SQLite and Postgres compare the same way.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_order_id() -> str:
    return uuid.uuid4().hex


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    RTO = "rto"
    CANCELLED = "cancelled"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class Plan(str, Enum):
    FREE = "free"
    PRO = "pro"
    UNLIMITED = "unlimited"

    @classmethod
    def parse(cls, value) -> "Plan":
        """Unknown or missing plan values are treated as the free plan."""
        try:
            return cls(value)
        except ValueError:
            return cls.FREE

    @property
    def monthly_limit(self) -> int | None:
        """Orders allowed per calendar month, None meaning unbounded."""
        if self is Plan.FREE:
            return 60
        if self is Plan.PRO:
            return 500
        if self is Plan.UNLIMITED:
            return None
        raise AssertionError(f"unhandled plan {self!r}")


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    shopify_domain = Column(String, unique=True, index=True, nullable=False)

    # Written by the app's OAuth install flow, read when syncing to Shopify.
    access_token = Column(String, nullable=True)

    form_enabled = Column(Boolean, default=True, nullable=False)
    plan = Column(String, default=Plan.FREE.value, nullable=False)
    orders_this_month = Column(Integer, default=0, nullable=False)
    month_reset_date = Column(DateTime, default=utcnow, nullable=False)

    # Widget appearance
    button_text = Column(String, default="Buy with Cash on Delivery")
    button_color = Column(String, default="#000000")
    button_text_color = Column(String, default="#FFFFFF")

    show_name = Column(Boolean, default=True)
    show_phone = Column(Boolean, default=True)
    show_address = Column(Boolean, default=True)
    show_city = Column(Boolean, default=True)
    show_pincode = Column(Boolean, default=True)
    show_state = Column(Boolean, default=True)

    label_name = Column(String, default="Full Name")
    label_phone = Column(String, default="Phone Number")
    label_address = Column(String, default="Address")
    label_city = Column(String, default="City")
    label_pincode = Column(String, default="Pincode")
    label_state = Column(String, default="State")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# Editable through the admin settings endpoint; everything else is owned by
# billing (plan) or the quota tracker.
EDITABLE_STORE_FIELDS = (
    "form_enabled",
    "button_text",
    "button_color",
    "button_text_color",
    "show_name",
    "show_phone",
    "show_address",
    "show_city",
    "show_pincode",
    "show_state",
    "label_name",
    "label_phone",
    "label_address",
    "label_city",
    "label_pincode",
    "label_state",
)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_order_id)
    store_id = Column(Integer, ForeignKey("stores.id"), index=True, nullable=False)
    shopify_domain = Column(String, index=True, nullable=False)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, index=True, nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_city = Column(String, nullable=False)
    customer_pincode = Column(String, nullable=False)
    customer_state = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)

    product_id = Column(String, nullable=False)
    product_title = Column(String, nullable=False)
    product_price = Column(Numeric(10, 2), nullable=False)
    product_variant_id = Column(String, nullable=True)
    product_image = Column(String, nullable=True)

    quantity = Column(Integer, default=1, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String, default=OrderStatus.PENDING.value, index=True, nullable=False)

    # Both set together by link_upstream, never one without the other.
    shopify_order_id = Column(String, nullable=True)
    shopify_order_number = Column(String, nullable=True)

    ip_address = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)
    device_type = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop": self.shopify_domain,
            "customer": {
                "name": self.customer_name,
                "phone": self.customer_phone,
                "address": self.customer_address,
                "city": self.customer_city,
                "pincode": self.customer_pincode,
                "state": self.customer_state,
                "email": self.customer_email,
            },
            "product": {
                "id": self.product_id,
                "title": self.product_title,
                "price": float(self.product_price),
                "variantId": self.product_variant_id,
                "image": self.product_image,
            },
            "quantity": self.quantity,
            "totalAmount": float(self.total_amount),
            "status": self.status,
            "shopifyOrderId": self.shopify_order_id,
            "shopifyOrderNumber": self.shopify_order_number,
            "deviceType": self.device_type,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
