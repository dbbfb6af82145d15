import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from cod_form.core.config import settings
from cod_form.domain.models import Order
from cod_form.interfaces.IOrderRepository import IOrderRepository
from cod_form.interfaces.IUpstreamPlatform import IUpstreamPlatform

logger = logging.getLogger(__name__)

VARIANT_GID_PREFIX = "gid://shopify/ProductVariant/"
ORDER_GID_PREFIX = "gid://shopify/Order/"
COUNTRY_CODE = "IN"

MESSAGE_PENDING = "Order created but Shopify sync pending"
MESSAGE_FAILED = "Order created but Shopify sync failed"


class SyncState(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    DRAFT_CREATED = "draft_created"
    COMPLETED = "completed"
    FAILED = "failed"
    # Not produced yet; kept for skipping sync when rate limited.
    SYNC_SKIPPED = "sync_skipped"


@dataclass(frozen=True)
class SyncResult:
    state: SyncState
    shopify_order_id: Optional[str] = None
    order_number: Optional[str] = None
    message: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.state is SyncState.COMPLETED


def split_name(full_name: str) -> tuple:
    parts = full_name.split()
    if not parts:
        return "", "-"
    return parts[0], " ".join(parts[1:]) or "-"


def build_address(order: Order) -> Dict[str, Any]:
    first_name, last_name = split_name(order.customer_name)
    return {
        "firstName": first_name,
        "lastName": last_name,
        "address1": order.customer_address,
        "city": order.customer_city,
        "zip": order.customer_pincode,
        "provinceCode": order.customer_state or "",
        "countryCode": COUNTRY_CODE,
        "phone": order.customer_phone,
    }


def build_draft_input(order: Order) -> Dict[str, Any]:
    line_item = {
        "title": order.product_title,
        "originalUnitPrice": str(order.product_price),
        "quantity": order.quantity,
    }
    if order.product_variant_id:
        line_item["variantId"] = f"{VARIANT_GID_PREFIX}{order.product_variant_id}"

    address = build_address(order)
    app_name = settings.APP_NAME
    return {
        "lineItems": [line_item],
        "shippingAddress": address,
        "billingAddress": dict(address),
        "email": order.customer_email,
        "note": f"COD Order via {app_name} COD Form",
        "tags": ["COD", f"{app_name.lower()}-cod"],
    }


def bare_order_id(gid: str) -> str:
    if gid.startswith(ORDER_GID_PREFIX):
        return gid[len(ORDER_GID_PREFIX):]
    return gid


class SyncOrchestrator:
    """
    Mirrors a saved local order into Shopify: create a draft order, then
    complete it as payment pending (COD).

    Never raises. The local order is already saved, so every failure ends in
    a FAILED result and the order simply stays pending.
    """

    def __init__(self, upstream: IUpstreamPlatform, order_repo: IOrderRepository):
        self.upstream = upstream
        self.order_repo = order_repo

    def sync(self, order: Order, access_token: Optional[str]) -> SyncResult:
        state = SyncState.NOT_ATTEMPTED

        if not access_token:
            logger.warning(f"⚠️ No Shopify access token for {order.shopify_domain}. Order {order.id} not synced.")
            return SyncResult(state=SyncState.FAILED, message=MESSAGE_FAILED)

        try:
            draft = self.upstream.create_draft_order(order.shopify_domain, access_token, build_draft_input(order))
            if not draft.draft_id:
                logger.warning(f"⚠️ Draft order not created for {order.id}: {draft.user_errors}")
                return SyncResult(state=SyncState.FAILED, message=MESSAGE_PENDING)

            state = SyncState.DRAFT_CREATED
            logger.info(f"[SYNC] Order {order.id} | State: {state.value} | Draft: {draft.draft_id}")

            completed = self.upstream.complete_draft_order(
                order.shopify_domain, access_token, draft.draft_id, payment_pending=True
            )
            if not completed.order_id or not completed.order_name:
                logger.warning(f"⚠️ Draft {draft.draft_id} not completed for {order.id}: {completed.user_errors}")
                return SyncResult(state=SyncState.FAILED, message=MESSAGE_PENDING)

            shopify_order_id = bare_order_id(completed.order_id)
            self.order_repo.link_upstream(order.id, shopify_order_id, completed.order_name)
        except Exception as e:
            logger.error(f"❌ Shopify order creation error for {order.id} (state {state.value}): {e}", exc_info=True)
            return SyncResult(state=SyncState.FAILED, message=MESSAGE_FAILED)

        logger.info(f"✅ Order {order.id} synced as Shopify {completed.order_name}")
        return SyncResult(
            state=SyncState.COMPLETED,
            shopify_order_id=shopify_order_id,
            order_number=completed.order_name,
        )
