import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from cod_form.core.config import settings
from cod_form.domain.exceptions import OrderNotFound
from cod_form.domain.models import OrderStatus, Plan
from cod_form.domain.schemas import PublicSettings, SettingsUpdate, StatusUpdate

logger = logging.getLogger(__name__)


def require_admin_key(x_admin_key: Optional[str] = Header(default=None)):
    """Merchant login lives in the embedded admin app; this only checks its shared key."""
    if settings.ADMIN_API_KEY and x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid admin key")


router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin_key)])


@router.get("/{shop}/orders")
def list_orders(
    request: Request,
    shop: str,
    status: Optional[OrderStatus] = None,
    limit: int = Query(50, ge=1, le=250),
    offset: int = Query(0, ge=0),
):
    orders = request.app.state.order_repo.list_orders(shop, status=status, limit=limit, offset=offset)
    return {"orders": [order.to_dict() for order in orders]}


@router.get("/{shop}/stats")
def order_stats(request: Request, shop: str):
    return request.app.state.order_repo.aggregate_stats(shop).to_dict()


@router.get("/orders/{order_id}")
def get_order(request: Request, order_id: str):
    order = request.app.state.order_repo.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order.to_dict()


@router.patch("/orders/{order_id}/status")
def update_order_status(request: Request, order_id: str, payload: StatusUpdate):
    """Manual status changes by the merchant (delivered, RTO, cancelled...)."""
    try:
        order = request.app.state.order_repo.update_status(order_id, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    logger.info(f"📝 Order {order_id} set to {payload.status.value}")
    return order.to_dict()


@router.get("/{shop}/settings")
def read_settings(request: Request, shop: str):
    store = request.app.state.store_repo.get_or_create(shop)
    quota = request.app.state.quota_tracker
    limit = Plan.parse(store.plan).monthly_limit
    return {
        **PublicSettings.model_validate(store).to_payload(),
        "plan": Plan.parse(store.plan).value,
        "ordersThisMonth": quota.current_count(store),
        "monthlyLimit": limit,
    }


@router.put("/{shop}/settings")
def update_settings(request: Request, shop: str, payload: SettingsUpdate):
    store = request.app.state.store_repo.update_settings(shop, payload.changes())
    request.app.state.settings_cache.invalidate(shop)
    logger.info(f"⚙️ Settings updated for {shop}: {sorted(payload.changes())}")
    return PublicSettings.model_validate(store).to_payload()
