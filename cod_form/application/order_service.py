import logging
from dataclasses import dataclass
from typing import Any, Dict

from cod_form.application.intake_validator import IntakeValidator, RequestMeta
from cod_form.application.quota_tracker import QuotaTracker
from cod_form.application.sync_orchestrator import SyncOrchestrator, SyncResult
from cod_form.domain.exceptions import QuotaExceeded
from cod_form.domain.models import Order
from cod_form.interfaces.IOrderRepository import IOrderRepository
from cod_form.interfaces.IStoreRepository import IStoreRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    order: Order
    sync: SyncResult


class OrderIntakeService:
    """
    validate -> claim quota slot -> save order -> sync to Shopify.

    Everything before the order is saved raises. Sync never does, so once
    `submit` gets past the save it always returns the local order.
    """

    def __init__(
        self,
        store_repo: IStoreRepository,
        order_repo: IOrderRepository,
        quota: QuotaTracker,
        validator: IntakeValidator,
        orchestrator: SyncOrchestrator,
    ):
        self.store_repo = store_repo
        self.order_repo = order_repo
        self.quota = quota
        self.validator = validator
        self.orchestrator = orchestrator

    def submit(self, body: Dict[str, Any], meta: RequestMeta) -> IntakeResult:
        new_order = self.validator.validate(body, meta)
        shop = new_order.shop
        store = self.store_repo.find(shop)
        access_token = store.access_token if store is not None else None

        # The slot is this request's one and only quota increment, whatever
        # happens with Shopify afterwards.
        if not self.quota.reserve(shop):
            raise QuotaExceeded()

        try:
            order = self.order_repo.create(new_order)
        except Exception:
            self.quota.release(shop)
            raise

        result = self.orchestrator.sync(order, access_token)

        logger.info(f"[INTAKE] {shop} | Order: {order.id} | Sync: {result.state.value}")
        return IntakeResult(order=order, sync=result)
