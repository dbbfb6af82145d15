from abc import ABC, abstractmethod
from typing import List, Optional

from cod_form.domain.models import Order, OrderStatus
from cod_form.domain.schemas import NewOrder, OrderStats

class IOrderRepository(ABC):
    @abstractmethod
    def create(self, new_order: NewOrder) -> Order:
        """Raises MerchantNotFound when the store has never been set up."""
        pass

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def list_orders(
        self,
        shop: str,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Order]:
        """Newest first. Unknown stores get an empty list."""
        pass

    @abstractmethod
    def update_status(self, order_id: str, status: OrderStatus) -> Order:
        pass

    @abstractmethod
    def link_upstream(self, order_id: str, upstream_id: str, upstream_number: str) -> Order:
        """Attach the Shopify order and mark the local order confirmed. Call once per order."""
        pass

    @abstractmethod
    def aggregate_stats(self, shop: str) -> OrderStats:
        pass
