from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from cod_form.domain.models import Store

class IStoreRepository(ABC):
    @abstractmethod
    def find(self, shop: str) -> Optional[Store]:
        pass

    @abstractmethod
    def get_or_create(self, shop: str) -> Store:
        pass

    @abstractmethod
    def update_settings(self, shop: str, changes: dict) -> Store:
        """Upsert: creates the store with defaults plus `changes` if it is missing."""
        pass

    # The three counter operations below must be atomic in storage.
    # A stored reset date outside [month_start, next_month_start) means the
    # counter belongs to another month and restarts at 1 with reset date `now`.

    @abstractmethod
    def increment_order_count(
        self, shop: str, month_start: datetime, next_month_start: datetime, now: datetime
    ) -> None:
        pass

    @abstractmethod
    def consume_order_slot(
        self,
        shop: str,
        limit: int,
        month_start: datetime,
        next_month_start: datetime,
        now: datetime,
    ) -> bool:
        """Increment only while the count is below `limit`. Returns whether it did."""
        pass

    @abstractmethod
    def release_order_slot(self, shop: str) -> None:
        pass
