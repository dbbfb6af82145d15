import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

import pytz

from cod_form.core.config import settings
from cod_form.domain.models import Plan, Store
from cod_form.interfaces.IStoreRepository import IStoreRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuotaTracker:
    """
    Monthly order quota per store.

    Months are calendar months in the business timezone. Stored dates are
    naive UTC, so boundaries are converted before they hit the database.
    """

    def __init__(
        self,
        store_repo: IStoreRepository,
        clock: Callable[[], datetime] = _utc_now,
        tz_name: Optional[str] = None,
    ):
        self.store_repo = store_repo
        self.clock = clock
        self.tz = pytz.timezone(tz_name or settings.TIMEZONE)

    def within_limit(self, shop: str) -> bool:
        store = self.store_repo.find(shop)
        if store is None:
            return False
        limit = Plan.parse(store.plan).monthly_limit
        if limit is None:
            return True
        return self.current_count(store) < limit

    def current_count(self, store: Store) -> int:
        """Orders counted this month; a counter left over from another month counts as 0."""
        month_start, next_month_start = self._month_window(self._now())
        reset = store.month_reset_date
        if reset is None or not (month_start <= reset < next_month_start):
            return 0
        return store.orders_this_month or 0

    def increment(self, shop: str) -> None:
        now = self._now()
        month_start, next_month_start = self._month_window(now)
        self.store_repo.increment_order_count(shop, month_start, next_month_start, self._naive(now))

    def reserve(self, shop: str) -> bool:
        """
        Check and increment in one step. Returns False (and changes nothing)
        when the month's quota is already used up.
        """
        store = self.store_repo.find(shop)
        if store is None:
            return False
        limit = Plan.parse(store.plan).monthly_limit
        if limit is None:
            self.increment(shop)
            return True

        now = self._now()
        month_start, next_month_start = self._month_window(now)
        reserved = self.store_repo.consume_order_slot(
            shop, limit, month_start, next_month_start, self._naive(now)
        )
        if not reserved:
            logger.info(f"🚫 Quota exhausted for {shop} ({limit}/month on {store.plan})")
        return reserved

    def release(self, shop: str) -> None:
        """Give back a reserved slot when the order could not be saved."""
        self.store_repo.release_order_slot(shop)

    # --- helpers ---

    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _month_window(self, now: datetime) -> Tuple[datetime, datetime]:
        local = now.astimezone(self.tz)
        start = self.tz.localize(datetime(local.year, local.month, 1))
        if local.month == 12:
            end = self.tz.localize(datetime(local.year + 1, 1, 1))
        else:
            end = self.tz.localize(datetime(local.year, local.month + 1, 1))
        return self._naive(start), self._naive(end)

    @staticmethod
    def _naive(value: datetime) -> datetime:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
