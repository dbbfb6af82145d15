import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cod_form.domain.exceptions import MerchantNotFound, StorageError
from cod_form.domain.models import EDITABLE_STORE_FIELDS, Store
from cod_form.infrastructure.database import SessionLocal
from cod_form.interfaces.IStoreRepository import IStoreRepository

logger = logging.getLogger(__name__)

class PostgresStoreRepository(IStoreRepository):
    """
    Store settings plus the monthly order counter.

    The counter is only ever changed with single UPDATE statements so two
    requests for the same store can't overwrite each other's increments.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def find(self, shop: str) -> Optional[Store]:
        session = self.session_factory()
        try:
            return session.scalar(select(Store).where(Store.shopify_domain == shop))
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Read Error: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def get_or_create(self, shop: str) -> Store:
        store = self.find(shop)
        if store is not None:
            return store

        session = self.session_factory()
        try:
            store = Store(shopify_domain=shop)
            session.add(store)
            session.commit()
            session.refresh(store)
            logger.info(f"🏪 Created default settings for {shop}")
            return store
        except IntegrityError:
            # Another request created it first
            session.rollback()
            return self.find(shop)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while creating store {shop}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def update_settings(self, shop: str, changes: dict) -> Store:
        unknown = set(changes) - set(EDITABLE_STORE_FIELDS)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        self.get_or_create(shop)
        session = self.session_factory()
        try:
            store = session.scalar(select(Store).where(Store.shopify_domain == shop))
            for key, value in changes.items():
                setattr(store, key, value)
            session.commit()
            session.refresh(store)
            return store
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while updating store {shop}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def increment_order_count(
        self, shop: str, month_start: datetime, next_month_start: datetime, now: datetime
    ) -> None:
        session = self.session_factory()
        try:
            if not self._roll_over(session, shop, month_start, next_month_start, now):
                result = session.execute(
                    update(Store)
                    .where(Store.shopify_domain == shop)
                    .values(orders_this_month=Store.orders_this_month + 1)
                )
                if result.rowcount == 0:
                    raise MerchantNotFound()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while counting order for {shop}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def consume_order_slot(
        self,
        shop: str,
        limit: int,
        month_start: datetime,
        next_month_start: datetime,
        now: datetime,
    ) -> bool:
        session = self.session_factory()
        try:
            if limit > 0 and self._roll_over(session, shop, month_start, next_month_start, now):
                consumed = True
            else:
                result = session.execute(
                    update(Store)
                    .where(Store.shopify_domain == shop, Store.orders_this_month < limit)
                    .values(orders_this_month=Store.orders_this_month + 1)
                )
                consumed = result.rowcount == 1
            session.commit()
            return consumed
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while reserving quota for {shop}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def release_order_slot(self, shop: str) -> None:
        session = self.session_factory()
        try:
            session.execute(
                update(Store)
                .where(Store.shopify_domain == shop, Store.orders_this_month > 0)
                .values(orders_this_month=Store.orders_this_month - 1)
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while releasing quota for {shop}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def _roll_over(self, session, shop, month_start, next_month_start, now) -> bool:
        """Start a new month at 1 if the stored reset date is outside this month."""
        result = session.execute(
            update(Store)
            .where(
                Store.shopify_domain == shop,
                or_(Store.month_reset_date < month_start, Store.month_reset_date >= next_month_start),
            )
            .values(orders_this_month=1, month_reset_date=now)
        )
        return result.rowcount == 1
