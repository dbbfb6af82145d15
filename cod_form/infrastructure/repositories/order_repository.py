import logging
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError

from cod_form.domain.exceptions import MerchantNotFound, OrderNotFound, StorageError
from cod_form.domain.models import Order, OrderStatus, Store
from cod_form.domain.schemas import NewOrder, OrderStats
from cod_form.infrastructure.database import SessionLocal
from cod_form.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)

class PostgresOrderRepository(IOrderRepository):

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def create(self, new_order: NewOrder) -> Order:
        session = self.session_factory()
        try:
            store = session.scalar(select(Store).where(Store.shopify_domain == new_order.shop))
            if store is None:
                raise MerchantNotFound()

            customer = new_order.customer
            product = new_order.product
            order = Order(
                store_id=store.id,
                shopify_domain=new_order.shop,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_address=customer.address,
                customer_city=customer.city,
                customer_pincode=customer.pincode,
                customer_state=customer.state,
                customer_email=customer.email,
                product_id=product.id,
                product_title=product.title,
                product_price=product.price,
                product_variant_id=product.variant_id,
                product_image=product.image,
                quantity=new_order.quantity,
                total_amount=new_order.total_amount,
                status=OrderStatus.PENDING.value,
                ip_address=new_order.ip_address,
                user_agent=new_order.user_agent,
                device_type=new_order.device_type.value,
            )
            session.add(order)
            session.commit()
            session.refresh(order)
            logger.info(f"💾 Order {order.id} saved for {new_order.shop}")
            return order
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while saving order: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def get(self, order_id: str) -> Optional[Order]:
        session = self.session_factory()
        try:
            return session.get(Order, order_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Read Error: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def list_orders(
        self,
        shop: str,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Order]:
        """
        Retrieves a page of a store's orders.
        Ordered by created_at DESC (Newest first).
        """
        session = self.session_factory()
        try:
            query = select(Order).where(Order.shopify_domain == shop)
            if status is not None:
                query = query.where(Order.status == OrderStatus(status).value)
            query = query.order_by(desc(Order.created_at)).limit(limit).offset(offset)
            return list(session.scalars(query).all())
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Read Error: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def update_status(self, order_id: str, status: OrderStatus) -> Order:
        return self._update(order_id, status=OrderStatus(status).value)

    def link_upstream(self, order_id: str, upstream_id: str, upstream_number: str) -> Order:
        return self._update(
            order_id,
            shopify_order_id=upstream_id,
            shopify_order_number=upstream_number,
            status=OrderStatus.CONFIRMED.value,
        )

    def aggregate_stats(self, shop: str) -> OrderStats:
        session = self.session_factory()
        try:
            rows = session.execute(
                select(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
                .where(Order.shopify_domain == shop)
                .group_by(Order.status)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Read Error: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()

        counts = {status: count for status, count, _ in rows}
        return OrderStats(
            total=sum(counts.values()),
            pending=counts.get(OrderStatus.PENDING.value, 0),
            confirmed=counts.get(OrderStatus.CONFIRMED.value, 0),
            delivered=counts.get(OrderStatus.DELIVERED.value, 0),
            rto=counts.get(OrderStatus.RTO.value, 0),
            total_revenue=sum(float(revenue) for _, _, revenue in rows),
        )

    def _update(self, order_id: str, **values) -> Order:
        session = self.session_factory()
        try:
            order = session.get(Order, order_id)
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found")
            for key, value in values.items():
                setattr(order, key, value)
            session.commit()
            session.refresh(order)
            return order
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ DB Error while updating order {order_id}: {e}")
            raise StorageError(str(e)) from e
        finally:
            session.close()
