from decimal import Decimal

import pytest

from cod_form.domain.exceptions import MerchantNotFound, OrderNotFound
from cod_form.domain.models import DeviceType, OrderStatus
from cod_form.domain.schemas import CustomerInfo, NewOrder, ProductInfo
from fakes import SHOP


def new_order(shop=SHOP, price="499", quantity=2):
    return NewOrder(
        shop=shop,
        customer=CustomerInfo(
            name="Jane Mary Doe",
            phone="9876543210",
            address="12 MG Road",
            city="Bengaluru",
            pincode="560001",
            email="9876543210@cod.onepik.com",
        ),
        product=ProductInfo(id="8123456789", title="Cotton Kurta", price=Decimal(price)),
        quantity=quantity,
        ip_address="203.0.113.9",
        user_agent="Mozilla/5.0 Mobile",
        device_type=DeviceType.MOBILE,
    )


class TestOrderRepository:
    def test_create_persists_everything(self, order_repo, shop):
        order = order_repo.create(new_order())

        assert order.id
        assert order.created_at is not None

        stored = order_repo.get(order.id)
        assert stored.shopify_domain == SHOP
        assert stored.customer_name == "Jane Mary Doe"
        assert stored.customer_state is None
        assert stored.product_price == Decimal("499")
        assert stored.quantity == 2
        assert stored.total_amount == Decimal("998")
        assert stored.status == OrderStatus.PENDING.value
        assert stored.shopify_order_id is None
        assert stored.shopify_order_number is None
        assert stored.device_type == "mobile"
        assert stored.ip_address == "203.0.113.9"

    def test_create_for_unknown_store(self, order_repo):
        with pytest.raises(MerchantNotFound):
            order_repo.create(new_order(shop="ghost.myshopify.com"))

    def test_get_missing(self, order_repo):
        assert order_repo.get("does-not-exist") is None

    def test_list_newest_first_with_paging(self, order_repo, shop):
        created = [order_repo.create(new_order()) for _ in range(3)]

        listed = order_repo.list_orders(shop)
        assert {o.id for o in listed} == {o.id for o in created}
        stamps = [o.created_at for o in listed]
        assert stamps == sorted(stamps, reverse=True)

        assert len(order_repo.list_orders(shop, limit=2)) == 2
        assert len(order_repo.list_orders(shop, limit=2, offset=2)) == 1

    def test_list_by_status(self, order_repo, shop):
        first = order_repo.create(new_order())
        order_repo.create(new_order())
        order_repo.update_status(first.id, OrderStatus.DELIVERED)

        delivered = order_repo.list_orders(shop, status=OrderStatus.DELIVERED)
        assert [o.id for o in delivered] == [first.id]

    def test_list_unknown_store_is_empty(self, order_repo):
        assert order_repo.list_orders("ghost.myshopify.com") == []

    def test_update_status(self, order_repo, shop):
        order = order_repo.create(new_order())
        updated = order_repo.update_status(order.id, OrderStatus.RTO)
        assert updated.status == "rto"
        assert updated.total_amount == Decimal("998")

    def test_update_status_missing(self, order_repo):
        with pytest.raises(OrderNotFound):
            order_repo.update_status("nope", OrderStatus.CANCELLED)

    def test_link_upstream_confirms(self, order_repo, shop):
        order = order_repo.create(new_order())

        linked = order_repo.link_upstream(order.id, "987654321", "#1001")
        again = order_repo.link_upstream(order.id, "987654321", "#1001")

        for result in (linked, again):
            assert result.status == OrderStatus.CONFIRMED.value
            assert result.shopify_order_id == "987654321"
            assert result.shopify_order_number == "#1001"

    def test_stats(self, order_repo, shop):
        a = order_repo.create(new_order(price="100", quantity=1))
        b = order_repo.create(new_order(price="250", quantity=2))
        order_repo.create(new_order(price="40", quantity=1))
        order_repo.link_upstream(a.id, "1", "#1")
        order_repo.update_status(b.id, OrderStatus.DELIVERED)

        stats = order_repo.aggregate_stats(shop)

        assert stats.total == 3
        assert stats.pending == 1
        assert stats.confirmed == 1
        assert stats.delivered == 1
        assert stats.rto == 0
        assert stats.total_revenue == pytest.approx(640.0)

    def test_stats_empty(self, order_repo):
        stats = order_repo.aggregate_stats("ghost.myshopify.com")
        assert stats.total == 0
        assert stats.total_revenue == 0


class TestStoreRepository:
    def test_get_or_create_defaults(self, store_repo):
        store = store_repo.get_or_create("new.myshopify.com")

        assert store.form_enabled is True
        assert store.plan == "free"
        assert store.orders_this_month == 0
        assert store.month_reset_date is not None
        assert store.access_token is None

    def test_get_or_create_is_stable(self, store_repo):
        first = store_repo.get_or_create("new.myshopify.com")
        second = store_repo.get_or_create("new.myshopify.com")
        assert first.id == second.id

    def test_find_missing(self, store_repo):
        assert store_repo.find("ghost.myshopify.com") is None

    def test_update_settings_upserts(self, store_repo):
        store = store_repo.update_settings("fresh.myshopify.com", {"button_text": "Order now", "show_state": False})
        assert store.button_text == "Order now"
        assert store.show_state is False
        assert store.form_enabled is True

    def test_update_settings_rejects_quota_fields(self, store_repo, shop):
        with pytest.raises(ValueError):
            store_repo.update_settings(shop, {"orders_this_month": 0})
