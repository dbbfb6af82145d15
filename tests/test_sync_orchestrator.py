from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from cod_form.application.sync_orchestrator import (
    MESSAGE_FAILED,
    MESSAGE_PENDING,
    SyncOrchestrator,
    SyncState,
    bare_order_id,
    build_draft_input,
    split_name,
)
from cod_form.domain.models import OrderStatus
from cod_form.domain.schemas import CustomerInfo, NewOrder, ProductInfo
from fakes import SHOP


def new_order(name="Jane Mary Doe", variant_id="44001122", state="KA"):
    return NewOrder(
        shop=SHOP,
        customer=CustomerInfo(
            name=name,
            phone="9876543210",
            address="12 MG Road",
            city="Bengaluru",
            pincode="560001",
            state=state,
            email="9876543210@cod.onepik.com",
        ),
        product=ProductInfo(id="8123456789", title="Cotton Kurta", price=Decimal("499"), variant_id=variant_id),
        quantity=2,
    )


@pytest.fixture
def saved_order(memory_stores, memory_orders):
    memory_stores.add(SHOP)
    return memory_orders.create(new_order())


@pytest.fixture
def orchestrator(shopify, memory_orders):
    return SyncOrchestrator(shopify, memory_orders)


class TestNameSplitting:
    def test_three_part_name(self):
        assert split_name("Jane Mary Doe") == ("Jane", "Mary Doe")

    def test_single_name(self):
        assert split_name("Madonna") == ("Madonna", "-")

    def test_extra_whitespace(self):
        assert split_name("  Ravi   Kumar ") == ("Ravi", "Kumar")


class TestDraftInput:
    def test_with_variant(self, saved_order):
        draft = build_draft_input(saved_order)

        assert draft["lineItems"] == [
            {
                "title": "Cotton Kurta",
                "originalUnitPrice": "499",
                "quantity": 2,
                "variantId": "gid://shopify/ProductVariant/44001122",
            }
        ]
        assert draft["shippingAddress"] == draft["billingAddress"]
        assert draft["shippingAddress"] == {
            "firstName": "Jane",
            "lastName": "Mary Doe",
            "address1": "12 MG Road",
            "city": "Bengaluru",
            "zip": "560001",
            "provinceCode": "KA",
            "countryCode": "IN",
            "phone": "9876543210",
        }
        assert draft["email"] == "9876543210@cod.onepik.com"
        assert "COD" in draft["tags"]

    def test_without_variant_omits_the_key(self, memory_stores, memory_orders):
        memory_stores.add(SHOP)
        order = memory_orders.create(new_order(name="Madonna", variant_id=None, state=None))

        draft = build_draft_input(order)

        assert "variantId" not in draft["lineItems"][0]
        assert draft["shippingAddress"]["lastName"] == "-"
        assert draft["shippingAddress"]["provinceCode"] == ""

    def test_bare_order_id(self):
        assert bare_order_id("gid://shopify/Order/987654321") == "987654321"
        assert bare_order_id("987654321") == "987654321"


class TestSyncOutcomes:
    def test_completed(self, orchestrator, saved_order, shopify, memory_orders):
        result = orchestrator.sync(saved_order, "shpat_test")

        assert result.state is SyncState.COMPLETED
        assert result.synced
        assert result.shopify_order_id == "987654321"
        assert result.order_number == "#1001"

        stored = memory_orders.get(saved_order.id)
        assert stored.status == OrderStatus.CONFIRMED.value
        assert stored.shopify_order_id == "987654321"
        assert stored.shopify_order_number == "#1001"

        assert [c["method"] for c in shopify.calls] == ["create_draft_order", "complete_draft_order"]
        assert shopify.calls[1]["draft_id"] == "gid://shopify/DraftOrder/555"
        assert shopify.calls[1]["payment_pending"] is True

    @pytest.mark.parametrize(
        "draft, complete, message, calls",
        [
            ("user_errors", "ok", MESSAGE_PENDING, 1),
            ("raise", "ok", MESSAGE_FAILED, 1),
            ("ok", "user_errors", MESSAGE_PENDING, 2),
            ("ok", "raise", MESSAGE_FAILED, 2),
        ],
    )
    def test_failures_leave_order_pending(
        self, orchestrator, saved_order, shopify, memory_orders, draft, complete, message, calls
    ):
        shopify.configure(draft=draft, complete=complete)

        result = orchestrator.sync(saved_order, "shpat_test")

        assert result.state is SyncState.FAILED
        assert not result.synced
        assert result.message == message
        assert result.shopify_order_id is None
        assert len(shopify.calls) == calls

        stored = memory_orders.get(saved_order.id)
        assert stored.status == OrderStatus.PENDING.value
        assert stored.shopify_order_id is None
        assert stored.shopify_order_number is None
        assert memory_orders.link_calls == []

    def test_no_access_token_skips_remote_calls(self, orchestrator, saved_order, shopify):
        result = orchestrator.sync(saved_order, None)

        assert result.state is SyncState.FAILED
        assert result.message == MESSAGE_FAILED
        assert shopify.calls == []

    def test_link_failure_is_absorbed(self, shopify, saved_order):
        order_repo = MagicMock()
        order_repo.link_upstream.side_effect = RuntimeError("db went away")

        result = SyncOrchestrator(shopify, order_repo).sync(saved_order, "shpat_test")

        assert result.state is SyncState.FAILED
        assert result.message == MESSAGE_FAILED
        order_repo.link_upstream.assert_called_once_with(saved_order.id, "987654321", "#1001")

    def test_order_without_name_is_not_linked(self, saved_order, memory_orders):
        upstream = MagicMock()
        upstream.create_draft_order.return_value = MagicMock(draft_id="gid://shopify/DraftOrder/1")
        upstream.complete_draft_order.return_value = MagicMock(order_id="gid://shopify/Order/2", order_name=None)

        result = SyncOrchestrator(upstream, memory_orders).sync(saved_order, "shpat_test")

        assert result.state is SyncState.FAILED
        assert memory_orders.link_calls == []
