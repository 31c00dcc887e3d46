import pytest
from ordering.checkout.service import submit_order
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.projections.order_summary import OrderFilter, orders_for_customer, search_orders
from protean import current_domain


def _place(name, email, payment_method="partner", customer_id=None, **kwargs):
    return submit_order(
        lines=[{"product_id": "prod-topi", "title": "Dhaka Topi", "unit_price": 1000.0, "quantity": 1}],
        customer={"name": name, "email": email},
        shipping_address={"street": "Thamel", "city": "Kathmandu"},
        payment_method=payment_method,
        customer_id=customer_id,
        **kwargs,
    )


@pytest.fixture
def orders():
    return {
        "sita": _place("Sita Sharma", "sita@example.com", customer_id="cust-sita"),
        "hari": _place("Hari Thapa", "hari@example.com", "qr", transaction_ref="TXN1", evidence_ref="img1"),
        "maya": _place("Maya Gurung", "maya@example.com", customer_id="cust-maya"),
    }


class TestAdminOrderSearch:
    def test_all_orders_newest_first(self, orders):
        page = search_orders(OrderFilter())

        assert page.total == 3
        assert [item.order_id for item in page.items] == [orders["maya"], orders["hari"], orders["sita"]]

    def test_search_by_name_or_email(self, orders):
        assert [s.order_id for s in search_orders(OrderFilter(search="thapa")).items] == [orders["hari"]]
        assert [s.order_id for s in search_orders(OrderFilter(search="MAYA@")).items] == [orders["maya"]]

    def test_filter_by_payment_status(self, orders):
        page = search_orders(OrderFilter(payment_statuses=["pending_verification"]))
        assert [s.order_id for s in page.items] == [orders["hari"]]

    def test_filter_reflects_transitions(self, orders):
        current_domain.process(
            UpdateOrderStatus(order_id=orders["sita"], status="shipped", actor="admin-1", tracking_number="NP7"),
            asynchronous=False,
        )

        page = search_orders(OrderFilter(order_statuses=["shipped"]))

        assert [s.order_id for s in page.items] == [orders["sita"]]
        assert page.items[0].tracking_number == "NP7"

    def test_pagination(self, orders):
        page = search_orders(OrderFilter(page=2, page_size=2))

        assert page.total == 3
        assert page.pages == 2
        assert [s.order_id for s in page.items] == [orders["sita"]]


class TestCustomerOrders:
    def test_by_customer_id(self, orders):
        assert [s.order_id for s in orders_for_customer(customer_id="cust-sita")] == [orders["sita"]]

    def test_guest_by_email(self, orders):
        assert [s.order_id for s in orders_for_customer(email="hari@example.com")] == [orders["hari"]]

    def test_nothing_to_match(self, orders):
        assert orders_for_customer() == []
