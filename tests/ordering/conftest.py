from datetime import UTC, datetime, timedelta

import pytest
from ordering.discount.discount import DiscountCode, ProductDiscountLink
from ordering.notification.notifier import reset_notifier, set_notifier
from ordering.notification.notifier.fake_adapter import FakeNotifier
from ordering.payment.storage import reset_store
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    bed = DomainFixture(ordering)
    bed.setup()
    setup_db(ordering)
    yield bed
    drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _adapters():
    yield
    reset_notifier()
    reset_store()


@pytest.fixture()
def fake_notifier():
    notifier = FakeNotifier()
    set_notifier(notifier)
    return notifier


@pytest.fixture()
def make_discount():
    """Persist a discount code. Keyword arguments override the defaults."""

    def _make(code="SAVE10", discount_type="percentage", value=10.0, current_uses=0, **overrides):
        fields = {
            "min_order_amount": 0.0,
            "max_uses": 100,
            "valid_from": datetime.now(UTC) - timedelta(days=1),
            "valid_until": None,
            "active": True,
        }
        fields.update(overrides)
        discount = DiscountCode.create(code=code, discount_type=discount_type, value=value, **fields)
        discount.current_uses = current_uses
        current_domain.repository_for(DiscountCode).add(discount)
        return current_domain.repository_for(DiscountCode).get(discount.id)

    return _make


@pytest.fixture()
def link_product():
    def _link(product_id, discount):
        link = ProductDiscountLink.create(product_id=product_id, discount_code_id=str(discount.id))
        current_domain.repository_for(ProductDiscountLink).add(link)
        return link

    return _link
