from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import sqlalchemy as sa

from webscaffold.exceptions import TransientStoreError
from webscaffold.stores.shop import ShopStore
from webscaffold.stores.stats import StatsStore
from webscaffold.stores.subscription import SubscriptionStore

pytestmark = pytest.mark.unit


def test_order_totals_come_from_catalogue(engine: sa.engine.Engine) -> None:
    store = ShopStore(engine)
    store.auto_migrate()
    category_id = store.category_create("Books")
    book = store.product_create("Book", "19.99", category_id=category_id, quantity=5)
    pen = store.product_create("Pen", Decimal("1.50"))

    order_id = store.order_create("customer-1", [(book, 2), (pen, 4)])

    order = store.order_find_by_id(order_id)
    assert order["quantity"] == 6
    assert Decimal(order["price"]) == Decimal("45.98")
    assert sorted(line["title"] for line in order["lines"]) == ["Book", "Pen"]
    assert [product["title"] for product in store.product_list(category_id=category_id)] == ["Book"]


def test_order_rejects_unknown_products(engine: sa.engine.Engine) -> None:
    store = ShopStore(engine)
    store.auto_migrate()

    with pytest.raises(TransientStoreError, match="not found"):
        store.order_create("c", [("nope", 1)])
    with pytest.raises(ValueError):
        store.order_create("c", [])
    assert store.order_find_by_id("nope") is None


def test_subscription_period_follows_plan(engine: sa.engine.Engine) -> None:
    store = SubscriptionStore(engine)
    store.auto_migrate()
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    plan_id = store.plan_create("Pro", "9.00", currency="eur", interval_days=30)

    store.subscription_create("sub-1", plan_id, start=start)

    assert store.subscription_active_for("sub-1", now=start + timedelta(days=10)) is not None
    assert store.subscription_active_for("sub-1", now=start + timedelta(days=31)) is None
    with pytest.raises(TransientStoreError):
        store.subscription_create("sub-1", "missing-plan")
    with pytest.raises(ValueError):
        store.plan_create("Broken", "1", interval_days=0)


def test_stats_unique_visitors(engine: sa.engine.Engine) -> None:
    store = StatsStore(engine)
    store.auto_migrate()
    store.visitor_register("/", fingerprint="a")
    store.visitor_register("/about", fingerprint="a")
    store.visitor_register("/", fingerprint="b")

    assert store.visitor_count() == 3
    assert store.visitor_count(unique=True) == 2
