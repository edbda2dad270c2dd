"""Subscription plans and the subscribers attached to them."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import sqlalchemy as sa

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps, utcnow

SUBSCRIPTION_STATUS_ACTIVE = "active"

_metadata = sa.MetaData()

plans = sa.Table(
    table_name("subscriptions", "plan"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("price", sa.Numeric(12, 2), nullable=False),
    sa.Column("currency", sa.String(3), nullable=False, default="USD"),
    sa.Column("interval_days", sa.Integer, nullable=False, default=30),
    sa.Column("stripe_price_id", sa.String(100), nullable=False, default=""),
    *timestamps(),
)

subscriptions = sa.Table(
    table_name("subscriptions", "subscription"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("subscriber_id", sa.String(64), nullable=False, index=True),
    sa.Column("plan_id", sa.String(32), sa.ForeignKey(plans.c.id), nullable=False),
    sa.Column("status", sa.String(20), nullable=False, default=SUBSCRIPTION_STATUS_ACTIVE),
    sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
    sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
    *timestamps(),
)


class SubscriptionStore(SqlStore):
    metadata = _metadata
    entity = "subscription"

    def plan_create(
        self,
        title: str,
        price: Decimal | str,
        *,
        currency: str = "USD",
        interval_days: int = 30,
        stripe_price_id: str = "",
    ) -> str:
        if interval_days < 1:
            raise ValueError("subscription: interval_days must be at least 1")
        plan_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(plans).values(
                    id=plan_id,
                    title=title,
                    price=Decimal(price),
                    currency=currency.upper(),
                    interval_days=interval_days,
                    stripe_price_id=stripe_price_id,
                )
            )
        return plan_id

    def subscription_create(self, subscriber_id: str, plan_id: str, *, start: datetime | None = None) -> str:
        subscription_id = new_id()
        period_start = start or utcnow()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            interval = conn.execute(
                sa.select(plans.c.interval_days).where(plans.c.id == plan_id)
            ).scalar_one_or_none()
            if interval is None:
                raise TransientStoreError(f"subscription: plan {plan_id} not found")
            conn.execute(
                sa.insert(subscriptions).values(
                    id=subscription_id,
                    subscriber_id=subscriber_id,
                    plan_id=plan_id,
                    period_start=period_start,
                    period_end=period_start + timedelta(days=interval),
                )
            )
        return subscription_id

    def subscription_active_for(self, subscriber_id: str, *, now: datetime | None = None) -> dict[str, Any] | None:
        current = now or utcnow()
        stmt = (
            sa.select(subscriptions)
            .where(
                subscriptions.c.subscriber_id == subscriber_id,
                subscriptions.c.status == SUBSCRIPTION_STATUS_ACTIVE,
                subscriptions.c.period_start <= current,
                subscriptions.c.period_end > current,
            )
            .order_by(subscriptions.c.period_end.desc())
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None


__all__ = ["SubscriptionStore", "plans", "subscriptions"]
