"""Shop catalogue and orders."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

import sqlalchemy as sa

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

ORDER_STATUS_PENDING = "pending"
PRODUCT_STATUS_ACTIVE = "active"

_metadata = sa.MetaData()

categories = sa.Table(
    table_name("shop", "category"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("parent_id", sa.String(32), nullable=False, default=""),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("status", sa.String(20), nullable=False, default="active"),
    *timestamps(),
)

discounts = sa.Table(
    table_name("shop", "discount"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("code", sa.String(40), nullable=False, unique=True),
    sa.Column("discount_type", sa.String(20), nullable=False, default="percent"),
    sa.Column("amount", sa.Numeric(12, 2), nullable=False, default=0),
    sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
)

media = sa.Table(
    table_name("shop", "media"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("entity_id", sa.String(32), nullable=False, index=True),
    sa.Column("media_type", sa.String(40), nullable=False, default="image"),
    sa.Column("url", sa.String(510), nullable=False),
    sa.Column("sequence", sa.Integer, nullable=False, default=0),
    *timestamps(),
)

products = sa.Table(
    table_name("shop", "product"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("category_id", sa.String(32), nullable=False, default="", index=True),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("description", sa.Text, nullable=False, default=""),
    sa.Column("price", sa.Numeric(12, 2), nullable=False),
    sa.Column("quantity", sa.Integer, nullable=False, default=0),
    sa.Column("status", sa.String(20), nullable=False, default=PRODUCT_STATUS_ACTIVE),
    *timestamps(),
)

orders = sa.Table(
    table_name("shop", "order"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("customer_id", sa.String(64), nullable=False, index=True),
    sa.Column("status", sa.String(20), nullable=False, default=ORDER_STATUS_PENDING),
    sa.Column("quantity", sa.Integer, nullable=False, default=0),
    sa.Column("price", sa.Numeric(12, 2), nullable=False, default=0),
    *timestamps(),
)

order_line_items = sa.Table(
    table_name("shop", "order_line_item"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("order_id", sa.String(32), sa.ForeignKey(orders.c.id, ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("product_id", sa.String(32), nullable=False),
    sa.Column("title", sa.String(255), nullable=False, default=""),
    sa.Column("quantity", sa.Integer, nullable=False),
    sa.Column("price", sa.Numeric(12, 2), nullable=False),
    *timestamps(),
)


class ShopStore(SqlStore):
    metadata = _metadata
    entity = "shop"

    def category_create(self, title: str, *, parent_id: str = "") -> str:
        category_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(categories).values(id=category_id, title=title, parent_id=parent_id))
        return category_id

    def product_create(
        self,
        title: str,
        price: Decimal | str,
        *,
        category_id: str = "",
        quantity: int = 0,
        description: str = "",
    ) -> str:
        product_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(products).values(
                    id=product_id,
                    title=title,
                    price=Decimal(price),
                    category_id=category_id,
                    quantity=quantity,
                    description=description,
                )
            )
        return product_id

    def product_list(self, *, category_id: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        stmt = (
            sa.select(products)
            .where(products.c.status == PRODUCT_STATUS_ACTIVE)
            .order_by(products.c.title)
            .limit(limit)
        )
        if category_id is not None:
            stmt = stmt.where(products.c.category_id == category_id)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]

    def order_create(self, customer_id: str, lines: Sequence[tuple[str, int]]) -> str:
        """Create an order from ``(product_id, quantity)`` pairs priced from the catalogue."""

        if not lines:
            raise ValueError("shop: an order needs at least one line")
        order_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            ids = [product_id for product_id, _ in lines]
            catalogue = {
                row["id"]: row
                for row in conn.execute(sa.select(products).where(products.c.id.in_(ids))).mappings()
            }
            total_quantity = 0
            total_price = Decimal("0")
            items = []
            for product_id, quantity in lines:
                product = catalogue.get(product_id)
                if product is None:
                    raise TransientStoreError(f"shop: product {product_id} not found")
                price = Decimal(product["price"])
                items.append(
                    {
                        "id": new_id(),
                        "order_id": order_id,
                        "product_id": product_id,
                        "title": product["title"],
                        "quantity": quantity,
                        "price": price,
                    }
                )
                total_quantity += quantity
                total_price += price * quantity
            conn.execute(
                sa.insert(orders).values(
                    id=order_id,
                    customer_id=customer_id,
                    quantity=total_quantity,
                    price=total_price,
                )
            )
            conn.execute(sa.insert(order_line_items), items)
        return order_id

    def order_find_by_id(self, order_id: str) -> dict[str, Any] | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(orders).where(orders.c.id == order_id)).mappings().first()
            if row is None:
                return None
            lines = conn.execute(
                sa.select(order_line_items).where(order_line_items.c.order_id == order_id)
            ).mappings().all()
        return dict(row, lines=[dict(line) for line in lines])


__all__ = [
    "ShopStore",
    "categories",
    "discounts",
    "media",
    "order_line_items",
    "orders",
    "products",
]
