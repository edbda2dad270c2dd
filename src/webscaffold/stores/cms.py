"""Content management: sites, pages, templates, blocks, menus and translations."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

_metadata = sa.MetaData()


def _content_table(entity: str, *columns: sa.Column) -> sa.Table:
    return sa.Table(
        table_name("cms", entity),
        _metadata,
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("site_id", sa.String(32), nullable=False, default="", index=True),
        sa.Column("status", sa.String(20), nullable=False, default=STATUS_ACTIVE),
        sa.Column("name", sa.String(255), nullable=False, default=""),
        sa.Column("content", sa.Text, nullable=False, default=""),
        sa.Column("handle", sa.String(255), nullable=False, default=""),
        *columns,
        *timestamps(),
    )


sites = sa.Table(
    table_name("cms", "site"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("status", sa.String(20), nullable=False, default=STATUS_ACTIVE),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("domain_names", sa.Text, nullable=False, default=""),
    *timestamps(),
)

blocks = _content_table("block")
pages = _content_table(
    "page",
    sa.Column("alias", sa.String(255), nullable=False, index=True),
    sa.Column("title", sa.String(255), nullable=False, default=""),
    sa.Column("template_id", sa.String(32), nullable=False, default=""),
)
templates = _content_table("template")
menus = _content_table("menu")
menu_items = _content_table(
    "menu_item",
    sa.Column("menu_id", sa.String(32), nullable=False, index=True),
    sa.Column("parent_id", sa.String(32), nullable=False, default=""),
    sa.Column("page_id", sa.String(32), nullable=False, default=""),
    sa.Column("url", sa.String(510), nullable=False, default=""),
    sa.Column("sequence", sa.Integer, nullable=False, default=0),
)
translations = _content_table(
    "translation",
    sa.Column("language", sa.String(10), nullable=False, default="en"),
)
versions = sa.Table(
    table_name("cms", "version"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("entity_type", sa.String(40), nullable=False),
    sa.Column("entity_id", sa.String(32), nullable=False, index=True),
    sa.Column("content", sa.Text, nullable=False, default=""),
    *timestamps(),
)


class CmsStore(SqlStore):
    """Thin CMS adapter; rendering lives outside this package."""

    metadata = _metadata
    entity = "cms"

    def __init__(self, engine, *, template_id: str = "") -> None:
        super().__init__(engine)
        self.default_template_id = template_id

    def _insert(self, table: sa.Table, values: dict[str, Any]) -> str:
        record_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(table).values(id=record_id, **values))
        return record_id

    def site_create(self, name: str, *, domain_names: list[str] | None = None) -> str:
        return self._insert(sites, {"name": name, "domain_names": ",".join(domain_names or [])})

    def template_create(self, name: str, content: str, *, site_id: str = "") -> str:
        return self._insert(templates, {"name": name, "content": content, "site_id": site_id})

    def template_find_by_id(self, template_id: str) -> dict[str, Any] | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(templates).where(templates.c.id == template_id)).mappings().first()
        return dict(row) if row is not None else None

    def page_create(
        self,
        alias: str,
        *,
        title: str = "",
        content: str = "",
        site_id: str = "",
        template_id: str | None = None,
    ) -> str:
        page_id = self._insert(
            pages,
            {
                "alias": alias,
                "title": title,
                "name": title,
                "content": content,
                "site_id": site_id,
                "template_id": self.default_template_id if template_id is None else template_id,
            },
        )
        self._insert(versions, {"entity_type": "page", "entity_id": page_id, "content": content})
        return page_id

    def page_find_by_alias(self, alias: str, *, site_id: str | None = None) -> dict[str, Any] | None:
        stmt = sa.select(pages).where(pages.c.alias == alias, pages.c.status == STATUS_ACTIVE)
        if site_id is not None:
            stmt = stmt.where(pages.c.site_id == site_id)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None


__all__ = [
    "CmsStore",
    "blocks",
    "menu_items",
    "menus",
    "pages",
    "sites",
    "templates",
    "translations",
    "versions",
]
