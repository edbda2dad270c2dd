"""Countries, states and timezones."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

countries = sa.Table(
    table_name("geo", "country"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("iso2_code", sa.String(2), nullable=False, unique=True),
    sa.Column("iso3_code", sa.String(3), nullable=False, default=""),
    sa.Column("phone_prefix", sa.String(10), nullable=False, default=""),
    *timestamps(),
)

states = sa.Table(
    table_name("geo", "state"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("country_code", sa.String(2), nullable=False, index=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("state_code", sa.String(10), nullable=False, default=""),
    *timestamps(),
)

timezones = sa.Table(
    table_name("geo", "timezone"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("country_code", sa.String(2), nullable=False, index=True),
    sa.Column("timezone", sa.String(60), nullable=False),
    sa.Column("utc_offset", sa.String(10), nullable=False, default=""),
    *timestamps(),
)


class GeoStore(SqlStore):
    metadata = _metadata
    entity = "geo"

    def country_create(self, name: str, iso2_code: str, *, iso3_code: str = "", phone_prefix: str = "") -> str:
        country_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(countries).values(
                    id=country_id,
                    name=name,
                    iso2_code=iso2_code.upper(),
                    iso3_code=iso3_code.upper(),
                    phone_prefix=phone_prefix,
                )
            )
        return country_id

    def country_find_by_iso2(self, iso2_code: str) -> dict[str, Any] | None:
        stmt = sa.select(countries).where(countries.c.iso2_code == iso2_code.upper())
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def country_list(self) -> list[dict[str, Any]]:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(sa.select(countries).order_by(countries.c.name)).mappings()]


__all__ = ["GeoStore", "countries", "states", "timezones"]
