"""Blind indexes: searchable SHA-256 digests of sensitive user fields.

The plaintext lives tokenized in the vault store; these tables map the
digest of a normalized value back to the owning record so lookups such as
"find user by email" work without decrypting every row.
"""

from __future__ import annotations

import hashlib
from typing import Protocol

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, utcnow

EMAIL_TABLE = table_name("bindx", "email")
FIRST_NAME_TABLE = table_name("bindx", "first_name")
LAST_NAME_TABLE = table_name("bindx", "last_name")


class Transformer(Protocol):
    def transform(self, value: str) -> str:
        ...


class Sha256Transformer:
    """Case- and whitespace-insensitive SHA-256 digest."""

    def transform(self, value: str) -> str:
        normalized = " ".join(value.split()).lower()
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class BlindIndexStore(SqlStore):
    entity = "blind_index"

    def __init__(
        self,
        engine: Engine,
        *,
        table: str,
        transformer: Transformer | None = None,
    ) -> None:
        super().__init__(engine)
        if not table:
            raise ValueError("blind_index: table name is required")
        self.metadata = sa.MetaData()
        self.table = sa.Table(
            table,
            self.metadata,
            sa.Column("id", sa.String(32), primary_key=True),
            sa.Column("source_reference_id", sa.String(64), nullable=False, index=True),
            sa.Column("transformed", sa.String(64), nullable=False, index=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, default=utcnow),
        )
        self.transformer = transformer or Sha256Transformer()

    def insert(self, source_reference_id: str, value: str) -> str:
        entry_id = new_id()
        with handle_sqlalchemy_errors(entity=self.table.name), self._engine.begin() as conn:
            conn.execute(
                sa.insert(self.table).values(
                    id=entry_id,
                    source_reference_id=source_reference_id,
                    transformed=self.transformer.transform(value),
                )
            )
        return entry_id

    def search(self, value: str) -> list[str]:
        """Return the reference ids whose indexed value equals ``value``."""

        stmt = sa.select(self.table.c.source_reference_id).where(
            self.table.c.transformed == self.transformer.transform(value)
        )
        with handle_sqlalchemy_errors(entity=self.table.name), self._engine.connect() as conn:
            return list(conn.execute(stmt).scalars())

    def remove(self, source_reference_id: str) -> int:
        stmt = sa.delete(self.table).where(self.table.c.source_reference_id == source_reference_id)
        with handle_sqlalchemy_errors(entity=self.table.name), self._engine.begin() as conn:
            return conn.execute(stmt).rowcount


__all__ = [
    "BlindIndexStore",
    "EMAIL_TABLE",
    "FIRST_NAME_TABLE",
    "LAST_NAME_TABLE",
    "Sha256Transformer",
]
