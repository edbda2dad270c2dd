"""Application users.

With vault mode enabled the personal fields (email, first and last name)
are stored as vault tokens and looked up through the blind indexes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps
from .blindindex import BlindIndexStore
from .vault import VaultStore

USER_STATUS_ACTIVE = "active"
USER_ROLE_USER = "user"

_metadata = sa.MetaData()

users = sa.Table(
    table_name("users", "user"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("status", sa.String(20), nullable=False, default=USER_STATUS_ACTIVE),
    sa.Column("role", sa.String(20), nullable=False, default=USER_ROLE_USER),
    sa.Column("email", sa.String(255), nullable=False, index=True),
    sa.Column("first_name", sa.String(255), nullable=False, default=""),
    sa.Column("last_name", sa.String(255), nullable=False, default=""),
    *timestamps(),
)


@dataclass(slots=True)
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    status: str
    created_at: datetime | None = None


@dataclass(slots=True)
class UserVault:
    """Collaborators used when personal data is tokenized."""

    vault: Callable[[], VaultStore | None]
    email_index: BlindIndexStore
    first_name_index: BlindIndexStore
    last_name_index: BlindIndexStore

    def store(self) -> VaultStore:
        vault = self.vault()
        if vault is None:
            raise RuntimeError("user: vault mode requires the vault store")
        return vault


class UserStore(SqlStore):
    metadata = _metadata
    entity = "user"

    def __init__(self, engine: Engine, *, vault: UserVault | None = None) -> None:
        super().__init__(engine)
        self._vault = vault

    @property
    def vault_enabled(self) -> bool:
        return self._vault is not None

    def user_create(
        self,
        email: str,
        *,
        first_name: str = "",
        last_name: str = "",
        role: str = USER_ROLE_USER,
    ) -> str:
        user_id = new_id()
        values = {"email": email, "first_name": first_name, "last_name": last_name}
        if self._vault is not None:
            vault = self._vault.store()
            values = {field: vault.token_create(value) for field, value in values.items()}
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(users).values(id=user_id, role=role, **values))
        if self._vault is not None:
            self._vault.email_index.insert(user_id, email)
            if first_name:
                self._vault.first_name_index.insert(user_id, first_name)
            if last_name:
                self._vault.last_name_index.insert(user_id, last_name)
        return user_id

    def _reveal(self, row) -> User:
        fields = {"email": row["email"], "first_name": row["first_name"], "last_name": row["last_name"]}
        if self._vault is not None:
            vault = self._vault.store()
            fields = {name: (vault.token_read(token) or "") for name, token in fields.items()}
        return User(
            id=row["id"],
            role=row["role"],
            status=row["status"],
            created_at=row["created_at"],
            **fields,
        )

    def user_find_by_id(self, user_id: str) -> User | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(users).where(users.c.id == user_id)).mappings().first()
        return self._reveal(row) if row is not None else None

    def user_find_by_email(self, email: str) -> User | None:
        if self._vault is not None:
            for user_id in self._vault.email_index.search(email):
                user = self.user_find_by_id(user_id)
                if user is not None:
                    return user
            return None
        stmt = sa.select(users).where(sa.func.lower(users.c.email) == email.strip().lower())
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return self._reveal(row) if row is not None else None


__all__ = ["User", "UserStore", "UserVault", "users"]
