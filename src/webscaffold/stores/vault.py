"""Tokenized secret storage.

Values are sealed with a PyNaCl ``SecretBox`` whose key is the SHA-256 of
``VAULT_STORE_KEY``; only the opaque token leaves the store.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

import sqlalchemy as sa
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox
from sqlalchemy.engine import Engine

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

TOKEN_PREFIX = "tk_"
TOKEN_BYTES = 20

_metadata = sa.MetaData()

vault_entries = sa.Table(
    table_name("vault", "vault"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("vault_token", sa.String(64), nullable=False, unique=True),
    sa.Column("vault_value", sa.Text, nullable=False),
    *timestamps(),
)


class VaultStore(SqlStore):
    metadata = _metadata
    entity = "vault"

    def __init__(self, engine: Engine, *, key: str) -> None:
        super().__init__(engine)
        if not key:
            raise ValueError("vault: encryption key is required")
        self._box = SecretBox(hashlib.sha256(key.encode("utf-8")).digest())

    def _seal(self, value: str) -> str:
        return base64.b64encode(bytes(self._box.encrypt(value.encode("utf-8")))).decode("ascii")

    def _open(self, sealed: str) -> str:
        try:
            return self._box.decrypt(base64.b64decode(sealed)).decode("utf-8")
        except (CryptoError, ValueError) as exc:
            raise TransientStoreError("vault: value cannot be decrypted with the configured key") from exc

    def token_create(self, value: str) -> str:
        token = TOKEN_PREFIX + secrets.token_hex(TOKEN_BYTES)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(vault_entries).values(
                    id=new_id(),
                    vault_token=token,
                    vault_value=self._seal(value),
                )
            )
        return token

    def token_read(self, token: str) -> str | None:
        stmt = sa.select(vault_entries.c.vault_value).where(vault_entries.c.vault_token == token)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            sealed = conn.execute(stmt).scalar_one_or_none()
        return None if sealed is None else self._open(sealed)

    def token_delete(self, token: str) -> bool:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(
                conn.execute(sa.delete(vault_entries).where(vault_entries.c.vault_token == token)).rowcount
            )


__all__ = ["TOKEN_PREFIX", "VaultStore", "vault_entries"]
