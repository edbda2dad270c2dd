from __future__ import annotations

import pytest
import sqlalchemy as sa

from webscaffold.exceptions import TransientStoreError
from webscaffold.stores.blindindex import EMAIL_TABLE, FIRST_NAME_TABLE, LAST_NAME_TABLE, BlindIndexStore
from webscaffold.stores.user import UserStore, UserVault, users
from webscaffold.stores.vault import TOKEN_PREFIX, VaultStore

pytestmark = pytest.mark.unit


def test_vault_tokens(engine: sa.engine.Engine) -> None:
    store = VaultStore(engine, key="secret")
    store.auto_migrate()

    token = store.token_create("4111 1111 1111 1111")

    assert token.startswith(TOKEN_PREFIX)
    assert store.token_read(token) == "4111 1111 1111 1111"
    assert store.token_delete(token) is True
    assert store.token_read(token) is None


def test_vault_with_wrong_key_cannot_read(engine: sa.engine.Engine) -> None:
    store = VaultStore(engine, key="secret")
    store.auto_migrate()
    token = store.token_create("value")

    with pytest.raises(TransientStoreError, match="cannot be decrypted"):
        VaultStore(engine, key="other").token_read(token)


def test_vault_requires_key(engine: sa.engine.Engine) -> None:
    with pytest.raises(ValueError):
        VaultStore(engine, key="")


def test_blind_index_search_is_normalized(engine: sa.engine.Engine) -> None:
    index = BlindIndexStore(engine, table=EMAIL_TABLE)
    index.auto_migrate()
    index.insert("user-1", "Ada@Example.org")

    assert index.search("  ada@example.ORG ") == ["user-1"]
    assert index.search("bob@example.org") == []
    assert index.remove("user-1") == 1


def test_plain_user_store(engine: sa.engine.Engine) -> None:
    store = UserStore(engine)
    store.auto_migrate()

    user_id = store.user_create("Ada@Example.org", first_name="Ada")

    user = store.user_find_by_email("ada@example.org")
    assert user is not None and user.id == user_id
    assert store.user_find_by_id(user_id).first_name == "Ada"
    assert store.vault_enabled is False


def test_vault_user_store_tokenizes_personal_fields(engine: sa.engine.Engine) -> None:
    vault = VaultStore(engine, key="k")
    indexes = [BlindIndexStore(engine, table=name) for name in (EMAIL_TABLE, FIRST_NAME_TABLE, LAST_NAME_TABLE)]
    store = UserStore(
        engine,
        vault=UserVault(
            vault=lambda: vault,
            email_index=indexes[0],
            first_name_index=indexes[1],
            last_name_index=indexes[2],
        ),
    )
    for item in (vault, *indexes, store):
        item.auto_migrate()

    user_id = store.user_create("ada@example.org", first_name="Ada", last_name="Lovelace")

    with engine.connect() as conn:
        raw = conn.execute(sa.select(users.c.email, users.c.last_name)).one()
    assert raw.email.startswith(TOKEN_PREFIX)
    assert raw.last_name.startswith(TOKEN_PREFIX)
    user = store.user_find_by_email("ADA@example.org")
    assert user.id == user_id
    assert (user.email, user.first_name, user.last_name) == ("ada@example.org", "Ada", "Lovelace")
    assert indexes[2].search("lovelace") == [user_id]


def test_vault_user_store_needs_vault_instance(engine: sa.engine.Engine) -> None:
    indexes = [BlindIndexStore(engine, table=name) for name in (EMAIL_TABLE, FIRST_NAME_TABLE, LAST_NAME_TABLE)]
    store = UserStore(engine, vault=UserVault(lambda: None, *indexes))
    store.auto_migrate()

    with pytest.raises(RuntimeError, match="vault store"):
        store.user_create("a@example.org")
