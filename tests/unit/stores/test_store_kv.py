from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import sqlalchemy as sa

from webscaffold.stores.cache import CacheStore
from webscaffold.stores.session import SessionStore
from webscaffold.stores.setting import SettingStore

pytestmark = pytest.mark.unit

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_cache_store_expiry(engine: sa.engine.Engine) -> None:
    store = CacheStore(engine)
    store.auto_migrate()

    store.set("a", "1", timedelta(minutes=1), now=NOW)
    store.set("b", "2", timedelta(hours=1), now=NOW)
    store.set("a", "updated", timedelta(minutes=1), now=NOW)

    assert store.get("a", now=NOW) == "updated"
    later = NOW + timedelta(minutes=5)
    assert store.get("a", "gone", now=later) == "gone"
    assert store.expire_now(now=later) == 1
    assert store.remove("b") is True
    with pytest.raises(ValueError):
        store.set("c", "3", timedelta(0))


def test_session_store_round_trip_and_expiry(engine: sa.engine.Engine) -> None:
    store = SessionStore(engine)
    store.auto_migrate()

    store.session_set("sid", '{"cart": 1}', user_id="u1", ttl=timedelta(minutes=30), now=NOW)

    assert store.session_get("sid", now=NOW) == '{"cart": 1}'
    assert store.session_get("sid", now=NOW + timedelta(hours=1)) is None
    assert store.expire_sessions(now=NOW + timedelta(hours=1)) == 1
    assert store.session_delete("sid") is False


def test_setting_store(engine: sa.engine.Engine) -> None:
    store = SettingStore(engine)
    store.auto_migrate()

    store.set("site.title", "Shop")
    store.set("site.title", "Better Shop")

    assert store.get("site.title") == "Better Shop"
    assert store.get("missing", "default") == "default"
    assert store.remove("site.title") is True
    assert "snv_settings" in sa.inspect(engine).get_table_names()
