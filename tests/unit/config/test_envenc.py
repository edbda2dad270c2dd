from __future__ import annotations

from pathlib import Path

import pytest

from webscaffold.core import envenc
from webscaffold.exceptions import VaultError

pytestmark = pytest.mark.unit

PUBLIC_KEY = "a" * 32
PRIVATE_KEY = "b" * 32


def test_derive_key_is_deterministic() -> None:
    first = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)
    second = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)

    assert first == second
    assert len(first) == 64
    assert first != envenc.derive_key(PUBLIC_KEY, "c" * 32)


@pytest.mark.parametrize(
    ("public_key", "private_key", "message"),
    [
        ("", PRIVATE_KEY, "public key is empty"),
        (PUBLIC_KEY, "", "private key is empty"),
        ("short", PRIVATE_KEY, "public key is too short"),
        (PUBLIC_KEY, "short", "private key is too short"),
    ],
)
def test_derive_key_errors(public_key: str, private_key: str, message: str) -> None:
    with pytest.raises(VaultError, match=message):
        envenc.derive_key(public_key, private_key)


def test_derive_key_reports_deobfuscation_failure() -> None:
    def broken(value: str) -> str:
        raise ValueError("bad encoding")

    with pytest.raises(VaultError, match="failed to deobfuscate public key"):
        envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY, deobfuscator=broken)


def test_derive_key_uses_deobfuscated_public_key() -> None:
    reveal = lambda value: value.upper()  # noqa: E731

    assert envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY, deobfuscator=reveal) == envenc.derive_key(
        PUBLIC_KEY.upper(), PRIVATE_KEY
    )


def test_embedded_placeholder_public_key_is_rejected() -> None:
    with pytest.raises(VaultError, match="public key is too short"):
        envenc.derive_env_encryption_key(PRIVATE_KEY)


def test_vault_round_trip_and_wrong_key() -> None:
    key = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)
    sealed = envenc.encrypt_vault({"DB_PASSWORD": "s3cret"}, key)

    assert envenc.decrypt_vault(sealed, key) == {"DB_PASSWORD": "s3cret"}
    with pytest.raises(VaultError, match="decryption failed"):
        envenc.decrypt_vault(sealed, envenc.derive_key(PUBLIC_KEY, "z" * 32))
    with pytest.raises(VaultError, match="base64"):
        envenc.decrypt_vault("not base64 !!", key)


def test_hydrate_is_noop_for_testing() -> None:
    environ: dict[str, str] = {}

    assert envenc.hydrate_environment("Testing", "", environ=environ) == {}
    assert environ == {}


def test_hydrate_requires_private_key() -> None:
    with pytest.raises(VaultError, match="ENVENC_KEY_PRIVATE is required"):
        envenc.hydrate_environment("production", "   ", environ={})


def test_hydrate_overlays_disk_then_embedded(tmp_path: Path) -> None:
    key = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)
    (tmp_path / ".env.production.vault").write_text(
        envenc.encrypt_vault({"A": "disk", "B": "disk"}, key),
        encoding="utf-8",
    )
    embedded = envenc.encrypt_vault({"B": "embedded"}, key)
    environ = {"A": "original", "C": "kept"}

    applied = envenc.hydrate_environment(
        "PRODUCTION",
        PRIVATE_KEY,
        environ=environ,
        search_dir=tmp_path,
        resource_loader=lambda name: embedded if name == ".env.production.vault" else None,
        public_key=PUBLIC_KEY,
    )

    assert environ == {"A": "disk", "B": "embedded", "C": "kept"}
    assert applied == {"A": "disk", "B": "embedded"}


def test_hydrate_missing_vault(tmp_path: Path) -> None:
    with pytest.raises(VaultError, match=r"\.env\.local\.vault not found"):
        envenc.hydrate_environment(
            "local",
            PRIVATE_KEY,
            environ={},
            search_dir=tmp_path,
            resource_loader=lambda name: None,
            public_key=PUBLIC_KEY,
        )


def test_embedded_vault_absent_resource() -> None:
    assert envenc.embedded_vault(".env.nowhere.vault") is None
