from __future__ import annotations

from pathlib import Path

import pytest

from webscaffold.core import envenc
from webscaffold.core.loader import load_config, preload_env_file
from webscaffold.exceptions import ConfigValidationError, InvalidEnvError, MissingEnvError, VaultError

pytestmark = pytest.mark.unit

PUBLIC_KEY = "p" * 32
PRIVATE_KEY = "q" * 32


def _load(environ: dict[str, str], **kwargs):
    return load_config(environ, env_file=None, **kwargs)


def _failure(environ: dict[str, str], **kwargs) -> ConfigValidationError:
    with pytest.raises(ConfigValidationError) as excinfo:
        _load(environ, **kwargs)
    return excinfo.value


def test_minimal_sqlite_environment_loads(minimal_env: dict[str, str]) -> None:
    cfg = _load(minimal_env)

    assert cfg.app.host == "localhost"
    assert cfg.app.port == 8080
    assert cfg.database.ssl_mode == "require"
    assert cfg.app.env == "testing"
    assert cfg.database.driver == "sqlite"
    assert cfg.database.name == ":memory:"
    flags = {name: value for name, value in cfg.stores.model_dump().items() if isinstance(value, bool)}
    assert flags and not any(flags.values())


def test_empty_environment_reports_every_core_key() -> None:
    error = _failure({})

    missing = set(error.missing_keys())
    assert {"APP_HOST", "APP_PORT", "APP_ENV", "DB_DRIVER", "DB_DATABASE"} <= missing
    assert all(isinstance(item, MissingEnvError) for item in error.errors)


def test_postgres_requires_connection_details(minimal_env: dict[str, str]) -> None:
    minimal_env.update({"DB_DRIVER": "postgres", "DB_DATABASE": "testdb"})

    error = _failure(minimal_env)

    assert set(error.missing_keys()) == {"DB_HOST", "DB_PORT", "DB_USERNAME", "DB_PASSWORD"}
    assert "required when `DB_DRIVER` is not sqlite" in str(error)


def test_postgres_with_connection_details_loads(minimal_env: dict[str, str]) -> None:
    minimal_env.update(
        {
            "DB_DRIVER": "postgres",
            "DB_DATABASE": "testdb",
            "DB_HOST": "db",
            "DB_PORT": "5432",
            "DB_USERNAME": "app",
            "DB_PASSWORD": " secret ",
        }
    )

    cfg = _load(minimal_env)

    assert cfg.database.password == " secret "
    assert cfg.database.ssl_mode == "require"


def test_cms_store_requires_template_id(minimal_env: dict[str, str]) -> None:
    minimal_env["CMS_STORE_USED"] = "true"

    error = _failure(minimal_env)

    assert error.errors == [MissingEnvError("CMS_STORE_TEMPLATE_ID", "required when `CMS_STORE_USED` is true")]


def test_openai_requires_key_and_default_model(minimal_env: dict[str, str]) -> None:
    minimal_env["OPENAI_API_USED"] = "true"

    error = _failure(minimal_env)

    assert error.missing_keys() == ["OPENAI_API_KEY", "OPENAI_API_DEFAULT_MODEL"]


def test_llm_provider_settings_are_assigned(minimal_env: dict[str, str]) -> None:
    minimal_env.update(
        {
            "ANTHROPIC_API_USED": "yes",
            "ANTHROPIC_API_KEY": "key",
            "ANTHROPIC_API_DEFAULT_MODEL": "model",
        }
    )

    cfg = _load(minimal_env)

    assert cfg.anthropic.used is True
    assert cfg.anthropic.api_key == "key"
    assert cfg.anthropic.default_model == "model"
    assert cfg.openai.used is False


def test_vertex_requires_ids_but_no_api_key(minimal_env: dict[str, str]) -> None:
    minimal_env["VERTEX_AI_API_USED"] = "1"

    error = _failure(minimal_env)

    assert error.missing_keys() == [
        "VERTEX_AI_API_PROJECT_ID",
        "VERTEX_AI_API_REGION_ID",
        "VERTEX_AI_API_MODEL_ID",
        "VERTEX_AI_API_DEFAULT_MODEL",
    ]


def test_env_encryption_unused_leaves_key_empty(minimal_env: dict[str, str]) -> None:
    cfg = _load(minimal_env)

    assert cfg.env_encryption.used is False
    assert cfg.env_encryption_key == ""


def test_user_vault_requires_vault_store(minimal_env: dict[str, str]) -> None:
    minimal_env.update({"USER_STORE_USE_VAULT": "true", "VAULT_STORE_USED": "false"})

    error = _failure(minimal_env)

    assert "USER_STORE_USE_VAULT requires VAULT_STORE_USED" in str(error)


def test_vault_store_requires_key(minimal_env: dict[str, str]) -> None:
    minimal_env["VAULT_STORE_USED"] = "true"

    error = _failure(minimal_env)

    assert error.missing_keys() == ["VAULT_STORE_KEY"]


def test_unknown_app_env_is_rejected(minimal_env: dict[str, str]) -> None:
    minimal_env["APP_ENV"] = "qa"

    error = _failure(minimal_env)

    assert len(error.errors) == 1
    assert isinstance(error.errors[0], InvalidEnvError)
    assert error.errors[0].key == "APP_ENV"


def test_malformed_integer_is_reported(minimal_env: dict[str, str]) -> None:
    minimal_env["MAIL_PORT"] = "twenty-five"

    error = _failure(minimal_env)

    assert isinstance(error.errors[0], InvalidEnvError)
    assert error.errors[0].key == "MAIL_PORT"


def test_typed_values_are_parsed(minimal_env: dict[str, str]) -> None:
    minimal_env.update(
        {
            "APP_DEBUG": "Yes",
            "MAIL_PORT": "587",
            "AUTH_REGISTRATION_ENABLED": "off",
            "STRIPE_KEY_PRIVATE": "sk",
            "STRIPE_KEY_PUBLIC": "pk",
            "TRANSLATION_LANGUAGE_DEFAULT": "  ",
        }
    )

    cfg = _load(minimal_env)

    assert cfg.app.debug is True
    assert cfg.mail.port == 587
    assert cfg.auth.registration_enabled is False
    assert cfg.stripe.used is True
    assert cfg.translation.default_language == "en"
    assert cfg.translation.language_list == {"en": "English", "bg": "Bulgarian", "de": "German"}


def test_env_file_does_not_override_environment(tmp_path: Path, minimal_env: dict[str, str]) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("APP_NAME=From File\nAPP_HOST=file-host\n", encoding="utf-8")

    cfg = load_config(minimal_env, env_file=env_file)

    assert cfg.app.name == "From File"
    assert cfg.app.host == "localhost"


def test_missing_env_file_is_not_an_error(tmp_path: Path) -> None:
    environ: dict[str, str] = {}

    assert preload_env_file(environ, tmp_path / "absent.env") == 0
    assert environ == {}


def test_vault_values_feed_the_remaining_sections(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    minimal_env: dict[str, str],
) -> None:
    monkeypatch.setattr(envenc, "ENVENC_KEY_PUBLIC", PUBLIC_KEY)
    derived = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)
    vault = envenc.encrypt_vault({"DB_DATABASE": "from-vault.db", "OPENAI_API_KEY": "sk-vault"}, derived)
    (tmp_path / ".env.production.vault").write_text(vault, encoding="utf-8")
    minimal_env.update(
        {
            "APP_ENV": "production",
            "ENVENC_USED": "true",
            "ENVENC_KEY_PRIVATE": PRIVATE_KEY,
        }
    )
    del minimal_env["DB_DATABASE"]

    cfg = _load(minimal_env, vault_dir=tmp_path, resource_loader=lambda name: None)

    assert cfg.database.name == "from-vault.db"
    assert cfg.env_encryption_key == derived
    assert minimal_env["OPENAI_API_KEY"] == "sk-vault"


def test_env_encryption_requires_private_key(minimal_env: dict[str, str]) -> None:
    minimal_env["ENVENC_USED"] = "true"

    error = _failure(minimal_env)

    assert error.missing_keys() == ["ENVENC_KEY_PRIVATE"]


def test_placeholder_public_key_is_reported(minimal_env: dict[str, str]) -> None:
    minimal_env.update({"ENVENC_USED": "true", "ENVENC_KEY_PRIVATE": PRIVATE_KEY})

    error = _failure(minimal_env)

    assert isinstance(error.errors[0], VaultError)
    assert "public key is too short" in str(error)


def test_missing_vault_file_is_reported(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    minimal_env: dict[str, str],
) -> None:
    monkeypatch.setattr(envenc, "ENVENC_KEY_PUBLIC", PUBLIC_KEY)
    minimal_env.update(
        {
            "APP_ENV": "staging",
            "ENVENC_USED": "true",
            "ENVENC_KEY_PRIVATE": PRIVATE_KEY,
        }
    )

    error = _failure(minimal_env, vault_dir=tmp_path, resource_loader=lambda name: None)

    assert any(isinstance(item, VaultError) for item in error.errors)
    assert ".env.staging.vault" in str(error)


def test_blank_optional_values_keep_defaults(minimal_env: dict[str, str]) -> None:
    minimal_env.update({"DB_SSL_MODE": "   ", "MAIL_PORT": "", "APP_DEBUG": "maybe"})

    cfg = _load(minimal_env)

    assert cfg.database.ssl_mode == "require"
    assert cfg.mail.port == 0
    assert cfg.app.debug is False


def test_explicit_ssl_mode_is_kept(minimal_env: dict[str, str]) -> None:
    minimal_env["DB_SSL_MODE"] = "disable"

    assert _load(minimal_env).database.ssl_mode == "disable"


def test_non_numeric_app_port_is_reported(minimal_env: dict[str, str]) -> None:
    minimal_env["APP_PORT"] = "abc"

    error = _failure(minimal_env)

    assert len(error.errors) == 1
    assert isinstance(error.errors[0], InvalidEnvError)
    assert error.errors[0].key == "APP_PORT"
    assert 'env "APP_PORT" has invalid value' in str(error)
