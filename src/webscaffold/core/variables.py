"""Declarative table of every environment variable the loader understands.

Each :class:`EnvVariable` names its key, how the raw string is parsed, when
it is required, and where the parsed value lands in :class:`Config`. The
loader walks the sections in order; nothing else in the package reads the
environment directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from . import constants as c
from .config import Config

Predicate = Callable[[Mapping[str, str]], bool]
Assign = Callable[[Config, Any], None]

_TRUTHY = {"1", "true", "yes", "y", "on"}


class VariableKind(str, Enum):
    """How a raw value reaches the config group.

    BOOL goes through :func:`parse_bool`; the other kinds are assigned as
    strings and coerced by the pydantic group.
    """

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"


@dataclass(slots=True, frozen=True)
class EnvVariable:
    """One entry of the loader table."""

    key: str
    assign: Assign
    kind: VariableKind = VariableKind.STRING
    required: bool = False
    required_when: Predicate | None = None
    message: str = ""
    preserve_whitespace: bool = False

    def is_required(self, environ: Mapping[str, str]) -> bool:
        if self.required:
            return True
        if self.required_when is None:
            return False
        return self.required_when(environ)


def parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


def _field(group: str, name: str) -> Assign:
    def assign(cfg: Config, value: Any) -> None:
        setattr(getattr(cfg, group), name, value)

    return assign


def _flag(key: str) -> Predicate:
    def predicate(environ: Mapping[str, str]) -> bool:
        return parse_bool(environ.get(key, ""))

    return predicate


def _not_sqlite(environ: Mapping[str, str]) -> bool:
    return environ.get(c.KEY_DB_DRIVER, "").strip() != c.DRIVER_SQLITE


def _string(key: str, group: str, name: str, **kwargs: Any) -> EnvVariable:
    return EnvVariable(key=key, assign=_field(group, name), **kwargs)


def _bool(key: str, group: str, name: str) -> EnvVariable:
    return EnvVariable(key=key, assign=_field(group, name), kind=VariableKind.BOOL)


def bootstrap_variables() -> list[EnvVariable]:
    """App and env-encryption entries, read before any vault is applied."""

    return [
        _string(c.KEY_APP_NAME, "app", "name"),
        _string(c.KEY_APP_TYPE, "app", "type"),
        _string(c.KEY_APP_URL, "app", "url"),
        _string(
            c.KEY_APP_ENVIRONMENT,
            "app",
            "env",
            required=True,
            message="set the application environment",
        ),
        _string(c.KEY_APP_HOST, "app", "host", required=True, message="set the application host address"),
        EnvVariable(
            key=c.KEY_APP_PORT,
            assign=_field("app", "port"),
            kind=VariableKind.INT,
            required=True,
            message="set the application port",
        ),
        _bool(c.KEY_APP_DEBUG, "app", "debug"),
        _bool(c.KEY_ENVENC_USED, "env_encryption", "used"),
        _string(
            c.KEY_ENVENC_KEY_PRIVATE,
            "env_encryption",
            "private_key",
            required_when=_flag(c.KEY_ENVENC_USED),
            message="required when `ENVENC_USED` is true",
        ),
    ]


def database_variables() -> list[EnvVariable]:
    server_only = "required when `DB_DRIVER` is not sqlite"
    return [
        _string(
            c.KEY_DB_DRIVER,
            "database",
            "driver",
            required=True,
            message="select the database driver (e.g., sqlite, postgres)",
        ),
        _string(c.KEY_DB_HOST, "database", "host", required_when=_not_sqlite, message=server_only),
        _string(c.KEY_DB_PORT, "database", "port", required_when=_not_sqlite, message=server_only),
        _string(c.KEY_DB_DATABASE, "database", "name", required=True, message="set the database name"),
        _string(c.KEY_DB_USERNAME, "database", "username", required_when=_not_sqlite, message=server_only),
        _string(
            c.KEY_DB_PASSWORD,
            "database",
            "password",
            required_when=_not_sqlite,
            message=server_only,
            preserve_whitespace=True,
        ),
        _string(c.KEY_DB_SSL_MODE, "database", "ssl_mode"),
    ]


def mail_variables() -> list[EnvVariable]:
    return [
        _string(c.KEY_MAIL_DRIVER, "mail", "driver"),
        _string(c.KEY_MAIL_HOST, "mail", "host"),
        EnvVariable(key=c.KEY_MAIL_PORT, assign=_field("mail", "port"), kind=VariableKind.INT),
        _string(c.KEY_MAIL_USERNAME, "mail", "username"),
        _string(c.KEY_MAIL_PASSWORD, "mail", "password", preserve_whitespace=True),
        _string(c.KEY_EMAIL_FROM_ADDRESS, "mail", "from_address"),
        _string(c.KEY_EMAIL_FROM_NAME, "mail", "from_name"),
    ]


def auth_variables() -> list[EnvVariable]:
    return [_bool(c.KEY_AUTH_REGISTRATION_ENABLED, "auth", "registration_enabled")]


def store_variables() -> list[EnvVariable]:
    flags = [
        (c.KEY_AUDIT_STORE_USED, "audit_store_used"),
        (c.KEY_BLOG_STORE_USED, "blog_store_used"),
        (c.KEY_CACHE_STORE_USED, "cache_store_used"),
        (c.KEY_CHAT_STORE_USED, "chat_store_used"),
        (c.KEY_CMS_STORE_USED, "cms_store_used"),
        (c.KEY_CUSTOM_STORE_USED, "custom_store_used"),
        (c.KEY_ENTITY_STORE_USED, "entity_store_used"),
        (c.KEY_FEED_STORE_USED, "feed_store_used"),
        (c.KEY_GEO_STORE_USED, "geo_store_used"),
        (c.KEY_LOG_STORE_USED, "log_store_used"),
        (c.KEY_META_STORE_USED, "meta_store_used"),
        (c.KEY_SESSION_STORE_USED, "session_store_used"),
        (c.KEY_SETTING_STORE_USED, "setting_store_used"),
        (c.KEY_SHOP_STORE_USED, "shop_store_used"),
        (c.KEY_SQL_FILE_STORE_USED, "sql_file_store_used"),
        (c.KEY_STATS_STORE_USED, "stats_store_used"),
        (c.KEY_SUBSCRIPTION_STORE_USED, "subscription_store_used"),
        (c.KEY_TASK_STORE_USED, "task_store_used"),
        (c.KEY_USER_STORE_USED, "user_store_used"),
        (c.KEY_USER_STORE_USE_VAULT, "user_store_vault_enabled"),
        (c.KEY_VAULT_STORE_USED, "vault_store_used"),
    ]
    variables = [_bool(key, "stores", name) for key, name in flags]
    variables.append(
        _string(
            c.KEY_CMS_STORE_TEMPLATE_ID,
            "stores",
            "cms_template_id",
            required_when=_flag(c.KEY_CMS_STORE_USED),
            message="required when `CMS_STORE_USED` is true",
        )
    )
    variables.append(
        _string(
            c.KEY_VAULT_STORE_KEY,
            "stores",
            "vault_store_key",
            required_when=_flag(c.KEY_VAULT_STORE_USED),
            message="required when `VAULT_STORE_USED` is true",
            preserve_whitespace=True,
        )
    )
    return variables


def stripe_variables() -> list[EnvVariable]:
    return [
        _string(c.KEY_STRIPE_KEY_PRIVATE, "stripe", "key_private"),
        _string(c.KEY_STRIPE_KEY_PUBLIC, "stripe", "key_public"),
    ]


def _llm_provider(group: str, used_key: str, api_key: str, model_key: str) -> list[EnvVariable]:
    used = _flag(used_key)
    when = f"required when `{used_key}` is true"
    return [
        _bool(used_key, group, "used"),
        _string(api_key, group, "api_key", required_when=used, message=when),
        _string(model_key, group, "default_model", required_when=used, message=when),
    ]


def llm_variables() -> list[EnvVariable]:
    vertex_used = _flag(c.KEY_VERTEX_AI_API_USED)
    vertex_when = "required when `VERTEX_AI_API_USED` is true"
    return [
        *_llm_provider(
            "anthropic",
            c.KEY_ANTHROPIC_API_USED,
            c.KEY_ANTHROPIC_API_KEY,
            c.KEY_ANTHROPIC_API_DEFAULT_MODEL,
        ),
        *_llm_provider("gemini", c.KEY_GEMINI_API_USED, c.KEY_GEMINI_API_KEY, c.KEY_GEMINI_API_DEFAULT_MODEL),
        *_llm_provider("openai", c.KEY_OPENAI_API_USED, c.KEY_OPENAI_API_KEY, c.KEY_OPENAI_API_DEFAULT_MODEL),
        *_llm_provider(
            "openrouter",
            c.KEY_OPENROUTER_API_USED,
            c.KEY_OPENROUTER_API_KEY,
            c.KEY_OPENROUTER_API_DEFAULT_MODEL,
        ),
        # Vertex authenticates through the service account, not an API key.
        _bool(c.KEY_VERTEX_AI_API_USED, "vertex_ai", "used"),
        _string(
            c.KEY_VERTEX_AI_API_PROJECT_ID,
            "vertex_ai",
            "project_id",
            required_when=vertex_used,
            message=vertex_when,
        ),
        _string(
            c.KEY_VERTEX_AI_API_REGION_ID,
            "vertex_ai",
            "region_id",
            required_when=vertex_used,
            message=vertex_when,
        ),
        _string(
            c.KEY_VERTEX_AI_API_MODEL_ID,
            "vertex_ai",
            "model_id",
            required_when=vertex_used,
            message=vertex_when,
        ),
        _string(
            c.KEY_VERTEX_AI_API_DEFAULT_MODEL,
            "vertex_ai",
            "default_model",
            required_when=vertex_used,
            message=vertex_when,
        ),
    ]


def translation_variables() -> list[EnvVariable]:
    return [_string(c.KEY_TRANSLATION_LANGUAGE_DEFAULT, "translation", "default_language")]


def variable_definitions() -> list[EnvVariable]:
    """Every entry in load order."""

    return [
        *bootstrap_variables(),
        *remaining_variables(),
    ]


def remaining_variables() -> list[EnvVariable]:
    """Entries read after a vault, if any, has been overlaid."""

    return [
        *database_variables(),
        *mail_variables(),
        *auth_variables(),
        *store_variables(),
        *stripe_variables(),
        *llm_variables(),
        *translation_variables(),
    ]


__all__ = [
    "EnvVariable",
    "VariableKind",
    "bootstrap_variables",
    "parse_bool",
    "remaining_variables",
    "variable_definitions",
]
