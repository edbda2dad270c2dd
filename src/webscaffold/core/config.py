"""Configuration record for the web application.

The record is assembled once by :func:`webscaffold.core.loader.load_config`
and treated as read-mostly afterwards. Every group is a pydantic model with
assignment validation, so ``cfg.database.name = "x"`` is the setter and
attribute access the getter.
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .constants import TRANSLATION_LANGUAGE_DEFAULT, translation_language_list_default


class _Group(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class AppSettings(_Group):
    name: str = ""
    type: str = ""
    env: str = ""
    host: str = ""
    port: int = 0
    url: str = ""
    debug: bool = False

    @property
    def is_testing(self) -> bool:
        return self.env.lower() == "testing"

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


class DatabaseSettings(_Group):
    driver: str = ""
    host: str = ""
    port: int = 0
    name: str = ""
    username: str = ""
    password: str = ""
    ssl_mode: str = Field(default="require", description="Used only by server databases.")

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.driver.lower()


class MailSettings(_Group):
    driver: str = ""
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""
    from_address: str = ""
    from_name: str = ""


class AuthSettings(_Group):
    registration_enabled: bool = False


class LlmProviderSettings(_Group):
    """Credentials and default model of a single LLM provider."""

    used: bool = False
    api_key: str = ""
    default_model: str = ""


class VertexAiSettings(LlmProviderSettings):
    project_id: str = ""
    region_id: str = ""
    model_id: str = ""


class StripeSettings(_Group):
    key_private: str = ""
    key_public: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def used(self) -> bool:
        return self.key_private != "" and self.key_public != ""


class EnvEncryptionSettings(_Group):
    used: bool = False
    private_key: str = ""
    derived_key: str = ""


class StoreSettings(_Group):
    """Feature flags deciding which stores the registry builds."""

    audit_store_used: bool = False
    blog_store_used: bool = False
    cache_store_used: bool = False
    chat_store_used: bool = False
    cms_store_used: bool = False
    cms_template_id: str = ""
    custom_store_used: bool = False
    entity_store_used: bool = False
    feed_store_used: bool = False
    geo_store_used: bool = False
    log_store_used: bool = False
    meta_store_used: bool = False
    session_store_used: bool = False
    setting_store_used: bool = False
    shop_store_used: bool = False
    sql_file_store_used: bool = False
    stats_store_used: bool = False
    subscription_store_used: bool = False
    task_store_used: bool = False
    user_store_used: bool = False
    user_store_vault_enabled: bool = False
    vault_store_used: bool = False
    vault_store_key: str = ""


class TranslationSettings(_Group):
    default_language: str = TRANSLATION_LANGUAGE_DEFAULT
    language_list: Dict[str, str] = Field(default_factory=translation_language_list_default)

    @field_validator("default_language")
    @classmethod
    def _fallback_language(cls, value: str) -> str:
        value = value.strip()
        return value or TRANSLATION_LANGUAGE_DEFAULT

    @field_validator("language_list")
    @classmethod
    def _fallback_language_list(cls, value: Dict[str, str]) -> Dict[str, str]:
        return dict(value) if value else translation_language_list_default()


class Config(_Group):
    """Every recognised setting of the application."""

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    anthropic: LlmProviderSettings = Field(default_factory=LlmProviderSettings)
    gemini: LlmProviderSettings = Field(default_factory=LlmProviderSettings)
    openai: LlmProviderSettings = Field(default_factory=LlmProviderSettings)
    openrouter: LlmProviderSettings = Field(default_factory=LlmProviderSettings)
    vertex_ai: VertexAiSettings = Field(default_factory=VertexAiSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    env_encryption: EnvEncryptionSettings = Field(default_factory=EnvEncryptionSettings)
    stores: StoreSettings = Field(default_factory=StoreSettings)
    translation: TranslationSettings = Field(default_factory=TranslationSettings)

    @property
    def env_encryption_key(self) -> str:
        """Derived vault key, empty when env encryption is not used."""

        return self.env_encryption.derived_key

    @classmethod
    def for_testing(cls, *, database_name: str = ":memory:") -> "Config":
        """Return a minimal SQLite configuration with every store disabled."""

        return cls(
            app=AppSettings(env="testing", host="localhost", port=8080, debug=True),
            database=DatabaseSettings(driver="sqlite", name=database_name),
        )


__all__ = [
    "AppSettings",
    "AuthSettings",
    "Config",
    "DatabaseSettings",
    "EnvEncryptionSettings",
    "LlmProviderSettings",
    "MailSettings",
    "StoreSettings",
    "StripeSettings",
    "TranslationSettings",
    "VertexAiSettings",
]
