"""Environment variable names and fixed values used by the config loader."""

from __future__ import annotations

# App environments
APP_ENVIRONMENT_DEVELOPMENT = "development"
APP_ENVIRONMENT_LOCAL = "local"
APP_ENVIRONMENT_PRODUCTION = "production"
APP_ENVIRONMENT_STAGING = "staging"
APP_ENVIRONMENT_TESTING = "testing"

APP_ENVIRONMENTS = frozenset(
    {
        APP_ENVIRONMENT_DEVELOPMENT,
        APP_ENVIRONMENT_LOCAL,
        APP_ENVIRONMENT_PRODUCTION,
        APP_ENVIRONMENT_STAGING,
        APP_ENVIRONMENT_TESTING,
    }
)

DRIVER_SQLITE = "sqlite"

# App
KEY_APP_NAME = "APP_NAME"
KEY_APP_TYPE = "APP_TYPE"
KEY_APP_URL = "APP_URL"
KEY_APP_ENVIRONMENT = "APP_ENV"
KEY_APP_HOST = "APP_HOST"
KEY_APP_PORT = "APP_PORT"
KEY_APP_DEBUG = "APP_DEBUG"

# Database
KEY_DB_DRIVER = "DB_DRIVER"
KEY_DB_HOST = "DB_HOST"
KEY_DB_PORT = "DB_PORT"
KEY_DB_DATABASE = "DB_DATABASE"
KEY_DB_USERNAME = "DB_USERNAME"
KEY_DB_PASSWORD = "DB_PASSWORD"
KEY_DB_SSL_MODE = "DB_SSL_MODE"

# Mail
KEY_MAIL_DRIVER = "MAIL_DRIVER"
KEY_MAIL_HOST = "MAIL_HOST"
KEY_MAIL_PORT = "MAIL_PORT"
KEY_MAIL_USERNAME = "MAIL_USERNAME"
KEY_MAIL_PASSWORD = "MAIL_PASSWORD"
KEY_EMAIL_FROM_ADDRESS = "EMAIL_FROM_ADDRESS"
KEY_EMAIL_FROM_NAME = "EMAIL_FROM_NAME"

# Auth
KEY_AUTH_REGISTRATION_ENABLED = "AUTH_REGISTRATION_ENABLED"

# Env encryption
KEY_ENVENC_USED = "ENVENC_USED"
KEY_ENVENC_KEY_PRIVATE = "ENVENC_KEY_PRIVATE"

# LLM providers
KEY_ANTHROPIC_API_USED = "ANTHROPIC_API_USED"
KEY_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
KEY_ANTHROPIC_API_DEFAULT_MODEL = "ANTHROPIC_API_DEFAULT_MODEL"

KEY_GEMINI_API_USED = "GEMINI_API_USED"
KEY_GEMINI_API_KEY = "GEMINI_API_KEY"
KEY_GEMINI_API_DEFAULT_MODEL = "GEMINI_API_DEFAULT_MODEL"

KEY_OPENAI_API_USED = "OPENAI_API_USED"
KEY_OPENAI_API_KEY = "OPENAI_API_KEY"
KEY_OPENAI_API_DEFAULT_MODEL = "OPENAI_API_DEFAULT_MODEL"

KEY_OPENROUTER_API_USED = "OPENROUTER_API_USED"
KEY_OPENROUTER_API_KEY = "OPENROUTER_API_KEY"
KEY_OPENROUTER_API_DEFAULT_MODEL = "OPENROUTER_API_DEFAULT_MODEL"

KEY_VERTEX_AI_API_USED = "VERTEX_AI_API_USED"
KEY_VERTEX_AI_API_PROJECT_ID = "VERTEX_AI_API_PROJECT_ID"
KEY_VERTEX_AI_API_REGION_ID = "VERTEX_AI_API_REGION_ID"
KEY_VERTEX_AI_API_MODEL_ID = "VERTEX_AI_API_MODEL_ID"
KEY_VERTEX_AI_API_DEFAULT_MODEL = "VERTEX_AI_API_DEFAULT_MODEL"

# Payments
KEY_STRIPE_KEY_PRIVATE = "STRIPE_KEY_PRIVATE"
KEY_STRIPE_KEY_PUBLIC = "STRIPE_KEY_PUBLIC"

# Stores
KEY_AUDIT_STORE_USED = "AUDIT_STORE_USED"
KEY_BLOG_STORE_USED = "BLOG_STORE_USED"
KEY_CACHE_STORE_USED = "CACHE_STORE_USED"
KEY_CHAT_STORE_USED = "CHAT_STORE_USED"
KEY_CMS_STORE_USED = "CMS_STORE_USED"
KEY_CMS_STORE_TEMPLATE_ID = "CMS_STORE_TEMPLATE_ID"
KEY_CUSTOM_STORE_USED = "CUSTOM_STORE_USED"
KEY_ENTITY_STORE_USED = "ENTITY_STORE_USED"
KEY_FEED_STORE_USED = "FEED_STORE_USED"
KEY_GEO_STORE_USED = "GEO_STORE_USED"
KEY_LOG_STORE_USED = "LOG_STORE_USED"
KEY_META_STORE_USED = "META_STORE_USED"
KEY_SESSION_STORE_USED = "SESSION_STORE_USED"
KEY_SETTING_STORE_USED = "SETTING_STORE_USED"
KEY_SHOP_STORE_USED = "SHOP_STORE_USED"
KEY_SQL_FILE_STORE_USED = "SQL_FILE_STORE_USED"
KEY_STATS_STORE_USED = "STATS_STORE_USED"
KEY_SUBSCRIPTION_STORE_USED = "SUBSCRIPTION_STORE_USED"
KEY_TASK_STORE_USED = "TASK_STORE_USED"
KEY_USER_STORE_USED = "USER_STORE_USED"
KEY_USER_STORE_USE_VAULT = "USER_STORE_USE_VAULT"
KEY_VAULT_STORE_USED = "VAULT_STORE_USED"
KEY_VAULT_STORE_KEY = "VAULT_STORE_KEY"

# i18n
KEY_TRANSLATION_LANGUAGE_DEFAULT = "TRANSLATION_LANGUAGE_DEFAULT"

TRANSLATION_LANGUAGE_DEFAULT = "en"


def translation_language_list_default() -> dict[str, str]:
    return {
        "en": "English",
        "bg": "Bulgarian",
        "de": "German",
    }

