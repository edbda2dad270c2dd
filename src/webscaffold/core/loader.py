"""Build a :class:`Config` from the process environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, MutableMapping

import structlog
from dotenv import dotenv_values
from pydantic import ValidationError

from ..exceptions import ConfigError, InvalidEnvError, VaultError
from . import envenc
from .accumulator import LoadAccumulator
from .config import Config
from .constants import APP_ENVIRONMENTS, KEY_APP_ENVIRONMENT, KEY_USER_STORE_USE_VAULT, KEY_VAULT_STORE_USED
from .variables import EnvVariable, VariableKind, bootstrap_variables, parse_bool, remaining_variables

logger = structlog.get_logger(__name__)

DEFAULT_ENV_FILE = ".env"


def preload_env_file(environ: MutableMapping[str, str], path: str | Path | None) -> int:
    """Copy ``path`` entries into ``environ`` without overriding existing keys.

    A missing file is not an error. Returns the number of keys added.
    """

    if path is None:
        return 0
    env_path = Path(path)
    if not env_path.is_file():
        return 0

    added = 0
    for key, value in dotenv_values(env_path).items():
        if value is None or key in environ:
            continue
        environ[key] = value
        added += 1
    logger.debug("config.env_file.loaded", path=str(env_path), keys=added)
    return added


def _convert(variable: EnvVariable, value: str) -> object | None:
    """Return the value to assign, or ``None`` to keep the model default.

    Blank values keep the default. Booleans use the loader's truthy set; every
    other kind is handed to the pydantic group, which coerces it on assignment.
    """

    if not value.strip():
        return None
    if variable.kind is VariableKind.BOOL:
        return parse_bool(value)
    return value


def _read(variable: EnvVariable, environ: MutableMapping[str, str], acc: LoadAccumulator) -> str | None:
    """Return the raw value, or ``None`` after recording a missing required key."""

    if variable.required and not variable.preserve_whitespace:
        value = acc.must_string(variable.key, variable.message)
        return value or None

    raw = environ.get(variable.key, "")
    if acc.must_when(variable.is_required(environ), variable.key, variable.message, raw):
        return None
    return raw if variable.preserve_whitespace else raw.strip()


def apply_variables(
    cfg: Config,
    variables: Iterable[EnvVariable],
    environ: MutableMapping[str, str],
    acc: LoadAccumulator,
) -> None:
    """Read, validate and assign each variable, collecting every failure."""

    for variable in variables:
        value = _read(variable, environ, acc)
        if value is None:
            continue

        converted = _convert(variable, value)
        if converted is None:
            continue

        try:
            variable.assign(cfg, converted)
        except ValidationError as exc:
            acc.add(InvalidEnvError(variable.key, value, exc.errors()[0]["msg"]))


def _apply_env_encryption(
    cfg: Config,
    environ: MutableMapping[str, str],
    acc: LoadAccumulator,
    *,
    vault_dir: Path | None,
    resource_loader: Callable[[str], str | None],
) -> None:
    private_key = cfg.env_encryption.private_key
    if not private_key:
        return

    try:
        cfg.env_encryption.derived_key = envenc.derive_env_encryption_key(private_key)
    except VaultError as exc:
        acc.add(exc)
        return

    try:
        applied = envenc.hydrate_environment(
            cfg.app.env,
            private_key,
            environ=environ,
            search_dir=vault_dir,
            resource_loader=resource_loader,
        )
    except VaultError as exc:
        acc.add(exc)
        return
    if applied:
        logger.info("config.vault.hydrated", env=cfg.app.env, keys=len(applied))


def _check_cross_fields(cfg: Config, acc: LoadAccumulator) -> None:
    env_tag = cfg.app.env
    if env_tag and env_tag.lower() not in APP_ENVIRONMENTS:
        acc.add(
            InvalidEnvError(
                KEY_APP_ENVIRONMENT,
                env_tag,
                "expected one of " + ", ".join(sorted(APP_ENVIRONMENTS)),
            )
        )

    if cfg.stores.user_store_vault_enabled and not cfg.stores.vault_store_used:
        acc.add(ConfigError(f"config: {KEY_USER_STORE_USE_VAULT} requires {KEY_VAULT_STORE_USED} to be true"))


def load_config(
    environ: MutableMapping[str, str] | None = None,
    *,
    env_file: str | Path | None = DEFAULT_ENV_FILE,
    vault_dir: Path | None = None,
    resource_loader: Callable[[str], str | None] = envenc.embedded_vault,
) -> Config:
    """Load and validate the configuration.

    The environment is read in two passes. App and env-encryption settings
    come first; when ``ENVENC_USED`` is true the vault for ``APP_ENV`` is
    decrypted into ``environ`` before every other section is read, so vault
    values feed the rest of the config.

    Raises :class:`ConfigValidationError` listing every problem found.
    """

    env = os.environ if environ is None else environ
    preload_env_file(env, env_file)

    acc = LoadAccumulator(env)
    cfg = Config()

    apply_variables(cfg, bootstrap_variables(), env, acc)
    if cfg.env_encryption.used:
        _apply_env_encryption(cfg, env, acc, vault_dir=vault_dir, resource_loader=resource_loader)
    apply_variables(cfg, remaining_variables(), env, acc)
    _check_cross_fields(cfg, acc)

    error = acc.err()
    if error is not None:
        logger.warning("config.load.failed", errors=len(acc))
        raise error

    logger.debug("config.loaded", env=cfg.app.env, driver=cfg.database.driver)
    return cfg


__all__ = ["DEFAULT_ENV_FILE", "apply_variables", "load_config", "preload_env_file"]
