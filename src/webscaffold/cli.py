"""Process entry point: ``python -m webscaffold [command]``."""

from __future__ import annotations

import argparse
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, MutableMapping, Sequence

from dotenv import dotenv_values

from .core import envenc
from .core.config import Config
from .core.constants import KEY_APP_DEBUG, KEY_ENVENC_KEY_PRIVATE
from .core.loader import DEFAULT_ENV_FILE, load_config
from .core.variables import parse_bool
from .exceptions import AppError, VaultError
from .logging import configure_logging
from .registry import close_registry, create_registry

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass(slots=True)
class CommandContext:
    args: argparse.Namespace
    environ: MutableMapping[str, str]


def _load(ctx: CommandContext) -> Config:
    return load_config(ctx.environ, env_file=ctx.args.env_file)


def cmd_check_config(ctx: CommandContext) -> int:
    config = _load(ctx)
    print(f"config ok: env={config.app.env} driver={config.database.driver}")
    return EXIT_OK


def cmd_migrate(ctx: CommandContext) -> int:
    config = _load(ctx)
    registry = create_registry(config)
    try:
        stores = [store_id.value for store_id in registry.enabled_stores]
    finally:
        close_registry(registry)
    print(f"migrated {len(stores)} stores: {', '.join(stores) or '-'}")
    return EXIT_OK


def cmd_serve(ctx: CommandContext) -> int:
    import uvicorn

    from .core.app import create_app

    config = _load(ctx)
    configure_logging(debug=config.app.debug)
    host = config.app.host or "127.0.0.1"
    port = config.app.port or 8080
    registry = create_registry(config)
    try:
        app = create_app(registry)
        uvicorn.run(app, host=host, port=port, log_level="info")
    finally:
        close_registry(registry)
    return EXIT_OK


def cmd_vault_encrypt(ctx: CommandContext) -> int:
    """Seal a plain env file into ``.env.<env>.vault``."""

    args = ctx.args
    source = Path(args.input)
    if not source.is_file():
        raise VaultError(f"vault: input file {source} does not exist")
    private_key = ctx.environ.get(KEY_ENVENC_KEY_PRIVATE, "").strip()
    if not private_key:
        raise VaultError(f"{KEY_ENVENC_KEY_PRIVATE} is required")

    derived = envenc.derive_env_encryption_key(private_key)
    values = {key: value for key, value in dotenv_values(source).items() if value is not None}
    target = Path(args.output) if args.output else Path(envenc.vault_filename(args.env))
    target.write_text(envenc.encrypt_vault(values, derived), encoding="utf-8")
    print(f"wrote {len(values)} values to {target}")
    return EXIT_OK


COMMANDS: dict[str, Callable[[CommandContext], int]] = {
    "serve": cmd_serve,
    "migrate": cmd_migrate,
    "check-config": cmd_check_config,
    "vault-encrypt": cmd_vault_encrypt,
}


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="webscaffold", description="Run or maintain the web application.")
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE, help="Optional .env file read before the environment.")
    parser.add_argument("--debug", action="store_true", help="Print tracebacks on failure.")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Boot the registry and serve HTTP (default).")
    sub.add_parser("migrate", help="Boot the registry, migrate every enabled store and exit.")
    sub.add_parser("check-config", help="Load and validate the configuration only.")
    encrypt = sub.add_parser("vault-encrypt", help="Encrypt a plain env file into a vault.")
    encrypt.add_argument("--input", required=True, help="Plain env file to encrypt.")
    encrypt.add_argument("--env", required=True, help="Target APP_ENV, e.g. production.")
    encrypt.add_argument("--output", help="Vault path; defaults to .env.<env>.vault.")
    args = parser.parse_args(list(argv))
    if args.command is None:
        args.command = "serve"
    return args


def main(argv: Sequence[str] | None = None, environ: MutableMapping[str, str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    env = os.environ if environ is None else environ
    ctx = CommandContext(args=args, environ=env)
    try:
        return COMMANDS[args.command](ctx)
    except AppError as exc:
        print(str(exc), file=sys.stderr)
        if args.debug or parse_bool(env.get(KEY_APP_DEBUG, "")):
            traceback.print_exc(file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
