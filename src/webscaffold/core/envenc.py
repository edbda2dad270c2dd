"""Encrypted environment vaults (``.env.<env>.vault``).

The vault key is never stored. It is derived from a public key embedded in
this module and a private key supplied through ``ENVENC_KEY_PRIVATE``: both
are concatenated and hashed with SHA-256, the hex digest being the key.

Vault files contain base64 text of a PyNaCl ``SecretBox`` message whose
plaintext is a JSON object of string pairs. The pairs are overlaid into the
process environment before the remaining configuration is read.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
from importlib import resources
from pathlib import Path
from typing import Callable, Mapping, MutableMapping

import structlog
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

from ..exceptions import VaultError
from .constants import APP_ENVIRONMENT_TESTING, KEY_APP_ENVIRONMENT, KEY_ENVENC_KEY_PRIVATE

logger = structlog.get_logger(__name__)

# Replace with a random public key of at least 32 characters before enabling
# ENVENC_USED. The private half is supplied through the environment only.
ENVENC_KEY_PUBLIC = "YOUR_PUBLIC_KEY"

MIN_KEY_LENGTH = 32
RESOURCE_PACKAGE = "webscaffold.resources"

Deobfuscator = Callable[[str], str]


def _identity(value: str) -> str:
    return value


# Swapped by deployments that ship an obfuscated public key.
deobfuscate: Deobfuscator = _identity


def derive_key(
    public_key: str,
    private_key: str,
    *,
    deobfuscator: Deobfuscator | None = None,
) -> str:
    """Return the hex SHA-256 digest of ``public_key + private_key``."""

    if public_key == "":
        raise VaultError("envenc public key is empty")
    if private_key == "":
        raise VaultError("envenc private key is empty")

    reveal = deobfuscator or deobfuscate
    try:
        public = reveal(public_key)
    except Exception as exc:
        raise VaultError(f"failed to deobfuscate public key: {exc}") from exc

    if len(public) < MIN_KEY_LENGTH:
        raise VaultError("envenc public key is too short")
    if len(private_key) < MIN_KEY_LENGTH:
        raise VaultError("envenc private key is too short")

    return hashlib.sha256((public + private_key).encode("utf-8")).hexdigest()


def derive_env_encryption_key(private_key: str) -> str:
    """Derive the vault key using the embedded public key."""

    return derive_key(ENVENC_KEY_PUBLIC, private_key)


def vault_filename(app_env: str) -> str:
    return f".env.{app_env.strip().lower()}.vault"


def _box(derived_key: str) -> SecretBox:
    try:
        raw = bytes.fromhex(derived_key)
    except ValueError as exc:
        raise VaultError("vault key must be a hex string") from exc
    if len(raw) != SecretBox.KEY_SIZE:
        raise VaultError(f"vault key must be {SecretBox.KEY_SIZE} bytes, got {len(raw)}")
    return SecretBox(raw)


def encrypt_vault(values: Mapping[str, str], derived_key: str) -> str:
    """Seal ``values`` into vault text readable by :func:`decrypt_vault`."""

    payload = json.dumps({str(k): str(v) for k, v in values.items()}, sort_keys=True)
    sealed = _box(derived_key).encrypt(payload.encode("utf-8"))
    return base64.b64encode(bytes(sealed)).decode("ascii")


def decrypt_vault(content: str, derived_key: str) -> dict[str, str]:
    """Open vault text and return its key/value pairs."""

    try:
        sealed = base64.b64decode(content.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise VaultError("vault content is not valid base64") from exc
    try:
        plaintext = _box(derived_key).decrypt(sealed)
    except CryptoError as exc:
        raise VaultError("vault decryption failed: wrong key or corrupted vault") from exc
    try:
        data = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise VaultError("vault payload is not a JSON object") from exc
    if not isinstance(data, dict):
        raise VaultError("vault payload is not a JSON object")
    return {str(key): str(value) for key, value in data.items()}


def embedded_vault(name: str) -> str | None:
    """Return the embedded vault named ``name`` or ``None`` when absent."""

    try:
        resource = resources.files(RESOURCE_PACKAGE).joinpath(name)
    except ModuleNotFoundError:
        return None
    if not resource.is_file():
        return None
    return resource.read_text(encoding="utf-8")


def hydrate_environment(
    app_env: str,
    private_key: str,
    *,
    environ: MutableMapping[str, str] | None = None,
    search_dir: Path | None = None,
    resource_loader: Callable[[str], str | None] = embedded_vault,
    public_key: str | None = None,
) -> dict[str, str]:
    """Decrypt ``.env.<app_env>.vault`` and overlay it into ``environ``.

    The disk file is applied first and the embedded resource second, so an
    embedded vault wins when both exist. Returns the applied pairs.
    """

    target = os.environ if environ is None else environ

    if app_env.strip().lower() == APP_ENVIRONMENT_TESTING:
        return {}
    if not app_env.strip():
        raise VaultError(f"{KEY_APP_ENVIRONMENT} is required")
    private_key = private_key.strip()
    if not private_key:
        raise VaultError(f"{KEY_ENVENC_KEY_PRIVATE} is required")

    derived = derive_key(
        ENVENC_KEY_PUBLIC if public_key is None else public_key,
        private_key,
    )

    name = vault_filename(app_env)
    disk_path = (search_dir or Path.cwd()) / name
    sources: list[tuple[str, str]] = []
    if disk_path.is_file():
        sources.append((str(disk_path), disk_path.read_text(encoding="utf-8")))
    embedded = resource_loader(name)
    if embedded:
        sources.append((f"resource:{name}", embedded))

    if not sources:
        raise VaultError(f"vault {name} not found on disk or in embedded resources")

    applied: dict[str, str] = {}
    for origin, content in sources:
        values = decrypt_vault(content, derived)
        target.update(values)
        applied.update(values)
        logger.debug("envenc.vault.applied", source=origin, keys=len(values))
    return applied


__all__ = [
    "ENVENC_KEY_PUBLIC",
    "decrypt_vault",
    "deobfuscate",
    "derive_env_encryption_key",
    "derive_key",
    "embedded_vault",
    "encrypt_vault",
    "hydrate_environment",
    "vault_filename",
]
