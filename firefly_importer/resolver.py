"""
Configuration Resolver — Layered resolution of the runtime configuration.

Resolution is one linear pass over a single document:

    Defaulted -> FileLoaded -> EnvOverridden
        -> (DecryptionRequired -> Decrypted) -> Resolved

1. Built-in defaults, deep-merged under the user document.
2. Allow-listed environment overrides (connection, scheduling, logging).
3. Positional credential overrides: ``ACCOUNT_<i>_<FIELD>`` and
   ``ACCOUNT_<i>_SUB_<j>_<FIELD>``. These are plaintext and never pass
   through the cipher engine.
4. Required keys check.
5. If any leaf is encrypted, MASTER_PASSWORD is required and the whole
   document is decrypted. Any failure is fatal; there is no partially
   decrypted result.

Security Note:
    Only variable names, key names and states are logged. Never values.
"""
import os
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from .conf import (
    CONFIG_FILE_ENV,
    DEFAULT_CONFIG_FILE,
    ENV_OVERRIDES,
    ACCOUNTS_KEY,
    SUB_ACCOUNTS_KEY,
    ACCOUNT_ENV_PREFIX,
    ACCOUNT_CREDENTIAL_FIELDS,
    SUB_ACCOUNT_CREDENTIAL_FIELDS,
    REQUIRED_KEYS,
    DEFAULTS,
)
from .document import load_document, deep_merge, get_path, set_path
from .exceptions import (
    CipherError,
    DecryptionFailed,
    InvalidConfigValue,
    MissingRequiredConfig,
)
from .models import ResolvedConfig, validation_summary
from .vault.codec import decrypt_tree, has_encrypted_values
from .vault.config import VaultConfig

logger = logging.getLogger("firefly_importer.config")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ResolverState(str, Enum):
    DEFAULTED = "defaulted"
    FILE_LOADED = "file_loaded"
    ENV_OVERRIDDEN = "env_overridden"
    DECRYPTION_REQUIRED = "decryption_required"
    DECRYPTED = "decrypted"
    RESOLVED = "resolved"


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> str:
    """Config file path from CONFIG_FILE, or ``./config.yaml``."""
    env = os.environ if environ is None else environ
    return env.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE


def _parse_override(name: str, value: str, kind: str) -> Any:
    if kind == "bool":
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise InvalidConfigValue(f"{name} must be a boolean (true/false)")
    if kind == "int":
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise InvalidConfigValue(f"{name} must be an integer") from None
    return value


class ConfigResolver:
    """Resolves the runtime configuration for one process.

    Args:
        environ: Environment mapping, ``os.environ`` by default.
        defaults: Built-in defaults, ``conf.DEFAULTS`` by default.
        max_workers: Decrypt leaves on a thread pool of this size.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        defaults: Optional[dict] = None,
        max_workers: Optional[int] = None,
    ):
        self._env = os.environ if environ is None else environ
        self._defaults = DEFAULTS if defaults is None else defaults
        self._max_workers = max_workers
        self.state: Optional[ResolverState] = None

    def _transition(self, state: ResolverState) -> None:
        self.state = state
        logger.debug("Config resolver state: %s", state.value)

    def _env_value(self, name: str) -> Optional[str]:
        value = self._env.get(name)
        return value if value else None

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def load(self, path: Union[str, Path]) -> dict:
        """Defaults deep-merged with the document at ``path``.

        Raises:
            ConfigLoadError: If the document cannot be read or parsed.
        """
        self._transition(ResolverState.DEFAULTED)
        document = load_document(path)
        merged = deep_merge(self._defaults, document)
        self._transition(ResolverState.FILE_LOADED)
        return merged

    def apply_env_overrides(self, document: dict) -> dict:
        """Apply the allow-listed environment overrides in place.

        Only variables that are set and non-empty are applied.

        Raises:
            InvalidConfigValue: If a typed override cannot be parsed.
        """
        applied = []
        for name, (dotted, kind) in ENV_OVERRIDES.items():
            value = self._env_value(name)
            if value is None:
                continue
            set_path(document, dotted, _parse_override(name, value, kind))
            applied.append(name)
        if applied:
            logger.info("Applied environment overrides: %s", ", ".join(applied))
        return document

    def _override_credentials(
        self,
        entry: Any,
        prefix: str,
        fields: dict[str, str],
    ) -> list[str]:
        if not isinstance(entry, dict):
            return []
        applied = []
        for suffix, key in fields.items():
            name = f"{prefix}_{suffix}"
            value = self._env_value(name)
            if value is None:
                continue
            credentials = entry.get("credentials")
            if not isinstance(credentials, dict):
                credentials = {}
                entry["credentials"] = credentials
            credentials[key] = value
            applied.append(name)
        return applied

    def apply_credential_overrides(self, document: dict) -> dict:
        """Apply positional credential overrides in place.

        For each ``banks[i]`` present in the document, ``ACCOUNT_<i>_<FIELD>``
        replaces ``credentials.<field>``; for each ``banks[i].creditCards[j]``,
        ``ACCOUNT_<i>_SUB_<j>_<FIELD>`` does the same.
        """
        accounts = document.get(ACCOUNTS_KEY)
        if not isinstance(accounts, list):
            return document
        applied = []
        for index, account in enumerate(accounts):
            prefix = f"{ACCOUNT_ENV_PREFIX}_{index}"
            applied += self._override_credentials(account, prefix, ACCOUNT_CREDENTIAL_FIELDS)
            subs = account.get(SUB_ACCOUNTS_KEY) if isinstance(account, dict) else None
            if not isinstance(subs, list):
                continue
            for position, sub in enumerate(subs):
                applied += self._override_credentials(
                    sub, f"{prefix}_SUB_{position}", SUB_ACCOUNT_CREDENTIAL_FIELDS,
                )
        if applied:
            logger.info("Applied credential overrides: %s", ", ".join(applied))
        return document

    def validate_required(self, document: dict) -> None:
        """Raises MissingRequiredConfig naming the first missing key."""
        for key in REQUIRED_KEYS:
            if get_path(document, key) is None:
                raise MissingRequiredConfig(key)

    def decrypt(self, document: dict) -> dict:
        """Decrypt the document if it holds any encrypted value.

        Raises:
            MasterSecretRequired: If encrypted values exist and no
                MASTER_PASSWORD is set.
            DecryptionFailed: If any value fails to decrypt.
            InvalidConfigValue: If max_workers is out of range.
        """
        try:
            encrypted = has_encrypted_values(document)
        except TypeError as exc:
            raise InvalidConfigValue(str(exc)) from exc
        if not encrypted:
            return document
        self._transition(ResolverState.DECRYPTION_REQUIRED)
        try:
            vault = VaultConfig.from_env(self._env, max_workers=self._max_workers)
        except ValidationError as exc:
            raise InvalidConfigValue(
                f"Invalid vault settings: {validation_summary(exc)}"
            ) from None
        try:
            decrypted = decrypt_tree(
                document,
                vault.master_password.get_secret_value(),
                max_workers=vault.max_workers,
            )
        except CipherError as err:
            raise DecryptionFailed(
                f"Failed to decrypt credentials: {err}\n"
                "Please verify your MASTER_PASSWORD is correct."
            ) from err
        self._transition(ResolverState.DECRYPTED)
        logger.info("Encrypted credentials decrypted")
        return decrypted

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_document(self, path: Union[str, Path]) -> dict:
        """Run the whole pipeline and return the plaintext document."""
        document = self.load(path)
        self.apply_env_overrides(document)
        self.apply_credential_overrides(document)
        self._transition(ResolverState.ENV_OVERRIDDEN)
        self.validate_required(document)
        return self.decrypt(document)

    def resolve(self, path: Union[str, Path]) -> ResolvedConfig:
        """Run the whole pipeline and return the frozen runtime configuration.

        Raises:
            ConfigError: On any failure; nothing partial is returned.
        """
        document = self.resolve_document(path)
        try:
            config = ResolvedConfig.model_validate(document)
        except ValidationError as exc:
            raise InvalidConfigValue(
                f"Invalid configuration: {validation_summary(exc)}"
            ) from None
        self._transition(ResolverState.RESOLVED)
        logger.info(
            "Config snapshot (startDate/timeout only): %s",
            config.snapshot(str(path)),
        )
        return config


def resolve_config(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
    max_workers: Optional[int] = None,
) -> ResolvedConfig:
    """Resolve the runtime configuration from ``path`` (or CONFIG_FILE)."""
    resolver = ConfigResolver(environ=environ, max_workers=max_workers)
    return resolver.resolve(path or default_config_path(environ))


def resolve_document(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
    max_workers: Optional[int] = None,
) -> dict:
    """Resolve the plaintext configuration tree from ``path`` (or CONFIG_FILE)."""
    resolver = ConfigResolver(environ=environ, max_workers=max_workers)
    return resolver.resolve_document(path or default_config_path(environ))
