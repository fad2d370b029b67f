"""Firefly Importer.

Configuration security layer for the bank importer: encrypted credential
fields and layered resolution of the runtime configuration.
"""
from .version import __version__
from .exceptions import (
    FireflyImporterError,
    CipherError,
    InvalidInput,
    NotEncrypted,
    AuthenticationFailed,
    UnsupportedFormatVersion,
    ConfigError,
    ConfigLoadError,
    MissingRequiredConfig,
    MasterSecretRequired,
    DecryptionFailed,
    InvalidConfigValue,
)
from .models import ResolvedConfig
from .resolver import ConfigResolver, ResolverState, resolve_config, resolve_document

__all__ = [
    "__version__",
    "FireflyImporterError",
    "CipherError",
    "InvalidInput",
    "NotEncrypted",
    "AuthenticationFailed",
    "UnsupportedFormatVersion",
    "ConfigError",
    "ConfigLoadError",
    "MissingRequiredConfig",
    "MasterSecretRequired",
    "DecryptionFailed",
    "InvalidConfigValue",
    "ResolvedConfig",
    "ConfigResolver",
    "ResolverState",
    "resolve_config",
    "resolve_document",
]
