"""Firefly Importer exceptions.

Two families: cipher errors raised by the vault primitives, and
configuration errors raised while resolving the runtime configuration.
None of them carry secrets, derived keys or decrypted values.
"""


class FireflyImporterError(Exception):
    """Base class for every error raised by this package."""


class CipherError(FireflyImporterError):
    """Raised by the vault cipher engine."""


class InvalidInput(CipherError, ValueError):
    """Empty (or non-string) plaintext or master secret."""


class NotEncrypted(CipherError, ValueError):
    """Decrypt was called on a value without an envelope prefix."""


class AuthenticationFailed(CipherError):
    """Wrong secret, or corrupted/tampered ciphertext.

    Intentionally generic: callers cannot tell which one happened.
    """

    def __init__(self, message: str = "Decryption failed: invalid master password or corrupted data"):
        super().__init__(message)


class UnsupportedFormatVersion(CipherError):
    """The envelope carries a version tag this build cannot read."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Unsupported encrypted value format version: {version}")


class ConfigError(FireflyImporterError):
    """Raised while resolving the runtime configuration."""


class ConfigLoadError(ConfigError):
    """The configuration document could not be read or parsed."""


class MissingRequiredConfig(ConfigError):
    """A required configuration key is absent."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Missing required configuration key: {key}")


class MasterSecretRequired(ConfigError):
    """Encrypted values were found but no master secret was supplied."""


class DecryptionFailed(ConfigError):
    """Decryption of the configuration failed; nothing was decrypted."""


class InvalidConfigValue(ConfigError):
    """A configuration value (or environment override) has the wrong shape."""
