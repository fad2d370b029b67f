"""
Vault Configuration — Master password loading and validated settings.

Reads the master password from the environment:
    MASTER_PASSWORD = <passphrase>

Security Note:
    Never log the master password. It is held as a ``SecretStr`` so that
    ``repr()`` and log records only ever show a mask.
"""
import os
import logging
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

from ..conf import MASTER_PASSWORD_ENV, MIN_MASTER_PASSWORD_LENGTH
from ..exceptions import MasterSecretRequired, InvalidInput

logger = logging.getLogger("firefly_importer.vault")


def load_master_password(environ: Optional[Mapping[str, str]] = None) -> Optional[SecretStr]:
    """Read the master password from the environment.

    Args:
        environ: Environment mapping, ``os.environ`` by default.

    Returns:
        The password wrapped in ``SecretStr``, or None if unset or empty.
    """
    env = os.environ if environ is None else environ
    value = env.get(MASTER_PASSWORD_ENV)
    if not value:
        return None
    return SecretStr(value)


def check_master_password_strength(password: str) -> None:
    """Reject master passwords too short to protect a new artifact.

    Raises:
        InvalidInput: If password is shorter than the minimum length.
    """
    if len(password) < MIN_MASTER_PASSWORD_LENGTH:
        raise InvalidInput(
            f"Password must be at least {MIN_MASTER_PASSWORD_LENGTH} characters long"
        )


class VaultConfig(BaseModel):
    """Validated vault settings for one resolution pass."""

    master_password: SecretStr
    max_workers: Optional[int] = Field(default=None, ge=1, le=64)

    model_config = {"frozen": True}

    @field_validator("master_password")
    @classmethod
    def validate_password(cls, v: SecretStr) -> SecretStr:
        """Master password cannot be empty."""
        if not v.get_secret_value():
            raise ValueError("master password cannot be empty")
        return v

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        max_workers: Optional[int] = None,
    ) -> "VaultConfig":
        """Create VaultConfig from the environment.

        Raises:
            MasterSecretRequired: If MASTER_PASSWORD is not set.
        """
        password = load_master_password(environ)
        if password is None:
            raise MasterSecretRequired(
                "Encrypted credentials detected but MASTER_PASSWORD environment "
                "variable is not set.\n"
                "Please set MASTER_PASSWORD to decrypt credentials."
            )
        logger.debug("Master password loaded from %s", MASTER_PASSWORD_ENV)
        return cls(master_password=password, max_workers=max_workers)
