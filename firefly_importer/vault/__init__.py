"""Vault — Field-level encryption of configuration secrets.

Security Note (Threat Model):
    Decrypted credentials live in process memory for the lifetime of the
    run, and the master password lives there while keys are derived.
    A memory dump of the process could expose them. This is an accepted
    limitation; encrypted documents at rest are what this protects.
"""

from .crypto import (
    ENCRYPTED_PREFIX,
    derive_key,
    encrypt,
    decrypt,
    is_encrypted,
    is_envelope,
)
from .codec import (
    decrypt_tree,
    encrypt_sensitive_fields,
    list_sensitive_paths,
    has_encrypted_values,
    count_encrypted_fields,
    redact_sensitive_fields,
    is_sensitive_path,
)
from .config import VaultConfig, load_master_password
from .tool import EncryptionReport, encrypt_config_file, preview_config_file, encrypt_value

__all__ = [
    "ENCRYPTED_PREFIX",
    "derive_key",
    "encrypt",
    "decrypt",
    "is_encrypted",
    "is_envelope",
    "decrypt_tree",
    "encrypt_sensitive_fields",
    "list_sensitive_paths",
    "has_encrypted_values",
    "count_encrypted_fields",
    "redact_sensitive_fields",
    "is_sensitive_path",
    "VaultConfig",
    "load_master_password",
    "EncryptionReport",
    "encrypt_config_file",
    "preview_config_file",
    "encrypt_value",
]
