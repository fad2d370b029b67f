"""
Vault Encryption Tool — Produce encrypted configuration artifacts.

Operator workflow:
    1. ``preview_config_file(path)`` lists the fields that will be encrypted,
       so the operator can confirm the scope first.
    2. ``encrypt_config_file(src, dst, password)`` writes a new document with
       those fields encrypted. The source file is never overwritten.
    3. ``encrypt_value(value, password)`` encrypts a single value for manual
       insertion into a document.

Security Note:
    Never log the master password or field values. Only paths and counts.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..document import load_document, write_document
from ..exceptions import InvalidInput
from .codec import (
    count_encrypted_fields,
    encrypt_sensitive_fields,
    list_sensitive_paths,
)
from .config import check_master_password_strength
from .crypto import encrypt

logger = logging.getLogger("firefly_importer.vault")

PathLike = Union[str, Path]


@dataclass
class EncryptionReport:
    """Outcome of an :func:`encrypt_config_file` run."""

    output_path: Optional[Path]
    paths: list[str] = field(default_factory=list)
    encrypted_count: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.paths)


def preview_config_file(path: PathLike) -> list[str]:
    """Paths of the plaintext sensitive fields in the document at ``path``."""
    return list_sensitive_paths(load_document(path))


def encrypt_config_file(
    input_path: PathLike,
    output_path: PathLike,
    password: str,
    max_workers: Optional[int] = None,
) -> EncryptionReport:
    """Encrypt the sensitive fields of a document into a new file.

    Nothing is written when the document has no plaintext sensitive field.

    Args:
        input_path: Plaintext (or partially encrypted) document.
        output_path: Destination of the encrypted document.
        password: Master password, at least 8 characters.
        max_workers: Encrypt leaves on a thread pool of this size.

    Returns:
        EncryptionReport with the encrypted paths and total encrypted count.

    Raises:
        InvalidInput: If the password is too short or output_path is input_path.
        ConfigLoadError: If the input document cannot be read.
    """
    check_master_password_strength(password)
    source, target = Path(input_path), Path(output_path)
    if target.exists() and source.exists() and target.resolve() == source.resolve():
        raise InvalidInput("Output file must differ from the input file")

    document = load_document(source)
    paths = list_sensitive_paths(document)
    if not paths:
        logger.info("No sensitive fields to encrypt in '%s'", source)
        return EncryptionReport(
            output_path=None,
            encrypted_count=count_encrypted_fields(document),
        )

    logger.info("Encrypting %d sensitive field(s) from '%s'", len(paths), source)
    encrypted = encrypt_sensitive_fields(document, password, max_workers=max_workers)
    write_document(encrypted, target)
    report = EncryptionReport(
        output_path=target,
        paths=paths,
        encrypted_count=count_encrypted_fields(encrypted),
    )
    logger.info(
        "Encrypted %d sensitive field(s); output written to '%s'",
        report.encrypted_count, target,
    )
    return report


def encrypt_value(value: str, password: str) -> str:
    """Encrypt a single value for manual insertion into a document.

    Raises:
        InvalidInput: If value is empty or the password is too short.
    """
    check_master_password_strength(password)
    return encrypt(value, password)
