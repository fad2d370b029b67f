"""
Tests for the vault tree codec.

Tests cover:
- Sensitivity predicates and path building
- Selective encryption, idempotence and shape preservation
- Whole-tree decryption (sequential and on a thread pool)
- Preview, detection, counting and redaction helpers
"""
import copy

import pytest

from firefly_importer.exceptions import AuthenticationFailed, UnsupportedFormatVersion
from firefly_importer.vault.codec import (
    REDACTED,
    count_encrypted_fields,
    decrypt_tree,
    encrypt_sensitive_fields,
    has_encrypted_values,
    is_sensitive_path,
    list_sensitive_paths,
    redact_sensitive_fields,
)
from firefly_importer.vault.crypto import encrypt, is_encrypted


class TestSensitivePaths:
    """Tests for is_sensitive_path."""

    @pytest.mark.parametrize("path", [
        "banks[0].credentials.password",
        "banks[0].credentials.username",
        "banks[0].creditCards[1].credentials.card6Digits",
        "banks[0].credentials",
        "credentials.username",
        "firefly.tokenApi",
        "tokenApi",
        "service.token",
        "service.secret",
        "service.apiKey",
        "db.password",
    ])
    def test_sensitive(self, path):
        assert is_sensitive_path(path) is True

    @pytest.mark.parametrize("path", [
        "name",
        "banks[0].type",
        "banks[0].name",
        "firefly.baseUrl",
        "cron",
        "service.tokenApiUrl",
        "mycredentials.user",
        "service.passwordHint",
    ])
    def test_not_sensitive(self, path):
        assert is_sensitive_path(path) is False


class TestEncryptSensitiveFields:
    """Tests for encrypt_sensitive_fields."""

    def test_path_targeting(self, master_password):
        document = {"credentials": {"username": "u", "password": "p"}, "name": "n"}
        result = encrypt_sensitive_fields(document, master_password)
        assert is_encrypted(result["credentials"]["username"])
        assert is_encrypted(result["credentials"]["password"])
        assert result["name"] == "n"

    def test_nested_document(self, plain_document, master_password):
        result = encrypt_sensitive_fields(plain_document, master_password)
        bank = result["banks"][0]
        assert is_encrypted(result["firefly"]["tokenApi"])
        assert result["firefly"]["baseUrl"] == "https://firefly.example.test"
        assert is_encrypted(bank["credentials"]["username"])
        assert is_encrypted(bank["creditCards"][0]["credentials"]["card6Digits"])
        assert bank["type"] == "leumi"
        assert bank["creditCards"][0]["startDate"] == "2024-01-01"
        assert result["banks"][1]["timeout"] == 120000
        assert result["cron"] == "0 6 * * *"

    def test_input_not_mutated(self, plain_document, master_password):
        original = copy.deepcopy(plain_document)
        encrypt_sensitive_fields(plain_document, master_password)
        assert plain_document == original

    def test_idempotent(self, plain_document, master_password):
        first = encrypt_sensitive_fields(plain_document, master_password)
        second = encrypt_sensitive_fields(first, master_password)
        assert second == first

    def test_blank_and_non_string_leaves_untouched(self, master_password):
        document = {"credentials": {"password": "   ", "id": 123456789, "otp": None, "remember": True}}
        result = encrypt_sensitive_fields(document, master_password)
        assert result == document

    def test_other_envelope_versions_untouched(self, master_password):
        document = {"firefly": {"tokenApi": "encrypted:v2:AAAA"}}
        assert encrypt_sensitive_fields(document, master_password) == document

    def test_base_path(self, master_password):
        result = encrypt_sensitive_fields({"password": "p", "user": "u"}, master_password, path="db")
        assert is_encrypted(result["password"])
        assert result["user"] == "u"

    def test_thread_pool(self, plain_document, master_password):
        result = encrypt_sensitive_fields(plain_document, master_password, max_workers=4)
        assert list_sensitive_paths(result) == []
        assert decrypt_tree(result, master_password) == plain_document

    def test_unsupported_node_type(self, master_password):
        with pytest.raises(TypeError):
            encrypt_sensitive_fields({"credentials": {"password": b"bytes"}}, master_password)

    def test_non_string_key(self, master_password):
        with pytest.raises(TypeError):
            encrypt_sensitive_fields({1: "value"}, master_password)


class TestDecryptTree:
    """Tests for decrypt_tree."""

    def test_round_trip(self, plain_document, master_password):
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        assert decrypt_tree(encrypted, master_password) == plain_document

    def test_round_trip_thread_pool(self, plain_document, master_password):
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        assert decrypt_tree(encrypted, master_password, max_workers=8) == plain_document

    def test_decrypts_any_path(self, master_password):
        """Decryption does not depend on the sensitivity predicates."""
        document = {"notes": [encrypt("hello", master_password), 7, None]}
        assert decrypt_tree(document, master_password) == {"notes": ["hello", 7, None]}

    def test_plaintext_passthrough(self, master_password):
        document = {"a": [1, 2.5, False, None, "text"], "b": {}}
        assert decrypt_tree(document, master_password) == document

    def test_wrong_secret(self, plain_document, master_password):
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        with pytest.raises(AuthenticationFailed):
            decrypt_tree(encrypted, "wrong-secret")

    def test_wrong_secret_thread_pool(self, plain_document, master_password):
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        with pytest.raises(AuthenticationFailed):
            decrypt_tree(encrypted, "wrong-secret", max_workers=4)

    def test_unknown_version_fails_closed(self, master_password):
        with pytest.raises(UnsupportedFormatVersion):
            decrypt_tree({"tokenApi": "encrypted:v9:AAAA"}, master_password)


class TestHelpers:
    """Tests for preview, detection, counting and redaction."""

    def test_list_sensitive_paths(self, plain_document):
        assert list_sensitive_paths(plain_document) == [
            "firefly.tokenApi",
            "banks[0].credentials.username",
            "banks[0].credentials.password",
            "banks[0].creditCards[0].credentials.id",
            "banks[0].creditCards[0].credentials.card6Digits",
            "banks[0].creditCards[0].credentials.password",
            "banks[1].credentials.userCode",
            "banks[1].credentials.password",
        ]

    def test_list_skips_encrypted(self, plain_document, master_password):
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        assert list_sensitive_paths(encrypted) == []

    def test_has_encrypted_values(self, plain_document, master_password):
        assert has_encrypted_values(plain_document) is False
        assert has_encrypted_values({"a": [{"b": encrypt("x", master_password)}]}) is True
        assert has_encrypted_values("encrypted:v2:AAAA") is True

    def test_count_encrypted_fields(self, plain_document, master_password):
        assert count_encrypted_fields(plain_document) == 0
        encrypted = encrypt_sensitive_fields(plain_document, master_password)
        assert count_encrypted_fields(encrypted) == 8

    def test_redact(self, plain_document, master_password):
        document = copy.deepcopy(plain_document)
        document["notes"] = encrypt("hidden", master_password)
        redacted = redact_sensitive_fields(document)
        assert redacted["firefly"]["tokenApi"] == REDACTED
        assert redacted["banks"][0]["credentials"] == {"username": REDACTED, "password": REDACTED}
        assert redacted["notes"] == REDACTED
        assert redacted["banks"][0]["name"] == "Main account"
        assert redacted["firefly"]["baseUrl"] == "https://firefly.example.test"
