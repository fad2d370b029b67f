"""Shared fixtures for the firefly_importer test-suite."""
import pytest

from firefly_importer.vault import crypto


MASTER_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fast_kdf(request, monkeypatch):
    """Lower the PBKDF2 iteration count unless a test asks for the real one."""
    if request.node.get_closest_marker("real_kdf") is None:
        monkeypatch.setattr(crypto, "PBKDF2_ITERATIONS", 1_000)


@pytest.fixture
def master_password():
    return MASTER_PASSWORD


@pytest.fixture
def plain_document():
    """A plaintext configuration document."""
    return {
        "firefly": {
            "baseUrl": "https://firefly.example.test",
            "tokenApi": "firefly-token",
        },
        "cron": "0 6 * * *",
        "banks": [
            {
                "type": "leumi",
                "name": "Main account",
                "credentials": {"username": "alice", "password": "fileval"},
                "creditCards": [
                    {
                        "type": "isracard",
                        "credentials": {"id": "123456789", "card6Digits": "123456", "password": "cc-pass"},
                        "startDate": "2024-01-01",
                    },
                ],
            },
            {
                "type": "hapoalim",
                "credentials": {"userCode": "bob", "password": "hp-pass"},
                "timeout": 120000,
            },
        ],
    }


@pytest.fixture
def write_config(tmp_path):
    """Write a document to a temporary YAML file and return its path."""
    from firefly_importer.document import write_document

    def _write(document, name="config.yaml"):
        return write_document(document, tmp_path / name)

    return _write
