"""
Tests for configuration document I/O.
"""
import pytest

from firefly_importer.document import (
    deep_merge,
    dump_document,
    get_path,
    load_document,
    parse_document,
    set_path,
    write_document,
)
from firefly_importer.exceptions import ConfigLoadError


class TestLoadDocument:
    """Tests for reading YAML and JSON documents."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("firefly:\n  baseUrl: http://localhost\nbanks: []\n", encoding="utf-8")
        assert load_document(path) == {"firefly": {"baseUrl": "http://localhost"}, "banks": []}

    def test_load_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"banks": [{"type": "leumi"}]}', encoding="utf-8")
        assert load_document(path) == {"banks": [{"type": "leumi"}]}

    def test_dates_stay_strings(self):
        assert parse_document("startDate: 2024-01-01\n") == {"startDate": "2024-01-01"}

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_document(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            load_document(tmp_path / "missing.yaml")

    def test_invalid_yaml(self):
        with pytest.raises(ConfigLoadError):
            parse_document("banks: [unclosed\n")

    def test_invalid_json(self):
        with pytest.raises(ConfigLoadError):
            parse_document("{nope", json=True)

    def test_root_must_be_mapping(self):
        with pytest.raises(ConfigLoadError):
            parse_document("- a\n- b\n")

    def test_recursive_alias_rejected(self):
        with pytest.raises(ConfigLoadError) as exc:
            parse_document("banks: &b [{type: x, loop: *b}]\n")
        assert "banks[0].loop" in str(exc.value)

    def test_recursive_mapping_rejected(self):
        with pytest.raises(ConfigLoadError):
            parse_document("firefly: &f {self: *f}\n")

    def test_shared_alias_allowed(self):
        text = "common: &c {timeout: 5}\nbanks: [{type: a, options: *c}, {type: b, options: *c}]\n"
        document = parse_document(text)
        assert document["banks"][1]["options"] == {"timeout": 5}

    @pytest.mark.parametrize("text", [
        "1: one\n",
        "banks: [{? [a, b] : x}]\n",
    ])
    def test_non_string_keys_rejected(self, text):
        with pytest.raises(ConfigLoadError):
            parse_document(text)

    @pytest.mark.parametrize("text", [
        "credentials: {password: !!binary aGVsbG8=}\n",
        "tags: !!set {a, b}\n",
    ])
    def test_unsupported_values_rejected(self, text):
        with pytest.raises(ConfigLoadError):
            parse_document(text)


class TestDumpDocument:
    """Tests for writing documents without losing string scalars."""

    def test_strings_survive_reload(self, tmp_path):
        document = {
            "credentials": {"id": "012345", "card6Digits": "123456", "flag": "true", "nothing": "null"},
            "timeout": 5,
            "parallel": False,
            "startDate": "2024-01-01",
        }
        path = write_document(document, tmp_path / "out.yaml")
        assert load_document(path) == document

    def test_key_order_kept(self):
        text = dump_document({"zeta": "1", "alpha": "2"})
        assert text.index("zeta") < text.index("alpha")

    def test_long_values_on_one_line(self):
        value = "encrypted:v1:" + "A" * 500
        assert f"'{value}'" in dump_document({"tokenApi": value})

    def test_json_round_trip(self, tmp_path):
        document = {"banks": [{"credentials": {"id": "012345"}}], "timeout": 3}
        path = write_document(document, tmp_path / "out.json")
        assert load_document(path) == document


class TestTreeHelpers:
    """Tests for deep_merge / get_path / set_path."""

    def test_deep_merge(self):
        base = {"scraper": {"parallel": True, "timeout": None}, "log": {"level": "info"}}
        merged = deep_merge(base, {"scraper": {"timeout": 10}, "banks": []})
        assert merged == {
            "scraper": {"parallel": True, "timeout": 10},
            "log": {"level": "info"},
            "banks": [],
        }
        assert base["scraper"]["timeout"] is None

    def test_get_path(self):
        document = {"firefly": {"baseUrl": "x"}}
        assert get_path(document, "firefly.baseUrl") == "x"
        assert get_path(document, "firefly.tokenApi") is None
        assert get_path(document, "firefly.baseUrl.deeper", "d") == "d"

    def test_set_path_creates_parents(self):
        document = {"log": "flat"}
        set_path(document, "log.level", "debug")
        set_path(document, "scraper.timeout", 5)
        assert document == {"log": {"level": "debug"}, "scraper": {"timeout": 5}}
