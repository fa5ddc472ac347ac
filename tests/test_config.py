"""
Tests for workspace configuration.
"""

import json

import pytest

from airsdlc.config import (
    TrackerConfig,
    get_config_path,
    init_config,
    load_config,
    save_config,
    set_config_value,
    settable_keys,
)
from airsdlc.exceptions import ConfigError


class TestLoadSave:

    def test_defaults_when_missing(self, tmp_path):
        config = load_config(str(tmp_path))
        assert config.require_human_validation is True
        assert config.strict_lineage is True
        assert config.history_limit == 100

    def test_roundtrip(self, tmp_path):
        save_config(str(tmp_path), TrackerConfig(strict_lineage=False, default_author="dana"))
        config = load_config(str(tmp_path))
        assert config.strict_lineage is False
        assert config.default_author == "dana"

    def test_corrupt_file_falls_back(self, tmp_path):
        path = get_config_path(str(tmp_path))
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        assert load_config(str(tmp_path)) == TrackerConfig()

    def test_history_limit_is_clamped(self):
        assert TrackerConfig.from_dict({"history_limit": 0}).history_limit == 1
        assert TrackerConfig.from_dict({"history_limit": 50000}).history_limit == 1000
        assert TrackerConfig.from_dict({"history_limit": "lots"}).history_limit == 100

    def test_init_keeps_existing(self, tmp_path):
        first = init_config(str(tmp_path))
        assert first.created_at
        set_config_value(str(tmp_path), "history_limit", "7")
        again = init_config(str(tmp_path))
        assert again.history_limit == 7
        assert again.created_at == first.created_at


class TestSetValue:

    def test_settable_keys(self):
        assert set(settable_keys()) == {
            "require_human_validation", "strict_lineage", "history_limit", "default_author",
        }

    @pytest.mark.parametrize("raw,expected", [("false", False), ("NO", False), ("on", True), ("1", True)])
    def test_boolean_values(self, tmp_path, raw, expected):
        config = set_config_value(str(tmp_path), "strict_lineage", raw)
        assert config.strict_lineage is expected
        data = json.loads(get_config_path(str(tmp_path)).read_text())
        assert data["strict_lineage"] is expected

    def test_string_value(self, tmp_path):
        assert set_config_value(str(tmp_path), "default_author", "erin").default_author == "erin"

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError) as exc:
            set_config_value(str(tmp_path), "created_at", "now")
        assert "valid keys" in exc.value.details[0]

    @pytest.mark.parametrize("key,raw", [
        ("strict_lineage", "maybe"),
        ("history_limit", "ten"),
        ("history_limit", "0"),
        ("history_limit", "1001"),
    ])
    def test_bad_values(self, tmp_path, key, raw):
        with pytest.raises(ConfigError):
            set_config_value(str(tmp_path), key, raw)
        assert not get_config_path(str(tmp_path)).exists()
