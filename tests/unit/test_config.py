"""Tests for JSON configuration loading."""

import json

import pytest

from variantbench.config import DEFAULT_CONFIG_FILE, load_config


@pytest.mark.unit
class TestLoadConfig:
    """Test load_config()."""

    def test_packaged_defaults(self):
        """Test that the packaged config.json is loaded without arguments."""
        config = load_config()

        assert config["num_shards"] == 64
        assert config["bin_version"] == "1.0.0"
        assert config["happy_image"] == "pkrusche/hap.py"
        assert config["use_sudo"] is True

    def test_user_file_overrides_defaults(self, tmp_path):
        """Test that a user file only needs the keys it overrides."""
        user_config = tmp_path / "config.json"
        user_config.write_text(json.dumps({"num_shards": 16, "use_sudo": False}))

        config = load_config(str(user_config))

        assert config["num_shards"] == 16
        assert config["use_sudo"] is False
        with open(DEFAULT_CONFIG_FILE, encoding="utf-8") as f:
            defaults = json.load(f)
        assert config["reference"] == defaults["reference"]

    def test_missing_file(self, tmp_path):
        """Test that a missing user file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON raises ValueError."""
        bad = tmp_path / "bad.json"
        bad.write_text("{num_shards: 16")

        with pytest.raises(ValueError, match="Error parsing JSON"):
            load_config(str(bad))

    def test_non_object_json(self, tmp_path):
        """Test that a JSON document that is not an object is rejected."""
        bad = tmp_path / "list.json"
        bad.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="JSON object"):
            load_config(str(bad))
