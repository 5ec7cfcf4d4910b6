"""
Tests for configuration handling.
"""

import json

import pytest

from btnotify.config import (
    Config,
    DEFAULT_MAX_WAIT_MS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_RETRY_LIMIT,
    get_config,
    reset_config,
    set_config,
)


class TestConfig:
    """Tests for Config."""

    def test_defaults(self):
        """Defaults match the delivery engine's documented bounds."""
        config = Config()

        assert config.retry_limit == DEFAULT_RETRY_LIMIT == 10
        assert config.retry_delay_ms == DEFAULT_RETRY_DELAY_MS == 1000
        assert config.readiness_max_wait_ms == DEFAULT_MAX_WAIT_MS
        assert config.auto_enable_medium is False
        assert config.encoding == "text"

    def test_save_load(self, tmp_path):
        """Saved settings come back on load."""
        config = Config(data_dir=tmp_path, retry_limit=3, target_device="Desktop",
                        devices={"Desktop": "AA:BB:CC:DD:EE:FF"})
        config.save()

        loaded = Config.load(tmp_path)

        assert loaded.retry_limit == 3
        assert loaded.target_device == "Desktop"
        assert loaded.devices == {"Desktop": "AA:BB:CC:DD:EE:FF"}
        assert loaded.data_dir == tmp_path

    def test_load_missing(self, tmp_path):
        """No file means defaults."""
        config = Config.load(tmp_path / "nowhere")
        assert config.retry_limit == DEFAULT_RETRY_LIMIT

    def test_unknown_keys_ignored(self, tmp_path):
        """Config files from other versions still load."""
        (tmp_path / "config.json").write_text(json.dumps({"retry_limit": 4, "legacy_option": True}))

        config = Config.load(tmp_path)

        assert config.retry_limit == 4

    def test_set_value(self):
        """String values are converted to the option's type."""
        config = Config()

        assert config.set_value("retry_limit", "5") == 5
        assert config.set_value("auto_enable_medium", "yes") is True
        assert config.set_value("rfcomm_channel", "3") == 3
        assert config.set_value("rfcomm_channel", "none") is None
        assert config.set_value("target_device", "Desktop") == "Desktop"

    def test_set_unknown_key(self):
        with pytest.raises(KeyError):
            Config().set_value("volume", "11")

    @pytest.mark.parametrize("overrides", [
        {"retry_limit": -1},
        {"retry_delay_ms": -5},
        {"readiness_poll_interval_ms": 0},
        {"readiness_max_polls": 0},
        {"encoding": "xml"},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            Config(**overrides).validate()


class TestGlobalConfig:
    """Tests for the process-wide accessors."""

    def test_set_and_reset(self, tmp_path):
        config = Config(data_dir=tmp_path, retry_limit=1)
        set_config(config)
        assert get_config() is config

        reset_config()
        assert get_config(tmp_path) is not config
