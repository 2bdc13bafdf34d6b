"""Tests for configuration loading."""

import pytest

from kafkanode.utils.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_FORMAT", "COMMIT_POLICY", "POLL_ERROR_MODE"):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    """Test Config."""

    def test_defaults(self):
        config = Config()

        assert config.get("logging.level") == "INFO"
        assert config.get("logging.output") == "stderr"
        assert config.get("store.commit_policy") == "permissive"
        assert config.get("dispatcher.poll_error_mode") == "all_or_nothing"

    def test_missing_key_default(self):
        assert Config().get("no.such.key", 42) == 42

    def test_file_overrides_defaults(self, tmp_path):
        """Test a YAML file is deep-merged over the defaults."""
        config_file = tmp_path / "node.yaml"
        config_file.write_text("store:\n  commit_policy: strict\n")

        config = Config(str(config_file))

        assert config.get("store.commit_policy") == "strict"
        assert config.get("dispatcher.poll_error_mode") == "all_or_nothing"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "node.yaml"
        config_file.write_text("dispatcher:\n  poll_error_mode: all_or_nothing\n")
        monkeypatch.setenv("POLL_ERROR_MODE", "partial")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Config(str(config_file))

        assert config.get("dispatcher.poll_error_mode") == "partial"
        assert config.get("logging.level") == "debug"

    def test_env_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv("COMMIT_POLICY", "strict")

        assert Config(use_env=False).get("store.commit_policy") == "permissive"

    def test_invalid_policy(self, monkeypatch):
        monkeypatch.setenv("COMMIT_POLICY", "lenient")

        with pytest.raises(ValueError):
            Config().validate()

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError):
            Config().validate()

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / "node.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            Config(str(config_file))

    def test_set_and_to_dict(self):
        """Test dot-notation set creates nested sections."""
        config = Config()
        config.set("extra.section.value", 3)

        data = config.to_dict()
        assert data["extra"]["section"]["value"] == 3

        data["extra"]["section"]["value"] = 4
        assert config.get("extra.section.value") == 3
