"""Unit tests for configuration models and ConfigManager."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from onepager.config import ConfigManager
from onepager.models.config import AIServiceConfig, Config, EditorConfig, StoreConfig


def write_config(path, text, mode=0o600):
    path.write_text(text)
    os.chmod(path, mode)
    return path


class TestAIServiceConfig:
    """Test AI backend configuration model."""

    def test_valid_service_config(self):
        config = AIServiceConfig(
            endpoint="https://project.functions.test/v1",
            api_key="secret",
        )

        assert config.mode == "service"
        assert config.timeout == 60.0
        assert config.max_retries == 1

    def test_llm_mode_requires_model(self):
        with pytest.raises(ValidationError, match="ai.model is required"):
            AIServiceConfig(endpoint="http://localhost:11434/v1", api_key="x", mode="llm")

    def test_invalid_endpoint(self):
        with pytest.raises(ValidationError):
            AIServiceConfig(endpoint="not a url", api_key="x")

    def test_config_immutable(self):
        config = AIServiceConfig(endpoint="https://a.test", api_key="x")

        with pytest.raises(ValidationError):
            config.api_key = "other"


class TestEditorConfig:
    """Test editor configuration defaults and bounds."""

    def test_defaults(self):
        config = EditorConfig()

        assert config.save_delay == 1.0
        assert config.follow_up_threshold == 100
        assert config.max_concurrent_actions == 1

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValidationError):
            EditorConfig(max_concurrent_actions=0)


class TestConfigLoad:
    """Test loading config.yaml."""

    def test_load_full_config(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", (
            "ai:\n"
            "  endpoint: https://project.functions.test/v1\n"
            "  api_key: secret\n"
            "store:\n"
            f"  path: {tmp_path / 'docs.json'}\n"
            "  user_id: alice\n"
            "editor:\n"
            "  save_delay: 0.5\n"
        ))

        config = Config.load(path)

        assert config.ai.api_key == "secret"
        assert config.store.user_id == "alice"
        assert config.editor.save_delay == 0.5
        assert config.editor.follow_up_threshold == 100

    def test_empty_file_uses_defaults(self, tmp_path):
        config = Config.load(write_config(tmp_path / "config.yaml", ""))

        assert config.ai is None
        assert config.store == StoreConfig()

    def test_missing_file_shows_example(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="api_key"):
            Config.load(tmp_path / "missing.yaml")

    def test_group_readable_file_rejected(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", "editor: {}\n", mode=0o644)

        with pytest.raises(PermissionError, match="chmod 600"):
            Config.load(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", "- a\n- b\n")

        with pytest.raises(ValueError, match="YAML mapping"):
            Config.load(path)


class TestConfigManager:
    """Test ConfigManager lazy sections."""

    def test_invalid_config_becomes_value_error(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", "editor:\n  save_delay: -1\n")

        with pytest.raises(ValueError, match="Configuration validation failed"):
            ConfigManager.load_from_path(path)

    def test_permission_error_propagates(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", "editor: {}\n", mode=0o640)

        with pytest.raises(PermissionError):
            ConfigManager.load_from_path(path)

    def test_missing_ai_section(self):
        manager = ConfigManager(Config())

        with pytest.raises(ValueError, match="No AI backend configured"):
            manager.ai

    def test_sections(self):
        ai = AIServiceConfig(endpoint="https://a.test", api_key="x")
        manager = ConfigManager(Config(ai=ai))

        assert manager.ai == ai
        assert manager.editor == EditorConfig()

    def test_load_default_without_file(self, tmp_path):
        with patch("onepager.config.DEFAULT_CONFIG_PATH", tmp_path / "none.yaml"):
            manager = ConfigManager.load_default()

        assert manager.store == StoreConfig()
