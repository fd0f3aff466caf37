"""Configuration management with lazy validation."""

from pathlib import Path
from functools import cached_property

from onepager.models.config import AIServiceConfig, Config, EditorConfig, StoreConfig
from onepager.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "onepager" / "config.yaml"


class ConfigManager:
    """
    Configuration manager with lazy validation.

    Sections are resolved when first accessed, so commands that never talk
    to the AI backend work without an ``ai`` section.

    Example:
        >>> config_mgr = ConfigManager.load_default()
        >>> store_config = config_mgr.store
        >>> ai_config = config_mgr.ai  # Raises ValueError if not configured
    """

    def __init__(self, config: Config):
        """
        Initialize config manager with loaded config.

        Args:
            config: Loaded and validated Config instance
        """
        self._config = config

    @classmethod
    def load_default(cls) -> "ConfigManager":
        """
        Load configuration from the default path (~/.config/onepager/config.yaml).

        A missing file yields the built-in defaults (no AI backend).

        Raises:
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        if not DEFAULT_CONFIG_PATH.exists():
            logger.info("config_defaults_used", path=str(DEFAULT_CONFIG_PATH))
            return cls(Config())
        return cls.load_from_path(DEFAULT_CONFIG_PATH)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Returns:
            ConfigManager instance with loaded config

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path))
            return cls(config)

        except FileNotFoundError as e:
            logger.error("config_not_found", path=str(path), error=str(e))
            raise

        except PermissionError as e:
            logger.error("config_permission_error", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

    @cached_property
    def ai(self) -> AIServiceConfig:
        """
        Get AI backend configuration.

        Raises:
            ValueError: If no ``ai`` section is configured
        """
        if self._config.ai is None:
            logger.error("ai_config_missing")
            raise ValueError(
                "No AI backend configured. Add an 'ai' section "
                f"(endpoint, api_key) to {DEFAULT_CONFIG_PATH}"
            )
        return self._config.ai

    @cached_property
    def store(self) -> StoreConfig:
        return self._config.store

    @cached_property
    def editor(self) -> EditorConfig:
        return self._config.editor
