"""Configuration models for onepager."""

from pydantic import BaseModel, Field, HttpUrl, model_validator
from pathlib import Path
from typing import Literal, Optional
import yaml
import os
import stat


class AIServiceConfig(BaseModel):
    """Configuration for the generative AI backend."""

    endpoint: HttpUrl = Field(
        ...,
        description="Base URL of the AI service (or OpenAI-compatible API in 'llm' mode)"
    )

    api_key: str = Field(
        ...,
        description="API key for authentication"
    )

    mode: Literal["service", "llm"] = Field(
        default="service",
        description="'service' posts to generate-one-pager/refine-with-ai, 'llm' prompts a chat model directly"
    )

    model: Optional[str] = Field(
        default=None,
        description="Model identifier (required in 'llm' mode)"
    )

    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Read timeout in seconds"
    )

    max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Automatic retries on connection errors and timeouts"
    )

    @model_validator(mode="after")
    def check_model_for_llm_mode(self) -> "AIServiceConfig":
        if self.mode == "llm" and not self.model:
            raise ValueError("ai.model is required when ai.mode is 'llm'")
        return self

    model_config = {"frozen": True}


class StoreConfig(BaseModel):
    """Configuration for document persistence."""

    path: str = Field(
        default=str(Path.home() / ".local" / "share" / "onepager" / "documents.json"),
        description="Path to the JSON document store"
    )

    user_id: str = Field(
        default="local",
        min_length=1,
        description="User whose document is loaded (one document per user)"
    )

    model_config = {"frozen": True}


class EditorConfig(BaseModel):
    """Configuration for editing behaviour."""

    save_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Quiescence window in seconds before a save fires"
    )

    follow_up_threshold: int = Field(
        default=100,
        ge=0,
        description="Accepted content longer than this (flattened) arms a summarize offer"
    )

    max_concurrent_actions: int = Field(
        default=1,
        ge=1,
        description="Maximum number of blocks with an AI request in flight"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for onepager."""

    ai: Optional[AIServiceConfig] = Field(default=None, description="AI backend settings")
    store: StoreConfig = Field(default_factory=StoreConfig, description="Persistence settings")
    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editing settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Validates file permissions before loading.
        Raises PermissionError if file is group/world readable.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"ai:\n"
                f"  endpoint: https://YOUR-PROJECT.supabase.co/functions/v1\n"
                f"  api_key: YOUR_API_KEY_HERE\n\n"
                f"store:\n"
                f"  user_id: me\n\n"
                f"editor:\n"
                f"  save_delay: 1.0\n"
            )

        # The file holds an API key, so it must be 600
        mode = os.stat(path).st_mode
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            raise PermissionError(
                f"Config file has overly permissive permissions: {oct(mode)}\n"
                f"Run: chmod 600 {path}"
            )

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a YAML mapping")

        return cls(**data)

    model_config = {"frozen": True}
