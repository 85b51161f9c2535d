"""Configuration management for the LArch Visual prompt studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LARCHVIZ_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LARCHVIZ_* prefix)
2. .env file in the project root
3. Default values defined in LarchvizConfig

Example .env file:
    LARCHVIZ_API_KEY=your-gemini-key
    LARCHVIZ_IMAGE_MODEL=gemini-2.5-flash-image
    LARCHVIZ_GATEWAY_BACKEND=proxy
    LARCHVIZ_PROXY_BASE_URL=http://localhost:3001

The API key is also accepted from the unprefixed ``GEMINI_API_KEY`` or
``API_KEY`` variables, matching what the proxy server historically read.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

    from larchviz.core.config import config

    print(config.image_model)
    print(config.data_dir)

Timeouts
--------
The orchestration layer has no timeout policy of its own. ``proxy_timeout``
is handed straight to the HTTP transport; the Gemini SDK uses its own
defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LarchvizConfig(BaseSettings):
    """Main configuration for the prompt studio.

    Attributes
    ----------
    Gateway Settings:
        gateway_backend : Literal["gemini", "proxy"]
            Which gateway implementation the session uses
        api_key : str
            Google GenAI API key (only needed by the gemini backend)
        text_model : str
            Model used for prompt and template generation
        image_model : str
            Model used for visualization and image editing
        proxy_base_url : str
            Base URL of the proxy server (proxy backend)
        proxy_timeout : float
            Transport timeout in seconds for proxy calls

    Studio Settings:
        default_aspect_ratio : str
            Aspect ratio sent with every visualization request
        default_prompt_count : int
            Number of prompts requested when the caller gives none
        gallery_max_items : int
            Gallery capacity; the oldest items are evicted beyond it

    Paths:
        data_dir : Path
            Directory holding the persisted JSON collections

    Server Settings:
        server_host : str
            Bind address for the proxy server
        server_port : int
            Port for the proxy server
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LARCHVIZ_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Gateway settings
    gateway_backend: Literal["gemini", "proxy"] = Field(
        default="gemini",
        description="Gateway implementation: 'gemini' (direct SDK) or 'proxy' (HTTP)",
    )
    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("LARCHVIZ_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Google GenAI API key",
    )
    text_model: str = Field(
        default="gemini-3-flash-preview",
        description="Model for prompt and template generation",
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Model for visualization and image editing",
    )
    proxy_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the gateway proxy server",
    )
    proxy_timeout: float = Field(
        default=120.0,
        description="Transport timeout for proxy requests, in seconds",
        gt=0,
    )

    # Studio settings
    default_aspect_ratio: str = Field(
        default="16:9",
        description="Aspect ratio used for visualization requests",
    )
    default_prompt_count: int = Field(default=3, ge=1, le=10)
    gallery_max_items: int = Field(
        default=60,
        description="Maximum gallery size (newest first, oldest evicted)",
        ge=1,
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for persisted collections",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=3001,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance, loaded from LARCHVIZ_* variables and .env.
config = LarchvizConfig()
