"""
Configuration management for services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv


class ServiceConfig:
    """Configuration management for services using environment variables."""

    def __init__(self) -> None:
        """Initialize configuration by loading environment variables."""
        # Always load .env from the project root (where app.py is located)
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=True)
        self.config: dict[str, Any] = {}
        self.settings: dict[str, Any] = {}
        self.settings_path = os.getenv(
            "SUBTITLE_SETTINGS_PATH",
            os.path.join(os.path.dirname(__file__), "../config/subtitles.yaml"),
        )
        self.load_from_env()
        self.load_settings()

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.config = {
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            "refresh_queue_key": os.getenv("REFRESH_QUEUE_KEY", "metadata_refresh"),
            "library_manifest_path": os.getenv(
                "LIBRARY_MANIFEST_PATH",
                os.path.join(os.path.dirname(__file__), "../config/library.yaml"),
            ),
            "ffmpeg_path": os.getenv("FFMPEG_PATH", "ffmpeg"),
            "encoder_timeout_seconds": float(os.getenv("ENCODER_TIMEOUT_SECONDS", "120")),
            "subtitle_provider_url": os.getenv("SUBTITLE_PROVIDER_URL", "http://localhost:8010"),
            "subtitle_provider_timeout": int(os.getenv("SUBTITLE_PROVIDER_TIMEOUT", "30")),
            "stream_chunk_size": int(os.getenv("STREAM_CHUNK_SIZE", "65536")),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def load_settings(self) -> None:
        """Load subtitle service settings from YAML file."""
        path = os.path.abspath(self.settings_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.settings = data

    def get_setting(self, path: str, default: Any = None) -> Any:
        """Retrieve a settings value via dotted path."""
        env_override_key = f"SUBTITLES_FLAG_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.settings
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    def set_settings(self, settings: dict[str, Any]) -> None:
        """Override settings (useful for tests)."""
        self.settings = settings

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()
