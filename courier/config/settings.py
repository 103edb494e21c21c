"""
COURIER - Configuration Management

Handles request defaults from environment variables and files.
"""

import os
from dataclasses import dataclass
from typing import Optional
import yaml
import json

from courier.core.errors import ConfigurationError

BODY_FORMATS = ("json", "form")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass
class RequestDefaults:
    """Defaults applied to every request constructed with them."""

    # Timeouts in milliseconds (0 = unbounded)
    connect_timeout: int = 0
    read_timeout: int = 0

    # Upload settings
    max_buffer_size: int = 1024 * 1024  # Largest chunk read from an upload file

    # Body and callback modes
    body_format: str = "json"  # "json" or "form"
    async_process: bool = False  # Fire the early *_async callbacks
    logging_enabled: bool = False  # Trace requests at INFO level

    # Proxy settings
    proxy_host: Optional[str] = None
    proxy_port: int = 0
    proxy_username: Optional[str] = None
    proxy_password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "RequestDefaults":
        """
        Load defaults from environment variables.

        Environment variables:
        - COURIER_CONNECT_TIMEOUT: Connect timeout (ms)
        - COURIER_READ_TIMEOUT: Read timeout (ms)
        - COURIER_MAX_BUFFER_SIZE: Upload chunk size (bytes)
        - COURIER_BODY_FORMAT: "json" or "form"
        - COURIER_ASYNC_PROCESS: Enable early callbacks (true/false)
        - COURIER_LOGGING: Enable request tracing (true/false)
        - COURIER_PROXY_HOST / COURIER_PROXY_PORT: HTTP proxy
        - COURIER_PROXY_USER / COURIER_PROXY_PASSWORD: Proxy credentials
        """
        return cls(
            connect_timeout=int(os.environ.get("COURIER_CONNECT_TIMEOUT", cls.connect_timeout)),
            read_timeout=int(os.environ.get("COURIER_READ_TIMEOUT", cls.read_timeout)),
            max_buffer_size=int(os.environ.get("COURIER_MAX_BUFFER_SIZE", cls.max_buffer_size)),
            body_format=os.environ.get("COURIER_BODY_FORMAT", cls.body_format).strip().lower(),
            async_process=_env_bool("COURIER_ASYNC_PROCESS", cls.async_process),
            logging_enabled=_env_bool("COURIER_LOGGING", cls.logging_enabled),
            proxy_host=os.environ.get("COURIER_PROXY_HOST", cls.proxy_host),
            proxy_port=int(os.environ.get("COURIER_PROXY_PORT", cls.proxy_port)),
            proxy_username=os.environ.get("COURIER_PROXY_USER", cls.proxy_username),
            proxy_password=os.environ.get("COURIER_PROXY_PASSWORD", cls.proxy_password),
        )

    @classmethod
    def from_file(cls, path: str) -> "RequestDefaults":
        """
        Load defaults from YAML or JSON file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .json)

        Returns:
            RequestDefaults instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file format is invalid
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f)
            elif path.endswith(".json"):
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path}")

        return cls(**(data or {}))

    @classmethod
    def load(cls, config_file: Optional[str] = None) -> "RequestDefaults":
        """
        Load defaults with priority: file > env > defaults.

        Only keys present in the file override environment values.

        Args:
            config_file: Optional path to configuration file

        Returns:
            RequestDefaults instance
        """
        # Start with environment variables
        config = cls.from_env()

        # Override with file if provided
        if config_file and os.path.exists(config_file):
            with open(config_file, "r") as f:
                if config_file.endswith(".json"):
                    keys = json.load(f) or {}
                else:
                    keys = yaml.safe_load(f) or {}
            file_config = cls.from_file(config_file)
            # Merge: file config takes precedence
            for key in keys:
                setattr(config, key, getattr(file_config, key))

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.connect_timeout < 0 or self.read_timeout < 0:
            raise ConfigurationError("timeouts must not be negative")

        if self.max_buffer_size <= 0:
            raise ConfigurationError("max_buffer_size must be positive")

        if self.body_format not in BODY_FORMATS:
            raise ConfigurationError(
                f"body_format must be one of {list(BODY_FORMATS)}, got {self.body_format!r}"
            )

        if self.proxy_port and not self.proxy_host:
            raise ConfigurationError("proxy_port requires proxy_host")

        if self.proxy_host and not (0 < self.proxy_port < 65536):
            raise ConfigurationError("proxy_port must be between 1 and 65535")
