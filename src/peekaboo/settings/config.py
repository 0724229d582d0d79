"""
Peekaboo server settings.

Settings come from (highest priority first) explicit arguments, a YAML or
JSON file passed to :meth:`PeekabooSettings.from_file`, ``PEEKABOO_*``
environment variables, and a ``.env`` file in the working directory.
"""

import json
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from peekaboo.filesystem.config import SandboxConfig

_SANDBOX_DEFAULTS = SandboxConfig.model_fields


class PeekabooSettings(BaseSettings):
    """
    Environment-driven configuration for the server and CLI.

    Environment variables:
        PEEKABOO_ROOT_DIRECTORY - Root directory (default: working directory)
        PEEKABOO_RECURSIVE - List recursively (default: true)
        PEEKABOO_MAX_DEPTH - Maximum listing depth (default: 10)
        PEEKABOO_TIMEOUT_MS - Per-operation timeout in milliseconds
        PEEKABOO_MAX_FILE_SIZE_BYTES - Per-file read ceiling
        PEEKABOO_MAX_TOTAL_SIZE_BYTES - Per-request byte ceiling
        PEEKABOO_MAX_SEARCH_RESULTS - Files reported by a content search
        PEEKABOO_LOG_LEVEL - Logging level (default: INFO)

    Example:
        ```python
        settings = PeekabooSettings.from_file("~/.peekaboo.yaml")
        tools = SandboxTools(settings.to_sandbox_config())
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="PEEKABOO_",
        env_file=".env",
        extra="ignore",
    )

    root_directory: Path = Field(
        default_factory=Path.cwd,
        description="Directory the server is confined to",
    )
    recursive: bool = Field(
        default=_SANDBOX_DEFAULTS["recursive"].default,
        description="List subdirectories recursively",
    )
    max_depth: int = Field(
        default=_SANDBOX_DEFAULTS["max_depth"].default,
        ge=0,
        description="Maximum recursion depth for listings",
    )
    timeout_ms: Optional[int] = Field(
        default=_SANDBOX_DEFAULTS["timeout_ms"].default,
        ge=0,
        description="Per-operation timeout (milliseconds, 0 disables)",
    )
    max_file_size_bytes: Optional[int] = Field(
        default=_SANDBOX_DEFAULTS["max_file_size_bytes"].default,
        ge=0,
        description="Per-file read ceiling (bytes, 0 disables)",
    )
    max_total_size_bytes: Optional[int] = Field(
        default=_SANDBOX_DEFAULTS["max_total_size_bytes"].default,
        ge=0,
        description="Per-request byte ceiling (bytes, 0 disables)",
    )
    max_search_results: int = Field(
        default=_SANDBOX_DEFAULTS["max_search_results"].default,
        ge=1,
        description="Maximum files reported by a content search",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name so logging accepts it."""
        return v.upper()

    def to_sandbox_config(self) -> SandboxConfig:
        """Build the immutable sandbox configuration."""
        return SandboxConfig(
            root_directory=self.root_directory,
            recursive=self.recursive,
            max_depth=self.max_depth,
            timeout_ms=self.timeout_ms,
            max_file_size_bytes=self.max_file_size_bytes,
            max_total_size_bytes=self.max_total_size_bytes,
            max_search_results=self.max_search_results,
        )

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides) -> "PeekabooSettings":
        """
        Load settings from a YAML or JSON file.

        File format (YAML):
            ```yaml
            root_directory: /srv/project
            recursive: true
            max_depth: 5
            timeout_ms: 10000
            max_file_size_bytes: 1048576
            ```

        Args:
            path: Path to the settings file
            **overrides: Values taking precedence over the file

        Returns:
            Loaded PeekabooSettings instance

        Raises:
            FileNotFoundError: If the settings file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        content = path.read_text()

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        data = {**(data or {}), **overrides}
        return cls(**data)

    def __str__(self) -> str:
        return (
            f"PeekabooSettings(root={self.root_directory}, "
            f"recursive={self.recursive}, max_depth={self.max_depth})"
        )
