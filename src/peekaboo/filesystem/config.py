"""
Configuration for sandboxed filesystem access.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceLimits(BaseModel):
    """
    Per-server resource ceilings enforced by the ResourceGovernor.

    ``None`` or ``0`` disables the corresponding limit.
    """

    model_config = ConfigDict(frozen=True)

    timeout_ms: Optional[int] = Field(
        default=None,
        ge=0,
        description="Timeout for a single operation (milliseconds)",
    )
    max_file_size_bytes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum size of a single file that can be read (bytes)",
    )
    max_total_size_bytes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum bytes observed during one listing or search pass",
    )


class SandboxConfig(BaseModel):
    """
    Configuration for a sandboxed view of one directory tree.

    Immutable after construction. The root directory is resolved to an
    absolute path; nothing outside it can be listed, read or searched.

    Usage:
        config = SandboxConfig(
            root_directory=Path("/srv/project"),
            max_depth=5,
            max_file_size_bytes=1_000_000,
        )
    """

    model_config = ConfigDict(frozen=True)

    root_directory: Path = Field(
        description="Root directory (resolved to an absolute path)",
    )

    recursive: bool = Field(
        default=True,
        description="List subdirectories recursively",
    )

    max_depth: int = Field(
        default=10,
        ge=0,
        description="Maximum recursion depth for directory listings",
    )

    timeout_ms: Optional[int] = Field(
        default=30_000,  # 30 seconds
        ge=0,
        description="Timeout for a single operation (milliseconds)",
    )

    max_file_size_bytes: Optional[int] = Field(
        default=10 * 1024 * 1024,  # 10 MB
        ge=0,
        description="Maximum file size that can be read (bytes)",
    )

    max_total_size_bytes: Optional[int] = Field(
        default=100 * 1024 * 1024,  # 100 MB
        ge=0,
        description="Maximum total size for one listing or search pass (bytes)",
    )

    max_search_results: int = Field(
        default=20,
        ge=1,
        le=10000,
        description="Maximum number of files reported by a content search",
    )

    @field_validator("root_directory", mode="before")
    @classmethod
    def resolve_root(cls, v):
        """Resolve the root directory to an absolute path."""
        return Path(v).expanduser().resolve()

    @property
    def resource_limits(self) -> ResourceLimits:
        """Limits handed to each request's ResourceGovernor."""
        return ResourceLimits(
            timeout_ms=self.timeout_ms,
            max_file_size_bytes=self.max_file_size_bytes,
            max_total_size_bytes=self.max_total_size_bytes,
        )

    def __repr__(self) -> str:
        return (
            f"SandboxConfig("
            f"root={str(self.root_directory)!r}, "
            f"recursive={self.recursive}, "
            f"max_depth={self.max_depth})"
        )
