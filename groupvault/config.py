"""
GroupVault configuration management.

Loads configuration from environment variables or .env file.
"""

from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STORAGE_BACKENDS = ("memory", "file")

# AES-128, AES-192, AES-256
SHARED_KEY_LENGTHS = (16, 24, 32)


class VaultConfig(BaseSettings):
    """
    GroupVault configuration settings.

    Can be loaded from:
    1. Environment variables (GROUPVAULT_STORAGE_BACKEND, GROUPVAULT_STORAGE_DIR, etc.)
    2. .env file in project root
    3. Direct instantiation with kwargs

    Example:
        ```python
        # From environment
        config = VaultConfig()

        # Direct instantiation
        config = VaultConfig(
            storage_backend="file",
            storage_dir="/var/lib/groupvault",
        )
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        description="Storage backend for vault state: 'memory' or 'file'",
    )

    storage_dir: str = Field(
        default=".",
        description="Directory holding <vault-id>.json files (file backend only)",
    )

    # Identity
    namespace: Optional[UUID] = Field(
        default=None,
        description="Fixed UUID namespace for member ids (a fresh one per vault if unset)",
    )

    # Key material
    shared_key_length: int = Field(
        default=32,
        description="Length in bytes of each generated shared content secret",
    )

    # Policy switches
    rotate_on_role_change: bool = Field(
        default=False,
        description="Rekey the vault when a member's role changes",
    )

    bind_revision: bool = Field(
        default=False,
        description="Require mutating commands to carry the current vault revision",
    )

    # Debug
    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Ensure the storage backend is one we ship."""
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(
                f"storage_backend must be one of {', '.join(STORAGE_BACKENDS)}"
            )
        return v

    @field_validator("shared_key_length")
    @classmethod
    def validate_shared_key_length(cls, v: int) -> int:
        """Ensure the shared key length is a valid AES key size."""
        if v not in SHARED_KEY_LENGTHS:
            raise ValueError("shared_key_length must be 16, 24 or 32 bytes")
        return v


def load_config(**kwargs) -> VaultConfig:
    """
    Load GroupVault configuration.

    Priority order:
    1. Keyword arguments
    2. Environment variables (GROUPVAULT_*)
    3. .env file

    Args:
        **kwargs: Override configuration values

    Returns:
        VaultConfig instance

    Raises:
        ValidationError: If a field is invalid

    Example:
        ```python
        # Load from environment
        config = load_config()

        # Override specific values
        config = load_config(storage_backend="file", debug=True)
        ```
    """
    return VaultConfig(**kwargs)
